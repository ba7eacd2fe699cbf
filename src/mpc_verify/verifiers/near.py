"""
NEAR message signature verification.

The custody service signs the SHA-256 digest of the message with the
account's ed25519 key. Signatures over the raw message are not accepted.
"""

import hashlib
from typing import Optional

from nacl.signing import VerifyKey

from .bases import MessageTransform
from .ed25519 import Ed25519Verifier, verify_key_from_bytes
from ..encoding import decode_base58, decode_hex, is_hex
from ..engine.exceptions import DecodeError, MalformedIdentityError
from ..schemas.bases import CanonicalSignature, EncodingHint, SignatureMaterial

NEAR_KEY_PREFIX = "ed25519:"


def sha256_digest(message: bytes) -> bytes:
    return hashlib.sha256(message).digest()


class NearVerifier(Ed25519Verifier):
    """
    ed25519 verifier for NEAR wallets.

    Identity: ``ed25519:<base58>`` public key, a 64-character hex key
    (which is also the implicit account id), or a bare base58 key.
    Signature: hex, base64, or ``ed25519:<base58>``.
    """

    name = "near-ed25519"
    chain_label = "NEAR"
    signature_encodings = (EncodingHint.HEX, EncodingHint.BASE64, EncodingHint.BASE58)
    transforms = (MessageTransform("SHA-256", sha256_digest),)

    def success_message(self, transform: MessageTransform) -> str:
        return "NEAR signature verified"

    def parse_identity(self, identity: str) -> VerifyKey:
        try:
            if identity.startswith(NEAR_KEY_PREFIX):
                public_key = decode_base58(identity[len(NEAR_KEY_PREFIX):])
            elif identity.startswith(("0x", "0X")) or (len(identity) == 64 and is_hex(identity)):
                public_key = decode_hex(identity)
            else:
                public_key = decode_base58(identity)
        except DecodeError as exc:
            raise MalformedIdentityError(
                f"Invalid NEAR public key {identity!r}: expected ed25519:<base58> or 64 hex characters"
            ) from exc
        return verify_key_from_bytes(public_key)

    def canonicalize(
        self,
        material: Optional[SignatureMaterial],
        hint: EncodingHint = EncodingHint.AUTO,
    ) -> CanonicalSignature:
        if isinstance(material, str) and material.strip().startswith(NEAR_KEY_PREFIX):
            raw = decode_base58(material.strip()[len(NEAR_KEY_PREFIX):])
            return CanonicalSignature(raw=raw, encoding=EncodingHint.BASE58.value)
        return super().canonicalize(material, hint)
