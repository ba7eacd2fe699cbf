"""
Solana message signature verification.

The custody service has been observed to sign either the raw message bytes
or a SHA-256 digest of the message behind an off-chain prefix. Both are
tried, raw first.
"""

import hashlib

from nacl.signing import VerifyKey

from .bases import MessageTransform
from .ed25519 import Ed25519Verifier, verify_key_from_bytes
from ..encoding import decode_base58, decode_hex, is_hex
from ..engine.exceptions import DecodeError, MalformedIdentityError
from ..schemas.bases import EncodingHint

SOLANA_MESSAGE_PREFIX = b"\x19Solana Signed Message:\n"


def hashed_with_prefix(message: bytes) -> bytes:
    """SHA-256 of the Solana off-chain prefix followed by ``message``."""
    return hashlib.sha256(SOLANA_MESSAGE_PREFIX + message).digest()


class SolanaVerifier(Ed25519Verifier):
    """
    ed25519 verifier for Solana wallets.

    Identity: base58 address, or the 32-byte public key as hex (``0x``
    optional). Signature: 128-character hex or base58.
    """

    name = "solana-ed25519"
    chain_label = "Solana"
    signature_encodings = (EncodingHint.HEX, EncodingHint.BASE58)
    transforms = (
        MessageTransform("Raw Message", lambda message: message),
        MessageTransform("Hashed with Prefix", hashed_with_prefix),
    )

    def parse_identity(self, identity: str) -> VerifyKey:
        try:
            if identity.startswith(("0x", "0X")) or (len(identity) == 64 and is_hex(identity)):
                public_key = decode_hex(identity)
            else:
                public_key = decode_base58(identity)
        except DecodeError as exc:
            raise MalformedIdentityError(f"Invalid Solana address {identity!r}: {exc}") from exc
        return verify_key_from_bytes(public_key)
