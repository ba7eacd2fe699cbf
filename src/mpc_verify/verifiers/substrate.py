"""
Substrate (Polkadot) message signature verification.

The custody service signs the BLAKE2b-256 digest of the message. Polkadot
accounts may hold sr25519 or ed25519 keys and the address does not say
which, so sr25519 is tried first and ed25519 second.
"""

import hashlib

from substrateinterface import Keypair, KeypairType
from substrateinterface.utils.ss58 import ss58_decode

from .bases import Candidate, SchemeVerifier, first_success
from ..encoding import decode_hex
from ..engine.exceptions import DecodeError, MalformedIdentityError
from ..schemas.bases import CanonicalSignature, EncodingHint, SchemeResult
from ..utils import logger

GENERIC_SS58_FORMAT = 42

KEY_TYPES = (
    ("sr25519", KeypairType.SR25519),
    ("ed25519", KeypairType.ED25519),
)


def blake2b_256(message: bytes) -> bytes:
    return hashlib.blake2b(message, digest_size=32).digest()


def _keypair_matches(public_key: bytes, crypto_type: int, message: bytes, signature: bytes) -> bool:
    keypair = Keypair(public_key=public_key, ss58_format=GENERIC_SS58_FORMAT, crypto_type=crypto_type)
    try:
        return bool(keypair.verify(message, signature))
    except (ValueError, TypeError) as exc:
        logger.warning(f"Substrate verify rejected input: {exc}")
        return False


class SubstrateVerifier(SchemeVerifier):
    """
    sr25519 / ed25519 verifier over BLAKE2b-256 for Substrate wallets.

    Identity: SS58 address of any network prefix, or the 32-byte public key
    as ``0x`` hex. Signature: hex (``0x`` optional) or base64.
    """

    name = "substrate-blake2b"
    signature_lengths = (64,)
    signature_encodings = (EncodingHint.HEX, EncodingHint.BASE64)

    def parse_identity(self, identity: str) -> bytes:
        try:
            if identity.startswith(("0x", "0X")):
                public_key = decode_hex(identity)
            else:
                public_key = bytes.fromhex(ss58_decode(identity))
        except (DecodeError, ValueError) as exc:
            raise MalformedIdentityError(f"Invalid Substrate address {identity!r}: {exc}") from exc
        if len(public_key) != 32:
            raise MalformedIdentityError(
                f"Substrate public key must be 32 bytes, got {len(public_key)}"
            )
        return public_key

    def prepare_message(self, request) -> bytes:
        return blake2b_256(super().prepare_message(request))

    def verify(self, message: bytes, signature: CanonicalSignature, identity: bytes) -> SchemeResult:
        candidates = [
            Candidate(
                label,
                lambda crypto_type=crypto_type: _keypair_matches(identity, crypto_type, message, signature.raw),
            )
            for label, crypto_type in KEY_TYPES
        ]
        winner = first_success(candidates)
        if winner is not None:
            return SchemeResult(
                is_valid=True, message=f"Substrate signature verified ({winner.label})", candidate=winner.label,
            )
        return SchemeResult(
            is_valid=False,
            message="Substrate signature verification failed (tried: sr25519, ed25519)",
        )
