"""
Shared ed25519 verification for Solana and NEAR.

Subclasses supply the identity format, the signature encodings and the
ordered message transforms; this base tries each transform with
``nacl.signing.VerifyKey`` and reports which one matched.
"""

from typing import Tuple

from nacl.exceptions import BadSignatureError
from nacl.signing import VerifyKey

from .bases import Candidate, MessageTransform, SchemeVerifier, first_success
from ..engine.exceptions import MalformedIdentityError
from ..schemas.bases import CanonicalSignature, SchemeResult
from ..utils import logger, short

ED25519_KEY_LENGTH = 32
ED25519_SIGNATURE_LENGTH = 64


def verify_key_from_bytes(public_key: bytes) -> VerifyKey:
    """
    Build a ``VerifyKey`` from raw public key bytes.

    Raises:
        MalformedIdentityError: If the key is not 32 bytes.
    """
    if len(public_key) != ED25519_KEY_LENGTH:
        raise MalformedIdentityError(
            f"ed25519 public key must be {ED25519_KEY_LENGTH} bytes, got {len(public_key)}"
        )
    return VerifyKey(public_key)


def ed25519_matches(verify_key: VerifyKey, message: bytes, signature: bytes) -> bool:
    """True if ``signature`` is a valid ed25519 signature of ``message``."""
    try:
        verify_key.verify(message, signature)
    except BadSignatureError:
        return False
    except ValueError as exc:
        logger.warning(f"ed25519 verify rejected input: {exc}")
        return False
    return True


class Ed25519Verifier(SchemeVerifier):
    """Base class for ed25519 schemes with ordered message transforms."""

    signature_lengths = (ED25519_SIGNATURE_LENGTH,)
    transforms: Tuple[MessageTransform, ...] = ()
    chain_label: str = "ed25519"

    def success_message(self, transform: MessageTransform) -> str:
        return f"Verified (Schema: {transform.label})"

    def verify(self, message: bytes, signature: CanonicalSignature, identity: VerifyKey) -> SchemeResult:
        candidates = [
            Candidate(
                transform.label,
                lambda transform=transform: ed25519_matches(identity, transform.apply(message), signature.raw),
            )
            for transform in self.transforms
        ]
        winner = first_success(candidates)
        if winner is not None:
            transform = next(t for t in self.transforms if t.label == winner.label)
            return SchemeResult(is_valid=True, message=self.success_message(transform), candidate=winner.label)

        tried = ", ".join(t.label for t in self.transforms)
        key = short(identity.encode().hex())
        return SchemeResult(
            is_valid=False,
            message=f"{self.chain_label} signature verification failed for key {key} (tried: {tried})",
        )
