"""
Abstract Base Classes for Scheme Verifiers

Defines the interface every chain-specific signature verifier (EVM, Solana,
NEAR, Bitcoin, Substrate, presence checks) implements, together with the
small retry primitives they share.

Core Classes:
    - Candidate: One labelled verification attempt (a recovery id, a message
      transform, a key type)
    - MessageTransform: Labelled function mapping message bytes to the bytes
      that were actually signed
    - SchemeVerifier: Template for ``parse identity -> canonicalize signature ->
      transform message -> verify``

Verifiers never raise for a cryptographically invalid signature; they
return ``SchemeResult(is_valid=False, ...)``. Malformed input surfaces as a
``VerificationInputError`` subclass, which the dispatcher converts into a
failed outcome.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Callable, Iterable, NamedTuple, Optional, Sequence, Tuple

from ..encoding import decode_preferred, message_bytes
from ..engine.exceptions import DecodeError
from ..schemas.bases import (
    CanonicalSignature,
    EncodingHint,
    RSVSignature,
    SchemeResult,
    SignatureMaterial,
    VerificationRequest,
)
from ..utils import logger


@dataclass(frozen=True)
class Candidate:
    """
    A single labelled verification attempt.

    Attributes:
        label: Human-readable name of the path (e.g. ``"v=27"``)
        attempt: Zero-argument callable returning ``True`` on a match
    """
    label: str
    attempt: Callable[[], bool]


class MessageTransform(NamedTuple):
    """Labelled message transform applied before signature verification."""
    label: str
    apply: Callable[[bytes], bytes]


def first_success(candidates: Iterable[Candidate]) -> Optional[Candidate]:
    """
    Evaluate candidates in order and return the first that succeeds.

    Evaluation short-circuits: later candidates are never attempted once one
    matches.

    Returns:
        The winning ``Candidate``, or ``None`` if every attempt failed.
    """
    for candidate in candidates:
        ok = candidate.attempt()
        logger.debug(f"candidate {candidate.label}: {'match' if ok else 'no match'}")
        if ok:
            return candidate
    return None


def length_mismatch(expected: Sequence[int], actual: int) -> SchemeResult:
    """Failed result for a signature whose decoded size is not accepted."""
    wanted = " or ".join(str(n) for n in expected)
    return SchemeResult(
        is_valid=False,
        message=f"Signature length mismatch: expected {wanted} bytes, got {actual}",
    )


class SchemeVerifier(ABC):
    """
    Abstract base class for chain-specific signature verifiers.

    Subclasses declare their signature conventions as class attributes and
    implement the three hooks; ``evaluate`` wires them together for a
    ``VerificationRequest``.

    Class Attributes:
        name: Scheme identifier reported in outcomes
        signature_lengths: Accepted decoded signature sizes in bytes, or an
            empty tuple when any size is acceptable
        signature_encodings: Encodings tried, in order, when the request does
            not declare one

    Example Implementation:
        class MyChainVerifier(SchemeVerifier):
            name = "mychain"
            signature_lengths = (64,)

            def parse_identity(self, identity): ...
            def verify(self, message, signature, identity): ...
    """

    name: str = ""
    signature_lengths: Tuple[int, ...] = ()
    signature_encodings: Tuple[EncodingHint, ...] = (EncodingHint.HEX, EncodingHint.BASE64)

    @abstractmethod
    def parse_identity(self, identity: str) -> Any:
        """
        Parse the expected address or public key.

        Raises:
            MalformedIdentityError: If ``identity`` cannot be parsed.
        """
        pass

    def canonicalize(
        self,
        material: Optional[SignatureMaterial],
        hint: EncodingHint = EncodingHint.AUTO,
    ) -> CanonicalSignature:
        """
        Decode signature material into canonical bytes.

        The default handles combined signature strings: a declared encoding
        is decoded strictly, otherwise ``signature_encodings`` are tried in
        order preferring a decode of an accepted length.

        Raises:
            DecodeError: If the material is missing or cannot be decoded.
        """
        if material is None or material == "":
            raise DecodeError("No signature material returned")
        if isinstance(material, RSVSignature):
            raise DecodeError(f"{self.name} signatures are not split into r/s/v components")

        order = self.signature_encodings if hint == EncodingHint.AUTO else (hint,)
        expected = self.signature_lengths[0] if self.signature_lengths else None
        raw, used = decode_preferred(material.strip(), order, expected)
        return CanonicalSignature(raw=raw, encoding=used.value)

    @abstractmethod
    def verify(self, message: Any, signature: CanonicalSignature, identity: Any) -> SchemeResult:
        """
        Verify ``signature`` over ``message`` against the parsed ``identity``.

        Must not raise for a cryptographically invalid signature.
        """
        pass

    def prepare_message(self, request: VerificationRequest) -> Any:
        """Canonical message passed to ``verify``; raw message bytes by default."""
        return message_bytes(request.raw_message, request.message_is_hex_encoded)

    def evaluate(self, request: VerificationRequest) -> SchemeResult:
        """
        Run the full verification for a request.

        Steps:
            1. Parse the expected identity
            2. Canonicalize the signature material
            3. Reject signatures of an unaccepted length
            4. Build the canonical message and verify

        Raises:
            VerificationInputError: For undecodable material or identities.
        """
        identity = self.parse_identity(request.expected_identity.strip())
        signature = self.canonicalize(request.signature_material, request.signature_encoding)
        logger.debug(
            f"{self.name}: decoded {len(signature.raw)}-byte signature via {signature.encoding}"
        )

        if self.signature_lengths and len(signature.raw) not in self.signature_lengths:
            return length_mismatch(self.signature_lengths, len(signature.raw))

        message = self.prepare_message(request)
        return self.verify(message, signature, identity)
