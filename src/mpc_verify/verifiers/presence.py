"""
Presence checks for operations that are not cryptographically verified.

Transaction and delegate-action signatures (and Cosmos message signatures)
are only checked for presence and shape: a signature string that decodes as
hex, base64 or base58, a well-formed r/s pair, or a decodable
signed-transaction payload. Encoded payloads are first brought into their
chain family's wire format (JSON and hex become base64 on base64 chains).
A passing presence check does not prove who signed.
"""

from typing import Optional, Tuple

from .bases import SchemeVerifier
from .near import NEAR_KEY_PREFIX
from ..encoding import decode_hex, decode_preferred, normalize_encoded_payload
from ..engine.exceptions import DecodeError
from ..schemas.bases import (
    CanonicalSignature,
    EncodingHint,
    RSVSignature,
    SchemeResult,
    SignatureMaterial,
    VerificationRequest,
)

NO_SIGNATURE_MESSAGE = "No signature material returned"

#: Encodings a presence-checked payload may use when none is declared.
PAYLOAD_ENCODINGS: Tuple[EncodingHint, ...] = (EncodingHint.HEX, EncodingHint.BASE64, EncodingHint.BASE58)


def decode_payload(value: str, hint: EncodingHint, label: str, description: str) -> CanonicalSignature:
    """
    Decode a presence-checked string payload.

    A blank payload decodes to empty bytes so the caller can report it as
    missing rather than malformed.

    Raises:
        DecodeError: If the payload decodes with none of the allowed encodings.
    """
    body = value.strip()
    order = PAYLOAD_ENCODINGS if EncodingHint(hint) == EncodingHint.AUTO else (EncodingHint(hint),)
    if body.startswith(NEAR_KEY_PREFIX):
        body, order = body[len(NEAR_KEY_PREFIX):], (EncodingHint.BASE58,)
    if not body:
        return CanonicalSignature(raw=b"", encoding=label)
    try:
        raw, _ = decode_preferred(body, order)
    except DecodeError as exc:
        raise DecodeError(f"{description} is not well-formed: {exc}") from exc
    return CanonicalSignature(raw=raw, encoding=label)


class PresenceVerifier(SchemeVerifier):
    """
    Accepts any present, well-formed signature material.

    Args:
        success_message: Explanation reported when material is present.
        name: Scheme identifier reported in outcomes.
    """

    def __init__(self, success_message: str, name: str = "presence"):
        self.success_message = success_message
        self.name = name

    def parse_identity(self, identity: str) -> str:
        return identity

    def canonicalize(
        self,
        material: Optional[SignatureMaterial],
        hint: EncodingHint = EncodingHint.AUTO,
    ) -> CanonicalSignature:
        """
        Raises:
            DecodeError: If split r/s components are not non-empty hex, or a
                signature string does not decode.
        """
        if isinstance(material, RSVSignature):
            r, s = decode_hex(material.r), decode_hex(material.s)
            if not r or not s:
                raise DecodeError("Signature r/s components are empty")
            return CanonicalSignature(raw=r + s, encoding="rsv", supplied_v=material.v)
        return decode_payload(material or "", hint, "signature", "Signature material")

    def verify(self, message, signature: CanonicalSignature, identity) -> SchemeResult:
        if not signature.raw:
            return SchemeResult(is_valid=False, message=NO_SIGNATURE_MESSAGE)
        return SchemeResult(is_valid=True, message=self.success_message, candidate=signature.encoding)

    def evaluate(self, request: VerificationRequest) -> SchemeResult:
        material = request.signature_material
        # A declared encoding is decoded as given.
        if isinstance(material, str) and request.signature_encoding == EncodingHint.AUTO:
            material = normalize_encoded_payload(material, request.chain_family)
        signature = self.canonicalize(material, request.signature_encoding)

        signed_transaction = normalize_encoded_payload(request.signed_transaction or "", request.chain_family)
        if not signature.raw and signed_transaction:
            signature = decode_payload(
                signed_transaction, EncodingHint.AUTO, "signedTransaction", "Signed transaction",
            )
        return self.verify(request.raw_message, signature, request.expected_identity)
