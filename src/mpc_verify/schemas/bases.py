"""
Base Schema Models for the MPC Signature Verification Engine

This module defines the value objects exchanged between the encoding
normalizer, the scheme verifiers and the verification dispatcher. Every
request-scoped model is frozen: it is created for a single verification
call, consumed, and discarded. Nothing here is cached across requests.

Core Classes:
    - CanonicalModel: Pydantic base model with deterministic JSON serialization
    - ChainFamily / OperationType / EncodingHint / VerificationStatus: enums
    - RSVSignature: Split ECDSA signature components as returned by the custody API
    - VerificationRequest: Immutable input bundle for one verification
    - CanonicalSignature: Decoded signature bytes plus recovery-id candidates
    - SchemeResult: Boolean verdict and diagnostic from a single scheme verifier
    - VerificationOutcome: Tri-state result record emitted by the dispatcher

Dependencies:
    - pydantic: For data validation and serialization
"""

import json
from enum import Enum
from typing import Any, Dict, Mapping, Optional, Tuple, Union

from pydantic import BaseModel, ConfigDict, Field, model_validator


class CanonicalModel(BaseModel):
    """
    Pydantic base model with canonical JSON serialization.

    Ensures a consistent, deterministic JSON representation (sorted keys, no
    extra whitespace) so two outcomes built from identical input serialize to
    identical strings.

    Example:
        class MyModel(CanonicalModel):
            name: str
            value: int

        model = MyModel(name="test", value=123)
        canonical_json = model.to_canonical_json()  # '{"name":"test","value":123}'
    """

    model_config = ConfigDict(populate_by_name=True)

    def to_canonical_json(self) -> str:
        """
        Convert model to a canonical JSON string.

        ``model_dump(mode="json", by_alias=True)`` converts enums and bytes to
        standard types; ``json.dumps`` with sorted keys and compact separators
        makes the output deterministic.

        Returns:
            str: JSON string with sorted keys and no extra whitespace.
        """
        data = self.model_dump(mode="json", by_alias=True)
        return json.dumps(
            data,
            separators=(",", ":"),
            sort_keys=True,
            ensure_ascii=False
        )


class ChainFamily(str, Enum):
    """
    Blockchain families supported by the custody API.

    Attributes:
        EVM: Ethereum and EVM-compatible chains (secp256k1, recoverable ECDSA)
        BITCOIN: Bitcoin (BIP-137 message signing)
        SOLANA: Solana (ed25519)
        NEAR: NEAR Protocol (ed25519 over SHA-256)
        COSMOS: Cosmos SDK chains (presence checks only)
        SUBSTRATE: Polkadot / Substrate (sr25519 or ed25519 over BLAKE2b)
    """
    EVM = "evm"
    BITCOIN = "bitcoin"
    SOLANA = "solana"
    NEAR = "near"
    COSMOS = "cosmos"
    SUBSTRATE = "substrate"


class OperationType(str, Enum):
    """
    Signing operations exposed by the custody API.

    Attributes:
        MESSAGE: Arbitrary message signing
        TYPED_DATA: EIP-712 structured data (EVM only)
        TRANSACTION: Transaction signing
        DELEGATE_ACTION: NEAR meta-transaction delegate action
    """
    MESSAGE = "message"
    TYPED_DATA = "typedData"
    TRANSACTION = "transaction"
    DELEGATE_ACTION = "delegateAction"


class EncodingHint(str, Enum):
    """
    Declared wire encoding of a byte string.

    ``AUTO`` probes hex, base58, base64 and UTF-8 in that order and never
    fails; every other value decodes strictly.
    """
    HEX = "hex"
    BASE58 = "base58"
    BASE64 = "base64"
    UTF8 = "utf8"
    AUTO = "auto"


class VerificationStatus(str, Enum):
    """
    Enumeration of verification outcome states.

    Attributes:
        PENDING: Verification has started but not resolved
        VERIFIED: At least one scheme attempt matched the expected identity
        FAILED: All attempts failed, or the input could not be verified
    """
    PENDING = "pending"
    VERIFIED = "verified"
    FAILED = "failed"


class RSVSignature(CanonicalModel):
    """
    Split ECDSA signature components as returned by the custody API.

    The custody service reports ``v`` as the raw recovery id (0 or 1) while
    Ethereum tooling expects 27 or 28; both are accepted here and reconciled
    by the EVM verifier.

    Attributes:
        r: r component, hex string (0x prefix optional)
        s: s component, hex string (0x prefix optional)
        v: Recovery id (0/1 or 27/28), if the service returned one
    """

    model_config = ConfigDict(frozen=True)

    r: str = Field(..., description="Signature r component (hex, 0x prefix optional)")
    s: str = Field(..., description="Signature s component (hex, 0x prefix optional)")
    v: Optional[int] = Field(None, ge=0, description="Recovery id as returned (0/1 or 27/28)")


SignatureMaterial = Union[RSVSignature, str]


class VerificationRequest(CanonicalModel):
    """
    Immutable input bundle for a single verification.

    Field names follow Python conventions; the JSON aliases (``chainFamily``,
    ``operationType``, ...) match the payload the signing UI posts.

    Attributes:
        chain_family: Chain family of the signing wallet
        operation_type: Signing operation that produced the signature
        raw_message: Message or payload as supplied to the custody API. For
            ``typedData`` this is the EIP-712 JSON document.
        message_is_hex_encoded: Whether ``raw_message`` must be hex-decoded
            before hashing
        signature_material: Combined signature string or split r/s/v
        expected_identity: Wallet address or public key expected to have signed
        signature_encoding: Declared encoding of a combined signature string
        signed_transaction: Signed transaction payload returned instead of, or
            alongside, a bare signature
    """

    model_config = ConfigDict(frozen=True)

    chain_family: ChainFamily = Field(..., alias="chainFamily")
    operation_type: OperationType = Field(..., alias="operationType")
    raw_message: str = Field("", alias="rawMessage")
    message_is_hex_encoded: bool = Field(False, alias="messageIsHexEncoded")
    signature_material: Optional[SignatureMaterial] = Field(None, alias="signatureMaterial")
    expected_identity: str = Field("", alias="expectedIdentity")
    signature_encoding: EncodingHint = Field(EncodingHint.AUTO, alias="signatureEncoding")
    signed_transaction: Optional[str] = Field(None, alias="signedTransaction")

    @classmethod
    def from_sign_result(
        cls,
        chain_family: Union[ChainFamily, str],
        operation_type: Union[OperationType, str],
        sign_result: Mapping[str, Any],
        *,
        raw_message: str = "",
        expected_identity: str = "",
        message_is_hex_encoded: bool = False,
        signature_encoding: Union[EncodingHint, str] = EncodingHint.AUTO,
    ) -> "VerificationRequest":
        """
        Build a request from a custody API sign response.

        The API is inconsistent about where it puts signature components:
        ``signature`` may be a string or an object ``{signature, r, s, v}``,
        and ``r``/``s``/``v`` may also appear at the top level. A signed
        transaction may be returned under ``signedTransaction``.

        For EVM, a combined 64-byte (128 hex chars) string accompanied by a
        separate ``v`` is split into an ``RSVSignature`` so the recovery id
        is not lost.

        Args:
            chain_family: Chain family of the signing wallet.
            operation_type: Signing operation that produced ``sign_result``.
            sign_result: Decoded JSON body of the sign response.
            raw_message: Message or payload that was signed.
            expected_identity: Wallet address or public key.
            message_is_hex_encoded: Whether ``raw_message`` is hex.
            signature_encoding: Declared encoding of a combined signature string.

        Returns:
            VerificationRequest ready for dispatch.
        """
        family = ChainFamily(chain_family)
        raw_signature = sign_result.get("signature")
        sig_obj: Mapping[str, Any] = raw_signature if isinstance(raw_signature, Mapping) else {}
        if isinstance(raw_signature, str):
            sig_str = raw_signature
        else:
            sig_str = sig_obj.get("signature") or ""

        r = sig_obj.get("r") or sign_result.get("r")
        s = sig_obj.get("s") or sign_result.get("s")
        v = sig_obj.get("v")
        if v is None:
            v = sign_result.get("v")

        material: Optional[SignatureMaterial] = None
        if family == ChainFamily.EVM and r and s:
            material = RSVSignature(r=r, s=s, v=v)
        elif family == ChainFamily.EVM and sig_str and v is not None:
            body = sig_str[2:] if sig_str.lower().startswith("0x") else sig_str
            if len(body) == 128:
                material = RSVSignature(r=body[:64], s=body[64:], v=v)
            else:
                material = sig_str
        elif sig_str:
            material = sig_str

        return cls(
            chain_family=family,
            operation_type=OperationType(operation_type),
            raw_message=raw_message,
            message_is_hex_encoded=message_is_hex_encoded,
            signature_material=material,
            expected_identity=expected_identity,
            signature_encoding=EncodingHint(signature_encoding),
            signed_transaction=sign_result.get("signedTransaction"),
        )

    @classmethod
    def for_chain(cls, chain_id: str, operation_type: Union[OperationType, str], **fields: Any) -> "VerificationRequest":
        """
        Build a request for a custody chain identifier such as ``"ETH-SEPOLIA"``.

        Raises:
            KeyError: If ``chain_id`` is not in the chain catalogue.
        """
        from ..chains.constants import family_for_chain

        return cls(
            chain_family=family_for_chain(chain_id),
            operation_type=OperationType(operation_type),
            **fields,
        )


class CanonicalSignature(CanonicalModel):
    """
    Decoded signature bytes, constructed fresh per verification attempt.

    Attributes:
        raw: Signature bytes (65 for recoverable ECDSA, 64 for ed25519/sr25519)
        recovery_candidates: Ordered recovery ids to try; empty for
            non-recoverable schemes
        encoding: Decoding path that produced ``raw`` (e.g. ``"hex"``)
        supplied_v: Recovery id exactly as supplied, before normalization
    """

    model_config = ConfigDict(frozen=True, ser_json_bytes="base64")

    raw: bytes = Field(..., description="Decoded signature bytes")
    recovery_candidates: Tuple[int, ...] = Field(default=(), description="Ordered recovery ids to try")
    encoding: str = Field(..., description="Decoding path that produced the bytes")
    supplied_v: Optional[int] = Field(None, description="Recovery id as supplied")


class SchemeResult(CanonicalModel):
    """
    Verdict of a single scheme verifier.

    Attributes:
        is_valid: Whether any candidate path matched the expected identity
        message: Human-readable diagnostic
        candidate: Label of the candidate path that succeeded, if any
    """

    model_config = ConfigDict(frozen=True)

    is_valid: bool
    message: str
    candidate: Optional[str] = None


class VerificationOutcome(CanonicalModel):
    """
    Result record emitted by the verification dispatcher.

    Attributes:
        status: Tri-state verification status
        explanation: Which candidate path succeeded or why all failed.
            Always present once ``status`` is not ``pending``.
        chain_family: Chain family of the request
        operation_type: Operation type of the request
        scheme: Name of the scheme verifier that ran, if any
        candidate: Label of the winning candidate path, if any
        error_details: Structured diagnostic for failures

    Methods:
        is_success: Check if the signature was verified
        get_error_message: Get formatted error message
    """

    status: VerificationStatus = Field(..., description="Verification status")
    explanation: Optional[str] = Field(None, description="Human-readable explanation")
    chain_family: Optional[ChainFamily] = Field(None, alias="chainFamily")
    operation_type: Optional[OperationType] = Field(None, alias="operationType")
    scheme: Optional[str] = Field(None, description="Scheme verifier that produced the verdict")
    candidate: Optional[str] = Field(None, description="Winning candidate path")
    error_details: Optional[Dict[str, Any]] = Field(None, alias="errorDetails")

    @model_validator(mode="after")
    def _explanation_required(self) -> "VerificationOutcome":
        if self.status != VerificationStatus.PENDING and not self.explanation:
            raise ValueError("explanation is required once verification has resolved")
        return self

    def is_success(self) -> bool:
        """
        Check if verification was successful.

        Returns:
            bool: True if the status is ``verified``.

        Example:
            outcome = verify(request)
            if outcome.is_success():
                # show green badge
            else:
                print(outcome.get_error_message())
        """
        return self.status == VerificationStatus.VERIFIED

    def get_error_message(self) -> Optional[str]:
        """
        Get formatted error message from the outcome.

        Returns:
            Optional[str]: Error message if verification failed, None otherwise.
        """
        if self.status != VerificationStatus.FAILED:
            return None

        error_msg = f"Verification failed: {self.explanation}"
        if self.error_details:
            details_str = json.dumps(self.error_details, indent=2, sort_keys=True)
            error_msg += f"\nDetails: {details_str}"
        return error_msg
