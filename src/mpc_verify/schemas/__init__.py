from .bases import (
    CanonicalModel,
    ChainFamily,
    OperationType,
    EncodingHint,
    VerificationStatus,
    RSVSignature,
    SignatureMaterial,
    VerificationRequest,
    CanonicalSignature,
    SchemeResult,
    VerificationOutcome,
)

__all__ = [
    "CanonicalModel",
    "ChainFamily",
    "OperationType",
    "EncodingHint",
    "VerificationStatus",
    "RSVSignature",
    "SignatureMaterial",
    "VerificationRequest",
    "CanonicalSignature",
    "SchemeResult",
    "VerificationOutcome",
]
