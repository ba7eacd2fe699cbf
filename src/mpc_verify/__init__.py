"""
Multi-chain verification of signatures returned by an MPC custody API.

    from mpc_verify import VerificationRequest, RSVSignature, verify

    outcome = verify(VerificationRequest(
        chain_family="evm",
        operation_type="message",
        raw_message="Hello, Planbok!",
        signature_material=RSVSignature(r="0x...", s="0x...", v=0),
        expected_identity="0x...",
    ))
"""

from .engine.exceptions import (
    MpcVerifyError,
    VerificationInputError,
    DecodeError,
    UnsupportedCombinationError,
    MalformedIdentityError,
    MissingVerifierError,
    InvalidTransition,
    ConfigurationError,
    CustodyAPIError,
)
from .schemas import (
    ChainFamily,
    OperationType,
    EncodingHint,
    VerificationStatus,
    RSVSignature,
    VerificationRequest,
    CanonicalSignature,
    SchemeResult,
    VerificationOutcome,
)
from .encoding import decode_bytes, decode_preferred, message_bytes
from .engine.dispatcher import DispatchState, VerificationDispatcher, verify

__all__ = [
    "MpcVerifyError",
    "VerificationInputError",
    "DecodeError",
    "UnsupportedCombinationError",
    "MalformedIdentityError",
    "MissingVerifierError",
    "InvalidTransition",
    "ConfigurationError",
    "CustodyAPIError",
    "ChainFamily",
    "OperationType",
    "EncodingHint",
    "VerificationStatus",
    "RSVSignature",
    "VerificationRequest",
    "CanonicalSignature",
    "SchemeResult",
    "VerificationOutcome",
    "decode_bytes",
    "decode_preferred",
    "message_bytes",
    "DispatchState",
    "VerificationDispatcher",
    "verify",
]
