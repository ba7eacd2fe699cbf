"""
Exception and Error Definitions Module

Defines the exception hierarchy for signature verification. Input errors
(undecodable material, illegal chain/operation combinations, unparseable
identities) are converted into failed ``VerificationOutcome`` records by the
dispatcher; everything else propagates to the caller.

Exception Hierarchy:
    MpcVerifyError (root)
    ├── VerificationInputError
    │   ├── DecodeError
    │   ├── UnsupportedCombinationError
    │   └── MalformedIdentityError
    ├── MissingVerifierError
    ├── InvalidTransition
    ├── ConfigurationError
    └── CustodyAPIError
"""

from typing import Optional


class MpcVerifyError(Exception):
    """
    Root exception class for all project-specific exceptions.

    All custom exceptions inherit from this class so callers can catch
    every library error with a single ``except`` clause.
    """
    pass


class VerificationInputError(MpcVerifyError):
    """
    Base exception for caller-supplied data that cannot be verified.

    The dispatcher catches this family at its boundary and reports a
    ``failed`` outcome carrying the error message as explanation.
    """
    pass


class DecodeError(VerificationInputError):
    """
    Raised when a signature or message string matches no known or declared encoding.

    This includes scenarios such as:
    - Declared hex with odd length or non-hex characters
    - Declared base58/base64 with characters outside the alphabet
    - Typed-data payloads that are not valid EIP-712 JSON
    - Missing signature material for a cryptographic scheme
    """
    pass


class UnsupportedCombinationError(VerificationInputError):
    """
    Raised when an operation type is not valid for the chain family.

    Example: typed-data verification requested for a Bitcoin wallet.
    No scheme verifier is invoked when this is raised.

    Attributes:
        chain_family: The requested chain family value
        operation_type: The requested operation type value
    """

    def __init__(self, chain_family: str, operation_type: str, message: Optional[str] = None):
        self.chain_family = chain_family
        self.operation_type = operation_type
        super().__init__(
            message
            or f"Unsupported combination: operation '{operation_type}' is not available for chain family '{chain_family}'"
        )


class MalformedIdentityError(VerificationInputError):
    """
    Raised when the expected address or public key cannot be parsed.

    This includes scenarios such as:
    - EVM address that is not 20 bytes of hex
    - ed25519 public key that does not decode to 32 bytes
    - Bitcoin address with a bad checksum or unknown format
    - SS58 address with an invalid checksum
    """
    pass


class MissingVerifierError(MpcVerifyError):
    """
    Raised when a supported chain/operation combination has no verifier registered.

    This is an internal invariant violation (a defect), not a data
    validation failure, and is never converted into an outcome.
    """
    pass


class InvalidTransition(MpcVerifyError):
    """
    Raised when the dispatcher state machine receives an illegal transition.

    A dispatcher resolves exactly once; dispatching a second request on the
    same instance is a programming error.

    Attributes:
        current_state: State the dispatcher was in
        target_state: State that was requested
    """

    def __init__(self, current_state: str, target_state: str):
        self.current_state = current_state
        self.target_state = target_state
        super().__init__(f"Invalid transition: {current_state} -> {target_state}")


class ConfigurationError(MpcVerifyError):
    """
    Raised when configuration is missing or invalid.

    This includes scenarios such as:
    - Missing PLANBOK_API_KEY when a remote call is required
    - Non-numeric request timeout values
    """
    pass


class CustodyAPIError(MpcVerifyError):
    """
    Raised when the remote custody API returns an error or an unexpected payload.

    Attributes:
        status_code: HTTP status code if a response was received
    """

    def __init__(self, message: str, status_code: Optional[int] = None):
        self.status_code = status_code
        super().__init__(message)
