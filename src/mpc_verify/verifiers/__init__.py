from .bases import Candidate, MessageTransform, SchemeVerifier, first_success
from .evm import EVMMessageVerifier, EVMTypedDataVerifier
from .solana import SolanaVerifier
from .near import NearVerifier
from .bitcoin import BitcoinMessageVerifier
from .substrate import SubstrateVerifier
from .presence import PresenceVerifier
from .registry import (
    SUPPORTED_COMBINATIONS,
    VerifierRegistry,
    build_default_registry,
    default_registry,
)

__all__ = [
    "Candidate",
    "MessageTransform",
    "SchemeVerifier",
    "first_success",
    "EVMMessageVerifier",
    "EVMTypedDataVerifier",
    "SolanaVerifier",
    "NearVerifier",
    "BitcoinMessageVerifier",
    "SubstrateVerifier",
    "PresenceVerifier",
    "SUPPORTED_COMBINATIONS",
    "VerifierRegistry",
    "build_default_registry",
    "default_registry",
]
