from .verifies import (
    EVMMessageVerifier,
    EVMTypedDataVerifier,
    recover_and_compare,
)
from .signatures import (
    normalize_v,
    recovery_candidates,
    canonical_from_rsv,
    canonical_from_string,
)
from .standards import TypedDataPayload

__all__ = [
    "EVMMessageVerifier",
    "EVMTypedDataVerifier",
    "recover_and_compare",
    "normalize_v",
    "recovery_candidates",
    "canonical_from_rsv",
    "canonical_from_string",
    "TypedDataPayload",
]
