"""
Scheme Verifier Registry

Lookup table from ``(chain_family, operation_type)`` to the single scheme
verifier responsible for that combination. The default registry is built
once at import time and only read afterwards, so it is safe to share across
threads.
"""

from typing import Dict, FrozenSet, Iterable, List, Optional, Tuple, Union

from .bases import SchemeVerifier
from .bitcoin import BitcoinMessageVerifier
from .evm import EVMMessageVerifier, EVMTypedDataVerifier
from .near import NearVerifier
from .presence import PresenceVerifier
from .solana import SolanaVerifier
from .substrate import SubstrateVerifier
from ..engine.exceptions import MissingVerifierError, UnsupportedCombinationError
from ..schemas.bases import ChainFamily, OperationType

Combination = Tuple[ChainFamily, OperationType]

# Legal combinations. Anything else is an unsupported combination.
SUPPORTED_COMBINATIONS: FrozenSet[Combination] = frozenset(
    [(family, OperationType.MESSAGE) for family in ChainFamily]
    + [(family, OperationType.TRANSACTION) for family in ChainFamily]
    + [
        (ChainFamily.EVM, OperationType.TYPED_DATA),
        (ChainFamily.NEAR, OperationType.DELEGATE_ACTION),
    ]
)

TRANSACTION_PRESENCE_MESSAGE = "Signature attached to transaction payload"
DELEGATE_ACTION_PRESENCE_MESSAGE = "Signature attached to delegate action payload"
COSMOS_PRESENCE_MESSAGE = "Cosmos signature presence confirmed"


class VerifierRegistry:
    """
    Registry mapping chain/operation combinations to scheme verifiers.

    Legality and registration are tracked separately: a combination outside
    ``supported`` is an input error, while a legal combination without a
    registered verifier is a defect.

    Example:
        registry = VerifierRegistry()
        registry.register(ChainFamily.SOLANA, OperationType.MESSAGE, SolanaVerifier())
        verifier = registry.get(ChainFamily.SOLANA, OperationType.MESSAGE)
    """

    def __init__(self, supported: Iterable[Combination] = SUPPORTED_COMBINATIONS):
        self._supported: FrozenSet[Combination] = frozenset(supported)
        self._verifiers: Dict[Combination, SchemeVerifier] = {}

    def register(
        self,
        chain_family: Union[ChainFamily, str],
        operation_type: Union[OperationType, str],
        verifier: SchemeVerifier,
    ) -> None:
        """
        Register ``verifier`` for a combination.

        Raises:
            UnsupportedCombinationError: If the combination is not legal.
        """
        key = (ChainFamily(chain_family), OperationType(operation_type))
        if key not in self._supported:
            raise UnsupportedCombinationError(key[0].value, key[1].value)
        self._verifiers[key] = verifier

    def is_supported(self, chain_family: Union[ChainFamily, str], operation_type: Union[OperationType, str]) -> bool:
        """Check whether the combination is legal, independent of registration."""
        return (ChainFamily(chain_family), OperationType(operation_type)) in self._supported

    def get(self, chain_family: Union[ChainFamily, str], operation_type: Union[OperationType, str]) -> SchemeVerifier:
        """
        Look up the verifier for a combination.

        Raises:
            UnsupportedCombinationError: If the combination is not legal.
            MissingVerifierError: If the combination is legal but nothing is registered.
        """
        family, operation = ChainFamily(chain_family), OperationType(operation_type)
        if (family, operation) not in self._supported:
            raise UnsupportedCombinationError(family.value, operation.value)
        verifier: Optional[SchemeVerifier] = self._verifiers.get((family, operation))
        if verifier is None:
            raise MissingVerifierError(
                f"No verifier registered for supported combination {family.value}/{operation.value}"
            )
        return verifier

    def combinations(self) -> List[Combination]:
        """Legal combinations in a stable order."""
        families = list(ChainFamily)
        operations = list(OperationType)
        return sorted(self._supported, key=lambda key: (families.index(key[0]), operations.index(key[1])))


def build_default_registry() -> VerifierRegistry:
    """Registry with one verifier for every legal combination."""
    registry = VerifierRegistry()

    registry.register(ChainFamily.EVM, OperationType.MESSAGE, EVMMessageVerifier())
    registry.register(ChainFamily.EVM, OperationType.TYPED_DATA, EVMTypedDataVerifier())
    registry.register(ChainFamily.BITCOIN, OperationType.MESSAGE, BitcoinMessageVerifier())
    registry.register(ChainFamily.SOLANA, OperationType.MESSAGE, SolanaVerifier())
    registry.register(ChainFamily.NEAR, OperationType.MESSAGE, NearVerifier())
    registry.register(ChainFamily.SUBSTRATE, OperationType.MESSAGE, SubstrateVerifier())
    registry.register(
        ChainFamily.COSMOS,
        OperationType.MESSAGE,
        PresenceVerifier(COSMOS_PRESENCE_MESSAGE, name="cosmos-presence"),
    )

    transaction = PresenceVerifier(TRANSACTION_PRESENCE_MESSAGE, name="transaction-presence")
    for family in ChainFamily:
        registry.register(family, OperationType.TRANSACTION, transaction)
    registry.register(
        ChainFamily.NEAR,
        OperationType.DELEGATE_ACTION,
        PresenceVerifier(DELEGATE_ACTION_PRESENCE_MESSAGE, name="delegate-action-presence"),
    )
    return registry


default_registry = build_default_registry()
