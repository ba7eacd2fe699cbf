"""
Verification dispatcher.

Routes a ``VerificationRequest`` to the scheme verifier registered for its
``(chain_family, operation_type)`` pair and turns the verdict into a
``VerificationOutcome``. Each dispatcher resolves exactly one request:

    idle -> pending -> verified
                    -> failed

Input errors (undecodable material, unsupported combinations, unparseable
identities) resolve to ``failed``. A legal combination without a registered
verifier raises ``MissingVerifierError`` and leaves the dispatcher pending.
"""

from enum import Enum
from typing import Any, Dict, FrozenSet, Optional

from .exceptions import InvalidTransition, UnsupportedCombinationError, VerificationInputError
from ..schemas.bases import (
    SchemeResult,
    VerificationOutcome,
    VerificationRequest,
    VerificationStatus,
)
from ..utils import logger
from ..verifiers.registry import VerifierRegistry, default_registry


class DispatchState(str, Enum):
    """Lifecycle states of a ``VerificationDispatcher``."""
    IDLE = "idle"
    PENDING = "pending"
    VERIFIED = "verified"
    FAILED = "failed"


_TRANSITIONS: Dict[DispatchState, FrozenSet[DispatchState]] = {
    DispatchState.IDLE: frozenset({DispatchState.PENDING}),
    DispatchState.PENDING: frozenset({DispatchState.VERIFIED, DispatchState.FAILED}),
    DispatchState.VERIFIED: frozenset(),
    DispatchState.FAILED: frozenset(),
}


class VerificationDispatcher:
    """
    One-shot state machine that verifies a single request.

    Args:
        registry: Verifier lookup table. Defaults to the shared registry
            with every supported combination registered.

    Example:
        dispatcher = VerificationDispatcher()
        outcome = dispatcher.dispatch(request)
        dispatcher.dispatch(request)   # raises InvalidTransition
    """

    def __init__(self, registry: Optional[VerifierRegistry] = None) -> None:
        self.registry = registry if registry is not None else default_registry
        self._state = DispatchState.IDLE
        self._request: Optional[VerificationRequest] = None
        self._outcome: Optional[VerificationOutcome] = None

    @property
    def state(self) -> DispatchState:
        return self._state

    @property
    def outcome(self) -> Optional[VerificationOutcome]:
        """
        Current outcome: ``None`` while idle, a ``pending`` record while
        dispatching, the final record once resolved.
        """
        if self._outcome is not None:
            return self._outcome
        if self._state == DispatchState.PENDING and self._request is not None:
            return VerificationOutcome(
                status=VerificationStatus.PENDING,
                chain_family=self._request.chain_family,
                operation_type=self._request.operation_type,
            )
        return None

    def _transition(self, target: DispatchState) -> None:
        if target not in _TRANSITIONS[self._state]:
            raise InvalidTransition(self._state.value, target.value)
        logger.debug(f"dispatcher {self._state.value} -> {target.value}")
        self._state = target

    def _resolve(
        self,
        status: VerificationStatus,
        explanation: str,
        scheme: Optional[str] = None,
        candidate: Optional[str] = None,
        error_details: Optional[Dict[str, Any]] = None,
    ) -> VerificationOutcome:
        self._transition(DispatchState(status.value))
        request = self._request
        self._outcome = VerificationOutcome(
            status=status,
            explanation=explanation,
            chain_family=request.chain_family,
            operation_type=request.operation_type,
            scheme=scheme,
            candidate=candidate,
            error_details=error_details,
        )
        logger.info(
            f"Verification {status.value} for {request.chain_family.value}/"
            f"{request.operation_type.value}: {explanation}"
        )
        return self._outcome

    def dispatch(self, request: VerificationRequest) -> VerificationOutcome:
        """
        Verify ``request`` and resolve this dispatcher.

        Args:
            request: Immutable verification input.

        Returns:
            VerificationOutcome with status ``verified`` or ``failed``.

        Raises:
            InvalidTransition: If this dispatcher has already been used.
            MissingVerifierError: If a supported combination has no verifier.
        """
        self._transition(DispatchState.PENDING)
        self._request = request
        family, operation = request.chain_family, request.operation_type
        logger.debug(f"dispatching {family.value}/{operation.value}")

        try:
            verifier = self.registry.get(family, operation)
        except UnsupportedCombinationError as exc:
            return self._resolve(
                VerificationStatus.FAILED,
                str(exc),
                error_details={"error_type": type(exc).__name__},
            )

        try:
            result: SchemeResult = verifier.evaluate(request)
        except VerificationInputError as exc:
            logger.debug(f"{verifier.name}: input rejected: {exc}")
            return self._resolve(
                VerificationStatus.FAILED,
                str(exc),
                scheme=verifier.name,
                error_details={"error_type": type(exc).__name__},
            )

        if result.is_valid:
            return self._resolve(
                VerificationStatus.VERIFIED,
                result.message,
                scheme=verifier.name,
                candidate=result.candidate,
            )
        return self._resolve(VerificationStatus.FAILED, result.message, scheme=verifier.name)


def verify(request: VerificationRequest, registry: Optional[VerifierRegistry] = None) -> VerificationOutcome:
    """
    Verify a single request with a fresh dispatcher.

    Example:
        outcome = verify(VerificationRequest(
            chain_family="evm",
            operation_type="message",
            raw_message="Hello, Planbok!",
            signature_material=RSVSignature(r="0x...", s="0x...", v=0),
            expected_identity="0x...",
        ))
        outcome.is_success()
    """
    return VerificationDispatcher(registry).dispatch(request)
