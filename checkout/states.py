"""Checkout attempt states and the transitions allowed between them."""

from __future__ import annotations

from enum import Enum
from typing import Dict, FrozenSet

from tracking import t


class CheckoutState(Enum):
    IDLE = "idle"
    AWAITING_GATEWAY = "awaiting_gateway"
    SUCCEEDED = "succeeded"
    FAILED = "failed"
    CANCELLED = "cancelled"
    BOOKING_CREATED = "booking_created"
    BOOKING_CREATION_FAILED = "booking_creation_failed"

    @property
    def is_terminal(self) -> bool:
        return self in TERMINAL_STATES


TERMINAL_STATES: FrozenSet[CheckoutState] = frozenset(
    {
        CheckoutState.FAILED,
        CheckoutState.CANCELLED,
        CheckoutState.BOOKING_CREATED,
        CheckoutState.BOOKING_CREATION_FAILED,
    }
)

ALLOWED_TRANSITIONS: Dict[CheckoutState, FrozenSet[CheckoutState]] = {
    CheckoutState.IDLE: frozenset({CheckoutState.AWAITING_GATEWAY}),
    CheckoutState.AWAITING_GATEWAY: frozenset(
        {CheckoutState.SUCCEEDED, CheckoutState.FAILED, CheckoutState.CANCELLED}
    ),
    CheckoutState.SUCCEEDED: frozenset(
        {CheckoutState.BOOKING_CREATED, CheckoutState.BOOKING_CREATION_FAILED}
    ),
}


class InvalidTransition(RuntimeError):
    """A checkout attempt was driven along an edge the state machine does not have."""


def advance(current: CheckoutState, new_state: CheckoutState) -> CheckoutState:
    """Return ``new_state`` if the move is allowed, otherwise raise."""

    t('checkout.states.advance')
    if new_state not in ALLOWED_TRANSITIONS.get(current, frozenset()):
        raise InvalidTransition(f"Cannot move checkout from {current.value} to {new_state.value}")
    return new_state
