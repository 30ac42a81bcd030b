"""Offer state machine with role-aware transition validation."""

from offers.state_machine.machine import (
    OfferStateMachine,
    Transition,
    allowed_actions,
    resolve_transition,
)
from offers.state_machine.transitions import (
    ACTION_FOR_RESPONSE,
    DEFAULT_COUNTER_ROLES,
    TERMINAL_STATUSES,
    TRANSITIONS,
    OfferAction,
    OfferEvent,
    counter_roles,
)

__all__ = [
    "ACTION_FOR_RESPONSE",
    "DEFAULT_COUNTER_ROLES",
    "OfferAction",
    "OfferEvent",
    "OfferStateMachine",
    "TERMINAL_STATUSES",
    "TRANSITIONS",
    "Transition",
    "allowed_actions",
    "counter_roles",
    "resolve_transition",
]
