"""Transition map defining all valid (status, action) -> status mappings."""

from enum import StrEnum

from offers.domain.models import TERMINAL_STATUSES
from offers.domain.types import OfferStatus, ResponseKind, ViewerRole


class OfferAction(StrEnum):
    """Actions a recipient can take on an offer record."""

    ACCEPT = "accept"
    REJECT = "reject"
    COUNTER = "counter"


class OfferEvent(StrEnum):
    """Events emitted to the dispatcher when a transition fires."""

    OFFER_ACCEPTED = "offer_accepted"
    OFFER_REJECTED = "offer_rejected"
    OFFER_COUNTERED = "offer_countered"


# All valid (current_status, action) -> next_status mappings.
# Any pair not in this dict is an invalid transition.
TRANSITIONS: dict[tuple[OfferStatus, str], OfferStatus] = {
    (OfferStatus.PENDING, OfferAction.ACCEPT): OfferStatus.ACCEPTED,
    (OfferStatus.PENDING, OfferAction.REJECT): OfferStatus.REJECTED,
    (OfferStatus.PENDING, OfferAction.COUNTER): OfferStatus.COUNTERED,
}

EVENTS: dict[str, OfferEvent] = {
    OfferAction.ACCEPT: OfferEvent.OFFER_ACCEPTED,
    OfferAction.REJECT: OfferEvent.OFFER_REJECTED,
    OfferAction.COUNTER: OfferEvent.OFFER_COUNTERED,
}

# Actions that spawn a new pending record from the other side.
SPAWNING_ACTIONS: frozenset[str] = frozenset({OfferAction.COUNTER})

# Roles allowed to counter when they are the recipient.
DEFAULT_COUNTER_ROLES: frozenset[ViewerRole] = frozenset({ViewerRole.SELLER})


def counter_roles(buyer_counter_enabled: bool = False) -> frozenset[ViewerRole]:
    """Return the roles allowed to counter, optionally including the buyer."""
    if buyer_counter_enabled:
        return DEFAULT_COUNTER_ROLES | {ViewerRole.CUSTOMER}
    return DEFAULT_COUNTER_ROLES


ACTION_FOR_RESPONSE: dict[ResponseKind, OfferAction] = {
    ResponseKind.ACCEPTED: OfferAction.ACCEPT,
    ResponseKind.REJECTED: OfferAction.REJECT,
    ResponseKind.COUNTERED: OfferAction.COUNTER,
}

RESPONSE_FOR_ACTION: dict[OfferAction, ResponseKind] = {
    action: kind for kind, action in ACTION_FOR_RESPONSE.items()
}

__all__ = [
    "ACTION_FOR_RESPONSE",
    "DEFAULT_COUNTER_ROLES",
    "EVENTS",
    "RESPONSE_FOR_ACTION",
    "SPAWNING_ACTIONS",
    "TERMINAL_STATUSES",
    "TRANSITIONS",
    "OfferAction",
    "OfferEvent",
    "counter_roles",
]
