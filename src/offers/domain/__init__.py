"""Domain types, models, and errors for in-chat offer negotiation."""

from offers.domain.errors import (
    ConversationNotFoundError,
    CounterNotAllowedError,
    DispatchError,
    InvalidOfferAmountError,
    InvalidTransitionError,
    MessageNotFoundError,
    NotRecipientError,
    OfferError,
    OfferInFlightError,
    PendingOfferExistsError,
)
from offers.domain.models import (
    TERMINAL_STATUSES,
    ChatMessage,
    Conversation,
    InFlight,
    OfferPayload,
    OfferPhase,
    OfferResponseResult,
    Settled,
)
from offers.domain.types import (
    MessageType,
    OfferStatus,
    ResponseKind,
    Sender,
    ViewerRole,
    is_recipient,
    recipient_role,
    sender_for_role,
)

__all__ = [
    "TERMINAL_STATUSES",
    "ChatMessage",
    "Conversation",
    "ConversationNotFoundError",
    "CounterNotAllowedError",
    "DispatchError",
    "InFlight",
    "InvalidOfferAmountError",
    "InvalidTransitionError",
    "MessageNotFoundError",
    "MessageType",
    "NotRecipientError",
    "OfferError",
    "OfferInFlightError",
    "OfferPayload",
    "OfferPhase",
    "OfferResponseResult",
    "OfferStatus",
    "PendingOfferExistsError",
    "ResponseKind",
    "Sender",
    "Settled",
    "ViewerRole",
    "is_recipient",
    "recipient_role",
    "sender_for_role",
]
