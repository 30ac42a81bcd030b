"""Domain-specific exception classes for offer negotiation."""

from offers.domain.types import OfferStatus, ViewerRole


class OfferError(Exception):
    """Base class for all domain errors in offer negotiation."""


class InvalidOfferAmountError(OfferError):
    """Raised when an offer amount is not a positive integer."""


class InvalidTransitionError(OfferError):
    """Raised when an action is not allowed from the record's current status.

    Attributes:
        current_status: The status the record was in.
        action: The action that was rejected.
    """

    def __init__(self, current_status: OfferStatus, action: str) -> None:
        self.current_status = current_status
        self.action = action
        super().__init__(f"Cannot apply '{action}' to an offer in status '{current_status}'")


class NotRecipientError(OfferError):
    """Raised when a role that is not the record's recipient tries to respond.

    Attributes:
        role: The acting role.
        message_id: The offer message the role tried to act on.
    """

    def __init__(self, role: ViewerRole, message_id: int | None = None) -> None:
        self.role = role
        self.message_id = message_id
        super().__init__(f"{role} is not the recipient of offer message {message_id}")


class CounterNotAllowedError(OfferError):
    """Raised when a role without counter permission tries to counter."""

    def __init__(self, role: ViewerRole) -> None:
        self.role = role
        super().__init__(f"{role} may not make counter-offers")


class OfferInFlightError(OfferError):
    """Raised when a response is already being dispatched for a record."""

    def __init__(self, message_id: int) -> None:
        self.message_id = message_id
        super().__init__(f"A response for offer message {message_id} is already in flight")


class PendingOfferExistsError(OfferError):
    """Raised when a new offer would create a second pending record in a thread."""

    def __init__(self, conversation_id: str, message_id: int) -> None:
        self.conversation_id = conversation_id
        self.message_id = message_id
        super().__init__(
            f"Conversation {conversation_id} already has pending offer {message_id}"
        )


class ConversationNotFoundError(OfferError):
    """Raised when a conversation id is unknown."""

    def __init__(self, conversation_id: str) -> None:
        self.conversation_id = conversation_id
        super().__init__(f"Conversation {conversation_id} not found")


class MessageNotFoundError(OfferError):
    """Raised when a message id is unknown or is not an offer message."""

    def __init__(self, message_id: int) -> None:
        self.message_id = message_id
        super().__init__(f"Offer message {message_id} not found")


class DispatchError(OfferError):
    """Raised when a response could not be persisted.

    The local record keeps its prior status when this is raised.
    """
