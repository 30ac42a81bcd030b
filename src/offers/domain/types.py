"""Domain enumerations and role relations for in-chat offer negotiation."""

from enum import StrEnum


class OfferStatus(StrEnum):
    """Lifecycle status of a single offer record."""

    PENDING = "pending"
    ACCEPTED = "accepted"
    REJECTED = "rejected"
    COUNTERED = "countered"
    CONFIRMED = "confirmed"


class ResponseKind(StrEnum):
    """Responses a recipient can give to a pending offer."""

    ACCEPTED = "accepted"
    REJECTED = "rejected"
    COUNTERED = "countered"


class ViewerRole(StrEnum):
    """Role of the signed-in user looking at a chat thread."""

    CUSTOMER = "customer"
    SELLER = "seller"
    ADMIN = "admin"


class Sender(StrEnum):
    """Side of the thread that authored a chat message."""

    USER = "user"
    SELLER = "seller"
    SYSTEM = "system"


class MessageType(StrEnum):
    """Kinds of chat message carried in a conversation."""

    TEXT = "text"
    TEST_DRIVE_REQUEST = "test_drive_request"
    OFFER = "offer"


# The viewer role expected to answer a record from each sender.
RECIPIENT_ROLES: dict[Sender, ViewerRole] = {
    Sender.USER: ViewerRole.SELLER,
    Sender.SELLER: ViewerRole.CUSTOMER,
}

# The sender value a viewer role writes into the messages it authors.
ROLE_SENDERS: dict[ViewerRole, Sender] = {
    ViewerRole.CUSTOMER: Sender.USER,
    ViewerRole.SELLER: Sender.SELLER,
}


def recipient_role(sender: Sender) -> ViewerRole | None:
    """Return the role expected to respond to a record from *sender*.

    System messages and unknown senders have no recipient.
    """
    return RECIPIENT_ROLES.get(sender)


def is_recipient(role: ViewerRole, sender: Sender) -> bool:
    """Return True if *role* is the relational recipient of a record from *sender*.

    Args:
        role: The viewer's role.
        sender: The ``sender`` of the offer record.

    Returns:
        ``True`` for a seller looking at a buyer's offer or a customer
        looking at a seller's counter; ``False`` otherwise (admins included).
    """
    return recipient_role(sender) == role


def sender_for_role(role: ViewerRole) -> Sender:
    """Map a viewer role onto the sender value it writes.

    Raises:
        ValueError: If the role cannot author offer messages (``admin``).
    """
    try:
        return ROLE_SENDERS[role]
    except KeyError:
        raise ValueError(f"{role} cannot author offer messages") from None
