"""Pydantic v2 models for offer records, chat messages, and conversations."""

from typing import Annotated, Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from offers.domain.types import MessageType, OfferStatus, ResponseKind, Sender

TERMINAL_STATUSES: frozenset[OfferStatus] = frozenset(
    {OfferStatus.ACCEPTED, OfferStatus.REJECTED, OfferStatus.CONFIRMED}
)


class OfferPayload(BaseModel):
    """The offer record embedded in an ``offer`` chat message.

    ``counter_price`` holds the immediately preceding amount once a counter
    has been made, for display as a struck-through reference.
    """

    model_config = ConfigDict(frozen=True)

    offer_price: int
    counter_price: int | None = None
    status: OfferStatus = OfferStatus.PENDING

    @field_validator("offer_price")
    @classmethod
    def offer_price_must_be_positive(cls, v: int) -> int:
        """Ensure the amount on the table is a positive integer."""
        if v <= 0:
            raise ValueError("offer_price must be positive")
        return v

    @field_validator("counter_price")
    @classmethod
    def counter_price_must_be_positive(cls, v: int | None) -> int | None:
        """Ensure a previous amount, when present, is positive."""
        if v is not None and v <= 0:
            raise ValueError("counter_price must be positive")
        return v

    @property
    def is_terminal(self) -> bool:
        """Return True for accepted, rejected and confirmed records."""
        return self.status in TERMINAL_STATUSES


class ChatMessage(BaseModel):
    """A single message in a conversation transcript."""

    id: int
    sender: Sender
    text: str
    timestamp: str
    is_read: bool = False
    type: MessageType = MessageType.TEXT
    payload: OfferPayload | None = None

    @model_validator(mode="after")
    def offer_messages_carry_payload(self) -> "ChatMessage":
        """Ensure every offer message has an offer record attached."""
        if self.type == MessageType.OFFER and self.payload is None:
            raise ValueError("offer messages require a payload")
        return self

    @property
    def is_offer(self) -> bool:
        """Return True if this message carries an offer record."""
        return self.type == MessageType.OFFER


class Conversation(BaseModel):
    """A buyer/seller chat thread about one vehicle listing."""

    id: str
    customer_id: str
    customer_name: str
    seller_id: str
    vehicle_id: int
    vehicle_name: str
    vehicle_price: int | None = None
    messages: list[ChatMessage] = Field(default_factory=list)
    last_message_at: str

    def find_message(self, message_id: int) -> ChatMessage | None:
        """Return the message with *message_id*, or ``None``."""
        for message in self.messages:
            if message.id == message_id:
                return message
        return None

    def pending_offer(self) -> ChatMessage | None:
        """Return the thread's single live offer message, if any."""
        for message in self.messages:
            if message.payload is not None and message.payload.status == OfferStatus.PENDING:
                return message
        return None

    def offer_messages(self) -> list[ChatMessage]:
        """Return all offer messages in transcript order."""
        return [m for m in self.messages if m.is_offer]


class OfferResponseResult(BaseModel):
    """Confirmed outcome of a response, as recorded by the offer store.

    Attributes:
        record: The responded-to offer message with its new status.
        counter_record: The new pending record spawned by a counter, if any.
        notice: The text message appended to the thread for the response.
        replayed: True when the store had already recorded this exact
            response and returned it without changes.
    """

    record: ChatMessage
    counter_record: ChatMessage | None = None
    notice: ChatMessage
    replayed: bool = False


class Settled(BaseModel):
    """A record whose status is confirmed by the store."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["settled"] = "settled"
    status: OfferStatus


class InFlight(BaseModel):
    """A record with a response dispatched but not yet confirmed."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["in_flight"] = "in_flight"
    prior_status: OfferStatus
    response: ResponseKind
    counter_price: int | None = None


OfferPhase = Annotated[Settled | InFlight, Field(discriminator="kind")]
