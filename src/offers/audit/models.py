"""Audit trail models for tracking offer negotiation events."""

from enum import StrEnum

from pydantic import BaseModel


class EventType(StrEnum):
    """Types of events tracked in the audit trail."""

    CONVERSATION_CREATED = "conversation_created"
    OFFER_CREATED = "offer_created"
    OFFER_RESPONSE = "offer_response"
    OFFER_RESPONSE_REPLAYED = "offer_response_replayed"
    DISPATCH_FAILED = "dispatch_failed"
    ERROR = "error"


class AuditEntry(BaseModel):
    """A single audit trail entry.

    All fields except event_type are optional to accommodate different
    event types (e.g., conversation_created has no message_id).
    """

    event_type: EventType
    conversation_id: str | None = None
    message_id: int | None = None
    actor_role: str | None = None
    offer_price: int | None = None
    counter_price: int | None = None
    from_status: str | None = None
    to_status: str | None = None
    metadata: dict[str, str] | None = None
