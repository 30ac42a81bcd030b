"""Convenience class for inserting audit trail entries.

Each method creates a properly structured :class:`AuditEntry` and inserts it
via :func:`insert_audit_entry`.
"""

from __future__ import annotations

import sqlite3
import threading

from offers.audit.models import AuditEntry, EventType
from offers.audit.store import insert_audit_entry
from offers.domain.models import ChatMessage, Conversation, OfferResponseResult


class AuditLogger:
    """Typed convenience API for inserting audit entries.

    Args:
        conn: An open SQLite connection to the audit database.  Use a
            connection of its own, not the offer store's, so audit commits
            never interleave with store transactions.
    """

    def __init__(self, conn: sqlite3.Connection) -> None:
        self._conn = conn
        self._lock = threading.Lock()

    def _insert(self, entry: AuditEntry) -> int:
        with self._lock:
            return insert_audit_entry(self._conn, entry)

    def log_conversation_created(self, conversation: Conversation) -> int:
        """Log a new conversation about a listing."""
        return self._insert(
            AuditEntry(
                event_type=EventType.CONVERSATION_CREATED,
                conversation_id=conversation.id,
                metadata={
                    "vehicle_id": str(conversation.vehicle_id),
                    "customer_id": conversation.customer_id,
                    "seller_id": conversation.seller_id,
                },
            )
        )

    def log_offer_created(self, conversation_id: str, message: ChatMessage, actor_role: str) -> int:
        """Log a new pending offer.

        Args:
            conversation_id: Conversation holding the offer.
            message: The confirmed offer message.
            actor_role: Role of the party that made the offer.

        Returns:
            The row ID of the inserted audit entry.
        """
        payload = message.payload
        return self._insert(
            AuditEntry(
                event_type=EventType.OFFER_CREATED,
                conversation_id=conversation_id,
                message_id=message.id,
                actor_role=actor_role,
                offer_price=payload.offer_price if payload else None,
                to_status=payload.status.value if payload else None,
            )
        )

    def log_offer_response(
        self,
        conversation_id: str,
        result: OfferResponseResult,
        actor_role: str,
        from_status: str,
    ) -> int:
        """Log a confirmed (or replayed) response to an offer.

        Stores the spawned counter record id in metadata when present.

        Args:
            conversation_id: Conversation holding the offer.
            result: The store's confirmed result.
            actor_role: Role of the responding party.
            from_status: Record status before the response.

        Returns:
            The row ID of the inserted audit entry.
        """
        payload = result.record.payload
        metadata: dict[str, str] = {"notice_message_id": str(result.notice.id)}
        counter_price: int | None = None
        if result.counter_record is not None:
            metadata["counter_message_id"] = str(result.counter_record.id)
            if result.counter_record.payload is not None:
                counter_price = result.counter_record.payload.offer_price
        return self._insert(
            AuditEntry(
                event_type=(
                    EventType.OFFER_RESPONSE_REPLAYED if result.replayed else EventType.OFFER_RESPONSE
                ),
                conversation_id=conversation_id,
                message_id=result.record.id,
                actor_role=actor_role,
                offer_price=payload.offer_price if payload else None,
                counter_price=counter_price,
                from_status=from_status,
                to_status=payload.status.value if payload else None,
                metadata=metadata,
            )
        )

    def log_dispatch_failure(
        self,
        conversation_id: str,
        message_id: int,
        kind: str,
        error: str,
    ) -> int:
        """Log a response that could not be persisted."""
        return self._insert(
            AuditEntry(
                event_type=EventType.DISPATCH_FAILED,
                conversation_id=conversation_id,
                message_id=message_id,
                metadata={"kind": kind, "error": error},
            )
        )

    def log_error(
        self,
        error_message: str,
        conversation_id: str | None = None,
        message_id: int | None = None,
    ) -> int:
        """Log an unexpected error against a conversation or message."""
        return self._insert(
            AuditEntry(
                event_type=EventType.ERROR,
                conversation_id=conversation_id,
                message_id=message_id,
                metadata={"error": error_message},
            )
        )
