"""SQLite-backed conversation and offer store.

This is the durable side of the negotiation: it owns message ids, applies
responses against one exact message, and re-checks every transition with
the state machine so that hidden controls are not the only guard.  Uses
parameterized queries exclusively and commits synchronously after writes.
"""

from __future__ import annotations

import sqlite3
import threading
from collections.abc import Iterable, Iterator
from contextlib import contextmanager
from datetime import UTC, datetime
from typing import Any

import structlog

from offers.domain.errors import (
    ConversationNotFoundError,
    InvalidOfferAmountError,
    InvalidTransitionError,
    MessageNotFoundError,
    NotRecipientError,
    PendingOfferExistsError,
)
from offers.domain.models import ChatMessage, Conversation, OfferPayload, OfferResponseResult
from offers.domain.types import (
    MessageType,
    OfferStatus,
    ResponseKind,
    Sender,
    ViewerRole,
    is_recipient,
    sender_for_role,
)
from offers.entry import offer_message_text
from offers.pricing.currency import format_inr
from offers.state_machine.machine import resolve_transition
from offers.state_machine.transitions import ACTION_FOR_RESPONSE, DEFAULT_COUNTER_ROLES

logger = structlog.get_logger()


def _now() -> str:
    return datetime.now(tz=UTC).strftime("%Y-%m-%dT%H:%M:%SZ")


def response_notice_text(kind: ResponseKind, counter_price: int | None = None) -> str:
    """Return the chat text appended to a thread after a response."""
    if kind == ResponseKind.ACCEPTED:
        return "✅ Offer accepted! The deal is confirmed."
    if kind == ResponseKind.REJECTED:
        return "❌ Offer declined. Thank you for your interest."
    return f"💰 Counter-offer made: {format_inr(counter_price or 0)}"


class OfferStore:
    """Persist conversations, chat messages, and offer responses in SQLite.

    Invariant: at most one ``pending`` offer per conversation.  A counter
    flips the old record to ``countered`` and inserts the new pending record
    in the same transaction.
    """

    def __init__(
        self,
        conn: sqlite3.Connection,
        counter_roles: Iterable[ViewerRole] = DEFAULT_COUNTER_ROLES,
    ) -> None:
        """Initialize with an open database connection.

        Args:
            conn: An open sqlite3.Connection whose database already has the
                  offer tables (see ``init_offer_tables``).
            counter_roles: Roles allowed to counter when they are the recipient.
        """
        self._conn = conn
        self._counter_roles = frozenset(counter_roles)
        self._lock = threading.RLock()

    # ------------------------------------------------------------------
    # Read operations
    # ------------------------------------------------------------------

    def _rows(self, query: str, params: Iterable[Any]) -> list[dict[str, Any]]:
        with self._lock:
            prev_factory = self._conn.row_factory
            self._conn.row_factory = sqlite3.Row
            try:
                return [dict(row) for row in self._conn.execute(query, tuple(params)).fetchall()]
            finally:
                self._conn.row_factory = prev_factory

    @staticmethod
    def _to_message(row: dict[str, Any]) -> ChatMessage:
        payload = None
        if row["type"] == MessageType.OFFER:
            payload = OfferPayload(
                offer_price=row["offer_price"],
                counter_price=row["counter_price"],
                status=OfferStatus(row["status"]),
            )
        return ChatMessage(
            id=row["id"],
            sender=Sender(row["sender"]),
            text=row["text"],
            timestamp=row["timestamp"],
            is_read=bool(row["is_read"]),
            type=MessageType(row["type"]),
            payload=payload,
        )

    def _message_row(self, conversation_id: str, message_id: int) -> dict[str, Any] | None:
        rows = self._rows(
            "SELECT * FROM messages WHERE conversation_id = ? AND id = ?",
            (conversation_id, message_id),
        )
        return rows[0] if rows else None

    def get_conversation(self, conversation_id: str) -> Conversation:
        """Load a conversation with its full transcript.

        Raises:
            ConversationNotFoundError: If no such conversation exists.
        """
        rows = self._rows("SELECT * FROM conversations WHERE id = ?", (conversation_id,))
        if not rows:
            raise ConversationNotFoundError(conversation_id)
        messages = self._rows(
            "SELECT * FROM messages WHERE conversation_id = ? ORDER BY id",
            (conversation_id,),
        )
        return Conversation(**rows[0], messages=[self._to_message(m) for m in messages])

    def get_message(self, conversation_id: str, message_id: int) -> ChatMessage:
        """Load one message.

        Raises:
            MessageNotFoundError: If the message does not exist.
        """
        row = self._message_row(conversation_id, message_id)
        if row is None:
            raise MessageNotFoundError(message_id)
        return self._to_message(row)

    def count_pending(self) -> int:
        """Return the number of live offers across all conversations."""
        with self._lock:
            cursor = self._conn.execute(
                "SELECT COUNT(*) FROM messages WHERE type = ? AND status = ?",
                (MessageType.OFFER.value, OfferStatus.PENDING.value),
            )
            return int(cursor.fetchone()[0])

    # ------------------------------------------------------------------
    # Write operations
    # ------------------------------------------------------------------

    @contextmanager
    def _transaction(self) -> Iterator[None]:
        """Hold the store lock, commit on success, roll back on any error."""
        with self._lock:
            try:
                yield
            except Exception:
                self._conn.rollback()
                raise
            self._conn.commit()

    def create_conversation(
        self,
        conversation_id: str,
        customer_id: str,
        customer_name: str,
        seller_id: str,
        vehicle_id: int,
        vehicle_name: str,
        vehicle_price: int | None = None,
    ) -> Conversation:
        """Insert a conversation, or return the existing one with the same id."""
        with self._transaction():
            self._conn.execute(
                """
                INSERT OR IGNORE INTO conversations (
                    id, customer_id, customer_name, seller_id,
                    vehicle_id, vehicle_name, vehicle_price, last_message_at
                ) VALUES (?, ?, ?, ?, ?, ?, ?, ?)
                """,
                (
                    conversation_id,
                    customer_id,
                    customer_name,
                    seller_id,
                    vehicle_id,
                    vehicle_name,
                    vehicle_price,
                    _now(),
                ),
            )
        return self.get_conversation(conversation_id)

    def _next_id(self, conversation_id: str) -> int:
        cursor = self._conn.execute(
            "SELECT COALESCE(MAX(id), 0) + 1 FROM messages WHERE conversation_id = ?",
            (conversation_id,),
        )
        return int(cursor.fetchone()[0])

    def _insert_message(
        self,
        conversation_id: str,
        message_id: int,
        sender: Sender,
        text: str,
        timestamp: str,
        payload: OfferPayload | None = None,
    ) -> None:
        self._conn.execute(
            """
            INSERT INTO messages (
                conversation_id, id, sender, text, timestamp, type,
                offer_price, counter_price, status
            ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)
            """,
            (
                conversation_id,
                message_id,
                sender.value,
                text,
                timestamp,
                (MessageType.OFFER if payload else MessageType.TEXT).value,
                payload.offer_price if payload else None,
                payload.counter_price if payload else None,
                payload.status.value if payload else None,
            ),
        )
        self._conn.execute(
            "UPDATE conversations SET last_message_at = ? WHERE id = ?",
            (timestamp, conversation_id),
        )

    def _require_conversation(self, conversation_id: str) -> None:
        cursor = self._conn.execute(
            "SELECT 1 FROM conversations WHERE id = ?", (conversation_id,)
        )
        if cursor.fetchone() is None:
            raise ConversationNotFoundError(conversation_id)

    def send_text(self, conversation_id: str, sender: Sender, text: str) -> ChatMessage:
        """Append a plain text message to a conversation."""
        with self._transaction():
            self._require_conversation(conversation_id)
            message_id = self._next_id(conversation_id)
            self._insert_message(conversation_id, message_id, sender, text, _now())
        return self.get_message(conversation_id, message_id)

    def make_offer(self, conversation_id: str, role: ViewerRole, offer_price: int) -> ChatMessage:
        """Open a new pending offer in a conversation.

        Args:
            conversation_id: Target conversation.
            role: Role of the party making the offer.
            offer_price: Positive whole-rupee amount.

        Returns:
            The new offer message.

        Raises:
            InvalidOfferAmountError: If the amount is not positive.
            ConversationNotFoundError: If the conversation is unknown.
            PendingOfferExistsError: If the thread already has a live offer.
            ValueError: If *role* cannot author offers.
        """
        if offer_price <= 0:
            raise InvalidOfferAmountError(f"offer_price must be positive, got {offer_price}")
        sender = sender_for_role(role)

        with self._transaction():
            self._require_conversation(conversation_id)
            cursor = self._conn.execute(
                "SELECT id FROM messages WHERE conversation_id = ? AND type = ? AND status = ?",
                (conversation_id, MessageType.OFFER.value, OfferStatus.PENDING.value),
            )
            live = cursor.fetchone()
            if live is not None:
                raise PendingOfferExistsError(conversation_id, int(live[0]))

            message_id = self._next_id(conversation_id)
            self._insert_message(
                conversation_id,
                message_id,
                sender,
                offer_message_text(offer_price),
                _now(),
                OfferPayload(offer_price=offer_price),
            )

        logger.info(
            "offer_created",
            conversation_id=conversation_id,
            message_id=message_id,
            offer_price=offer_price,
            sender=sender.value,
        )
        return self.get_message(conversation_id, message_id)

    def _replayed_result(
        self,
        conversation_id: str,
        row: dict[str, Any],
    ) -> OfferResponseResult:
        counter_record = None
        if row["counter_message_id"] is not None:
            counter_record = self.get_message(conversation_id, row["counter_message_id"])
        return OfferResponseResult(
            record=self._to_message(row),
            counter_record=counter_record,
            notice=self.get_message(conversation_id, row["notice_message_id"]),
            replayed=True,
        )

    def respond_to_offer(
        self,
        conversation_id: str,
        message_id: int,
        kind: ResponseKind,
        role: ViewerRole,
        counter_price: int | None = None,
    ) -> OfferResponseResult:
        """Record a response against one offer message.

        Repeating the same response for the same message returns the
        already-recorded result without writing anything, so double
        submissions are harmless.

        Args:
            conversation_id: Conversation holding the message.
            message_id: The offer message being answered.
            kind: ``accepted``, ``rejected`` or ``countered``.
            role: Role of the responding party.
            counter_price: New amount; required for ``countered``.

        Returns:
            The confirmed :class:`OfferResponseResult`.

        Raises:
            InvalidOfferAmountError: If a counter has no positive price, or a
                price is given for accept/reject.
            MessageNotFoundError: If the message is unknown or not an offer.
            InvalidTransitionError: If the record is no longer pending.
            NotRecipientError: If *role* is not the record's recipient.
            CounterNotAllowedError: If *role* may not counter.
        """
        if kind == ResponseKind.COUNTERED:
            if counter_price is None or counter_price <= 0:
                raise InvalidOfferAmountError("counter_price must be a positive integer")
        elif counter_price is not None:
            raise InvalidOfferAmountError(f"counter_price is only valid for counters, not {kind}")

        action = ACTION_FOR_RESPONSE[kind]

        with self._transaction():
            row = self._message_row(conversation_id, message_id)
            if row is None or row["type"] != MessageType.OFFER:
                raise MessageNotFoundError(message_id)

            if row["response_kind"] is not None:
                if not is_recipient(role, Sender(row["sender"])):
                    raise NotRecipientError(role, message_id)
                same_counter = (
                    kind != ResponseKind.COUNTERED
                    or self._counter_price_of(conversation_id, row) == counter_price
                )
                if row["response_kind"] == kind and same_counter:
                    logger.info(
                        "offer_response_replayed",
                        conversation_id=conversation_id,
                        message_id=message_id,
                        kind=kind.value,
                    )
                    return self._replayed_result(conversation_id, row)
                raise InvalidTransitionError(OfferStatus(row["status"]), action)

            transition = resolve_transition(
                OfferStatus(row["status"]),
                Sender(row["sender"]),
                role,
                action,
                self._counter_roles,
            )

            timestamp = _now()
            responder = sender_for_role(role)
            counter_id: int | None = None
            next_id = self._next_id(conversation_id)

            if transition.spawns_record:
                counter_id = next_id
                next_id += 1
                self._insert_message(
                    conversation_id,
                    counter_id,
                    responder,
                    offer_message_text(counter_price or 0),
                    timestamp,
                    OfferPayload(offer_price=counter_price, counter_price=row["offer_price"]),
                )

            notice_id = next_id
            self._insert_message(
                conversation_id,
                notice_id,
                responder,
                response_notice_text(kind, counter_price),
                timestamp,
            )

            self._conn.execute(
                """
                UPDATE messages
                SET status = ?, response_kind = ?, counter_message_id = ?, notice_message_id = ?
                WHERE conversation_id = ? AND id = ?
                """,
                (
                    transition.to_status.value,
                    kind.value,
                    counter_id,
                    notice_id,
                    conversation_id,
                    message_id,
                ),
            )

        logger.info(
            "offer_response_recorded",
            conversation_id=conversation_id,
            message_id=message_id,
            kind=kind.value,
            to_status=transition.to_status.value,
            counter_message_id=counter_id,
        )

        return OfferResponseResult(
            record=self.get_message(conversation_id, message_id),
            counter_record=(
                self.get_message(conversation_id, counter_id) if counter_id is not None else None
            ),
            notice=self.get_message(conversation_id, notice_id),
        )

    def _counter_price_of(self, conversation_id: str, row: dict[str, Any]) -> int | None:
        if row["counter_message_id"] is None:
            return None
        spawned = self._message_row(conversation_id, row["counter_message_id"])
        return spawned["offer_price"] if spawned else None
