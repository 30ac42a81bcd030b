"""Shared pytest fixtures for the offer negotiation test suite."""

from __future__ import annotations

import sqlite3
from collections.abc import Callable, Iterator

import pytest

from offers.audit.logger import AuditLogger
from offers.audit.store import init_audit_table
from offers.domain.models import ChatMessage, Conversation, OfferPayload
from offers.domain.types import MessageType, OfferStatus, Sender
from offers.resilience.retry import configure_error_notifier
from offers.store.schema import connect, init_offer_tables
from offers.store.store import OfferStore

CONVERSATION_ID = "conv-1"
LISTING_PRICE = 500000


@pytest.fixture
def anyio_backend() -> str:
    """Run ``@pytest.mark.anyio`` tests on asyncio only."""
    return "asyncio"


@pytest.fixture(autouse=True)
def _reset_error_notifier() -> Iterator[None]:
    """Keep retry-exhaustion alerts from leaking between tests."""
    configure_error_notifier(None)
    yield
    configure_error_notifier(None)


@pytest.fixture
def offer_conn() -> Iterator[sqlite3.Connection]:
    """In-memory offer database with the schema applied."""
    conn = connect(":memory:")
    init_offer_tables(conn)
    yield conn
    conn.close()


@pytest.fixture
def audit_conn() -> Iterator[sqlite3.Connection]:
    """In-memory audit database with the audit table applied."""
    conn = connect(":memory:")
    init_audit_table(conn)
    yield conn
    conn.close()


@pytest.fixture
def audit_logger(audit_conn: sqlite3.Connection) -> AuditLogger:
    return AuditLogger(audit_conn)


@pytest.fixture
def store(offer_conn: sqlite3.Connection) -> OfferStore:
    """An OfferStore with the default (seller-only) counter rule."""
    return OfferStore(offer_conn)


@pytest.fixture
def stored_conversation(store: OfferStore) -> Conversation:
    """A persisted conversation about a ₹5,00,000 listing."""
    return store.create_conversation(
        conversation_id=CONVERSATION_ID,
        customer_id="cust-1",
        customer_name="Asha",
        seller_id="seller-1",
        vehicle_id=42,
        vehicle_name="Hyundai Creta SX",
        vehicle_price=LISTING_PRICE,
    )


@pytest.fixture
def make_offer_message() -> Callable[..., ChatMessage]:
    """Factory for offer chat messages built without a store."""

    def _make(
        message_id: int = 1,
        sender: Sender = Sender.USER,
        offer_price: int = 450000,
        counter_price: int | None = None,
        status: OfferStatus = OfferStatus.PENDING,
    ) -> ChatMessage:
        return ChatMessage(
            id=message_id,
            sender=sender,
            text=f"Offer: {offer_price}",
            timestamp="2026-01-05T10:00:00Z",
            type=MessageType.OFFER,
            payload=OfferPayload(
                offer_price=offer_price,
                counter_price=counter_price,
                status=status,
            ),
        )

    return _make


@pytest.fixture
def sample_conversation(make_offer_message: Callable[..., ChatMessage]) -> Conversation:
    """A conversation holding one greeting and one pending buyer offer."""
    return Conversation(
        id=CONVERSATION_ID,
        customer_id="cust-1",
        customer_name="Asha",
        seller_id="seller-1",
        vehicle_id=42,
        vehicle_name="Hyundai Creta SX",
        vehicle_price=LISTING_PRICE,
        messages=[
            ChatMessage(
                id=1,
                sender=Sender.USER,
                text="Is the car still available?",
                timestamp="2026-01-05T09:00:00Z",
            ),
            make_offer_message(message_id=2),
        ],
        last_message_at="2026-01-05T10:00:00Z",
    )
