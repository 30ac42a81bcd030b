"""SQLite schema for conversations and their chat messages."""

from __future__ import annotations

import sqlite3
from pathlib import Path


def connect(db_path: Path | str) -> sqlite3.Connection:
    """Open a connection usable from FastAPI's worker threads.

    File databases get WAL mode; ``":memory:"`` is left as is.

    Args:
        db_path: Path to the SQLite database file, or ``":memory:"``.

    Returns:
        An open ``sqlite3.Connection``.
    """
    conn = sqlite3.connect(str(db_path), check_same_thread=False)
    if str(db_path) != ":memory:":
        conn.execute("PRAGMA journal_mode=WAL")
    conn.execute("PRAGMA foreign_keys=ON")
    return conn


def init_offer_tables(conn: sqlite3.Connection) -> None:
    """Create the conversations and messages tables if they do not exist.

    Offer records live on their message row (``offer_price``,
    ``counter_price``, ``status``).  ``response_kind`` plus the two
    ``*_message_id`` columns record the confirmed response so a repeated
    call can be answered without writing anything.

    Args:
        conn: An open sqlite3.Connection.
    """
    conn.execute("""
        CREATE TABLE IF NOT EXISTS conversations (
            id TEXT PRIMARY KEY,
            customer_id TEXT NOT NULL,
            customer_name TEXT NOT NULL,
            seller_id TEXT NOT NULL,
            vehicle_id INTEGER NOT NULL,
            vehicle_name TEXT NOT NULL,
            vehicle_price INTEGER,
            last_message_at TEXT NOT NULL
        )
    """)

    conn.execute("""
        CREATE TABLE IF NOT EXISTS messages (
            conversation_id TEXT NOT NULL REFERENCES conversations (id),
            id INTEGER NOT NULL,
            sender TEXT NOT NULL,
            text TEXT NOT NULL,
            timestamp TEXT NOT NULL,
            is_read INTEGER NOT NULL DEFAULT 0,
            type TEXT NOT NULL DEFAULT 'text',
            offer_price INTEGER,
            counter_price INTEGER,
            status TEXT,
            response_kind TEXT,
            counter_message_id INTEGER,
            notice_message_id INTEGER,
            PRIMARY KEY (conversation_id, id)
        )
    """)

    conn.execute(
        "CREATE INDEX IF NOT EXISTS idx_messages_status ON messages (conversation_id, status)"
    )
    conn.execute(
        "CREATE INDEX IF NOT EXISTS idx_conversations_customer ON conversations (customer_id)"
    )
    conn.execute(
        "CREATE INDEX IF NOT EXISTS idx_conversations_seller ON conversations (seller_id)"
    )

    conn.commit()
