"""SQLite-backed audit trail store with indexed queries.

Provides functions to initialize the audit table, insert audit entries, and
query the audit trail with flexible filtering.  Uses parameterized queries
exclusively (never string concatenation of values).
"""

from __future__ import annotations

import json
import sqlite3
from datetime import UTC, datetime
from typing import Any

from offers.audit.models import AuditEntry


def init_audit_table(conn: sqlite3.Connection) -> None:
    """Create the ``offer_audit`` table and its indexes if they do not exist.

    Args:
        conn: An open sqlite3.Connection.
    """
    conn.execute("""
        CREATE TABLE IF NOT EXISTS offer_audit (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            timestamp TEXT NOT NULL DEFAULT (strftime('%Y-%m-%dT%H:%M:%SZ', 'now')),
            event_type TEXT NOT NULL,
            conversation_id TEXT,
            message_id INTEGER,
            actor_role TEXT,
            offer_price INTEGER,
            counter_price INTEGER,
            from_status TEXT,
            to_status TEXT,
            metadata TEXT
        )
    """)

    conn.execute(
        "CREATE INDEX IF NOT EXISTS idx_audit_conversation ON offer_audit (conversation_id)"
    )
    conn.execute("CREATE INDEX IF NOT EXISTS idx_audit_timestamp ON offer_audit (timestamp)")

    conn.commit()


def insert_audit_entry(conn: sqlite3.Connection, entry: AuditEntry) -> int:
    """Insert an audit entry into the database.

    Args:
        conn: An open database connection.
        entry: The audit entry to insert.

    Returns:
        The row ID of the inserted entry.
    """
    metadata_json: str | None = None
    if entry.metadata is not None:
        metadata_json = json.dumps(entry.metadata)

    timestamp = datetime.now(tz=UTC).strftime("%Y-%m-%dT%H:%M:%SZ")

    cursor = conn.execute(
        """
        INSERT INTO offer_audit (
            timestamp, event_type, conversation_id, message_id, actor_role,
            offer_price, counter_price, from_status, to_status, metadata
        ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
        """,
        (
            timestamp,
            entry.event_type.value,
            entry.conversation_id,
            entry.message_id,
            entry.actor_role,
            entry.offer_price,
            entry.counter_price,
            entry.from_status,
            entry.to_status,
            metadata_json,
        ),
    )
    conn.commit()
    return cursor.lastrowid or 0


def query_audit_trail(
    conn: sqlite3.Connection,
    *,
    conversation_id: str | None = None,
    message_id: int | None = None,
    from_date: str | None = None,
    to_date: str | None = None,
    event_type: str | None = None,
    limit: int = 50,
) -> list[dict[str, Any]]:
    """Query the audit trail with flexible filtering.

    All filters are optional.  Results are ordered newest first.

    Args:
        conn: An open database connection.
        conversation_id: Filter by conversation (exact match).
        message_id: Filter by offer message id (exact match).
        from_date: Filter entries on or after this ISO 8601 date.
        to_date: Filter entries on or before this ISO 8601 date.
        event_type: Filter by event type (exact match).
        limit: Maximum number of results to return (default 50).

    Returns:
        A list of dicts, one per matching audit entry, newest first.
    """
    conditions: list[str] = []
    params: list[str | int] = []

    if conversation_id is not None:
        conditions.append("conversation_id = ?")
        params.append(conversation_id)

    if message_id is not None:
        conditions.append("message_id = ?")
        params.append(message_id)

    if from_date is not None:
        conditions.append("timestamp >= ?")
        params.append(from_date)

    if to_date is not None:
        conditions.append("timestamp <= ?")
        params.append(to_date)

    if event_type is not None:
        conditions.append("event_type = ?")
        params.append(event_type)

    where_clause = ""
    if conditions:
        where_clause = "WHERE " + " AND ".join(conditions)

    query = f"SELECT * FROM offer_audit {where_clause} ORDER BY timestamp DESC, id DESC LIMIT ?"
    params.append(limit)

    prev_factory = conn.row_factory
    conn.row_factory = sqlite3.Row
    try:
        rows = conn.execute(query, params).fetchall()
    finally:
        conn.row_factory = prev_factory

    results: list[dict[str, Any]] = []
    for row in rows:
        row_dict = dict(row)
        if row_dict.get("metadata") is not None:
            row_dict["metadata"] = json.loads(row_dict["metadata"])
        results.append(row_dict)

    return results
