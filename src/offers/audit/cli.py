"""CLI query interface for the offer audit trail.

Provides an argparse-based command-line tool for querying audit entries
by conversation, offer message, date range, event type, and a shorthand
``--last`` duration.  Output formats: table (default) or JSON.

Usage::

    python -m offers.audit.cli --conversation conv_42 --last 7d
    python -m offers.audit.cli --event-type dispatch_failed --format json
"""

from __future__ import annotations

import argparse
import json
from collections.abc import Sequence
from datetime import UTC, datetime, timedelta
from pathlib import Path
from typing import Any

from offers.audit.models import EventType
from offers.audit.store import init_audit_table, query_audit_trail
from offers.store.schema import connect


def build_parser() -> argparse.ArgumentParser:
    """Create the argument parser for audit trail queries."""
    parser = argparse.ArgumentParser(description="Query the offer negotiation audit trail")

    parser.add_argument("--conversation", type=str, help="Filter by conversation ID")
    parser.add_argument("--message", type=int, help="Filter by offer message ID")
    parser.add_argument("--from-date", type=str, help="Start date (YYYY-MM-DD)")
    parser.add_argument("--to-date", type=str, help="End date (YYYY-MM-DD)")
    parser.add_argument(
        "--event-type",
        type=str,
        choices=[e.value for e in EventType],
        help="Filter by event type",
    )
    parser.add_argument(
        "--last",
        type=str,
        help='Shorthand duration (e.g., "7d", "24h")',
    )
    parser.add_argument(
        "--format",
        type=str,
        choices=["table", "json"],
        default="table",
        dest="output_format",
        help="Output format (default: table)",
    )
    parser.add_argument("--limit", type=int, default=50, help="Maximum results (default: 50)")
    parser.add_argument(
        "--db",
        type=str,
        default="data/audit.db",
        help="Path to audit database (default: data/audit.db)",
    )

    return parser


def parse_last_duration(last: str) -> str:
    """Convert a shorthand duration (``7d``, ``24h``) to an ISO 8601 timestamp.

    Raises:
        ValueError: If the format is not recognized.
    """
    if not last or len(last) < 2:
        raise ValueError(f"Unrecognized duration format: {last!r}")

    unit = last[-1]
    try:
        value = int(last[:-1])
    except ValueError:
        raise ValueError(f"Unrecognized duration format: {last!r}") from None

    now = datetime.now(tz=UTC)
    if unit == "d":
        result = now - timedelta(days=value)
    elif unit == "h":
        result = now - timedelta(hours=value)
    else:
        raise ValueError(
            f"Unrecognized duration format: {last!r}. Use 'd' for days or 'h' for hours."
        )

    return result.strftime("%Y-%m-%dT%H:%M:%SZ")


def format_table(results: list[dict[str, Any]]) -> str:
    """Format audit results as a fixed-width table.

    Columns: Timestamp, Event, Conversation, Message, Role, Price, Status.
    """
    if not results:
        return "No results found."

    headers = ["Timestamp", "Event", "Conversation", "Message", "Role", "Price", "Status"]
    widths = [20, 24, 16, 8, 9, 12, 22]

    def truncate(value: Any, width: int) -> str:
        s = "" if value is None else str(value)
        if len(s) > width:
            return s[: width - 3] + "..."
        return s

    lines: list[str] = []
    header_line = "  ".join(h.ljust(w) for h, w in zip(headers, widths, strict=True))
    lines.append(header_line)
    lines.append("-" * len(header_line))

    for row in results:
        status = row.get("to_status") or ""
        if row.get("from_status"):
            status = f"{row['from_status']}->{status}"
        cells = [
            truncate(row.get("timestamp"), widths[0]),
            truncate(row.get("event_type"), widths[1]),
            truncate(row.get("conversation_id"), widths[2]),
            truncate(row.get("message_id"), widths[3]),
            truncate(row.get("actor_role"), widths[4]),
            truncate(row.get("offer_price"), widths[5]),
            truncate(status, widths[6]),
        ]
        lines.append("  ".join(c.ljust(w) for c, w in zip(cells, widths, strict=True)))

    return "\n".join(lines)


def format_json(results: list[dict[str, Any]]) -> str:
    """Format audit results as pretty-printed JSON."""
    return json.dumps(results, indent=2)


def main(argv: Sequence[str] | None = None) -> None:
    """Parse arguments, query the audit trail, and print results."""
    args = build_parser().parse_args(argv)

    from_date = args.from_date
    if args.last:
        from_date = parse_last_duration(args.last)

    db_path = Path(args.db)
    db_path.parent.mkdir(parents=True, exist_ok=True)
    conn = connect(db_path)

    try:
        init_audit_table(conn)
        results = query_audit_trail(
            conn,
            conversation_id=args.conversation,
            message_id=args.message,
            from_date=from_date,
            to_date=args.to_date,
            event_type=args.event_type,
            limit=args.limit,
        )
        output = format_json(results) if args.output_format == "json" else format_table(results)
        print(output)
    finally:
        conn.close()


if __name__ == "__main__":
    main()
