"""Tests for the CLI query interface for the audit trail."""

from __future__ import annotations

import json
from datetime import UTC, datetime, timedelta
from pathlib import Path

import pytest

from offers.audit.cli import (
    build_parser,
    format_json,
    format_table,
    main,
    parse_last_duration,
)
from offers.audit.logger import AuditLogger
from offers.audit.store import init_audit_table
from offers.store.schema import connect


class TestBuildParser:
    """Tests for argument parser construction."""

    def test_accepts_all_arguments(self) -> None:
        args = build_parser().parse_args([
            "--conversation",
            "conv-1",
            "--message",
            "3",
            "--from-date",
            "2026-01-01",
            "--to-date",
            "2026-02-01",
            "--event-type",
            "offer_response",
            "--last",
            "7d",
            "--format",
            "json",
            "--limit",
            "10",
            "--db",
            "/tmp/audit.db",
        ])
        assert args.conversation == "conv-1"
        assert args.message == 3
        assert args.event_type == "offer_response"
        assert args.output_format == "json"
        assert args.limit == 10

    def test_defaults(self) -> None:
        args = build_parser().parse_args([])
        assert args.output_format == "table"
        assert args.limit == 50
        assert args.db == "data/audit.db"

    def test_rejects_unknown_event_type(self) -> None:
        with pytest.raises(SystemExit):
            build_parser().parse_args(["--event-type", "email_sent"])


class TestParseLastDuration:
    def test_days(self) -> None:
        result = datetime.strptime(parse_last_duration("7d"), "%Y-%m-%dT%H:%M:%SZ").replace(
            tzinfo=UTC
        )
        expected = datetime.now(tz=UTC) - timedelta(days=7)
        assert abs((result - expected).total_seconds()) < 5

    def test_hours(self) -> None:
        result = datetime.strptime(parse_last_duration("24h"), "%Y-%m-%dT%H:%M:%SZ").replace(
            tzinfo=UTC
        )
        expected = datetime.now(tz=UTC) - timedelta(hours=24)
        assert abs((result - expected).total_seconds()) < 5

    @pytest.mark.parametrize("value", ["", "d", "7w", "xd"])
    def test_invalid(self, value: str) -> None:
        with pytest.raises(ValueError, match="Unrecognized duration"):
            parse_last_duration(value)


class TestFormatters:
    ROWS = [
        {
            "id": 1,
            "timestamp": "2026-01-05T10:00:00Z",
            "event_type": "offer_response",
            "conversation_id": "conv-1",
            "message_id": 1,
            "actor_role": "seller",
            "offer_price": 450000,
            "from_status": "pending",
            "to_status": "countered",
            "metadata": None,
        }
    ]

    def test_table_empty(self) -> None:
        assert format_table([]) == "No results found."

    def test_table_rows(self) -> None:
        lines = format_table(self.ROWS).splitlines()
        assert lines[0].startswith("Timestamp")
        assert "pending->countered" in lines[2]
        assert "450000" in lines[2]

    def test_json(self) -> None:
        assert json.loads(format_json(self.ROWS)) == self.ROWS


class TestMain:
    def test_prints_matching_entries(
        self, tmp_path: Path, capsys: pytest.CaptureFixture[str]
    ) -> None:
        db_path = tmp_path / "audit.db"
        conn = connect(db_path)
        init_audit_table(conn)
        audit = AuditLogger(conn)
        audit.log_dispatch_failure("conv-1", 1, "accepted", "timeout")
        audit.log_dispatch_failure("conv-2", 4, "rejected", "timeout")
        conn.close()

        main(["--db", str(db_path), "--conversation", "conv-1", "--format", "json"])

        rows = json.loads(capsys.readouterr().out)
        assert [r["conversation_id"] for r in rows] == ["conv-1"]
        assert rows[0]["metadata"]["kind"] == "accepted"

    def test_empty_database(self, tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
        main(["--db", str(tmp_path / "nested" / "audit.db")])
        assert capsys.readouterr().out.strip() == "No results found."
