"""Audit trail: models, storage, logger, and CLI for offer negotiation events."""

from offers.audit.cli import build_parser
from offers.audit.logger import AuditLogger
from offers.audit.models import AuditEntry, EventType
from offers.audit.store import init_audit_table, insert_audit_entry, query_audit_trail

__all__ = [
    "AuditEntry",
    "AuditLogger",
    "EventType",
    "build_parser",
    "init_audit_table",
    "insert_audit_entry",
    "query_audit_trail",
]
