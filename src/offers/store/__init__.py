"""Conversation and offer persistence package.

Provides the SQLite schema and the ``OfferStore`` that records offers and
responses durably.
"""

from offers.store.schema import connect, init_offer_tables
from offers.store.store import OfferStore, response_notice_text

__all__ = [
    "OfferStore",
    "connect",
    "init_offer_tables",
    "response_notice_text",
]
