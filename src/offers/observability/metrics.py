"""Prometheus metrics instrumentation for the offer service.

Provides:
- ``setup_metrics(app)``: Attach prometheus-fastapi-instrumentator to a FastAPI app,
  exposing ``/metrics`` with HTTP request duration/count plus the business metrics below.
- ``OFFERS_CREATED``: Counter of new pending offers.
- ``OFFER_RESPONSES``: Counter of confirmed responses, labelled by kind.
- ``PENDING_OFFERS``: Gauge of live offers across all conversations.

Business metrics are updated when the store confirms a write, not by polling.
"""

from __future__ import annotations

from fastapi import FastAPI
from prometheus_client import Counter, Gauge
from prometheus_fastapi_instrumentator import Instrumentator

OFFERS_CREATED: Counter = Counter(
    "offers_created_total",
    "Total number of offers opened in chat threads",
)

OFFER_RESPONSES: Counter = Counter(
    "offer_responses_total",
    "Total number of confirmed responses to offers",
    ["kind"],
)

PENDING_OFFERS: Gauge = Gauge(
    "offers_pending",
    "Number of offers currently awaiting a response",
)


def setup_metrics(app: FastAPI) -> None:
    """Instrument *app* with Prometheus HTTP metrics and expose ``/metrics``.

    Health, readiness and metrics endpoints are excluded from instrumentation.

    Args:
        app: The FastAPI application to instrument.
    """
    Instrumentator(
        should_group_status_codes=True,
        should_ignore_untemplated=True,
        excluded_handlers=["/health", "/ready", "/metrics"],
    ).instrument(app).expose(app, include_in_schema=False, should_gzip=True)
