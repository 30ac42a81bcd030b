"""Tests for Prometheus metrics endpoint and custom business metrics."""

from __future__ import annotations

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from offers.observability.metrics import (
    OFFER_RESPONSES,
    OFFERS_CREATED,
    PENDING_OFFERS,
    setup_metrics,
)


@pytest.fixture(autouse=True)
def _reset_metrics():
    """Reset gauge values between tests.

    Prometheus collectors are registered globally, so values are reset
    rather than collectors re-created.  Counters cannot be reset; tests
    compare relative increments.
    """
    PENDING_OFFERS.set(0)
    yield


@pytest.fixture()
def metrics_client() -> TestClient:
    """TestClient for a minimal metrics-enabled app."""
    app = FastAPI()

    @app.get("/hello")
    async def hello():
        return {"msg": "hello"}

    @app.get("/health")
    async def health():
        return {"status": "healthy"}

    setup_metrics(app)
    return TestClient(app)


def _metric_value(text: str, sample: str) -> float:
    """Extract the value of one sample line from Prometheus text output."""
    for line in text.splitlines():
        if line.startswith(sample + " "):
            return float(line.split()[-1])
    raise ValueError(f"Metric {sample} not found in output")


def test_metrics_endpoint_returns_prometheus_format(metrics_client: TestClient) -> None:
    metrics_client.get("/hello")
    resp = metrics_client.get("/metrics")
    assert resp.status_code == 200
    assert "http_request" in resp.text
    assert "offers_created_total" in resp.text
    assert "offers_pending" in resp.text


def test_health_excluded_from_http_metrics(metrics_client: TestClient) -> None:
    metrics_client.get("/health")
    body = metrics_client.get("/metrics").text
    lines = [
        line
        for line in body.splitlines()
        if "http_request_duration" in line and 'handler="' in line
    ]
    for line in lines:
        assert '/health"' not in line, f"/health found in metrics: {line}"


def test_pending_gauge_reflected(metrics_client: TestClient) -> None:
    PENDING_OFFERS.set(4)
    assert _metric_value(metrics_client.get("/metrics").text, "offers_pending") == 4.0


def test_created_counter_increments(metrics_client: TestClient) -> None:
    before = _metric_value(metrics_client.get("/metrics").text, "offers_created_total")
    OFFERS_CREATED.inc()
    after = _metric_value(metrics_client.get("/metrics").text, "offers_created_total")
    assert after == before + 1.0


def test_responses_counter_labelled_by_kind(metrics_client: TestClient) -> None:
    OFFER_RESPONSES.labels(kind="countered").inc()
    body = metrics_client.get("/metrics").text
    assert 'offer_responses_total{kind="countered"}' in body
