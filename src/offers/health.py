"""Health and readiness endpoints for container orchestration.

- ``GET /health`` -- Liveness probe.  Returns 200 if the process is alive.
- ``GET /ready``  -- Readiness probe.  Returns 200 only when the offer
  database and the audit database both answer a trivial query; 503 with
  per-check details otherwise.
"""

from __future__ import annotations

import asyncio
import sqlite3
from typing import Any

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse


async def _check_conn(conn: sqlite3.Connection | None) -> str:
    if conn is None:
        return "fail"
    try:
        await asyncio.to_thread(conn.execute, "SELECT 1")
    except sqlite3.Error:
        return "fail"
    return "ok"


def register_health_routes(app: FastAPI) -> None:
    """Register ``/health`` and ``/ready`` endpoints on *app*."""

    @app.get("/health")
    async def health() -> dict[str, str]:
        """Liveness probe -- always returns 200 if the process is running."""
        return {"status": "healthy"}

    @app.get("/ready")
    async def ready(request: Request) -> JSONResponse:
        """Readiness probe -- checks the offer and audit databases."""
        services: dict[str, Any] = request.app.state.services
        checks = {
            "offer_db": await _check_conn(services.get("offer_conn")),
            "audit_db": await _check_conn(services.get("audit_conn")),
        }

        all_ok = all(v == "ok" for v in checks.values())
        status = "ready" if all_ok else "not_ready"
        code = 200 if all_ok else 503

        return JSONResponse(content={"status": status, "checks": checks}, status_code=code)
