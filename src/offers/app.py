"""Application entry point for the offer negotiation service.

Runs the FastAPI offer API under uvicorn.

Configures:
- **structlog** with JSON rendering (production) or colored console (development)
- **Sentry** error reporting through the structlog-sentry bridge
- **Offer store** and **audit trail**, each on its own SQLite connection
- **Retry exhaustion** alerts recorded in the audit trail
- **Prometheus** metrics, request IDs, and health/readiness probes
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from typing import Any

import structlog
import uvicorn
from fastapi import FastAPI

from offers.api.routes import router as offer_router
from offers.audit.logger import AuditLogger
from offers.audit.store import init_audit_table
from offers.config import Settings, get_settings
from offers.health import register_health_routes
from offers.observability.metrics import PENDING_OFFERS, setup_metrics
from offers.observability.middleware import SERVICE_NAME, RequestIdMiddleware
from offers.observability.sentry import get_sentry_processor, init_sentry
from offers.resilience.retry import configure_error_notifier
from offers.state_machine.transitions import counter_roles
from offers.store.schema import connect, init_offer_tables
from offers.store.store import OfferStore

logger = structlog.get_logger()


def configure_logging(production: bool = False, sentry_enabled: bool = False) -> None:
    """Configure structlog for production (JSON) or development (console).

    Production mode (*production=True*): JSON rendering at INFO level.
    Development mode: colored console rendering at DEBUG level.

    Args:
        production: Enable production mode if ``True``.
        sentry_enabled: Forward ERROR events to Sentry if ``True``.
    """
    shared_processors: list[structlog.types.Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.UnicodeDecoder(),
    ]
    if sentry_enabled:
        shared_processors.append(get_sentry_processor())

    if production:
        renderer: structlog.types.Processor = structlog.processors.JSONRenderer()
        log_level = logging.INFO
    else:
        renderer = structlog.dev.ConsoleRenderer()
        log_level = logging.DEBUG

    structlog.configure(
        processors=[*shared_processors, renderer],
        wrapper_class=structlog.make_filtering_bound_logger(log_level),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(),
        cache_logger_on_first_use=True,
    )

    structlog.contextvars.bind_contextvars(service=SERVICE_NAME)


class AuditNotifier:
    """Record retry-exhaustion alerts as ``error`` audit entries."""

    def __init__(self, audit_logger: AuditLogger) -> None:
        self._audit_logger = audit_logger

    def notify(self, text: str, level: str) -> None:
        self._audit_logger.log_error(f"[{level}] {text}")


def initialize_services(settings: Settings | None = None) -> dict[str, Any]:
    """Set up all shared services for the application.

    Opens the offer database and the audit database, creates the
    ``OfferStore`` and ``AuditLogger``, and routes retry-exhaustion alerts
    into the audit trail.

    Args:
        settings: Application settings.  If ``None``, ``get_settings()`` is used.

    Returns:
        A dict of initialized service instances keyed by name.
    """
    if settings is None:
        settings = get_settings()

    services: dict[str, Any] = {"_settings": settings}

    for path in (settings.db_path, settings.audit_db_path):
        if str(path) != ":memory:":
            path.parent.mkdir(parents=True, exist_ok=True)

    offer_conn = connect(settings.db_path)
    init_offer_tables(offer_conn)
    services["offer_conn"] = offer_conn

    roles = counter_roles(settings.buyer_counter_enabled)
    services["counter_roles"] = roles
    services["offer_store"] = OfferStore(offer_conn, counter_roles=roles)

    audit_conn = connect(settings.audit_db_path)
    init_audit_table(audit_conn)
    services["audit_conn"] = audit_conn

    audit_logger = AuditLogger(audit_conn)
    services["audit_logger"] = audit_logger

    configure_error_notifier(AuditNotifier(audit_logger))
    logger.info(
        "services_initialized",
        db_path=str(settings.db_path),
        audit_db_path=str(settings.audit_db_path),
        buyer_counter_enabled=settings.buyer_counter_enabled,
    )
    return services


def close_services(services: dict[str, Any]) -> None:
    """Close the database connections opened by ``initialize_services``."""
    for key in ("offer_conn", "audit_conn"):
        conn = services.get(key)
        if conn is not None:
            conn.close()
            logger.info("database_connection_closed", connection=key)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None]:
    """Lifespan context manager for FastAPI startup and shutdown.

    On startup: seeds the pending-offer gauge from the store.
    On shutdown: closes both database connections.

    Args:
        app: The FastAPI application instance.

    Yields:
        Control to the application.
    """
    services = app.state.services
    store = services.get("offer_store")
    if store is not None:
        PENDING_OFFERS.set(await asyncio.to_thread(store.count_pending))
    logger.info("offer_service_starting")
    yield
    close_services(services)


def create_app(services: dict[str, Any]) -> FastAPI:
    """Create the FastAPI app with the offer routes and observability.

    Args:
        services: The initialized services dict from ``initialize_services``.

    Returns:
        The configured FastAPI application.
    """
    fastapi_app = FastAPI(title="Offer Negotiation Service", lifespan=lifespan)
    fastapi_app.state.services = services
    fastapi_app.state.settings = services.get("_settings") or get_settings()
    fastapi_app.add_middleware(RequestIdMiddleware)
    fastapi_app.include_router(offer_router)
    register_health_routes(fastapi_app)
    setup_metrics(fastapi_app)
    return fastapi_app


async def main() -> None:
    """Main entry point: configure logging, build the app, and serve it.

    1. Configure Sentry and logging
    2. Initialize services
    3. Create FastAPI app
    4. Run uvicorn until shutdown
    """
    settings = get_settings()
    sentry_enabled = init_sentry(settings.sentry_dsn.get_secret_value())
    configure_logging(production=settings.production, sentry_enabled=sentry_enabled)
    logger.info("application_starting", port=settings.port)

    services = initialize_services(settings)
    fastapi_app = create_app(services)

    config = uvicorn.Config(
        fastapi_app,
        host="0.0.0.0",
        port=settings.port,
        log_level="info",
    )
    server = uvicorn.Server(config)
    await server.serve()


def run() -> None:
    """Console-script wrapper around :func:`main`."""
    asyncio.run(main())


if __name__ == "__main__":
    run()
