"""FastAPI application entry point for Cellar.

Wires the project and environment routers, the domain-error handlers and
the audit event worker (started and stopped with the app lifespan).
"""

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

import structlog
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy import text

from src.api.environments import router as environments_router
from src.api.projects import router as projects_router
from src.config.settings import get_settings
from src.db.session import async_session_factory
from src.observability.events import DatabaseEventSink, EventEmitter
from src.services.errors import (
    CellarError,
    ConflictError,
    ForbiddenError,
    InvalidOperationError,
    NotFoundError,
)

APP_VERSION = "0.1.0"

settings = get_settings()

_LOG_NAME_TO_LEVEL: dict[str, int] = {
    "DEBUG": logging.DEBUG,
    "INFO": logging.INFO,
    "WARNING": logging.WARNING,
    "ERROR": logging.ERROR,
    "CRITICAL": logging.CRITICAL,
}

# --- Structured logging ---
structlog.configure(
    processors=[
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.dev.ConsoleRenderer() if settings.ENVIRONMENT == "dev"
        else structlog.processors.JSONRenderer(),
    ],
    wrapper_class=structlog.make_filtering_bound_logger(
        _LOG_NAME_TO_LEVEL[settings.LOG_LEVEL.value],
    ),
    context_class=dict,
    logger_factory=structlog.PrintLoggerFactory(),
    cache_logger_on_first_use=True,
)
logging.basicConfig(
    level=_LOG_NAME_TO_LEVEL[settings.LOG_LEVEL.value],
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
)

logger: structlog.stdlib.BoundLogger = structlog.get_logger()


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    events = EventEmitter(
        DatabaseEventSink(async_session_factory),
        max_queue_size=settings.EVENT_QUEUE_SIZE,
    )
    events.start()
    app.state.events = events
    logger.info("startup", version=APP_VERSION, environment=settings.ENVIRONMENT.value)
    try:
        yield
    finally:
        await events.stop()
        logger.info("shutdown", dropped_events=events.dropped)


# --- FastAPI app ---
app = FastAPI(
    title="Cellar API",
    description="Workspace-scoped secret and configuration management.",
    version=APP_VERSION,
    lifespan=lifespan,
)

# --- CORS middleware ---
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"] if settings.ENVIRONMENT == "dev" else [],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# --- Domain error mapping ---

_STATUS_BY_ERROR: dict[type[CellarError], int] = {
    NotFoundError: 404,
    ForbiddenError: 403,
    ConflictError: 409,
    InvalidOperationError: 400,
}


@app.exception_handler(CellarError)
async def cellar_error_handler(request: Request, exc: CellarError) -> JSONResponse:
    status_code = _STATUS_BY_ERROR.get(type(exc), 400)
    logger.info(
        "request_rejected", path=request.url.path, error=exc.kind, status=status_code,
    )
    return JSONResponse(
        status_code=status_code,
        content={"detail": exc.message, "error": exc.kind},
    )


@app.exception_handler(Exception)
async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logging.getLogger(__name__).exception("Unhandled exception on %s", request.url.path)
    detail = "Internal server error" if settings.is_production else str(exc)
    return JSONResponse(status_code=500, content={"detail": detail, "error": "internal"})


# --- Routers ---
app.include_router(projects_router)
app.include_router(environments_router)


# --- Infrastructure Endpoints (global) ---


@app.get("/health")
async def health_check() -> dict:
    """Liveness endpoint with component health checks.

    Returns 200 always (degraded status if components are down).
    """
    checks: dict[str, bool] = {"api": True}

    # Database connectivity check
    try:
        async with async_session_factory() as session:
            await session.execute(text("SELECT 1"))
        checks["database"] = True
    except Exception:
        checks["database"] = False

    events = getattr(app.state, "events", None)
    checks["events"] = bool(events is not None and events.running)

    all_ok = all(checks.values())

    return {
        "status": "ok" if all_ok else "degraded",
        "version": APP_VERSION,
        "environment": settings.ENVIRONMENT.value,
        "checks": checks,
    }


@app.get("/api/version")
async def get_version() -> dict[str, str]:
    """Return application name, version, and environment."""
    return {
        "name": "Cellar",
        "version": APP_VERSION,
        "environment": settings.ENVIRONMENT.value,
    }
