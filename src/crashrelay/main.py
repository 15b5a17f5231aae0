"""
Main FastAPI application factory.

This module sets up the FastAPI app with routes, exception handlers and
lifecycle events. Configuration is passed in explicitly so several
independently configured apps can coexist.
"""

import logging
import time
from contextlib import asynccontextmanager
from typing import Any, AsyncGenerator, Dict, Optional

import aiohttp
import structlog
from fastapi import FastAPI, Request
from fastapi.exception_handlers import http_exception_handler
from fastapi.responses import JSONResponse, PlainTextResponse, Response
from starlette.exceptions import HTTPException as StarletteHTTPException

from . import __version__
from .api import healthz_router, metrics_router, webhook_router
from .api.webhook import WEBHOOK_PATH
from .config import Settings, get_settings
from .core.auth import TokenAuthenticator, authenticate_webhook
from .core.exceptions import AuthenticationError, CrashRelayException, ValidationError
from .core.metrics import OUTCOME_REJECTED, MetricsCollector
from .core.pusher import HumioPusher, Pusher
from .core.relay import WebhookRelay
from .core.translator import Clock


def configure_logging(log_level: str = "INFO") -> None:
    """Configure structured logging for the application."""
    logging.basicConfig(
        format="%(message)s",
        level=getattr(logging, log_level.upper()),
    )

    # Configure structlog
    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.stdlib.PositionalArgumentsFormatter(),
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.format_exc_info,
            structlog.dev.ConsoleRenderer(),
        ],
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )


def create_lifespan_handler(settings: Settings, now: Clock) -> Any:
    """Create a lifespan handler with access to settings."""
    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
        """
        FastAPI lifespan context manager.

        Opens the shared Humio session unless a pusher was injected.
        """
        logger = structlog.get_logger(__name__)
        logger.info("Starting CrashRelay service", version=app.version)

        session: Optional[aiohttp.ClientSession] = None
        if app.state.relay is None:
            session = aiohttp.ClientSession(
                timeout=aiohttp.ClientTimeout(total=settings.timeout_seconds)
            )
            pusher = HumioPusher(
                session=session,
                url=settings.humio_base_url,
                ingest_token=settings.humio_ingest_token,
                ingest_endpoint=settings.humio_ingest_endpoint,
            )
            app.state.relay = WebhookRelay(pusher, now=now, metrics=app.state.metrics)

        try:
            logger.info("CrashRelay service started successfully")
            yield
        finally:
            logger.info("Shutting down CrashRelay service")

            if session is not None:
                await session.close()
                app.state.relay = None

            logger.info("CrashRelay service shutdown complete")

    return lifespan


async def crashrelay_exception_handler(request: Request, exc: CrashRelayException) -> JSONResponse:
    """Handle custom CrashRelay exceptions."""
    logger = structlog.get_logger(__name__)
    logger.error(
        "CrashRelay exception occurred",
        error=str(exc),
        status_code=exc.status_code,
        path=request.url.path,
        method=request.method,
    )

    return JSONResponse(
        status_code=exc.status_code,
        content={
            "error": exc.error_code,
            "message": str(exc),
            "details": exc.details,
        },
    )


async def authentication_exception_handler(request: Request, exc: AuthenticationError) -> PlainTextResponse:
    """Reject unauthenticated webhook calls with a plain-text 401."""
    logger = structlog.get_logger(__name__)
    logger.warning(
        "Webhook authentication rejected",
        path=request.url.path,
        method=request.method,
    )

    return PlainTextResponse(str(exc), status_code=exc.status_code)


async def method_not_allowed_handler(request: Request, exc: StarletteHTTPException) -> Response:
    """
    Turn 405 on the webhook path into the same 401/400 the route gives.

    Methods outside the route's list never reach its dependencies, so the
    token is checked here before the method is rejected.
    """
    if exc.status_code != 405 or request.url.path != WEBHOOK_PATH:
        return await http_exception_handler(request, exc)

    try:
        await authenticate_webhook(request)
    except AuthenticationError as auth_error:
        return await authentication_exception_handler(request, auth_error)

    metrics = getattr(request.app.state, "metrics", None)
    if metrics:
        metrics.record_webhook(OUTCOME_REJECTED)
    return await crashrelay_exception_handler(
        request,
        ValidationError("Method not allowed", details={"method": request.method}),
    )


async def general_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Handle unexpected exceptions."""
    logger = structlog.get_logger(__name__)
    logger.error(
        "Unexpected exception occurred",
        error=str(exc),
        error_type=type(exc).__name__,
        path=request.url.path,
        method=request.method,
        exc_info=True,
    )

    return JSONResponse(
        status_code=500,
        content={
            "error": "internal_server_error",
            "message": "An unexpected error occurred",
        },
    )


def create_app(
    settings: Optional[Settings] = None,
    pusher: Optional[Pusher] = None,
    now: Clock = time.time_ns,
) -> FastAPI:
    """
    Create and configure the FastAPI application.

    Args:
        settings: Explicit settings; loaded from config file and env when omitted
        pusher: Sink for issue events; a HumioPusher is built at startup when omitted
        now: Clock returning nanoseconds since the epoch
    """
    if settings is None:
        settings = get_settings()
        configure_logging(settings.log_level)

    app = FastAPI(
        title="CrashRelay",
        description="Crashlytics webhook → Humio ingest relay",
        version=__version__,
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url="/openapi.json",
        lifespan=create_lifespan_handler(settings, now),
    )

    metrics = MetricsCollector()
    app.state.settings = settings
    app.state.metrics = metrics
    app.state.authenticator = TokenAuthenticator(settings.crashlytics_auth_token)
    app.state.relay = WebhookRelay(pusher, now=now, metrics=metrics) if pusher is not None else None

    app.add_exception_handler(AuthenticationError, authentication_exception_handler)
    app.add_exception_handler(CrashRelayException, crashrelay_exception_handler)
    app.add_exception_handler(StarletteHTTPException, method_not_allowed_handler)
    app.add_exception_handler(Exception, general_exception_handler)

    app.include_router(webhook_router, tags=["webhook"])
    app.include_router(metrics_router, tags=["metrics"])
    app.include_router(healthz_router, tags=["health"])

    @app.get("/", include_in_schema=False)
    async def root() -> Dict[str, str]:
        """Root endpoint with service information."""
        return {
            "service": "CrashRelay",
            "version": app.version,
            "description": "Crashlytics webhook → Humio ingest relay",
            "docs": "/docs",
        }

    return app
