"""Logging middleware and configuration."""

import logging
import sys
import time
from collections.abc import Callable
from uuid import uuid4

import structlog
from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware
from structlog.types import Processor

from discipleship.config import settings

REQUEST_ID_HEADER = "X-Request-ID"


def _renderer() -> Processor:
    if settings.log_format == "json":
        return structlog.processors.JSONRenderer()
    return structlog.dev.ConsoleRenderer()


def configure_logging() -> None:
    """Configure structlog on top of stdlib logging, JSON or console per settings."""
    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.stdlib.PositionalArgumentsFormatter(),
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.processors.UnicodeDecoder(),
            _renderer(),
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )

    logging.basicConfig(format="%(message)s", stream=sys.stdout, level=settings.logging_level)
    # boto is chatty at DEBUG
    logging.getLogger("botocore").setLevel(max(settings.logging_level, logging.INFO))


def _caller_fields(request: Request) -> dict[str, str | None]:
    """Tenant and user the auth dependency tagged the request with, if any."""
    return {
        "church_id": getattr(request.state, "church_id", None),
        "user_id": getattr(request.state, "user_id", None),
    }


class LoggingMiddleware(BaseHTTPMiddleware):
    """
    One log line when a request starts and one when it ends.

    Every event logged while the request runs carries its request id, reused
    from an incoming ``X-Request-ID`` header or freshly generated, and the id is
    echoed back on the response. The completion line also names the church and
    user the request ran as.
    """

    async def dispatch(
        self,
        request: Request,
        call_next: Callable,
    ) -> Response:
        request_id = request.headers.get(REQUEST_ID_HEADER) or uuid4().hex

        structlog.contextvars.clear_contextvars()
        structlog.contextvars.bind_contextvars(
            request_id=request_id,
            method=request.method,
            path=request.url.path,
        )
        logger = structlog.get_logger()

        started = time.perf_counter()
        logger.info("request_started", client=request.client.host if request.client else None)

        try:
            response = await call_next(request)
        except Exception as e:
            logger.error(
                "request_failed",
                error=str(e),
                duration=time.perf_counter() - started,
                **_caller_fields(request),
            )
            raise

        duration = time.perf_counter() - started
        logger.info(
            "request_completed",
            status_code=response.status_code,
            duration=duration,
            **_caller_fields(request),
        )

        response.headers[REQUEST_ID_HEADER] = request_id
        response.headers["X-Process-Time"] = str(duration)
        return response
