"""
Logging Middleware for Correlation ID and Request Tracking

Generates or extracts correlation IDs for every request so catalog queries
can be traced from the HTTP call down to the data source round-trip.
"""

import uuid
import time
from typing import Callable
from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware
import structlog
from structlog.contextvars import bind_contextvars, clear_contextvars

logger = structlog.get_logger(__name__)

CORRELATION_HEADER = "X-Correlation-ID"
SESSION_HEADER = "X-Browse-Session-ID"


class LoggingMiddleware(BaseHTTPMiddleware):
    """
    Middleware to inject correlation IDs and request context into all logs.

    Features:
    - Accepts correlation_id from X-Correlation-ID header, else generates one
    - Binds correlation_id and request metadata to contextvars
    - Echoes correlation_id in the response headers
    - Logs request/response timing
    """

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        clear_contextvars()

        correlation_id = request.headers.get(CORRELATION_HEADER) or str(uuid.uuid4())
        client_ip = request.client.host if request.client else "unknown"

        bind_contextvars(
            correlation_id=correlation_id,
            request_method=request.method,
            request_path=request.url.path,
            client_ip=client_ip,
        )

        start_time = time.time()
        logger.info(
            "request_started",
            method=request.method,
            path=request.url.path,
            query_params=dict(request.query_params),
        )

        try:
            response = await call_next(request)

            duration_ms = int((time.time() - start_time) * 1000)
            response.headers[CORRELATION_HEADER] = correlation_id
            logger.info(
                "request_completed",
                status_code=response.status_code,
                duration_ms=duration_ms,
            )
            return response

        except Exception as e:
            duration_ms = int((time.time() - start_time) * 1000)
            logger.error(
                "request_failed",
                error=str(e),
                error_type=type(e).__name__,
                duration_ms=duration_ms,
                exc_info=True,
            )
            raise

        finally:
            clear_contextvars()


class BrowseSessionContextMiddleware(BaseHTTPMiddleware):
    """
    Binds the caller's browse session id (X-Browse-Session-ID header) to the
    logging context, so every query of one browsing user can be grouped.

    Must be added before LoggingMiddleware (so it runs inside it), since
    LoggingMiddleware clears the context at request start.
    """

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        session_id = request.headers.get(SESSION_HEADER)
        if session_id:
            bind_contextvars(browse_session_id=session_id)

        response = await call_next(request)
        if session_id:
            response.headers[SESSION_HEADER] = session_id
        return response
