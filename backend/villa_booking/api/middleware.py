"""
Request middleware: correlation ids, caller context and access logging.

Every request gets a request id (an incoming X-Request-ID is reused so ids
follow a call across services). The id and the caller headers are bound to
structlog context vars, so booking, payment and sweeper log lines emitted
while serving the request carry them. Error bodies repeat the id; see the
exception handlers in ``villa_booking.main``.
"""

import time
import uuid

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response
import structlog

from villa_booking.core.logging import get_logger

logger = get_logger(__name__)

# Polled by load balancers and Prometheus; logged at debug only
QUIET_PATHS = frozenset({"/health", "/metrics"})


def request_id_for(request: Request) -> str | None:
    return getattr(request.state, "request_id", None)


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next) -> Response:
        request_id = request.headers.get("x-request-id") or uuid.uuid4().hex[:12]
        request.state.request_id = request_id
        start_time = time.perf_counter()

        structlog.contextvars.clear_contextvars()
        structlog.contextvars.bind_contextvars(
            request_id=request_id,
            method=request.method,
            path=request.url.path,
        )
        caller = {
            "user_id": request.headers.get("x-user-id"),
            "user_role": request.headers.get("x-user-role"),
        }
        structlog.contextvars.bind_contextvars(**{k: v for k, v in caller.items() if v})

        try:
            response = await call_next(request)
        except Exception as e:
            logger.error(
                "request_failed",
                error=str(e),
                error_type=type(e).__name__,
                duration_ms=round((time.perf_counter() - start_time) * 1000, 2),
            )
            raise

        duration_ms = round((time.perf_counter() - start_time) * 1000, 2)
        log = logger.debug if request.url.path in QUIET_PATHS else logger.info
        log("request_completed", status_code=response.status_code, duration_ms=duration_ms)

        response.headers["X-Request-ID"] = request_id
        response.headers["X-Response-Time"] = f"{duration_ms}ms"
        return response
