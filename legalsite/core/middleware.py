import logging
import time
import uuid

import structlog
from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware

logger = logging.getLogger("legalsite.requests")

NO_CACHE = "no-cache, no-store, must-revalidate"


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """
    Logs every request and tags it with an X-Request-ID.

    If the client sends X-Request-ID, it is preserved.
    Otherwise, a new UUID is generated.

    The request ID is:
    - Available in request.state.request_id for logging
    - Bound into structlog's contextvars for the duration of the request
    - Returned in response headers for client correlation
    """

    async def dispatch(self, request: Request, call_next):
        request_id = request.headers.get("X-Request-ID") or str(uuid.uuid4())
        request.state.request_id = request_id

        structlog.contextvars.clear_contextvars()
        structlog.contextvars.bind_contextvars(request_id=request_id)

        start_time = time.perf_counter()
        logger.info("%s %s", request.method, request.url.path)

        response = await call_next(request)

        duration = time.perf_counter() - start_time
        logger.debug(
            "%s %s -> %s in %.4fs",
            request.method,
            request.url.path,
            response.status_code,
            duration,
        )
        response.headers["X-Request-ID"] = request_id
        return response


class NoCacheMiddleware(BaseHTTPMiddleware):
    """Pages and API responses are never cached by browsers or proxies."""

    async def dispatch(self, request: Request, call_next):
        response = await call_next(request)
        response.headers["Cache-Control"] = NO_CACHE
        response.headers["Pragma"] = "no-cache"
        response.headers["Expires"] = "0"
        return response
