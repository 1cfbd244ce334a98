# marketplace/core/middleware.py
"""Request tracing and access logging"""
import uuid
import time
import logging
from starlette.requests import Request

logger = logging.getLogger(__name__)

CORRELATION_HEADER = "X-Correlation-ID"


async def correlation_id_middleware(request: Request, call_next):
    """Reuse the caller's correlation ID or mint one, and echo it back"""
    correlation_id = request.headers.get(CORRELATION_HEADER) or str(uuid.uuid4())
    request.state.correlation_id = correlation_id

    response = await call_next(request)
    response.headers[CORRELATION_HEADER] = correlation_id
    return response


async def request_logging_middleware(request: Request, call_next):
    """Log request start and completion with duration"""
    start_time = time.time()
    correlation_id = getattr(request.state, "correlation_id", "unknown")
    client = request.client.host if request.client else "unknown"

    logger.info(f"[{correlation_id}] {request.method} {request.url.path} started (client {client})")

    response = await call_next(request)

    duration_ms = round((time.time() - start_time) * 1000, 2)
    logger.info(
        f"[{correlation_id}] {request.method} {request.url.path} -> {response.status_code} "
        f"in {duration_ms}ms"
    )

    return response
