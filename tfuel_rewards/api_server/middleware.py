"""
HTTP middleware: request logging, request ids and timing.

Each request gets a short request_id (or the caller's x-request-id) bound
into the log context, so every line emitted while serving it carries the id.
"""

from __future__ import annotations

import time
from typing import Awaitable, Callable

from fastapi import Request, Response

from tfuel_rewards.rewards_logging import bind_request_context, clear_request_context, get_logger

logger = get_logger(__name__)

REQUEST_ID_HEADER = "x-request-id"


async def log_requests(
    request: Request,
    call_next: Callable[[Request], Awaitable[Response]],
) -> Response:
    request_id = bind_request_context(request.headers.get(REQUEST_ID_HEADER))
    start = time.perf_counter()
    try:
        response = await call_next(request)
    except Exception:
        logger.exception("http_request_failed", method=request.method, path=request.url.path)
        raise
    duration_ms = (time.perf_counter() - start) * 1000
    response.headers[REQUEST_ID_HEADER] = request_id
    logger.info(
        "http_request",
        method=request.method,
        path=request.url.path,
        status=response.status_code,
        duration_ms=round(duration_ms, 2),
    )
    clear_request_context()
    return response
