"""
HTTP middleware: request id, access log and timing.

Every request gets a request_id (taken from X-Request-ID when the caller sends
one) that is bound into the structlog context for the duration of the request
and echoed back in the response header.
"""

from __future__ import annotations

import time
import uuid

from fastapi import FastAPI, Request

from backend_walletdesk.desk_logging import bind_request, get_logger

logger = get_logger(__name__)

REQUEST_ID_HEADER = "X-Request-ID"


def install_request_logging(app: FastAPI) -> None:
    @app.middleware("http")
    async def request_logging(request: Request, call_next):
        request_id = request.headers.get(REQUEST_ID_HEADER) or uuid.uuid4().hex[:16]
        bind_request(request_id, method=request.method, path=request.url.path)
        start = time.perf_counter()
        try:
            response = await call_next(request)
        except Exception:
            logger.exception("request_failed", duration_ms=round((time.perf_counter() - start) * 1000, 2))
            raise
        response.headers[REQUEST_ID_HEADER] = request_id
        logger.info(
            "request_completed",
            status=response.status_code,
            duration_ms=round((time.perf_counter() - start) * 1000, 2),
        )
        return response
