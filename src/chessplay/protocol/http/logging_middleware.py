from __future__ import annotations

import logging
import time
import uuid
from typing import Awaitable, Callable

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response


logger = logging.getLogger(__name__)

REQUEST_ID_HEADER = "x-request-id"


class RequestIDLoggingMiddleware(BaseHTTPMiddleware):
    """Tag each request with an ID and log one line in, one line out.

    A client-supplied ``x-request-id`` is reused so callers can correlate
    their own logs; otherwise a fresh UUID is issued. The ID is echoed back
    in the response header and is available to handlers as
    ``request.state.request_id``.
    """

    async def dispatch(
        self, request: Request, call_next: Callable[[Request], Awaitable[Response]]
    ) -> Response:
        start = time.perf_counter()
        request_id = request.headers.get(REQUEST_ID_HEADER) or str(uuid.uuid4())
        request.state.request_id = request_id

        logger.info(
            "request",
            extra={"request_id": request_id, "method": request.method, "path": request.url.path},
        )
        response = await call_next(request)
        response.headers[REQUEST_ID_HEADER] = request_id

        level = logging.WARNING if response.status_code >= 500 else logging.INFO
        logger.log(
            level,
            "response",
            extra={
                "request_id": request_id,
                "status_code": response.status_code,
                "duration_ms": int((time.perf_counter() - start) * 1000),
            },
        )
        return response
