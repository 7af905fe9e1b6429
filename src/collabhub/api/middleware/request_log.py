"""Correlation id + access log middleware."""
from __future__ import annotations

import logging
import time
import uuid

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

logger = logging.getLogger(__name__)

HEADER = "X-Request-ID"


class RequestLogMiddleware(BaseHTTPMiddleware):
    """Tag each request with an ``X-Request-ID`` and log one line when it completes."""

    async def dispatch(
        self,
        request: Request,
        call_next: RequestResponseEndpoint,
    ) -> Response:
        cid = request.headers.get(HEADER) or uuid.uuid4().hex
        start = time.perf_counter()
        response = await call_next(request)
        response.headers[HEADER] = cid
        logger.info(
            "%s %s %s %.1fms cid=%s",
            request.method,
            request.url.path,
            response.status_code,
            (time.perf_counter() - start) * 1000,
            cid,
        )
        return response
