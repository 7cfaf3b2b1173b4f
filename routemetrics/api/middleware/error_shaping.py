from __future__ import annotations

import logging
from typing import Callable

from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.responses import JSONResponse, Response

log = logging.getLogger("routemetrics.errors")


class SafeErrorMiddleware(BaseHTTPMiddleware):
    """
    Outermost layer: turns an unhandled exception into a bare JSON 500.

    The client only sees the request id. The server-side log line carries the
    same endpoint label the latency histogram recorded the 500 under
    (MetricsMiddleware leaves it on request.state), so an error in the log can
    be matched to its series without reparsing the URL.
    """

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        try:
            return await call_next(request)
        except Exception as e:
            state = request.state
            rid = getattr(state, "request_id", None) or request.headers.get("x-request-id")
            endpoint = getattr(state, "endpoint", None) or request.url.path
            log.exception("Unhandled error: %s rid=%s endpoint=%s", e, rid, endpoint)

            payload = {"detail": "Internal Server Error"}
            if rid:
                payload["request_id"] = rid
            return JSONResponse(status_code=500, content=payload)
