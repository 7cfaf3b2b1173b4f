from __future__ import annotations

import logging
import time
from typing import Any, Callable

from fastapi import Request
from prometheus_client import Histogram
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.responses import Response

from routemetrics.core.observability.metrics import (
    RequestObservation,
    endpoint_label,
    not_found_label,
    record_observation,
)
from routemetrics.core.routing import RouteResolver, StarletteDispatcher

log = logging.getLogger("routemetrics.metrics")


class MetricsMiddleware(BaseHTTPMiddleware):
    """
    Records one latency observation per request, labeled by status code and
    the route pattern that served it.

      - the metrics path itself is passed through unmeasured
      - 404s are labeled 404_<METHOD> without looking at the path
      - recording is best-effort: failures are logged, the response is untouched
      - trailing-slash redirects (307) and 405s match no pattern for their
        method, so they keep the literal path as their label
      - the resolved label is left on request.state.endpoint
    """

    def __init__(
        self,
        app,
        *,
        histogram: Histogram,
        metrics_path: str = "/metrics",
        router: Any = None,
        resolver_factory: Callable[..., RouteResolver] = RouteResolver,
    ):
        super().__init__(app)
        self.histogram = histogram
        self.metrics_path = metrics_path
        self.router = router
        self.resolver_factory = resolver_factory

    def _resolver(self, request: Request) -> RouteResolver:
        router = self.router if self.router is not None else request.app.router
        return self.resolver_factory(StarletteDispatcher(router))

    def _endpoint(self, request: Request, status: int) -> str:
        method = request.method.upper()
        if status == 404:
            return not_found_label(method)
        scope = request.scope
        pattern = self._resolver(request).resolve(
            method,
            scope["path"],
            handler=scope.get("endpoint"),
            scope=scope,
        )
        return endpoint_label(method, pattern)

    def _record(self, request: Request, started: float, status: int, elapsed: float) -> None:
        try:
            endpoint = self._endpoint(request, status)
            # outer middleware (error logging) reads this back from the shared scope
            request.state.endpoint = endpoint
            obs = RequestObservation(
                method=request.method.upper(),
                path=request.url.path,
                started=started,
                status_code=status,
                endpoint=endpoint,
                duration=elapsed,
            )
            record_observation(self.histogram, obs)
        except Exception as e:
            log.warning(
                "Dropped request metric: %s method=%s path=%s status=%s",
                str(e),
                request.method,
                request.url.path,
                status,
            )

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        if request.url.path == self.metrics_path:
            return await call_next(request)

        start = time.perf_counter()
        try:
            resp = await call_next(request)
        except Exception:
            self._record(request, start, 500, time.perf_counter() - start)
            raise

        self._record(request, start, resp.status_code, time.perf_counter() - start)
        return resp
