from __future__ import annotations

from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI
from prometheus_client import CollectorRegistry

from routemetrics.api.endpoints import health
from routemetrics.api.middleware.error_shaping import SafeErrorMiddleware
from routemetrics.api.middleware.request_context import RequestContextMiddleware
from routemetrics.api.observability.prometheus import PrometheusMetrics
from routemetrics.core.config import MetricsSettings


@asynccontextmanager
async def _lifespan(app: FastAPI):
    yield
    metrics = getattr(app.state, "metrics", None)
    if metrics is not None:
        metrics.shutdown()


def create_app(
    settings: Optional[MetricsSettings] = None,
    *,
    registry: Optional[CollectorRegistry] = None,
) -> FastAPI:
    settings = settings or MetricsSettings.from_env()

    app = FastAPI(
        title="Route Metrics",
        version="0.1.0",
        lifespan=_lifespan,
    )

    app.include_router(health.router)

    # ------------------------------------------------------------
    # Middleware stack (ORDER MATTERS)
    # Starlette reverses add_middleware order: the LAST call = OUTERMOST wrapper.
    # Runtime order (outermost -> innermost):
    #   SafeErrorMiddleware -> RequestContext -> Metrics -> router
    # ------------------------------------------------------------
    metrics = PrometheusMetrics(settings, registry=registry)
    metrics.use(app)
    app.state.metrics = metrics

    app.add_middleware(RequestContextMiddleware, quiet_paths=(settings.metrics_path,))
    app.add_middleware(SafeErrorMiddleware)

    return app
