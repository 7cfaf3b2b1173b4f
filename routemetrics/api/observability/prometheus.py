from __future__ import annotations

from dataclasses import replace
from typing import Optional

from fastapi import FastAPI
from prometheus_client import REGISTRY, CollectorRegistry

from routemetrics.api.endpoints.metrics_export import build_metrics_router
from routemetrics.api.listener import MetricsListener
from routemetrics.api.middleware.metrics import MetricsMiddleware
from routemetrics.core.config import MetricsSettings
from routemetrics.core.observability.metrics import build_request_histogram


class PrometheusMetrics:
    """
    Request latency metrics for one FastAPI app.

    Usage::

        metrics = PrometheusMetrics(MetricsSettings(subsystem="shop"))
        metrics.use(app)

    The histogram lives in ``registry`` (process-wide default registry unless
    one is injected). With a listen address set, the scrape route is served by
    a separate app on its own listener instead of ``app``.
    """

    def __init__(
        self,
        settings: Optional[MetricsSettings] = None,
        *,
        registry: Optional[CollectorRegistry] = None,
    ):
        self.settings = settings or MetricsSettings.from_env()
        self.registry = registry if registry is not None else REGISTRY
        self.histogram = build_request_histogram(
            subsystem=self.settings.subsystem,
            buckets=self.settings.buckets,
            registry=self.registry,
        )
        self.metrics_app: Optional[FastAPI] = None
        self.listener: Optional[MetricsListener] = None

    @property
    def metrics_path(self) -> str:
        return self.settings.metrics_path

    @property
    def listener_running(self) -> bool:
        return bool(self.listener is not None and self.listener.running)

    def set_listen_address(self, address: str, metrics_app: Optional[FastAPI] = None) -> None:
        """
        Expose metrics on ``address`` rather than on the instrumented app.
        ``metrics_app`` lets the caller supply the app that serves the scrape
        route (e.g. one already carrying admin endpoints).
        """
        self.settings = replace(self.settings, listen_address=address or None)
        self.metrics_app = metrics_app

    def metrics_router(self):
        return build_metrics_router(self.registry, self.metrics_path)

    def use(self, app: FastAPI) -> None:
        if self.settings.listen_address:
            if self.metrics_app is None:
                self.metrics_app = FastAPI(openapi_url=None, docs_url=None, redoc_url=None)
            self.metrics_app.include_router(self.metrics_router())
            self.start_listener()
        else:
            app.include_router(self.metrics_router())

        app.add_middleware(
            MetricsMiddleware,
            histogram=self.histogram,
            metrics_path=self.metrics_path,
        )

    def start_listener(self) -> bool:
        if not self.settings.listen_address or self.metrics_app is None:
            return False
        if self.listener is None:
            self.listener = MetricsListener(self.metrics_app, self.settings.listen_address)
        return self.listener.start()

    def shutdown(self) -> None:
        if self.listener is not None:
            self.listener.stop()
