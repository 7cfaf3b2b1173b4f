"""
Route Metrics

Prometheus request-latency middleware for FastAPI/Starlette apps. Latencies
are labeled by status code and by the registered route pattern that served
the request, never by the concrete URL:

- RouteResolver: concrete path -> registered pattern
- MetricsMiddleware: times each request and records the observation
- PrometheusMetrics: wires histogram, scrape route and optional listener
"""

from routemetrics.api.middleware.metrics import MetricsMiddleware
from routemetrics.api.observability.prometheus import PrometheusMetrics
from routemetrics.core.config import MetricsSettings
from routemetrics.core.routing import RouteResolver, StarletteDispatcher

__all__ = [
    "MetricsMiddleware",
    "MetricsSettings",
    "PrometheusMetrics",
    "RouteResolver",
    "StarletteDispatcher",
]
