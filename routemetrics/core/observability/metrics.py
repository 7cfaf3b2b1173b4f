from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, Optional, Tuple

from prometheus_client import REGISTRY, CollectorRegistry, Histogram

# Seconds; sub-100ms up to 5s
DEFAULT_BUCKETS: Tuple[float, ...] = (0.1, 0.2, 0.3, 0.5, 0.75, 1.0, 1.5, 2.0, 3.0, 5.0)

REQUEST_DURATION_NAME = "request_duration_seconds"
REQUEST_DURATION_LABELS = ("code", "endpoint")


def build_request_histogram(
    subsystem: str = "",
    buckets: Iterable[float] = DEFAULT_BUCKETS,
    registry: Optional[CollectorRegistry] = REGISTRY,
) -> Histogram:
    """
    Register the request latency histogram.

    The exported name is <subsystem>_request_duration_seconds. Registering the
    same subsystem twice in one registry raises ValueError from prometheus_client.
    """
    return Histogram(
        REQUEST_DURATION_NAME,
        "request latencies",
        list(REQUEST_DURATION_LABELS),
        subsystem=subsystem,
        buckets=tuple(buckets),
        registry=registry,
    )


def not_found_label(method: str) -> str:
    # Independent of the path so probes can't grow the label space
    return f"404_{method.upper()}"


def endpoint_label(method: str, pattern: str) -> str:
    return f"{method.upper()}_{pattern}"


@dataclass(frozen=True)
class RequestObservation:
    method: str
    path: str
    started: float
    status_code: int
    endpoint: str
    duration: float

    def labels(self) -> Tuple[str, str]:
        return str(self.status_code), self.endpoint


def record_observation(histogram: Histogram, obs: RequestObservation) -> None:
    code, endpoint = obs.labels()
    histogram.labels(code=code, endpoint=endpoint).observe(obs.duration)
