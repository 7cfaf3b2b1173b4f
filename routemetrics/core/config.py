from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Mapping, Optional, Tuple

from routemetrics.core.observability.metrics import DEFAULT_BUCKETS


class ConfigError(ValueError):
    pass


def _parse_buckets(raw: str) -> Tuple[float, ...]:
    parts = [p.strip() for p in raw.split(",") if p.strip()]
    if not parts:
        raise ConfigError("ROUTEMETRICS_BUCKETS must list at least one boundary")
    try:
        buckets = tuple(float(p) for p in parts)
    except ValueError as e:
        raise ConfigError(f"Invalid bucket boundary in ROUTEMETRICS_BUCKETS={raw!r}") from e
    for lo, hi in zip(buckets, buckets[1:]):
        if hi <= lo:
            raise ConfigError(f"ROUTEMETRICS_BUCKETS must be strictly ascending, got {raw!r}")
    return buckets


@dataclass(frozen=True)
class MetricsSettings:
    subsystem: str = ""
    metrics_path: str = "/metrics"
    buckets: Tuple[float, ...] = DEFAULT_BUCKETS
    # host:port for a dedicated metrics listener; None = serve on the app itself
    listen_address: Optional[str] = None

    def __post_init__(self):
        if not self.metrics_path.startswith("/"):
            raise ConfigError(f"metrics_path must start with '/', got {self.metrics_path!r}")

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "MetricsSettings":
        env = os.environ if environ is None else environ

        raw_buckets = (env.get("ROUTEMETRICS_BUCKETS") or "").strip()
        listen = (env.get("ROUTEMETRICS_LISTEN_ADDRESS") or "").strip()

        return cls(
            subsystem=(env.get("ROUTEMETRICS_SUBSYSTEM") or "").strip(),
            metrics_path=(env.get("ROUTEMETRICS_METRICS_PATH") or "/metrics").strip(),
            buckets=_parse_buckets(raw_buckets) if raw_buckets else DEFAULT_BUCKETS,
            listen_address=listen or None,
        )


@dataclass(frozen=True)
class ServerSettings:
    host: str = "0.0.0.0"
    port: int = 8001

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "ServerSettings":
        env = os.environ if environ is None else environ
        raw_port = (env.get("ROUTEMETRICS_PORT") or "8001").strip()
        try:
            port = int(raw_port)
        except ValueError as e:
            raise ConfigError(f"Invalid ROUTEMETRICS_PORT={raw_port!r}") from e
        return cls(host=(env.get("ROUTEMETRICS_HOST") or "0.0.0.0").strip(), port=port)
