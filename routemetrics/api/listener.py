"""Dedicated metrics listener.

Serves a separate ASGI app (normally just the scrape route) on its own address
from a daemon thread, so scrapes never reach the application's router, access
log or latency histogram. Failing to start it is logged and otherwise ignored.
"""

from __future__ import annotations

import logging
import socket
import threading
from typing import Any, Optional, Tuple

import uvicorn

from routemetrics.core.config import ConfigError

log = logging.getLogger("routemetrics.listener")


def parse_listen_address(address: str) -> Tuple[str, int]:
    """
    "127.0.0.1:9100" -> ("127.0.0.1", 9100)
    ":9100"          -> ("0.0.0.0", 9100)
    "[::1]:9100"     -> ("::1", 9100)
    """
    raw = (address or "").strip()
    host, sep, port = raw.rpartition(":")
    if not sep or not port:
        raise ConfigError(f"Invalid listen address {address!r}, expected host:port")
    if host.startswith("[") and host.endswith("]"):
        host = host[1:-1]
    try:
        port_num = int(port)
    except ValueError as e:
        raise ConfigError(f"Invalid port in listen address {address!r}") from e
    if not 0 <= port_num <= 65535:
        raise ConfigError(f"Port out of range in listen address {address!r}")
    return host or "0.0.0.0", port_num


class MetricsListener:
    def __init__(self, app: Any, address: str):
        self.app = app
        self.address = address
        self._sock: Optional[socket.socket] = None
        self._server: Optional[uvicorn.Server] = None
        self._thread: Optional[threading.Thread] = None

    @property
    def port(self) -> Optional[int]:
        if self._sock is None:
            return None
        return self._sock.getsockname()[1]

    @property
    def started(self) -> bool:
        return bool(self._server is not None and self._server.started)

    @property
    def running(self) -> bool:
        return bool(self._thread is not None and self._thread.is_alive())

    def _bind(self) -> socket.socket:
        host, port = parse_listen_address(self.address)
        family = socket.AF_INET6 if ":" in host else socket.AF_INET
        sock = socket.socket(family, socket.SOCK_STREAM)
        try:
            sock.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
            sock.bind((host, port))
        except OSError:
            sock.close()
            raise
        return sock

    def start(self) -> bool:
        if self.running:
            return True
        try:
            self._sock = self._bind()
        except (ConfigError, OSError) as e:
            log.error("Metrics listener not started on %s: %s", self.address, e)
            return False

        config = uvicorn.Config(
            self.app,
            access_log=False,
            lifespan="off",
            log_config=None,
            log_level="warning",
            loop="asyncio",
        )
        self._server = uvicorn.Server(config)
        self._thread = threading.Thread(target=self._serve, name="metrics-listener", daemon=True)
        self._thread.start()
        log.info("Metrics listener serving on %s (port %s)", self.address, self.port)
        return True

    def _serve(self) -> None:
        try:
            self._server.run(sockets=[self._sock])
        except Exception:
            log.exception("Metrics listener on %s crashed", self.address)

    def stop(self, timeout: float = 5.0) -> None:
        if self._server is not None:
            self._server.should_exit = True
        if self._thread is not None:
            self._thread.join(timeout)
        if self._sock is not None:
            self._sock.close()
        self._thread = None
        self._server = None
        self._sock = None
