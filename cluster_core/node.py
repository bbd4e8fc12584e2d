"""Cluster endpoint with its lazily tracked health record."""

import threading
from typing import Tuple


class Node:
    """One addressable endpoint of the cluster.

    Address fields are fixed at construction. The health flag and the
    timestamp of the last health update change together, only through
    ``mark_healthy``.
    """

    def __init__(self, host: str, port: int, protocol: str, path: str = ""):
        self._host = host
        self._port = int(port)
        self._protocol = protocol
        self._path = path.rstrip("/")

        self._lock = threading.Lock()
        self._healthy = False
        self._last_health_check_ts = 0

    @property
    def host(self) -> str:
        return self._host

    @property
    def port(self) -> int:
        return self._port

    @property
    def protocol(self) -> str:
        return self._protocol

    @property
    def path(self) -> str:
        return self._path

    @property
    def healthy(self) -> bool:
        with self._lock:
            return self._healthy

    @property
    def last_health_check_ts(self) -> int:
        with self._lock:
            return self._last_health_check_ts

    def url(self) -> str:
        return f"{self._protocol}://{self._host}:{self._port}{self._path}"

    def health(self) -> Tuple[bool, int]:
        """Atomic (healthy, last_health_check_ts) snapshot."""
        with self._lock:
            return self._healthy, self._last_health_check_ts

    def mark_healthy(self, is_healthy: bool, now: int) -> bool:
        """Record a health signal. Returns the previous healthy flag."""
        with self._lock:
            was_healthy = self._healthy
            self._healthy = is_healthy
            self._last_health_check_ts = int(now)
            return was_healthy

    def due_for_health_check(self, now: int, interval_seconds: int) -> bool:
        with self._lock:
            return now - self._last_health_check_ts > interval_seconds

    def __repr__(self) -> str:
        healthy, ts = self.health()
        state = "healthy" if healthy else "unhealthy"
        return f"Node({self.url()}, {state}, checked_at={ts})"
