"""Round-robin node selection biased toward healthy nodes."""

import threading
import time
from typing import Callable, List, Optional

from .hooks import HookEvents, HookManager
from .node import Node


class NodeSelector:
    """
    Picks the node for each attempt of a request.

    The nearest node, when configured, is preferred while it is healthy or
    due for a health re-check. Otherwise the pool is rotated with a cursor that
    persists across requests, so consecutive requests keep walking the pool
    instead of restarting at the first node.
    """

    def __init__(
        self,
        nodes: List[Node],
        nearest_node: Optional[Node] = None,
        healthcheck_interval_seconds: int = 60,
        clock: Callable[[], float] = time.time,
        hooks: Optional[HookManager] = None,
        verbose: bool = False,
    ):
        self._nodes = nodes
        self._nearest_node = nearest_node
        self._interval = healthcheck_interval_seconds
        self._clock = clock
        self._hooks = hooks
        self._verbose = verbose

        self._lock = threading.Lock()
        self._cursor = 0

    @property
    def cursor(self) -> int:
        with self._lock:
            return self._cursor

    def _log(self, message: str) -> None:
        if self._verbose:
            print(f"[NodeSelector] {message}", flush=True)

    def _eligible(self, node: Node, now: int) -> bool:
        return node.healthy or node.due_for_health_check(now, self._interval)

    def select_node(self, attempt_number: int = 0) -> Node:
        """Return a node for this attempt. Never raises."""
        now = int(self._clock())
        self._log(f"Request #{attempt_number}: Getting next node")

        nearest = self._nearest_node
        if nearest is not None:
            self._log(
                f"Request #{attempt_number}: Nodes Health: Nearest node is "
                f"{'Healthy' if nearest.healthy else 'Unhealthy'}"
            )
            if self._eligible(nearest, now):
                self._log(f"Request #{attempt_number}: Using nearest node")
                return nearest
            self._log(f"Request #{attempt_number}: Falling back to individual nodes")

        with self._lock:
            candidate = self._nodes[self._cursor]
            for _ in range(len(self._nodes) + 1):
                self._cursor = (self._cursor + 1) % len(self._nodes)
                candidate = self._nodes[self._cursor]
                self._log(
                    f"Request #{attempt_number}: Nodes Health: Node {candidate.host}:{candidate.port} is "
                    f"{'Healthy' if candidate.healthy else 'Unhealthy'}"
                )
                if self._eligible(candidate, now):
                    self._log(f"Request #{attempt_number}: Updated current node to {candidate.url()}")
                    return candidate

        # Health data may be stale since the last health check; hand out the next node anyway.
        self._log(f"Request #{attempt_number}: No healthy nodes were found. Returning the next node")
        if self._hooks is not None:
            self._hooks.trigger_hook(
                HookEvents.NO_HEALTHY_NODES,
                attempt=attempt_number,
                node_url=candidate.url(),
            )
        return candidate
