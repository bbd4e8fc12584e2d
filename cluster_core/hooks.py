"""Hook system for structured dispatch events delivered off the request path."""

import threading
from collections import defaultdict
from concurrent.futures import Future, ThreadPoolExecutor
from typing import Any, Callable, Dict, List, Optional, Tuple


class HookManager:
    """
    Manages hooks for dispatch events.
    Callbacks run on a small worker pool so a slow or failing listener
    never blocks or breaks a request.
    """

    def __init__(self, max_workers: int = 2, name: str = "HookManager", verbose: bool = False):
        self._executor = ThreadPoolExecutor(
            max_workers=max_workers, thread_name_prefix=name
        )
        self._verbose = verbose
        self._hooks: Dict[str, List[Tuple[int, Callable]]] = defaultdict(list)
        self._lock = threading.Lock()
        self._hook_stats: Dict[str, Dict[str, int]] = defaultdict(
            lambda: {"triggered": 0, "errors": 0}
        )
        self._active_futures: List[Future] = []

    def register_hook(self, event: str, callback: Callable, priority: int = 0):
        """
        Register a callback for an event.

        Args:
            event: Event name, one of ``HookEvents``
            callback: Called with the event's keyword arguments
            priority: Higher priority callbacks are submitted first (0 = default)
        """
        with self._lock:
            self._hooks[event].append((priority, callback))
            self._hooks[event].sort(key=lambda x: x[0], reverse=True)

    def unregister_hook(self, event: str, callback: Callable):
        """Unregister a callback from an event."""
        with self._lock:
            if event in self._hooks:
                self._hooks[event] = [
                    (p, cb) for p, cb in self._hooks[event] if cb != callback
                ]
                if not self._hooks[event]:
                    del self._hooks[event]

    def trigger_hook(self, event: str, **payload) -> List[Future]:
        """
        Trigger all callbacks for an event asynchronously.

        Returns:
            List of Future objects for the triggered callbacks
        """
        with self._lock:
            callbacks = list(self._hooks.get(event, []))
            self._hook_stats[event]["triggered"] += len(callbacks)

        futures = []
        for _, callback in callbacks:
            try:
                future = self._executor.submit(self._safe_call, callback, event, **payload)
            except RuntimeError as e:
                # Executor already shut down.
                self._report(f"Error submitting hook '{event}': {e}")
                with self._lock:
                    self._hook_stats[event]["errors"] += 1
                continue
            futures.append(future)
            with self._lock:
                self._active_futures = [f for f in self._active_futures if not f.done()]
                self._active_futures.append(future)

        return futures

    def _safe_call(self, callback: Callable, event: str, **payload):
        try:
            return callback(**payload)
        except Exception as e:
            self._report(f"Hook '{event}' callback error: {e}")
            with self._lock:
                self._hook_stats[event]["errors"] += 1
            raise

    def _report(self, message: str) -> None:
        if self._verbose:
            print(f"[HookManager] {message}", flush=True)

    def wait_for_hooks(
        self, futures: List[Future], timeout: Optional[float] = None
    ) -> List[Any]:
        """
        Wait for hook futures to complete and return results.

        Returns:
            List of results from callbacks (None for exceptions)
        """
        results = []
        for future in futures:
            try:
                results.append(future.result(timeout=timeout))
            except Exception as e:
                self._report(f"Future error: {e}")
                results.append(None)
        return results

    def trigger_hook_sync(self, event: str, **payload) -> List[Any]:
        """Trigger hooks and wait for every callback to finish."""
        return self.wait_for_hooks(self.trigger_hook(event, **payload))

    def drain(self, timeout: Optional[float] = None) -> None:
        """Block until every callback submitted so far has finished."""
        with self._lock:
            pending = list(self._active_futures)
        self.wait_for_hooks(pending, timeout=timeout)

    def get_stats(self) -> Dict[str, Dict[str, int]]:
        with self._lock:
            return {event: dict(stats) for event, stats in self._hook_stats.items()}

    def snapshot(self) -> Dict:
        """Get snapshot of hook manager state."""
        with self._lock:
            return {
                "registered_events": list(self._hooks.keys()),
                "event_counts": {
                    event: len(callbacks) for event, callbacks in self._hooks.items()
                },
                "stats": {event: dict(stats) for event, stats in self._hook_stats.items()},
                "active_futures": len([f for f in self._active_futures if not f.done()]),
            }

    def shutdown(self, wait: bool = True):
        """Shutdown the hook manager and executor."""
        self._executor.shutdown(wait=wait)


class HookEvents:
    """Standard hook event names."""
    NO_HEALTHY_NODES = "no_healthy_nodes"
    NODE_FAILED = "node_failed"
    NODE_RECOVERED = "node_recovered"
    REQUEST_RETRY = "request_retry"
    REQUEST_COMPLETED = "request_completed"
    REQUEST_FAILED = "request_failed"
