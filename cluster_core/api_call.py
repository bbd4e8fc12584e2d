"""Request execution with node failover and bounded retries."""

import time
from dataclasses import dataclass
from typing import Any, Callable, Mapping, Optional, Union

import httpx

from .config import Configuration
from .errors import ConnectionFailure, SearchClientError, TransportError, error_for_status, extract_message
from .hooks import HookEvents, HookManager
from .node import Node
from .node_selector import NodeSelector
from .request import build_headers, build_url, encode_body

REQUEST_TIMEOUT_STATUS = 408


@dataclass(frozen=True)
class Success:
    value: Any


@dataclass(frozen=True)
class RetryNow:
    """The node answered 408: try again at once, health untouched."""

    status_code: int = REQUEST_TIMEOUT_STATUS


@dataclass(frozen=True)
class RetryAfterDelay:
    """No usable response; the node is marked unhealthy before waiting."""

    error: Exception


@dataclass(frozen=True)
class Fatal:
    error: SearchClientError


AttemptOutcome = Union[Success, RetryNow, RetryAfterDelay, Fatal]


def _write_body(body: Any) -> Any:
    """Write requests always carry a body; a missing one is sent as an empty JSON list."""
    return [] if body is None else body


class ApiCall:
    """
    Sends requests to the cluster, failing over between nodes.

    Every attempt ends in one of four outcomes. A 2xx response is returned
    to the caller, any other received status except 408 is raised at once,
    a 408 is retried immediately, and a transport failure marks the node
    unhealthy and is retried after ``retry_interval_seconds``. Once the
    attempts run out the last transport failure is raised as
    ``TransportError``.
    """

    def __init__(
        self,
        config: Configuration,
        hooks: Optional[HookManager] = None,
        clock: Callable[[], float] = time.time,
        sleep: Callable[[float], None] = time.sleep,
    ):
        self.config = config
        self._client = config.get_client()
        self._clock = clock
        self._sleep = sleep
        self._closed = False
        self._owns_hooks = hooks is None
        self.hooks = hooks or HookManager(name="ApiCallHooks", verbose=config.verbose)

        self._selector = NodeSelector(
            config.nodes,
            nearest_node=config.nearest_node,
            healthcheck_interval_seconds=config.healthcheck_interval_seconds,
            clock=clock,
            hooks=self.hooks,
            verbose=config.verbose,
        )
        self._initialize_nodes()

    def _initialize_nodes(self) -> None:
        now = int(self._clock())
        if self.config.nearest_node is not None:
            self.config.nearest_node.mark_healthy(True, now)
        for node in self.config.nodes:
            node.mark_healthy(True, now)

    @property
    def selector(self) -> NodeSelector:
        return self._selector

    def get(self, path: str, params: Optional[Mapping[str, Any]] = None, as_json: bool = True):
        return self.dispatch("GET", path, as_json, params=params)

    def post(
        self,
        path: str,
        body: Any = None,
        as_json: bool = True,
        params: Optional[Mapping[str, Any]] = None,
    ):
        return self.dispatch("POST", path, as_json, body=_write_body(body), params=params)

    def put(
        self,
        path: str,
        body: Any = None,
        as_json: bool = True,
        params: Optional[Mapping[str, Any]] = None,
    ):
        return self.dispatch("PUT", path, as_json, body=_write_body(body), params=params)

    def patch(
        self,
        path: str,
        body: Any = None,
        as_json: bool = True,
        params: Optional[Mapping[str, Any]] = None,
    ):
        return self.dispatch("PATCH", path, as_json, body=_write_body(body), params=params)

    def delete(self, path: str, as_json: bool = True, params: Optional[Mapping[str, Any]] = None):
        return self.dispatch("DELETE", path, as_json, params=params)

    def dispatch(
        self,
        method: str,
        path: str,
        as_json: bool = True,
        body: Any = None,
        params: Optional[Mapping[str, Any]] = None,
    ):
        """Run one logical request through the retry loop."""
        if self._closed:
            raise ConnectionFailure("ApiCall is closed; create a new instance to send requests.", status_code=0)
        method = method.upper()
        attempts = self.config.num_retries + 1
        last_error: Optional[Exception] = None
        timed_out = False

        for attempt in range(1, attempts + 1):
            node = self._selector.select_node(attempt)
            outcome = self._attempt(node, method, path, as_json, body, params)

            if isinstance(outcome, Success):
                self.hooks.trigger_hook(
                    HookEvents.REQUEST_COMPLETED,
                    method=method,
                    path=path,
                    node_url=node.url(),
                    attempt=attempt,
                )
                return outcome.value

            if isinstance(outcome, Fatal):
                self._log(f"Request #{attempt}: {method} {path} failed on {node.url()}: {outcome.error}")
                self.hooks.trigger_hook(
                    HookEvents.REQUEST_FAILED,
                    method=method,
                    path=path,
                    node_url=node.url(),
                    error=outcome.error,
                )
                raise outcome.error

            if isinstance(outcome, RetryNow):
                timed_out = True
                self._log(f"Request #{attempt}: {node.url()} answered {outcome.status_code}, retrying")
                if attempt < attempts:
                    self._notify_retry(method, path, node, attempt, f"HTTP {outcome.status_code}")
                continue

            self._set_node_health(node, False)
            last_error = outcome.error
            self._log(f"Request #{attempt}: {method} {path} to {node.url()} failed: {outcome.error!r}")
            if attempt < attempts:
                self._notify_retry(method, path, node, attempt, repr(outcome.error))
                self._sleep(self.config.retry_interval_seconds)

        raise self._exhausted(method, path, attempts, last_error, timed_out) from last_error

    def _attempt(
        self,
        node: Node,
        method: str,
        path: str,
        as_json: bool,
        body: Any,
        params: Optional[Mapping[str, Any]],
    ) -> AttemptOutcome:
        url = build_url(node, path, params)
        content = encode_body(body)
        headers = build_headers(
            self.config.api_key,
            json_body=body is not None and not isinstance(body, (str, bytes)),
        )

        try:
            response = self._client.request(method, url, headers=headers, content=content)
        except httpx.HTTPError as exc:
            return RetryAfterDelay(exc)

        status = response.status_code
        if status == REQUEST_TIMEOUT_STATUS:
            return RetryNow(status)

        if 0 < status < 500:
            # 4xx responses still count as a healthy node.
            self._set_node_health(node, True)

        if 200 <= status < 300:
            try:
                return Success(response.json() if as_json else response.text)
            except ValueError as exc:
                return RetryAfterDelay(exc)

        return Fatal(error_for_status(status, extract_message(response.content)))

    def _exhausted(
        self,
        method: str,
        path: str,
        attempts: int,
        last_error: Optional[Exception],
        timed_out: bool,
    ) -> TransportError:
        if last_error is not None:
            error = TransportError(
                f"{method} {path} failed after {attempts} attempt(s): {last_error!r}",
                status_code=0,
            )
        elif timed_out:
            error = TransportError(
                f"{method} {path} timed out (HTTP 408) on every attempt.",
                status_code=REQUEST_TIMEOUT_STATUS,
            )
        else:
            error = TransportError(
                f"{method} {path} was never attempted: num_retries is {self.config.num_retries}.",
                status_code=0,
            )
        self.hooks.trigger_hook(
            HookEvents.REQUEST_FAILED,
            method=method,
            path=path,
            node_url=None,
            error=error,
        )
        return error

    def _set_node_health(self, node: Node, is_healthy: bool) -> None:
        was_healthy = node.mark_healthy(is_healthy, int(self._clock()))
        if was_healthy and not is_healthy:
            self._log(f"{node.url()} marked unhealthy")
            self.hooks.trigger_hook(HookEvents.NODE_FAILED, node_url=node.url())
        elif is_healthy and not was_healthy:
            self._log(f"{node.url()} recovered")
            self.hooks.trigger_hook(HookEvents.NODE_RECOVERED, node_url=node.url())

    def _notify_retry(self, method: str, path: str, node: Node, attempt: int, reason: str) -> None:
        self.hooks.trigger_hook(
            HookEvents.REQUEST_RETRY,
            method=method,
            path=path,
            node_url=node.url(),
            attempt=attempt,
            reason=reason,
        )

    def _log(self, message: str) -> None:
        if self.config.verbose:
            print(f"[ApiCall] {message}", flush=True)

    @property
    def closed(self) -> bool:
        return self._closed

    def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        if self.config.owns_client:
            self._client.close()
        if self._owns_hooks:
            self.hooks.shutdown(wait=True)

    def __enter__(self) -> "ApiCall":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()
