import json
import random
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, List, Optional

import httpx

from .errors import ConfigError
from .node import Node

REQUIRED_NODE_FIELDS = ("host", "port", "protocol")


@dataclass(frozen=True)
class NodeSpec:
    """Immutable description of a configured cluster endpoint."""

    host: str
    port: int
    protocol: str
    path: str = ""

    @classmethod
    def from_dict(cls, data: Dict, field: str = "node") -> "NodeSpec":
        if not isinstance(data, dict):
            raise ConfigError(
                f"`{field}` entry must be a dictionary with the following required keys: "
                + ", ".join(REQUIRED_NODE_FIELDS)
            )
        try:
            return cls(
                host=str(data["host"]),
                port=int(data["port"]),
                protocol=str(data["protocol"]),
                path=str(data.get("path") or ""),
            )
        except KeyError as exc:
            missing = exc.args[0]
            raise ConfigError(f"`{field}` entry missing required key '{missing}'.") from exc
        except (TypeError, ValueError) as exc:
            raise ConfigError(f"`{field}` entry has an invalid port: {data.get('port')!r}") from exc

    def to_node(self) -> Node:
        return Node(self.host, self.port, self.protocol, self.path)


class Configuration:
    """Settings facade: validates the raw settings and owns the node pool."""

    def __init__(
        self,
        settings: Dict,
        client: Optional[httpx.Client] = None,
        rng: Optional[random.Random] = None,
    ):
        self._validate(settings)

        self._node_specs = [NodeSpec.from_dict(n) for n in settings["nodes"]]
        self._nodes: List[Node] = [spec.to_node() for spec in self._node_specs]

        self.randomize_nodes = bool(settings.get("randomize_nodes", True))
        if self.randomize_nodes:
            self._shuffle_nodes(rng or random.Random())

        nearest = settings.get("nearest_node")
        self._nearest_node: Optional[Node] = None
        if nearest:
            self._nearest_node = NodeSpec.from_dict(nearest, field="nearest_node").to_node()

        self.api_key: str = str(settings["api_key"])
        self.num_retries = int(settings.get("num_retries", 3))
        self.retry_interval_seconds = float(settings.get("retry_interval_seconds", 1.0))
        self.healthcheck_interval_seconds = int(settings.get("healthcheck_interval_seconds", 60))
        self.verbose = bool(settings.get("verbose", False))

        if client is not None and not isinstance(client, httpx.Client):
            raise ConfigError("client must be an httpx.Client instance.")
        self._client = client
        self._owns_client = client is None

    @classmethod
    def from_file(cls, config_path: str, **kwargs) -> "Configuration":
        path = Path(config_path)
        if not path.exists():
            raise FileNotFoundError(f"Config file not found: {config_path}")

        with path.open("r", encoding="utf-8") as stream:
            payload = json.load(stream)
        return cls(payload, **kwargs)

    @staticmethod
    def _validate(settings: Dict) -> None:
        if not settings.get("nodes"):
            raise ConfigError("`nodes` is not defined.")
        if not settings.get("api_key"):
            raise ConfigError("`api_key` is not defined.")

        for node in settings["nodes"]:
            if not isinstance(node, dict) or any(key not in node for key in REQUIRED_NODE_FIELDS):
                raise ConfigError(
                    "`node` entry must be a dictionary with the following required keys: "
                    + ", ".join(REQUIRED_NODE_FIELDS)
                )

        nearest = settings.get("nearest_node")
        if nearest and (
            not isinstance(nearest, dict) or any(key not in nearest for key in REQUIRED_NODE_FIELDS)
        ):
            raise ConfigError(
                "`nearest_node` entry must be a dictionary with the following required keys: "
                + ", ".join(REQUIRED_NODE_FIELDS)
            )

    def _shuffle_nodes(self, rng: random.Random) -> None:
        # Fisher-Yates, in place.
        for i in range(len(self._nodes) - 1, 0, -1):
            j = rng.randint(0, i)
            self._nodes[i], self._nodes[j] = self._nodes[j], self._nodes[i]

    @property
    def nodes(self) -> List[Node]:
        return self._nodes

    @property
    def nearest_node(self) -> Optional[Node]:
        return self._nearest_node

    @property
    def owns_client(self) -> bool:
        return self._owns_client

    def get_client(self) -> httpx.Client:
        """Return the injected transport, creating a default one on first use."""
        if self._client is None:
            self._client = httpx.Client()
        return self._client
