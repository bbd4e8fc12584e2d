"""Request dispatch for a multi-node search cluster (node selection, failover, retries)."""

from .config import NodeSpec, Configuration
from .node import Node
from .node_selector import NodeSelector
from .api_call import ApiCall, Success, RetryNow, RetryAfterDelay, Fatal
from .hooks import HookManager, HookEvents
from .request import API_KEY_HEADER_NAME, stringify_query, encode_body
from .errors import (
    ConfigError,
    SearchClientError,
    ConnectionFailure,
    TransportError,
    MalformedRequest,
    Unauthorized,
    NotFound,
    AlreadyExists,
    Unprocessable,
    ServerError,
    ServiceUnavailable,
    GenericClientError,
    error_for_status,
    extract_message,
)

__all__ = [
    "NodeSpec",
    "Configuration",
    "Node",
    "NodeSelector",
    "ApiCall",
    "Success",
    "RetryNow",
    "RetryAfterDelay",
    "Fatal",
    "HookManager",
    "HookEvents",
    "API_KEY_HEADER_NAME",
    "stringify_query",
    "encode_body",
    "ConfigError",
    "SearchClientError",
    "ConnectionFailure",
    "TransportError",
    "MalformedRequest",
    "Unauthorized",
    "NotFound",
    "AlreadyExists",
    "Unprocessable",
    "ServerError",
    "ServiceUnavailable",
    "GenericClientError",
    "error_for_status",
    "extract_message",
]
