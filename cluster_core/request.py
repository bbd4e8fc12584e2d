"""Pure request shaping: query strings, bodies, headers and URLs."""

import json
from typing import Any, Dict, Mapping, Optional, Union
from urllib.parse import urlencode

from .node import Node

API_KEY_HEADER_NAME = "X-TYPESENSE-API-KEY"


def stringify_query(params: Optional[Mapping[str, Any]]) -> str:
    if not params:
        return ""
    flattened = {}
    for key, value in params.items():
        if isinstance(value, bool):
            value = "true" if value else "false"
        flattened[key] = value
    return urlencode(flattened)


def encode_body(body: Any) -> Optional[Union[str, bytes]]:
    """Raw str/bytes payloads pass through; anything else is sent as JSON."""
    if body is None:
        return None
    if isinstance(body, (str, bytes)):
        return body
    return json.dumps(body)


def build_headers(api_key: str, json_body: bool = False) -> Dict[str, str]:
    headers = {API_KEY_HEADER_NAME: api_key}
    if json_body:
        headers["Content-Type"] = "application/json"
    return headers


def build_url(node: Node, path: str, params: Optional[Mapping[str, Any]] = None) -> str:
    if path and not path.startswith("/"):
        path = "/" + path
    url = node.url() + path
    query = stringify_query(params)
    if query:
        url = f"{url}?{query}"
    return url
