"""Error taxonomy and HTTP status classification."""

import json
from typing import Dict, Optional, Type, Union

DEFAULT_ERROR_MESSAGE = "API error."


class ConfigError(ValueError):
    """Raised when the cluster settings are incomplete or malformed."""


class SearchClientError(Exception):
    """Base error for every failed request against the cluster."""

    def __init__(self, message: str = DEFAULT_ERROR_MESSAGE, status_code: Optional[int] = None):
        super().__init__(message)
        self.message = message
        self.status_code = status_code

    def __str__(self) -> str:
        if self.status_code is None:
            return self.message
        return f"[{self.status_code}] {self.message}"


class ConnectionFailure(SearchClientError):
    """No HTTP response was obtained at all (status 0)."""


class TransportError(ConnectionFailure):
    """Every attempt ended without a usable response."""


class MalformedRequest(SearchClientError):
    pass


class Unauthorized(SearchClientError):
    pass


class NotFound(SearchClientError):
    pass


class AlreadyExists(SearchClientError):
    pass


class Unprocessable(SearchClientError):
    pass


class ServerError(SearchClientError):
    pass


class ServiceUnavailable(SearchClientError):
    pass


class GenericClientError(SearchClientError):
    """Any error status without a dedicated type."""


STATUS_ERRORS: Dict[int, Type[SearchClientError]] = {
    0: ConnectionFailure,
    400: MalformedRequest,
    401: Unauthorized,
    404: NotFound,
    409: AlreadyExists,
    422: Unprocessable,
    500: ServerError,
    503: ServiceUnavailable,
}


def error_type_for_status(status_code: int) -> Type[SearchClientError]:
    return STATUS_ERRORS.get(status_code, GenericClientError)


def error_for_status(status_code: int, message: str = DEFAULT_ERROR_MESSAGE) -> SearchClientError:
    """Build the typed error for a received (or missing, 0) status code."""
    return error_type_for_status(status_code)(message, status_code=status_code)


def extract_message(body: Union[str, bytes, None]) -> str:
    """Pull the ``message`` field out of a JSON error body.

    Malformed or non-object bodies, and bodies without a ``message`` key,
    fall back to the generic message.
    """
    if not body:
        return DEFAULT_ERROR_MESSAGE
    try:
        payload = json.loads(body)
    except (TypeError, ValueError):
        return DEFAULT_ERROR_MESSAGE
    if isinstance(payload, dict):
        message = payload.get("message")
        if message is not None:
            return str(message)
    return DEFAULT_ERROR_MESSAGE
