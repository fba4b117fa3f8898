"""Core components."""

from .enums import HttpMethod
from .exceptions import (
    DeserializationError,
    InvalidQueryError,
    QueryError,
    RateLimitError,
    RemoteServiceError,
    TransportError,
)
from .policy import ErrorPolicy, get_error_policy, set_swallow_remote_failures

__all__ = [
    "HttpMethod",
    "QueryError",
    "InvalidQueryError",
    "RemoteServiceError",
    "RateLimitError",
    "TransportError",
    "DeserializationError",
    "ErrorPolicy",
    "get_error_policy",
    "set_swallow_remote_failures",
]
