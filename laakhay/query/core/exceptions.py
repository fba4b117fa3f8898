"""Custom exception hierarchy."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from .enums import HttpMethod


class QueryError(Exception):
    """Base exception for all library errors."""

    pass


class InvalidQueryError(QueryError, ValueError):
    """Query could not be built or is missing.

    Raised before any network activity. A ``None`` query usually means one of
    the parameters used to format it was invalid.
    """

    def __init__(
        self,
        message: str = "At least one of the arguments provided to the query was invalid.",
    ) -> None:
        super().__init__(message)


class RemoteServiceError(QueryError):
    """Error returned by the remote service.

    This is the only error kind the error policy is allowed to swallow.
    """

    def __init__(
        self,
        message: str,
        status_code: int | None = None,
        *,
        error_code: int | None = None,
        query: str | None = None,
        method: HttpMethod | str | None = None,
        details: list[dict[str, Any]] | None = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.status_code = status_code
        self.error_code = error_code
        self.query = query
        self.method = method
        self.details = details or []

    def with_context(self, query: str, method: HttpMethod | str) -> RemoteServiceError:
        """Attach the failing query and method, keeping values already set."""
        if self.query is None:
            self.query = query
        if self.method is None:
            self.method = method
        return self

    def __str__(self) -> str:
        parts = [self.message]
        if self.status_code is not None:
            parts.append(f"status={self.status_code}")
        if self.error_code is not None:
            parts.append(f"code={self.error_code}")
        if self.query is not None:
            parts.append(f"query={self.method or '?'} {self.query}")
        return " | ".join(parts)


class RateLimitError(RemoteServiceError):
    """Remote rate limit exceeded."""

    def __init__(self, message: str, retry_after: int = 60, **kwargs: Any) -> None:
        super().__init__(message, status_code=429, **kwargs)
        self.retry_after = retry_after


class TransportError(RemoteServiceError):
    """Connectivity failure (DNS, socket, timeout) before a response was received.

    Subclasses RemoteServiceError so the error policy treats both alike.
    """

    pass


class DeserializationError(QueryError):
    """Response text does not match the requested shape."""

    def __init__(self, message: str, target: Any = None) -> None:
        super().__init__(message)
        self.target = target
