"""Outcome type returned by the executor's try_* variants."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Generic, TypeVar

from ...core.exceptions import RemoteServiceError

T = TypeVar("T")


@dataclass(frozen=True)
class QueryResult(Generic[T]):
    """Success-with-value or failure-with-error.

    ``success`` mirrors the boolean of a try-call: a call that completed but
    produced no value (``None``) is not a success.
    """

    value: T | None = None
    error: RemoteServiceError | None = None

    @classmethod
    def ok(cls, value: T | None) -> QueryResult[T]:
        return cls(value=value)

    @classmethod
    def failure(cls, error: RemoteServiceError) -> QueryResult[T]:
        return cls(error=error)

    @property
    def success(self) -> bool:
        return self.error is None and self.value is not None

    def __bool__(self) -> bool:
        return self.success

    def unwrap(self) -> T | None:
        """Return the value, raising the stored error if the call failed."""
        if self.error is not None:
            raise self.error
        return self.value
