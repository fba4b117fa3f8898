"""Value converters applied to raw JSON trees before validation."""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Iterable, Sequence
from datetime import datetime, timezone
from typing import Annotated, Any

from pydantic import BeforeValidator

# e.g. "Wed Aug 27 13:08:45 +0000 2008"
API_DATETIME_FORMAT = "%a %b %d %H:%M:%S %z %Y"


def parse_api_datetime(value: Any) -> Any:
    """Parse the API's textual timestamp into an aware UTC datetime.

    Values that are not strings in the API format are returned untouched so
    pydantic can still accept ISO strings and datetime instances.
    """
    if isinstance(value, str):
        try:
            return datetime.strptime(value, API_DATETIME_FORMAT).astimezone(timezone.utc)
        except ValueError:
            return value
    return value


ApiDateTime = Annotated[datetime, BeforeValidator(parse_api_datetime)]


class JsonConverter(ABC):
    """Rewrites one kind of raw JSON value before it is validated."""

    @abstractmethod
    def can_convert(self, key: str, value: Any) -> bool:
        """Return True if the value found under ``key`` should be converted."""

    @abstractmethod
    def convert(self, value: Any) -> Any:
        """Return the converted value. Raise ValueError on malformed input."""


class ApiDateTimeConverter(JsonConverter):
    """Converts API timestamps stored under date keys (``created_at`` by default)."""

    def __init__(self, keys: Iterable[str] = ("created_at",)) -> None:
        self.keys = frozenset(keys)

    def can_convert(self, key: str, value: Any) -> bool:
        return key in self.keys and isinstance(value, str)

    def convert(self, value: Any) -> Any:
        return datetime.strptime(value, API_DATETIME_FORMAT).astimezone(timezone.utc)


DEFAULT_CONVERTERS: tuple[JsonConverter, ...] = (ApiDateTimeConverter(),)


def apply_converters(node: Any, converters: Sequence[JsonConverter]) -> Any:
    """Return a copy of ``node`` with every matching value converted.

    The first converter accepting a (key, value) pair wins; converted values
    are not walked further.
    """
    if not converters:
        return node
    if isinstance(node, dict):
        converted: dict[str, Any] = {}
        for key, value in node.items():
            converter = next((c for c in converters if c.can_convert(key, value)), None)
            if converter is not None:
                converted[key] = converter.convert(value)
            else:
                converted[key] = apply_converters(value, converters)
        return converted
    if isinstance(node, list):
        return [apply_converters(item, converters) for item in node]
    return node
