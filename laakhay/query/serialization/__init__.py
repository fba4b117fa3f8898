"""Response deserialization."""

from .converters import (
    API_DATETIME_FORMAT,
    DEFAULT_CONVERTERS,
    ApiDateTime,
    ApiDateTimeConverter,
    JsonConverter,
    apply_converters,
    parse_api_datetime,
)
from .deserializer import JsonDeserializer

__all__ = [
    "API_DATETIME_FORMAT",
    "DEFAULT_CONVERTERS",
    "ApiDateTime",
    "ApiDateTimeConverter",
    "JsonConverter",
    "JsonDeserializer",
    "apply_converters",
    "parse_api_datetime",
]
