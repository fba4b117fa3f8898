"""JSON deserializer backed by pydantic TypeAdapters."""

from __future__ import annotations

import json
from collections.abc import Sequence
from functools import lru_cache
from typing import Any, TypeVar

from pydantic import TypeAdapter, ValidationError

from ..core.exceptions import DeserializationError
from .converters import JsonConverter, apply_converters

T = TypeVar("T")


@lru_cache(maxsize=256)
def _adapter(target: Any) -> TypeAdapter[Any]:
    return TypeAdapter(target)


def _target_name(target: Any) -> str:
    return getattr(target, "__name__", repr(target))


class JsonDeserializer:
    """Converts raw response text into JSON trees and typed values.

    Targets are pydantic models or anything a ``TypeAdapter`` accepts
    (``list[int]``, ``dict[str, Any]``, ...).
    """

    def parse_tree(self, text: str) -> Any:
        """Parse raw text into a JSON tree (dicts, lists, scalars)."""
        try:
            return json.loads(text)
        except (TypeError, ValueError) as e:
            raise DeserializationError(f"Response is not valid JSON: {e}") from e

    def convert(
        self,
        node: Any,
        target: type[T] | Any,
        converters: Sequence[JsonConverter] = (),
    ) -> T | None:
        """Validate a JSON tree node as ``target``.

        A JSON ``null`` converts to ``None`` whatever the target.
        """
        if node is None:
            return None
        try:
            node = apply_converters(node, converters)
        except ValueError as e:
            raise DeserializationError(
                f"Converter failed while building {_target_name(target)}: {e}", target=target
            ) from e

        try:
            return _adapter(target).validate_python(node)
        except ValidationError as e:
            raise DeserializationError(
                f"Cannot convert response to {_target_name(target)}: {e}", target=target
            ) from e

    def deserialize(
        self,
        text: str,
        target: type[T] | Any,
        converters: Sequence[JsonConverter] = (),
    ) -> T | None:
        """Parse raw text and validate it as ``target``."""
        return self.convert(self.parse_tree(text), target, converters)
