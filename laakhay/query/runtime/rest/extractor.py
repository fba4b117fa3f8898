"""Locate a nested value in a JSON tree and convert it to a typed object."""

from __future__ import annotations

from collections.abc import Sequence
from typing import Any, TypeVar

from ...serialization import JsonDeserializer

T = TypeVar("T")


def locate(tree: Any, path: Sequence[str] | None) -> tuple[bool, Any]:
    """Walk ``path`` through nested objects.

    Returns:
        (found, value). A key missing at any level, or an intermediate node
        that is not an object, yields ``(False, None)``.
    """
    node = tree
    for key in path or ():
        if not isinstance(node, dict) or key not in node:
            return False, None
        node = node[key]
    return True, node


def extract(
    tree: Any,
    path: Sequence[str] | None,
    target: type[T] | Any,
    deserializer: JsonDeserializer | None = None,
) -> T | None:
    """Convert the value at ``path`` (the whole tree when empty) to ``target``.

    Absent keys and JSON ``null`` give ``None``; a value of the wrong shape
    raises DeserializationError.
    """
    found, node = locate(tree, path)
    if not found or node is None:
        return None
    return (deserializer or JsonDeserializer()).convert(node, target)
