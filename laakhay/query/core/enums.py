"""Core enumerations."""

from __future__ import annotations

from enum import Enum


class HttpMethod(str, Enum):
    """HTTP verbs the query engine can issue."""

    GET = "GET"
    POST = "POST"

    def __str__(self) -> str:
        return self.value
