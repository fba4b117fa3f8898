"""Shared fixtures for unit tests."""

from __future__ import annotations

import json
from collections.abc import Iterable

import pytest

from laakhay.query.core import HttpMethod, get_error_policy


class ScriptedTransport:
    """Transport replaying scripted responses; exceptions in the script are raised."""

    def __init__(self, responses: Iterable[str | Exception]) -> None:
        self.responses = list(responses)
        self.calls: list[tuple] = []

    async def send(self, query: str, method: HttpMethod = HttpMethod.GET) -> str:
        self.calls.append((query, method))
        return self._next()

    async def send_multipart(
        self,
        query: str,
        content_id: str,
        binaries: Iterable[bytes],
        method: HttpMethod = HttpMethod.POST,
    ) -> str:
        self.calls.append((query, method, content_id, list(binaries)))
        return self._next()

    async def close(self) -> None:
        pass

    @property
    def queries(self) -> list[str]:
        return [call[0] for call in self.calls]

    def _next(self) -> str:
        if not self.responses:
            raise AssertionError("transport called more times than scripted")
        response = self.responses.pop(0)
        if isinstance(response, Exception):
            raise response
        return response


def ids_page(count: int, previous_cursor: int, next_cursor: int, start: int = 0) -> str:
    """Raw JSON for an ids page holding ``count`` ids."""
    return json.dumps(
        {
            "ids": list(range(start, start + count)),
            "previous_cursor": previous_cursor,
            "next_cursor": next_cursor,
            "previous_cursor_str": str(previous_cursor),
            "next_cursor_str": str(next_cursor),
        }
    )


@pytest.fixture
def scripted_transport():
    """Factory building a ScriptedTransport from a response script."""
    return ScriptedTransport


@pytest.fixture
def make_ids_page():
    """Factory building raw ids pages."""
    return ids_page


@pytest.fixture(autouse=True)
def restore_error_policy():
    """Restore the process-wide error policy after each test."""
    policy = get_error_policy()
    original = policy.swallow_remote_failures
    yield policy
    policy.swallow_remote_failures = original
