"""Transport boundary used by the query executor."""

from __future__ import annotations

from collections.abc import Iterable
from typing import Protocol, runtime_checkable

from ...core.enums import HttpMethod


@runtime_checkable
class Transport(Protocol):
    """Executes a single HTTP request and returns the raw response text.

    Implementations raise RemoteServiceError on non-2xx responses and
    TransportError on connectivity failures.
    """

    async def send(self, query: str, method: HttpMethod = HttpMethod.GET) -> str: ...

    async def send_multipart(
        self,
        query: str,
        content_id: str,
        binaries: Iterable[bytes],
        method: HttpMethod = HttpMethod.POST,
    ) -> str: ...

    async def close(self) -> None: ...
