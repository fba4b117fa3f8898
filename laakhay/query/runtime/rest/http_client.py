"""aiohttp-backed transport."""

from __future__ import annotations

import asyncio
import inspect
import json
import logging
import time
from collections.abc import Awaitable, Callable, Iterable, Mapping
from typing import Any

import aiohttp
from yarl import URL

from ...config import DEFAULT_TIMEOUT
from ...core.enums import HttpMethod
from ...core.exceptions import (
    DeserializationError,
    RateLimitError,
    RemoteServiceError,
    TransportError,
)

logger = logging.getLogger(__name__)

# Returns an optional delay in seconds before the next request
ResponseHook = Callable[[aiohttp.ClientResponse], float | None | Awaitable[float | None]]
# Returns extra (signed) headers for a request; signing itself lives outside this package
RequestSigner = Callable[[HttpMethod, str], Mapping[str, str]]

DEFAULT_RETRY_AFTER = 60


class HTTPClient:
    """Async HTTP client wrapper implementing the Transport protocol."""

    def __init__(
        self,
        base_url: str | None = None,
        timeout: float = DEFAULT_TIMEOUT,
        headers: Mapping[str, str] | None = None,
        sign: RequestSigner | None = None,
    ) -> None:
        self.base_url = base_url
        self.timeout = aiohttp.ClientTimeout(total=timeout)
        self.headers = dict(headers or {})
        self._sign = sign
        self._session: aiohttp.ClientSession | None = None
        self._response_hooks: list[ResponseHook] = []
        self._throttle_until: float | None = None

    @property
    def session(self) -> aiohttp.ClientSession:
        """Get or create session."""
        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession(timeout=self.timeout)
        return self._session

    def add_response_hook(self, hook: ResponseHook) -> None:
        """Register a hook called with every response (e.g. rate-limit headers)."""
        self._response_hooks.append(hook)

    def set_throttle(self, delay: float) -> None:
        """Delay the next request by ``delay`` seconds, extending any later window."""
        if delay <= 0:
            return
        until = time.time() + delay
        if self._throttle_until is None or until > self._throttle_until:
            self._throttle_until = until

    async def send(self, query: str, method: HttpMethod = HttpMethod.GET) -> str:
        """Send a GET or POST request and return the response text."""
        return await self._request(query, method)

    async def send_multipart(
        self,
        query: str,
        content_id: str,
        binaries: Iterable[bytes],
        method: HttpMethod = HttpMethod.POST,
    ) -> str:
        """Send every binary as a form field named ``content_id``."""
        form = aiohttp.FormData()
        for index, binary in enumerate(binaries):
            form.add_field(
                content_id,
                binary,
                filename=f"{content_id}_{index}",
                content_type="application/octet-stream",
            )
        return await self._request(query, method, data=form)

    async def close(self) -> None:
        """Close session."""
        if self._session and not self._session.closed:
            await self._session.close()

    async def __aenter__(self) -> HTTPClient:
        """Context manager entry."""
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        """Context manager exit."""
        await self.close()

    def build_url(self, query: str) -> str:
        # If base_url is set and query is relative, combine them
        if self.base_url and not query.startswith("http"):
            return f"{self.base_url}{query}"
        return query

    async def _request(self, query: str, method: HttpMethod, data: Any = None) -> str:
        url = self.build_url(query)
        headers = dict(self.headers)
        if self._sign is not None:
            headers.update(self._sign(method, url))

        await self._wait_for_throttle()

        try:
            # Queries arrive already formatted, keep yarl from re-encoding them
            async with self.session.request(
                str(method), URL(url, encoded=True), headers=headers, data=data
            ) as response:
                await self._run_response_hooks(response)
                try:
                    text = await response.text()
                except UnicodeDecodeError as e:
                    # An undecodable error body still reports the HTTP failure
                    if response.status < 400:
                        raise DeserializationError(
                            f"Response body is not valid text: {e}"
                        ) from e
                    text = ""
                if response.status >= 400:
                    raise _remote_error(response.status, response.reason, response.headers, text)
                return text
        except aiohttp.ClientError as e:
            raise TransportError(f"{type(e).__name__}: {e}", query=query, method=method) from e
        except asyncio.TimeoutError as e:
            raise TransportError("Request timed out", query=query, method=method) from e

    async def _wait_for_throttle(self) -> None:
        if self._throttle_until is None:
            return
        remaining = self._throttle_until - time.time()
        self._throttle_until = None
        if remaining > 0:
            logger.debug("Throttling request for %.3fs", remaining)
            await asyncio.sleep(remaining)

    async def _run_response_hooks(self, response: aiohttp.ClientResponse) -> None:
        for hook in self._response_hooks:
            try:
                delay = hook(response)
                if inspect.isawaitable(delay):
                    delay = await delay
            except Exception as e:
                logger.warning("Response hook %r failed: %s", getattr(hook, "__name__", hook), e)
                continue
            if delay:
                self.set_throttle(delay)


def _remote_error(
    status: int,
    reason: str | None,
    headers: Mapping[str, str],
    text: str,
) -> RemoteServiceError:
    """Build a RemoteServiceError from a failed response.

    Understands ``{"errors": [{"code": .., "message": ..}]}`` and
    ``{"error": "..."}`` bodies; anything else falls back to the HTTP reason.
    """
    message = reason or f"HTTP {status}"
    details: list[dict[str, Any]] = []
    error_code: int | None = None

    try:
        body = json.loads(text) if text else None
    except ValueError:
        body = None

    if isinstance(body, dict):
        errors = body.get("errors")
        if isinstance(errors, list):
            details = [entry for entry in errors if isinstance(entry, dict)]
        elif isinstance(body.get("error"), str):
            message = body["error"]

    if details:
        error_code = details[0].get("code")
        message = details[0].get("message", message)

    if status == 429:
        return RateLimitError(
            message,
            retry_after=_retry_after(headers),
            error_code=error_code,
            details=details,
        )
    return RemoteServiceError(message, status_code=status, error_code=error_code, details=details)


def _retry_after(headers: Mapping[str, str]) -> int:
    retry_after = headers.get("Retry-After")
    if retry_after is not None:
        try:
            return max(0, int(float(retry_after)))
        except ValueError:
            pass
    reset = headers.get("x-rate-limit-reset")
    if reset is not None and reset.isdigit():
        return max(0, int(reset) - int(time.time()))
    return DEFAULT_RETRY_AFTER
