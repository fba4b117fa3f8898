"""Query executor: one logical query per call, typed results, error policy."""

from __future__ import annotations

from collections.abc import Awaitable, Callable, Iterable, Sequence
from time import perf_counter
from typing import Any, TypeVar

from ...config import DEFAULT_MULTIPART_FIELD
from ...core.enums import HttpMethod
from ...core.exceptions import InvalidQueryError, RemoteServiceError
from ...core.policy import ErrorPolicy, get_error_policy
from ...serialization import JsonConverter, JsonDeserializer
from ..telemetry import log_query_executed, log_query_failed, log_remote_failure_swallowed
from .extractor import extract
from .result import QueryResult
from .transport import Transport

T = TypeVar("T")

# (query, method, raw response text)
QueryObserver = Callable[[str, HttpMethod, str], None]



class QueryExecutor:
    """Issues queries through a Transport and turns responses into values.

    On remote failure the error policy decides the outcome. When it swallows,
    ``execute*`` returns ``None`` and ``try_execute*`` returns a failed
    QueryResult; otherwise the RemoteServiceError propagates from both.
    InvalidQueryError and DeserializationError always propagate.
    """

    def __init__(
        self,
        transport: Transport,
        *,
        deserializer: JsonDeserializer | None = None,
        policy: ErrorPolicy | None = None,
        observer: QueryObserver | None = None,
    ) -> None:
        """Initialize executor.

        Args:
            transport: Transport executing single HTTP requests
            deserializer: Deserializer for typed results (default: JsonDeserializer)
            policy: Error policy; the process-wide policy is used when omitted
            observer: Optional callback receiving every raw query/response pair
        """
        self._t = transport
        self._deserializer = deserializer or JsonDeserializer()
        self._policy = policy
        self._observer = observer

    @property
    def transport(self) -> Transport:
        return self._t

    @property
    def deserializer(self) -> JsonDeserializer:
        return self._deserializer

    @property
    def policy(self) -> ErrorPolicy:
        # Resolved on every failure so process-wide changes apply immediately
        return self._policy if self._policy is not None else get_error_policy()

    @property
    def observer(self) -> QueryObserver | None:
        return self._observer

    @observer.setter
    def observer(self, observer: QueryObserver | None) -> None:
        self._observer = observer

    def set_observer(self, observer: QueryObserver | None) -> QueryObserver | None:
        """Replace the observer, returning the one it displaces."""
        previous, self._observer = self._observer, observer
        return previous

    # Execute (raw text)

    async def execute(
        self, query: str | None, method: HttpMethod | str = HttpMethod.GET
    ) -> str | None:
        return (await self._try(self._execute(query, method))).value

    async def try_execute(
        self, query: str | None, method: HttpMethod | str = HttpMethod.GET
    ) -> QueryResult[str]:
        return await self._try(self._execute(query, method))

    # Execute (JSON tree)

    async def execute_json(
        self, query: str | None, method: HttpMethod | str = HttpMethod.GET
    ) -> Any:
        return (await self._try(self._execute_json(query, method))).value

    async def try_execute_json(
        self, query: str | None, method: HttpMethod | str = HttpMethod.GET
    ) -> QueryResult[Any]:
        return await self._try(self._execute_json(query, method))

    # Execute (typed)

    async def execute_typed(
        self,
        query: str | None,
        target: type[T] | Any,
        method: HttpMethod | str = HttpMethod.GET,
        converters: Sequence[JsonConverter] = (),
    ) -> T | None:
        return (await self._try(self._execute_typed(query, target, method, converters))).value

    async def try_execute_typed(
        self,
        query: str | None,
        target: type[T] | Any,
        method: HttpMethod | str = HttpMethod.GET,
        converters: Sequence[JsonConverter] = (),
    ) -> QueryResult[T]:
        return await self._try(self._execute_typed(query, target, method, converters))

    # Execute (typed, located by path)

    async def execute_at_path(
        self,
        query: str | None,
        target: type[T] | Any,
        path: Sequence[str] | None,
        method: HttpMethod | str = HttpMethod.GET,
    ) -> T | None:
        return (await self._try(self._execute_at_path(query, target, path, method))).value

    async def try_execute_at_path(
        self,
        query: str | None,
        target: type[T] | Any,
        path: Sequence[str] | None,
        method: HttpMethod | str = HttpMethod.GET,
    ) -> QueryResult[T]:
        return await self._try(self._execute_at_path(query, target, path, method))

    # Multipart (always POST)

    async def execute_multipart(
        self,
        query: str | None,
        binaries: Iterable[bytes],
        content_id: str = DEFAULT_MULTIPART_FIELD,
    ) -> str | None:
        return (await self._try(self._execute_multipart(query, binaries, content_id))).value

    async def try_execute_multipart(
        self,
        query: str | None,
        binaries: Iterable[bytes],
        content_id: str = DEFAULT_MULTIPART_FIELD,
    ) -> QueryResult[str]:
        return await self._try(self._execute_multipart(query, binaries, content_id))

    async def execute_multipart_typed(
        self,
        query: str | None,
        binaries: Iterable[bytes],
        target: type[T] | Any,
        content_id: str = DEFAULT_MULTIPART_FIELD,
        converters: Sequence[JsonConverter] = (),
    ) -> T | None:
        operation = self._execute_multipart_typed(query, binaries, target, content_id, converters)
        return (await self._try(operation)).value

    # Outcome handling

    async def attempt(self, operation: Awaitable[T]) -> QueryResult[T]:
        """Await ``operation`` and capture a RemoteServiceError as a failed result.

        No policy is applied here; see ``_try``.
        """
        try:
            value = await operation
        except RemoteServiceError as e:
            return QueryResult.failure(e)
        return QueryResult.ok(value)

    async def _try(self, operation: Awaitable[T]) -> QueryResult[T]:
        result = await self.attempt(operation)
        if result.error is not None:
            if not self.policy.swallow_remote_failures:
                raise result.error
            log_remote_failure_swallowed(query=result.error.query, error=result.error)
        return result

    # Policy-free operations; these always raise on remote failure

    async def _execute(self, query: str | None, method: HttpMethod | str) -> str:
        method = self._method(method)
        query = self._validate(query)
        return await self._send(query, method, lambda: self._t.send(query, method))

    async def _execute_json(self, query: str | None, method: HttpMethod | str) -> Any:
        text = await self._execute(query, method)
        return self._deserializer.parse_tree(text)

    async def _execute_typed(
        self,
        query: str | None,
        target: type[T] | Any,
        method: HttpMethod | str,
        converters: Sequence[JsonConverter],
    ) -> T | None:
        text = await self._execute(query, method)
        return self._deserializer.deserialize(text, target, converters)

    async def _execute_at_path(
        self,
        query: str | None,
        target: type[T] | Any,
        path: Sequence[str] | None,
        method: HttpMethod | str,
    ) -> T | None:
        tree = await self._execute_json(query, method)
        return extract(tree, path, target, self._deserializer)

    async def _execute_multipart(
        self,
        query: str | None,
        binaries: Iterable[bytes],
        content_id: str,
    ) -> str:
        method = HttpMethod.POST
        query = self._validate(query)
        payloads = list(binaries)
        return await self._send(
            query, method, lambda: self._t.send_multipart(query, content_id, payloads, method)
        )

    async def _execute_multipart_typed(
        self,
        query: str | None,
        binaries: Iterable[bytes],
        target: type[T] | Any,
        content_id: str,
        converters: Sequence[JsonConverter],
    ) -> T | None:
        text = await self._execute_multipart(query, binaries, content_id)
        return self._deserializer.deserialize(text, target, converters)

    async def _send(
        self,
        query: str,
        method: HttpMethod,
        send: Callable[[], Awaitable[str]],
    ) -> str:
        start = perf_counter()
        try:
            text = await send()
        except RemoteServiceError as e:
            e.with_context(query, method)
            log_query_failed(query=query, method=method, error=e)
            raise

        log_query_executed(
            query=query,
            method=method,
            response_size=len(text),
            latency_ms=(perf_counter() - start) * 1000.0,
        )
        if self._observer is not None:
            self._observer(query, method, text)
        return text

    @staticmethod
    def _method(method: HttpMethod | str) -> HttpMethod:
        try:
            return HttpMethod(method)
        except ValueError as e:
            raise InvalidQueryError(f"Unsupported HTTP method: {method!r}") from e

    @staticmethod
    def _validate(query: str | None) -> str:
        # A None query means one of the parameters used to format it was invalid
        if query is None or not query.strip():
            raise InvalidQueryError()
        return query
