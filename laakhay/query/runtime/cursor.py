"""Cursor pagination driver.

This module provides the CursorPaginator, which walks a cursored resource
page by page through the QueryExecutor until the cursors converge, the item
budget is spent, the API signals an empty result, or a remote failure is
swallowed by the error policy.

Algorithm:
    1. Normalize the base query so ``cursor=<n>`` can be appended.
    2. Start from previous=-2 (never a real cursor) and next=start_cursor.
    3. While previous != next and items_processed < max_items:
       - fetch ``<base>cursor=<next>`` with a try-GET
       - swallowed failure, null page or empty first page: stop, keep what
         was accumulated, drop that page
       - otherwise add the page's items, take its cursors, accept the page

The budget is checked before each request, so the page that crosses
``max_items`` is still included.
"""

from __future__ import annotations

import asyncio
from collections.abc import AsyncIterator, Callable, Iterable, Sequence
from dataclasses import dataclass
from typing import Any, TypeVar

from ..config import (
    CURSOR_PARAMETER,
    DEFAULT_MAX_ITEMS,
    DEFAULT_START_CURSOR,
    EMPTY_RESULT_NEXT_CURSOR,
    EMPTY_RESULT_PREVIOUS_CURSOR,
    UNSTARTED_CURSOR,
)
from ..core.enums import HttpMethod
from ..core.exceptions import DeserializationError, InvalidQueryError
from ..models import CursorPageLike
from ..serialization import DEFAULT_CONVERTERS, JsonConverter
from .rest.executor import QueryExecutor
from .telemetry import log_cursor_page, log_cursor_walk_complete

PageT = TypeVar("PageT", bound=CursorPageLike)

ItemExtractor = Callable[[Any], Iterable[Any]]


def normalize_base_query(query: str) -> str:
    """Make ``query`` ready for a trailing ``cursor=<n>`` parameter.

    ``path`` becomes ``path?``, ``path?a=1`` becomes ``path?a=1&``; queries
    already ending with ``?`` or ``&`` are returned unchanged.
    """
    if "?" not in query:
        return f"{query}?"
    if not query.endswith(("?", "&")):
        return f"{query}&"
    return query


def build_cursor_query(base_query: str, cursor: int) -> str:
    return f"{base_query}{CURSOR_PARAMETER}={cursor}"


def is_empty_terminal_page(page: CursorPageLike) -> bool:
    """True for the API's "no results at all" page (0 items, next=0, previous=-1)."""
    return (
        page.item_count() == 0
        and page.next_cursor == EMPTY_RESULT_NEXT_CURSOR
        and page.previous_cursor == EMPTY_RESULT_PREVIOUS_CURSOR
    )


@dataclass
class CursorState:
    """Position of a single cursor walk.

    Attributes:
        previous_cursor: Previous cursor of the last accepted page
        next_cursor: Cursor requested by the next iteration
        items_processed: Items across all accepted pages
    """

    previous_cursor: int = UNSTARTED_CURSOR
    next_cursor: int = DEFAULT_START_CURSOR
    items_processed: int = 0

    def should_continue(self, max_items: int) -> bool:
        return self.previous_cursor != self.next_cursor and self.items_processed < max_items

    def advance(self, page: CursorPageLike) -> None:
        self.items_processed += page.item_count()
        self.previous_cursor = page.previous_cursor
        self.next_cursor = page.next_cursor


def _default_items(page: Any) -> Iterable[Any]:
    results = getattr(page, "results", None)
    if not callable(results):
        raise ValueError(
            f"{type(page).__name__} has no results(); pass extract_items to collect_items"
        )
    return results()


class CursorPaginator:
    """Drives cursored queries to completion.

    Each walk owns its own CursorState, so independent walks may run as
    concurrent tasks over one executor.
    """

    def __init__(
        self,
        executor: QueryExecutor,
        converters: Sequence[JsonConverter] = DEFAULT_CONVERTERS,
    ) -> None:
        """Initialize paginator.

        Args:
            executor: Executor issuing the per-page GET requests
            converters: Converters applied when deserializing pages
        """
        self._executor = executor
        self._converters = tuple(converters)

    async def iter_pages(
        self,
        page_type: type[PageT],
        base_query: str | None,
        max_items: int = DEFAULT_MAX_ITEMS,
        start_cursor: int = DEFAULT_START_CURSOR,
        *,
        store_raw: bool = False,
        cancel_event: asyncio.Event | None = None,
    ) -> AsyncIterator[PageT]:
        """Yield accepted pages one by one.

        Args:
            page_type: Type every page is validated as
            base_query: Query without the cursor parameter
            max_items: Item budget, checked before each request
            start_cursor: Cursor of the first request
            store_raw: Keep each page's raw response text in ``raw_json``
            cancel_event: When set, the walk stops before the next request

        Raises:
            InvalidQueryError: base_query is None or empty
            RemoteServiceError: a page failed and the error policy does not swallow
            DeserializationError: a page does not match page_type
        """
        if base_query is None or not base_query.strip():
            raise InvalidQueryError()

        base_query = normalize_base_query(base_query)
        state = CursorState(next_cursor=start_cursor)
        deserializer = self._executor.deserializer
        pages = 0

        while state.should_continue(max_items):
            if cancel_event is not None and cancel_event.is_set():
                reason = "cancelled"
                break

            query = build_cursor_query(base_query, state.next_cursor)
            result = await self._executor.try_execute(query, HttpMethod.GET)
            if result.error is not None:
                reason = "failure"
                break

            page = deserializer.deserialize(result.value, page_type, self._converters)
            if page is None or is_empty_terminal_page(self._checked(page, page_type)):
                reason = "empty"
                break

            if store_raw:
                page.raw_json = result.value

            state.advance(page)
            log_cursor_page(
                query=query,
                page_index=pages,
                items=page.item_count(),
                items_processed=state.items_processed,
                previous_cursor=state.previous_cursor,
                next_cursor=state.next_cursor,
            )
            pages += 1
            yield page
        else:
            reason = "converged" if state.previous_cursor == state.next_cursor else "max_items"

        log_cursor_walk_complete(
            base_query=base_query,
            pages=pages,
            items_processed=state.items_processed,
            reason=reason,
        )

    async def collect_typed_pages(
        self,
        page_type: type[PageT],
        base_query: str | None,
        max_items: int = DEFAULT_MAX_ITEMS,
        start_cursor: int = DEFAULT_START_CURSOR,
        *,
        cancel_event: asyncio.Event | None = None,
    ) -> list[PageT]:
        """Walk the cursor and return every accepted page."""
        return [
            page
            async for page in self.iter_pages(
                page_type, base_query, max_items, start_cursor, cancel_event=cancel_event
            )
        ]

    async def collect_raw_pages(
        self,
        page_type: type[PageT],
        base_query: str | None,
        max_items: int = DEFAULT_MAX_ITEMS,
        start_cursor: int = DEFAULT_START_CURSOR,
        *,
        cancel_event: asyncio.Event | None = None,
    ) -> list[str]:
        """Walk the cursor and return the raw response text of every accepted page.

        page_type is still needed to read each page's cursors.
        """
        return [
            page.raw_json
            async for page in self.iter_pages(
                page_type,
                base_query,
                max_items,
                start_cursor,
                store_raw=True,
                cancel_event=cancel_event,
            )
        ]

    async def collect_items(
        self,
        page_type: type[PageT],
        base_query: str | None,
        max_items: int = DEFAULT_MAX_ITEMS,
        start_cursor: int = DEFAULT_START_CURSOR,
        *,
        extract_items: ItemExtractor | None = None,
        cancel_event: asyncio.Event | None = None,
    ) -> list[Any]:
        """Walk the cursor and flatten the pages' items, capped at ``max_items``.

        Args:
            extract_items: Returns a page's items (default: ``page.results()``)
        """
        extract_items = extract_items or _default_items
        items: list[Any] = []
        async for page in self.iter_pages(
            page_type, base_query, max_items, start_cursor, cancel_event=cancel_event
        ):
            items.extend(extract_items(page))
        return items[:max_items]

    @staticmethod
    def _checked(page: Any, page_type: type) -> CursorPageLike:
        if not isinstance(page, CursorPageLike):
            raise DeserializationError(
                f"{type(page).__name__} lacks previous_cursor, next_cursor or item_count()",
                target=page_type,
            )
        return page
