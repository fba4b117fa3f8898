"""Structured logging for query execution and cursor walks.

This module provides telemetry hooks for the executor and the cursor
paginator, emitting structured logs for observability. Handlers are left to
the application.
"""

from __future__ import annotations

import logging

from ..core.enums import HttpMethod
from ..core.exceptions import RemoteServiceError

logger = logging.getLogger(__name__)


def log_query_executed(
    *,
    query: str,
    method: HttpMethod,
    response_size: int,
    latency_ms: float | None = None,
) -> None:
    """Log a successful round-trip.

    Args:
        query: Formatted query string
        method: HTTP method used
        response_size: Length of the raw response text
        latency_ms: Latency in milliseconds (optional)
    """
    logger.debug(
        "query_executed",
        extra={
            "query": query,
            "method": str(method),
            "response_size": response_size,
            "latency_ms": latency_ms,
        },
    )


def log_query_failed(*, query: str, method: HttpMethod, error: RemoteServiceError) -> None:
    """Log a remote failure before the error policy is applied."""
    logger.warning(
        "query_failed",
        extra={
            "query": query,
            "method": str(method),
            "error_type": type(error).__name__,
            "status_code": error.status_code,
            "error_code": error.error_code,
            "error_message": error.message,
        },
    )


def log_remote_failure_swallowed(*, query: str | None, error: RemoteServiceError) -> None:
    """Log a failure converted to an empty result by the error policy."""
    logger.info(
        "remote_failure_swallowed",
        extra={
            "query": query,
            "error_type": type(error).__name__,
            "status_code": error.status_code,
        },
    )


def log_cursor_page(
    *,
    query: str,
    page_index: int,
    items: int,
    items_processed: int,
    previous_cursor: int,
    next_cursor: int,
) -> None:
    """Log a page accepted by the cursor paginator.

    Args:
        query: Per-page query including the cursor parameter
        page_index: Zero-based index of the page in the walk
        items: Number of items in this page
        items_processed: Running total including this page
        previous_cursor: Page's previous cursor
        next_cursor: Page's next cursor
    """
    logger.debug(
        "cursor_page",
        extra={
            "query": query,
            "page_index": page_index,
            "items": items,
            "items_processed": items_processed,
            "previous_cursor": previous_cursor,
            "next_cursor": next_cursor,
        },
    )


def log_cursor_walk_complete(
    *,
    base_query: str,
    pages: int,
    items_processed: int,
    reason: str,
) -> None:
    """Log the end of a cursor walk.

    Args:
        base_query: Normalized base query
        pages: Number of pages accepted
        items_processed: Total items across accepted pages
        reason: Why the walk ended ("converged", "max_items", "empty",
            "failure", "cancelled")
    """
    logger.info(
        "cursor_walk_complete",
        extra={
            "base_query": base_query,
            "pages": pages,
            "items_processed": items_processed,
            "reason": reason,
        },
    )
