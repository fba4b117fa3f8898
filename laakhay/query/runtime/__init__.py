"""Runtime orchestration components."""

from .cursor import (
    CursorPaginator,
    CursorState,
    build_cursor_query,
    is_empty_terminal_page,
    normalize_base_query,
)
from .rest import HTTPClient, QueryExecutor, QueryResult, Transport

__all__ = [
    "CursorPaginator",
    "CursorState",
    "HTTPClient",
    "QueryExecutor",
    "QueryResult",
    "Transport",
    "build_cursor_query",
    "is_empty_terminal_page",
    "normalize_base_query",
]
