"""Laakhay Query - typed, cursor-paginated access to REST APIs."""

from .core import (
    DeserializationError,
    ErrorPolicy,
    HttpMethod,
    InvalidQueryError,
    QueryError,
    RateLimitError,
    RemoteServiceError,
    TransportError,
    get_error_policy,
    set_swallow_remote_failures,
)
from .models import CursorPage, CursorPageLike, IdsCursorPage, ListsCursorPage, UsersCursorPage
from .runtime import (
    CursorPaginator,
    CursorState,
    HTTPClient,
    QueryExecutor,
    QueryResult,
    Transport,
    normalize_base_query,
)
from .serialization import (
    DEFAULT_CONVERTERS,
    ApiDateTime,
    ApiDateTimeConverter,
    JsonConverter,
    JsonDeserializer,
)

__version__ = "0.1.0"

__all__ = [
    # Engine
    "CursorPaginator",
    "CursorState",
    "HTTPClient",
    "QueryExecutor",
    "QueryResult",
    "Transport",
    "normalize_base_query",
    # Error policy
    "ErrorPolicy",
    "get_error_policy",
    "set_swallow_remote_failures",
    # Exceptions
    "QueryError",
    "InvalidQueryError",
    "RemoteServiceError",
    "RateLimitError",
    "TransportError",
    "DeserializationError",
    # Models
    "CursorPage",
    "CursorPageLike",
    "IdsCursorPage",
    "ListsCursorPage",
    "UsersCursorPage",
    # Serialization
    "DEFAULT_CONVERTERS",
    "ApiDateTime",
    "ApiDateTimeConverter",
    "JsonConverter",
    "JsonDeserializer",
    "HttpMethod",
]
