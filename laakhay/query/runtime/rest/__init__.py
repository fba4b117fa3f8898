"""REST runtime abstractions."""

from .executor import QueryExecutor, QueryObserver
from .extractor import extract, locate
from .http_client import HTTPClient, RequestSigner, ResponseHook
from .result import QueryResult
from .transport import Transport

__all__ = [
    "HTTPClient",
    "QueryExecutor",
    "QueryObserver",
    "QueryResult",
    "RequestSigner",
    "ResponseHook",
    "Transport",
    "extract",
    "locate",
]
