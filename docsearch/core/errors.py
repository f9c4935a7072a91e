"""
Error taxonomy shared by the crawler, the stores and the query layer.

Every error carries a short machine-readable ``status`` and the HTTP status
the API layer should answer with, so routers never have to branch on types.
"""
from enum import Enum
from typing import Optional


class DocSearchError(Exception):
    """Base class for all expected failures."""
    status: str = "error"
    http_status: int = 500
    is_error: bool = True

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ScopeViolation(DocSearchError):
    """A URL falls outside the allowed host/path prefix."""
    status = "scope_violation"
    http_status = 400

    def __init__(self, url: str, allowed_host: str, allowed_path_prefix: str):
        super().__init__(
            f"URL '{url}' is not allowed: it must be on {allowed_host} "
            f"and start with {allowed_path_prefix}"
        )
        self.url = url


class FetchErrorKind(str, Enum):
    HTTP_STATUS = "http_status"
    TRANSPORT = "transport"


class FetchError(DocSearchError):
    """A single request failed. Counted by the crawler, never fatal on its own."""
    status = "fetch_error"
    http_status = 502

    def __init__(self, url: str, kind: FetchErrorKind, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.url = url
        self.kind = kind
        self.status_code = status_code

    @classmethod
    def http_status_error(cls, url: str, status_code: int) -> "FetchError":
        return cls(url, FetchErrorKind.HTTP_STATUS, f"HTTP {status_code} for {url}", status_code=status_code)

    @classmethod
    def transport_error(cls, url: str, message: str) -> "FetchError":
        return cls(url, FetchErrorKind.TRANSPORT, f"Request to {url} failed: {message}")


class MalformedPersistedState(DocSearchError):
    """A corpus file exists but cannot be parsed."""
    status = "malformed_state"


class NoIndex(DocSearchError):
    status = "no_index"
    http_status = 200
    is_error = False


class NoResults(DocSearchError):
    status = "no_results"
    http_status = 200
    is_error = False

    def __init__(self, query: str):
        super().__init__(f'No results found for query: "{query}"')
        self.query = query


class InternalInconsistency(DocSearchError):
    """A search hit could not be resolved to a stored record."""
    status = "internal_inconsistency"


class RefreshInProgress(DocSearchError):
    status = "refresh_in_progress"
    http_status = 409
