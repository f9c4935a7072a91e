import logging
from urllib.parse import urlsplit, urlunsplit

from docsearch.core.errors import ScopeViolation

logger = logging.getLogger(__name__)


class ScopeFilter:
    """
    Host and path-prefix allowlist for every URL that is crawled, stored or served.

    Callers are expected to run a URL through ``normalize`` before ``is_allowed``;
    ``require_allowed`` does both and raises when the URL is out of scope.
    """
    def __init__(self, allowed_host: str, allowed_path_prefix: str):
        self.allowed_host = allowed_host.lower()
        self.allowed_path_prefix = allowed_path_prefix

    @staticmethod
    def normalize(url: str) -> str:
        """
        Drops the fragment, the query string and the trailing slash (except for the root path).
        Input that does not parse as an absolute URL is returned unchanged.
        """
        try:
            parts = urlsplit(url)
        except ValueError:
            return url
        if not parts.scheme or not parts.netloc:
            return url

        # Repeated trailing slashes collapse too, so normalizing twice is a no-op
        path = parts.path.rstrip("/") or "/"
        return urlunsplit((parts.scheme.lower(), parts.netloc.lower(), path, "", ""))

    def is_allowed(self, url: str) -> bool:
        try:
            parts = urlsplit(url)
        except ValueError:
            return False
        if parts.scheme not in ("http", "https"):
            return False

        host = parts.netloc.rsplit("@", 1)[-1].lower()
        if host != self.allowed_host:
            return False
        # "/Product" is the normalized form of the prefix page "/Product/"
        return parts.path.startswith(self.allowed_path_prefix) or parts.path + "/" == self.allowed_path_prefix

    def require_allowed(self, url: str) -> str:
        """Normalizes ``url`` and returns it, or raises ScopeViolation."""
        normalized = self.normalize(url)
        if not self.is_allowed(normalized):
            logger.warning(f"Rejected out-of-scope URL: {url}")
            raise ScopeViolation(url, self.allowed_host, self.allowed_path_prefix)
        return normalized
