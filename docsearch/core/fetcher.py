import logging
from dataclasses import dataclass
from typing import Optional

import httpx

from docsearch.core.errors import FetchError

logger = logging.getLogger(__name__)


@dataclass
class RawPage:
    url: str
    status_code: int
    html: str


class PageFetcher:
    """
    Performs one bounded-time GET per call. There are no retries here; the crawl
    engine decides what a failure means.
    """
    def __init__(self, user_agent: str, request_timeout: float = 30.0, client: Optional[httpx.AsyncClient] = None):
        self.user_agent = user_agent
        self.request_timeout = request_timeout
        self.client = client or httpx.AsyncClient(
            headers={
                "User-Agent": self.user_agent,
                "Accept": "text/html,application/xhtml+xml",
            },
            timeout=self.request_timeout,
            follow_redirects=True
        )

    async def fetch(self, url: str) -> RawPage:
        """Fetches ``url`` and returns its HTML, raising FetchError on any failure."""
        try:
            response = await self.client.get(url)
            response.raise_for_status()
            html = response.text
        except httpx.HTTPStatusError as e:
            logger.warning(f"HTTP error fetching {url}: {e.response.status_code}")
            raise FetchError.http_status_error(url, e.response.status_code) from e
        except httpx.RequestError as e:
            logger.warning(f"Request error fetching {url}: {e}")
            raise FetchError.transport_error(url, str(e) or type(e).__name__) from e
        except UnicodeDecodeError as e:
            logger.warning(f"Could not decode body of {url}: {e}")
            raise FetchError.transport_error(url, f"undecodable body ({e})") from e

        logger.debug(f"Fetched {url} ({len(html)} chars)")
        return RawPage(url=url, status_code=response.status_code, html=html)

    async def close(self):
        await self.client.aclose()

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.close()
