import asyncio
import logging
from collections import deque
from dataclasses import dataclass, field
from typing import Awaitable, Callable, Deque, List, Optional, Sequence, Set

from docsearch.core.errors import FetchError
from docsearch.core.extractor import ContentExtractor, build_page
from docsearch.core.fetcher import PageFetcher
from docsearch.core.scope import ScopeFilter
from docsearch.models.document import IndexedPage, IndexMeta, utc_now

logger = logging.getLogger(__name__)

STOP_FRONTIER_EXHAUSTED = "frontier_exhausted"
STOP_MAX_PAGES = "max_pages"
STOP_CIRCUIT_BREAKER = "circuit_breaker"
STOP_IN_PROGRESS = "in_progress"


@dataclass
class CrawlResult:
    pages: List[IndexedPage] = field(default_factory=list)
    visited: int = 0
    failures: int = 0
    pending: int = 0 # Frontier entries left unprocessed
    stop_reason: str = STOP_FRONTIER_EXHAUSTED


def merge_pages(existing: Sequence[IndexedPage], new: Sequence[IndexedPage]) -> List[IndexedPage]:
    """
    Appends the pages from ``new`` whose URL is not already present. Existing
    records are kept as they are, never replaced.
    """
    known_urls = {page.url for page in existing}
    merged = list(existing)
    for page in new:
        if page.url not in known_urls:
            known_urls.add(page.url)
            merged.append(page)
    return merged


class CrawlEngine:
    """
    Breadth-first documentation crawler.

    One fetch is in flight at a time. A run of consecutive fetch failures trips a
    circuit breaker, and every ``checkpoint_interval`` successful pages the
    results so far are written through the corpus store.
    """
    def __init__(
        self,
        scope: ScopeFilter,
        fetcher: PageFetcher,
        extractor: ContentExtractor,
        store=None,
        max_consecutive_failures: int = 10,
        checkpoint_interval: int = 50,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        self.scope = scope
        self.fetcher = fetcher
        self.extractor = extractor
        self.store = store
        self.max_consecutive_failures = max_consecutive_failures
        self.checkpoint_interval = checkpoint_interval
        self.sleep = sleep

    async def crawl(
        self,
        start_url: str,
        max_pages: int,
        delay_ms: int,
        existing: Optional[Sequence[IndexedPage]] = None,
    ) -> CrawlResult:
        """
        Crawls from ``start_url`` until the frontier is empty, ``max_pages`` pages
        were indexed, or the circuit breaker trips.

        ``existing`` pages (from a resumed corpus) are only used for checkpoints,
        so an interrupted resume never loses what was already stored.
        """
        logger.info(f"Starting crawl from {start_url} (max_pages: {max_pages}, delay: {delay_ms}ms)")

        frontier: Deque[str] = deque([self.scope.normalize(start_url)])
        visited: Set[str] = set()
        pages: List[IndexedPage] = []
        failures = 0
        consecutive_failures = 0
        stop_reason = STOP_FRONTIER_EXHAUSTED

        while frontier and len(pages) < max_pages:
            url = self.scope.normalize(frontier.popleft())

            if url in visited:
                continue
            visited.add(url)

            if not self.scope.is_allowed(url):
                logger.debug(f"Dropping out-of-scope URL {url}")
                continue

            logger.info(f"Crawling ({len(pages) + 1}/{max_pages}): {url}")
            try:
                raw_page = await self.fetcher.fetch(url)
            except FetchError as e:
                failures += 1
                consecutive_failures += 1
                logger.warning(f"Fetch failed ({consecutive_failures} in a row): {e.message}")
                if consecutive_failures >= self.max_consecutive_failures:
                    logger.error(
                        f"Too many consecutive failures ({consecutive_failures}). Stopping crawl."
                    )
                    stop_reason = STOP_CIRCUIT_BREAKER
                    break
            else:
                consecutive_failures = 0
                content = self.extractor.extract(raw_page.html, url)
                for link in content.links:
                    if link not in visited:
                        frontier.append(link)
                pages.append(build_page(content, url))

                if self.checkpoint_interval and len(pages) % self.checkpoint_interval == 0:
                    self._checkpoint(start_url, max_pages, delay_ms, existing, pages, len(visited), failures)

            if delay_ms > 0:
                await self.sleep(delay_ms / 1000)

        if stop_reason != STOP_CIRCUIT_BREAKER and len(pages) >= max_pages:
            stop_reason = STOP_MAX_PAGES

        logger.info(
            f"Crawl finished ({stop_reason}). Pages: {len(pages)}, visited: {len(visited)}, "
            f"failures: {failures}, pending: {len(frontier)}"
        )
        return CrawlResult(
            pages=pages,
            visited=len(visited),
            failures=failures,
            pending=len(frontier),
            stop_reason=stop_reason,
        )

    def build_meta(
        self,
        start_url: str,
        max_pages: int,
        delay_ms: int,
        indexed_count: int,
        visited_count: int,
        failure_count: int,
        stop_reason: str,
    ) -> IndexMeta:
        return IndexMeta(
            start_url=start_url,
            max_pages=max_pages,
            delay_ms=delay_ms,
            indexed_count=indexed_count,
            visited_count=visited_count,
            failure_count=failure_count,
            last_refresh=utc_now(),
            allowed_host=self.scope.allowed_host,
            allowed_path_prefix=self.scope.allowed_path_prefix,
            stop_reason=stop_reason,
        )

    def _checkpoint(self, start_url, max_pages, delay_ms, existing, pages, visited_count, failures):
        if self.store is None:
            return
        snapshot = merge_pages(existing or [], pages)
        meta = self.build_meta(
            start_url, max_pages, delay_ms, len(snapshot), visited_count, failures, STOP_IN_PROGRESS
        )
        try:
            self.store.save(snapshot, meta)
            logger.info(f"Checkpoint saved ({len(pages)} pages crawled, {len(snapshot)} stored)")
        except OSError as e:
            logger.error(f"Checkpoint failed, continuing crawl: {e}")
