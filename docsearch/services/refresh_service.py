import asyncio
import time
import logging
from typing import Callable, Optional, Sequence

from docsearch.config import settings
from docsearch.core.crawler import CrawlEngine, merge_pages
from docsearch.core.errors import RefreshInProgress
from docsearch.core.extractor import ContentExtractor
from docsearch.core.fetcher import PageFetcher
from docsearch.core.repo_walker import DEFAULT_REPOSITORIES, GitHubClient, RepositoryFileWalker, RepositorySource
from docsearch.core.scope import ScopeFilter
from docsearch.core.search_index import DOCS_BOOSTS, DOCS_FIELDS, EXAMPLE_BOOSTS, EXAMPLE_FIELDS
from docsearch.models.schemas import DocsRefreshResponse, ExamplesRefreshResponse
from docsearch.services.corpus_state import CorpusState, StateHolder
from docsearch.services.corpus_store import CorpusStore

logger = logging.getLogger(__name__)


def resumed_page_limit(existing_count: int, default_max_pages: int) -> int:
    """Page limit for a resumed crawl when the caller did not pick one."""
    return max(2 * default_max_pages, existing_count + 500)


def default_fetcher() -> PageFetcher:
    return PageFetcher(settings.CRAWLER_USER_AGENT, settings.CRAWLER_REQUEST_TIMEOUT)


def default_github_client(token: Optional[str]) -> GitHubClient:
    return GitHubClient(
        token=token,
        api_url=settings.GITHUB_API_URL,
        request_timeout=settings.CRAWLER_REQUEST_TIMEOUT,
    )


class RefreshService:
    """
    Rebuilds a corpus: crawl or walk, persist, build a new index, swap it in.

    Each corpus has its own lock. A refresh requested while one is already
    running for the same corpus is rejected instead of queued. Queries keep
    being served from the previous snapshot until the swap.
    """
    def __init__(
        self,
        docs_holder: StateHolder,
        examples_holder: StateHolder,
        docs_store: CorpusStore,
        examples_store: CorpusStore,
        scope: ScopeFilter,
        fetcher_factory: Callable[[], PageFetcher] = default_fetcher,
        github_client_factory: Callable[[Optional[str]], GitHubClient] = default_github_client,
        repositories: Sequence[RepositorySource] = DEFAULT_REPOSITORIES,
    ):
        self.docs_holder = docs_holder
        self.examples_holder = examples_holder
        self.docs_store = docs_store
        self.examples_store = examples_store
        self.scope = scope
        self.fetcher_factory = fetcher_factory
        self.github_client_factory = github_client_factory
        self.repositories = list(repositories)
        self._docs_lock = asyncio.Lock()
        self._examples_lock = asyncio.Lock()

    def load_corpora(self):
        """Loads both persisted corpora and swaps them in. Used at startup."""
        pages, meta = self.docs_store.load()
        self.docs_holder.swap(CorpusState.build(pages, meta, DOCS_FIELDS, DOCS_BOOSTS, settings.SEARCH_FUZZY))
        examples, github_meta = self.examples_store.load()
        self.examples_holder.swap(
            CorpusState.build(examples, github_meta, EXAMPLE_FIELDS, EXAMPLE_BOOSTS, settings.SEARCH_FUZZY)
        )
        logger.info(f"Loaded corpora: {len(pages)} pages, {len(examples)} examples")

    @property
    def docs_refresh_running(self) -> bool:
        return self._docs_lock.locked()

    @property
    def examples_refresh_running(self) -> bool:
        return self._examples_lock.locked()

    async def refresh_docs(
        self,
        start_url: Optional[str] = None,
        max_pages: Optional[int] = None,
        delay_ms: Optional[int] = None,
        resume: bool = False,
    ) -> DocsRefreshResponse:
        """
        Crawls the documentation and replaces the docs corpus. With ``resume``
        the stored pages are kept and the newly crawled ones appended.
        """
        start_url = self.scope.require_allowed(start_url or settings.DOCS_START_URL)
        delay_ms = settings.DOCS_DELAY_MS if delay_ms is None else delay_ms

        if self._docs_lock.locked():
            raise RefreshInProgress("A documentation refresh is already running.")

        async with self._docs_lock:
            started = time.time()
            existing = []
            if resume:
                existing, _ = self.docs_store.load()
                logger.info(f"Resuming from {len(existing)} stored pages")
                if max_pages is None:
                    max_pages = resumed_page_limit(len(existing), settings.DOCS_MAX_PAGES)
                    logger.info(f"Page limit raised to {max_pages} for the resumed crawl")
            if max_pages is None:
                max_pages = settings.DOCS_MAX_PAGES

            async with self.fetcher_factory() as fetcher:
                engine = CrawlEngine(
                    self.scope,
                    fetcher,
                    ContentExtractor(self.scope, settings.BOILERPLATE_SELECTORS),
                    store=self.docs_store,
                    max_consecutive_failures=settings.CRAWLER_MAX_CONSECUTIVE_FAILURES,
                    checkpoint_interval=settings.CRAWLER_CHECKPOINT_INTERVAL,
                )
                result = await engine.crawl(start_url, max_pages, delay_ms, existing=existing)

            pages = merge_pages(existing, result.pages) if resume else result.pages
            if resume:
                logger.info(f"Merged {len(pages) - len(existing)} new pages with {len(existing)} existing pages")

            meta = engine.build_meta(
                start_url, max_pages, delay_ms, len(pages), result.visited, result.failures, result.stop_reason
            )
            self.docs_store.save(pages, meta)
            self.docs_holder.swap(CorpusState.build(pages, meta, DOCS_FIELDS, DOCS_BOOSTS, settings.SEARCH_FUZZY))

            duration = round(time.time() - started)
            return DocsRefreshResponse(
                message=f"Successfully crawled and indexed {len(pages)} pages in {duration} seconds.",
                indexed_count=len(pages),
                visited_count=result.visited,
                failure_count=result.failures,
                stop_reason=result.stop_reason,
                last_refresh=meta.last_refresh,
                data_dir=settings.DATA_DIR,
            )

    async def refresh_examples(
        self,
        max_files: Optional[int] = None,
        github_token: Optional[str] = None,
        delay_ms: Optional[int] = None,
    ) -> ExamplesRefreshResponse:
        """Walks the example repositories and replaces the examples corpus."""
        max_files = max_files or settings.GITHUB_MAX_FILES
        delay_ms = settings.GITHUB_DELAY_MS if delay_ms is None else delay_ms

        if self._examples_lock.locked():
            raise RefreshInProgress("A code example refresh is already running.")

        async with self._examples_lock:
            started = time.time()
            async with self.github_client_factory(github_token or settings.GITHUB_TOKEN) as client:
                walker = RepositoryFileWalker(client, self.repositories, max_depth=settings.GITHUB_MAX_DEPTH)
                result = await walker.walk(max_files, delay_ms)

            self.examples_store.save(result.examples, result.meta)
            self.examples_holder.swap(
                CorpusState.build(result.examples, result.meta, EXAMPLE_FIELDS, EXAMPLE_BOOSTS, settings.SEARCH_FUZZY)
            )

            duration = round(time.time() - started)
            return ExamplesRefreshResponse(
                message=f"Indexed {len(result.examples)} code files from {len(result.meta.repos)} repositories in {duration} seconds.",
                total_examples=len(result.examples),
                repos=result.meta.repos,
                last_error=result.meta.last_error,
                last_refresh=result.meta.last_refresh,
                data_dir=settings.DATA_DIR,
            )
