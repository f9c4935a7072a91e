import logging
from typing import Optional

from docsearch.config import settings
from docsearch.core.errors import InternalInconsistency, NoIndex, NoResults, ScopeViolation
from docsearch.core.scope import ScopeFilter
from docsearch.models.schemas import (
    DocsStatus,
    ExampleSearchResponse,
    ExampleSummary,
    ExamplesStatus,
    ResultSummary,
    StatusResponse,
    TopResultResponse,
)
from docsearch.services.corpus_state import StateHolder

logger = logging.getLogger(__name__)

MAX_HEADINGS = 10
MAX_CODE_BLOCKS = 5
TOP_RESULTS = 3


def truncate_text(text: str, max_chars: int) -> str:
    if len(text) <= max_chars:
        return text
    return text[:max_chars] + f"\n\n[... truncated at {max_chars} characters ...]"


class QueryService:
    """
    Answers searches against the live corpus snapshots.

    Each call reads the holder's current snapshot once, so a refresh that swaps
    in a new corpus mid-request does not affect it.
    """
    def __init__(self, docs_holder: StateHolder, examples_holder: StateHolder, scope: ScopeFilter):
        self.docs_holder = docs_holder
        self.examples_holder = examples_holder
        self.scope = scope

    def open_top_result(self, query: str, include_code: bool = True, max_chars: Optional[int] = None) -> TopResultResponse:
        """Returns the best matching documentation page in full, plus the top 3 summaries."""
        max_chars = max_chars or settings.DEFAULT_MAX_CHARS
        state = self.docs_holder.current
        if state.is_empty:
            raise NoIndex("No index available. Please run a documentation refresh first.")

        hits = state.index.search(query)
        if not hits:
            raise NoResults(query)

        top_page = state.get(hits[0].id)
        if top_page is None:
            logger.error(f"Search hit {hits[0].id} has no stored page; the index is out of sync")
            raise InternalInconsistency("Internal error: could not find page data for top result")

        # Stored data is re-checked before it is served
        if not self.scope.is_allowed(self.scope.normalize(top_page.url)):
            logger.error(f"Stored page {top_page.id} has out-of-scope URL {top_page.url}")
            raise ScopeViolation(top_page.url, self.scope.allowed_host, self.scope.allowed_path_prefix)

        top_results = []
        for hit in hits[:TOP_RESULTS]:
            page = state.get(hit.id)
            top_results.append(ResultSummary(
                title=page.title if page else "Unknown",
                url=page.url if page else "",
                score=hit.score,
            ))

        code_blocks = None
        if include_code and top_page.code_blocks:
            code_blocks = top_page.code_blocks[:MAX_CODE_BLOCKS]

        logger.info(f"Query '{query}': {len(hits)} hits, top result {top_page.url}")
        return TopResultResponse(
            query=query,
            title=top_page.title,
            url=top_page.url,
            fetched_at=top_page.fetched_at,
            headings=top_page.headings[:MAX_HEADINGS],
            text=truncate_text(top_page.text, max_chars),
            top3_results=top_results,
            code_blocks=code_blocks,
        )

    def search_examples(self, query: str, language: Optional[str] = None, max_results: int = 5) -> ExampleSearchResponse:
        state = self.examples_holder.current
        if state.is_empty:
            raise NoIndex("No code examples indexed. Please run a code example refresh first.")

        matches = []
        for hit in state.index.search(query):
            example = state.get(hit.id)
            if example is None:
                logger.warning(f"Search hit {hit.id} has no stored example, skipping")
                continue
            if language and example.language != language:
                continue
            matches.append((example, hit.score))

        if not matches:
            raise NoResults(query)

        results = [
            ExampleSummary(
                id=example.id,
                type=example.type,
                title=example.title,
                repo_name=example.repo_name,
                repo_url=example.repo_url,
                file_path=example.file_path,
                file_url=example.file_url,
                language=example.language,
                score=score,
                description=example.description,
                content_preview=example.content_preview,
                related_classes=example.related_classes,
                related_methods=example.related_methods,
            )
            for example, score in matches[:max_results]
        ]
        logger.info(f"Example query '{query}': {len(matches)} matches, returning {len(results)}")
        return ExampleSearchResponse(query=query, total_matches=len(matches), results=results)

    def status(self) -> StatusResponse:
        docs_state = self.docs_holder.current
        meta = docs_state.meta
        if meta is None and not docs_state.records:
            docs = DocsStatus(status="no_index", message="No index found. Run a documentation refresh to create one.")
        else:
            docs = DocsStatus(
                status="ok" if docs_state.records else "no_index",
                indexed_count=len(docs_state.records),
                visited_count=meta.visited_count if meta else None,
                failure_count=meta.failure_count if meta else None,
                last_refresh=meta.last_refresh if meta else None,
                start_url=meta.start_url if meta else None,
                max_pages=meta.max_pages if meta else None,
                delay_ms=meta.delay_ms if meta else None,
                stop_reason=meta.stop_reason if meta else None,
            )

        examples_state = self.examples_holder.current
        github_meta = examples_state.meta
        if github_meta is None and not examples_state.records:
            examples = ExamplesStatus(status="no_index", message="No code examples found. Run a code example refresh.")
        else:
            examples = ExamplesStatus(
                status="ok" if examples_state.records else "no_index",
                total_examples=len(examples_state.records),
                last_refresh=github_meta.last_refresh if github_meta else None,
                last_error=github_meta.last_error if github_meta else None,
                repos=github_meta.repos if github_meta else [],
            )

        return StatusResponse(data_dir=settings.DATA_DIR, docs=docs, examples=examples)
