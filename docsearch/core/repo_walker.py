import asyncio
import logging
from collections import deque
from dataclasses import dataclass, field
from typing import Awaitable, Callable, Deque, List, Optional, Sequence, Tuple

import httpx

from docsearch.core.code_metadata import (
    extract_description,
    extract_member_names,
    extract_type_names,
    language_for,
    title_for,
)
from docsearch.core.errors import FetchError
from docsearch.models.document import GitHubExample, GitHubMeta, RepoSummary, utc_now

logger = logging.getLogger(__name__)

MIN_CONTENT_LENGTH = 50
MAX_CONTENT_SIZE = 8000
PREVIEW_LENGTH = 500

# Build output, dependency caches and VCS metadata
SKIPPED_DIRECTORIES = frozenset({
    "bin", "obj", "node_modules", ".git", ".github", ".vs", "packages", "dist", "build", "lib",
})


@dataclass(frozen=True)
class RepositorySource:
    owner: str
    repo: str
    base_paths: Tuple[str, ...] = ("",)

    @property
    def full_name(self) -> str:
        return f"{self.owner}/{self.repo}"

    @property
    def url(self) -> str:
        return f"https://github.com/{self.owner}/{self.repo}"


DEFAULT_REPOSITORIES: Tuple[RepositorySource, ...] = (
    RepositorySource("DevExpress-Examples", "asp-net-bootstrap-examples"),
    RepositorySource("DevExpress-Examples", "asp-net-core-free-ui-templates"),
    RepositorySource("DevExpress-Examples", "devextreme-examples"),
)


@dataclass
class RepoEntry:
    name: str
    path: str
    type: str # "file" or "dir"
    size: int = 0
    html_url: Optional[str] = None


@dataclass
class WalkResult:
    examples: List[GitHubExample] = field(default_factory=list)
    meta: GitHubMeta = field(default_factory=GitHubMeta)


class GitHubClient:
    """
    Minimal GitHub contents API client: directory listings and raw file bodies.
    """
    def __init__(
        self,
        token: Optional[str] = None,
        api_url: str = "https://api.github.com",
        request_timeout: float = 30.0,
        client: Optional[httpx.AsyncClient] = None,
    ):
        self.api_url = api_url.rstrip("/")
        headers = {"User-Agent": "DocSearch-Crawler"}
        if token:
            headers["Authorization"] = f"Bearer {token}"
        self.client = client or httpx.AsyncClient(timeout=request_timeout, follow_redirects=True)
        self.headers = headers

    def _contents_url(self, owner: str, repo: str, path: str) -> str:
        return f"{self.api_url}/repos/{owner}/{repo}/contents/{path.strip('/')}"

    async def list_directory(self, owner: str, repo: str, path: str = "") -> List[RepoEntry]:
        """Lists one directory. Raises FetchError when the listing cannot be obtained."""
        url = self._contents_url(owner, repo, path)
        try:
            response = await self.client.get(
                url, headers={**self.headers, "Accept": "application/vnd.github.v3+json"}
            )
            response.raise_for_status()
            data = response.json()
        except httpx.HTTPStatusError as e:
            raise FetchError.http_status_error(url, e.response.status_code) from e
        except httpx.RequestError as e:
            raise FetchError.transport_error(url, str(e) or type(e).__name__) from e
        except ValueError as e:
            raise FetchError.transport_error(url, f"invalid JSON listing ({e})") from e

        if not isinstance(data, list):
            raise FetchError.transport_error(url, "path is not a directory")

        return [
            RepoEntry(
                name=item.get("name", ""),
                path=item.get("path", ""),
                type=item.get("type", ""),
                size=item.get("size") or 0,
                html_url=item.get("html_url"),
            )
            for item in data
            if isinstance(item, dict)
        ]

    async def fetch_raw(self, owner: str, repo: str, path: str) -> Optional[str]:
        """Returns the raw file body, or None when it cannot be fetched."""
        url = self._contents_url(owner, repo, path)
        try:
            response = await self.client.get(
                url, headers={**self.headers, "Accept": "application/vnd.github.v3.raw"}
            )
            response.raise_for_status()
            return response.text
        except httpx.HTTPStatusError as e:
            logger.warning(f"HTTP {e.response.status_code} fetching {url}")
        except (httpx.RequestError, UnicodeDecodeError) as e:
            logger.warning(f"Failed to fetch {url}: {e}")
        return None

    async def close(self):
        await self.client.aclose()

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.close()


def is_example_path(path: str) -> bool:
    directories = path.split("/")[:-1]
    return any("example" in directory.lower() for directory in directories)


def build_example(source: RepositorySource, entry: RepoEntry, raw_content: str) -> GitHubExample:
    content = raw_content[:MAX_CONTENT_SIZE]
    return GitHubExample(
        id=f"{source.repo}:{entry.path}",
        type="example" if is_example_path(entry.path) else "code-file",
        title=title_for(entry.path),
        file_path=entry.path,
        repo_name=source.repo,
        repo_url=source.url,
        file_url=entry.html_url or f"{source.url}/blob/HEAD/{entry.path}",
        language=language_for(entry.path) or "text",
        content=content,
        content_preview=content[:PREVIEW_LENGTH],
        related_classes=extract_type_names(raw_content),
        related_methods=extract_member_names(raw_content),
        description=extract_description(raw_content),
        fetched_at=utc_now(),
    )


class RepositoryFileWalker:
    """
    Walks a fixed list of repositories through the contents API and turns the
    source files it finds into GitHubExample records.

    Each base path is traversed with an explicit work-list of (path, depth)
    items, so the remaining file budget only depends on how many examples have
    been collected so far.
    """
    def __init__(
        self,
        client: GitHubClient,
        repositories: Sequence[RepositorySource] = DEFAULT_REPOSITORIES,
        max_depth: int = 3,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        self.client = client
        self.repositories = list(repositories)
        self.max_depth = max_depth
        self.sleep = sleep

    async def _pause(self, delay_ms: int):
        if delay_ms > 0:
            await self.sleep(delay_ms / 1000)

    async def walk(self, max_files: int, delay_ms: int) -> WalkResult:
        logger.info(f"Starting repository walk over {len(self.repositories)} repos (max_files: {max_files})")
        result = WalkResult(meta=GitHubMeta(repos=[]))

        for index, source in enumerate(self.repositories):
            if len(result.examples) >= max_files:
                logger.info(f"File limit ({max_files}) reached. Stopping walk.")
                break
            if index > 0:
                await self._pause(2 * delay_ms)

            before = len(result.examples)
            logger.info(f"Indexing {source.full_name}...")
            for base_path in source.base_paths:
                await self._walk_base_path(source, base_path, max_files, delay_ms, result)

            indexed = len(result.examples) - before
            result.meta.repos.append(RepoSummary(name=source.full_name, url=source.url, files_indexed=indexed))
            logger.info(f"Indexed {indexed} files from {source.full_name}")

        result.meta.total_examples = len(result.examples)
        result.meta.last_refresh = utc_now()
        logger.info(f"Repository walk finished. Total examples: {len(result.examples)}")
        return result

    async def _walk_base_path(
        self,
        source: RepositorySource,
        base_path: str,
        max_files: int,
        delay_ms: int,
        result: WalkResult,
    ):
        work: Deque[Tuple[str, int]] = deque([(base_path, 0)])
        first_listing = True

        while work and len(result.examples) < max_files:
            path, depth = work.popleft()
            if not first_listing:
                await self._pause(2 * delay_ms)
            first_listing = False

            try:
                entries = await self.client.list_directory(source.owner, source.repo, path)
            except FetchError as e:
                logger.error(f"Skipping {source.full_name}/{path}: {e.message}")
                result.meta.last_error = e.message
                continue

            budget = max_files - len(result.examples)
            files = [entry for entry in entries if entry.type == "file" and language_for(entry.name)]
            for entry in files[:budget]:
                await self._index_file(source, entry, result)
                await self._pause(delay_ms)

            if depth >= self.max_depth:
                continue
            for entry in entries:
                if entry.type == "dir" and entry.name.lower() not in SKIPPED_DIRECTORIES:
                    work.append((entry.path, depth + 1))

    async def _index_file(self, source: RepositorySource, entry: RepoEntry, result: WalkResult):
        raw_content = await self.client.fetch_raw(source.owner, source.repo, entry.path)
        if raw_content is None:
            return
        if len(raw_content) < MIN_CONTENT_LENGTH:
            logger.debug(f"Discarding {entry.path}: only {len(raw_content)} chars")
            return
        result.examples.append(build_example(source, entry, raw_content))
