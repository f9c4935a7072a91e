import hashlib
from typing import List, Optional
from datetime import datetime, timezone
from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def page_id_for(url: str) -> str:
    """Short, deterministic id for a canonical page URL. Collisions are tolerated."""
    return hashlib.md5(url.encode("utf-8")).hexdigest()[:12]


class CorpusModel(BaseModel):
    """
    Base for every persisted record: snake_case attributes, camelCase on disk and on the wire.
    """
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    def to_json(self) -> dict:
        return self.model_dump(mode="json", by_alias=True)


class IndexedPage(CorpusModel):
    """
    One crawled documentation page.
    """
    id: str
    url: str # Canonical, scope-filtered URL
    title: str = ""
    headings: List[str] = []
    text: str = "" # Whitespace-collapsed visible body
    code_blocks: List[str] = []
    fetched_at: datetime = Field(default_factory=utc_now)


class IndexMeta(CorpusModel):
    """
    Describes the documentation crawl that produced the stored pages.
    """
    start_url: str
    max_pages: int
    delay_ms: int
    indexed_count: int = 0
    visited_count: int = 0
    failure_count: int = 0
    last_refresh: datetime = Field(default_factory=utc_now)
    allowed_host: str
    allowed_path_prefix: str
    stop_reason: Optional[str] = None # frontier_exhausted, max_pages, circuit_breaker or in_progress


class GitHubExample(CorpusModel):
    """
    One indexed source file from a code repository.
    """
    id: str # "{repoName}:{filePath}"
    type: str = "code-file" # "example" or "code-file"
    title: str
    file_path: str
    repo_name: str
    repo_url: str
    file_url: str
    language: str
    content: str
    content_preview: str = ""
    related_classes: List[str] = []
    related_methods: List[str] = []
    description: str = ""
    fetched_at: datetime = Field(default_factory=utc_now)


class RepoSummary(CorpusModel):
    name: str
    url: str
    files_indexed: int = 0


class GitHubMeta(CorpusModel):
    """
    Aggregate information about the last repository walk.
    """
    total_examples: int = 0
    last_refresh: datetime = Field(default_factory=utc_now)
    last_error: Optional[str] = None
    repos: List[RepoSummary] = []
