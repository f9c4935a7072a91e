from typing import List, Optional
from datetime import datetime
from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from docsearch.models.document import RepoSummary


class APIModel(BaseModel):
    """
    Base for request/response bodies. Accepts and emits camelCase keys.
    """
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

# --- API Request/Response Schemas ---

class DocsRefreshRequest(APIModel):
    """
    Schema for the POST /docs/refresh request body.
    """
    start_url: Optional[str] = Field(
        None,
        description="URL to start crawling from. Must be on the allowed host and path prefix.",
        examples=["https://docs.devexpress.com/AspNetBootstrap/117864/aspnet-bootstrap-controls"]
    )
    max_pages: Optional[int] = Field(
        None,
        gt=0,
        description="Maximum number of pages to index. Defaults to the configured limit.",
        examples=[800]
    )
    delay_ms: Optional[int] = Field(
        None,
        ge=0,
        description="Delay between requests in milliseconds.",
        examples=[200]
    )
    resume: bool = Field(
        False,
        description="Keep the stored pages and append newly crawled ones instead of replacing them."
    )

class DocsRefreshResponse(APIModel):
    """
    Schema for the POST /docs/refresh response body.
    """
    status: str = Field("success", description="Outcome of the refresh.")
    message: str = Field(..., description="Human-readable summary.")
    indexed_count: int = Field(..., description="Number of pages now in the index.")
    visited_count: int = Field(..., description="Number of distinct URLs visited by the crawl.")
    failure_count: int = Field(..., description="Number of failed fetches.")
    stop_reason: str = Field(..., description="Why the crawl stopped (frontier_exhausted, max_pages, circuit_breaker).")
    last_refresh: datetime = Field(..., description="When the refresh finished.")
    data_dir: str = Field(..., description="Directory the corpus is stored in.")

class DocsSearchRequest(APIModel):
    """
    Schema for the POST /docs/search request body.
    """
    query: str = Field(
        ...,
        min_length=1,
        description="Search terms.",
        examples=["grid view paging"]
    )
    include_code: bool = Field(True, description="Include up to 5 code blocks from the top page.")
    max_chars: Optional[int] = Field(
        None,
        gt=0,
        description="Maximum characters of page text to return.",
        examples=[15000]
    )

class ResultSummary(APIModel):
    title: str
    url: str
    score: float

class TopResultResponse(APIModel):
    """
    Schema for the POST /docs/search response body: the best matching page in full.
    """
    status: str = "success"
    query: str
    title: str
    url: str
    fetched_at: datetime
    headings: List[str] = Field(..., description="First 10 headings of the page.")
    text: str = Field(..., description="Page text, truncated to maxChars.")
    top3_results: List[ResultSummary]
    code_blocks: Optional[List[str]] = None

class ExamplesRefreshRequest(APIModel):
    """
    Schema for the POST /examples/refresh request body.
    """
    max_files: Optional[int] = Field(
        None,
        gt=0,
        description="Maximum number of source files to index. Defaults to the configured limit.",
        examples=[100]
    )
    github_token: Optional[str] = Field(
        None,
        description="Optional GitHub token for higher rate limits."
    )
    delay_ms: Optional[int] = Field(
        None,
        ge=0,
        description="Delay between file requests in milliseconds.",
        examples=[100]
    )

class ExamplesRefreshResponse(APIModel):
    status: str = "success"
    message: str
    total_examples: int
    repos: List[RepoSummary] = []
    last_error: Optional[str] = None
    last_refresh: datetime
    data_dir: str

class ExampleSearchRequest(APIModel):
    """
    Schema for the POST /examples/search request body.
    """
    query: str = Field(
        ...,
        min_length=1,
        description="Search terms, e.g. a control or class name.",
        examples=["BootstrapGridView"]
    )
    language: Optional[str] = Field(
        None,
        description="Only return examples with this language tag (csharp, aspx, ascx).",
        examples=["csharp"]
    )
    max_results: int = Field(5, gt=0, le=50, description="Maximum number of examples to return.")

class ExampleSummary(APIModel):
    id: str
    type: str
    title: str
    repo_name: str
    repo_url: str
    file_path: str
    file_url: str
    language: str
    score: float
    description: str
    content_preview: str
    related_classes: List[str] = []
    related_methods: List[str] = []

class ExampleSearchResponse(APIModel):
    status: str = "success"
    query: str
    total_matches: int = Field(..., description="Matches after the language filter, before maxResults.")
    results: List[ExampleSummary]

class DocsStatus(APIModel):
    status: str = Field(..., description="'ok' or 'no_index'.")
    message: Optional[str] = None
    indexed_count: int = 0
    visited_count: Optional[int] = None
    failure_count: Optional[int] = None
    last_refresh: Optional[datetime] = None
    start_url: Optional[str] = None
    max_pages: Optional[int] = None
    delay_ms: Optional[int] = None
    stop_reason: Optional[str] = None

class ExamplesStatus(APIModel):
    status: str = Field(..., description="'ok' or 'no_index'.")
    message: Optional[str] = None
    total_examples: int = 0
    last_refresh: Optional[datetime] = None
    last_error: Optional[str] = None
    repos: List[RepoSummary] = []

class StatusResponse(APIModel):
    """
    Schema for the GET /status response body.
    """
    data_dir: str
    docs: DocsStatus
    examples: ExamplesStatus

class ErrorResponse(APIModel):
    """
    Payload for every failed or empty operation.
    """
    status: str = Field(..., description="Machine-readable status, e.g. 'no_index' or 'scope_violation'.")
    message: str = Field(..., description="Human-readable explanation.")
    is_error: bool = Field(True, description="False for expected empty states such as no_index and no_results.")
    query: Optional[str] = None

class HealthCheckResponse(APIModel):
    """
    Schema for the GET /health response body.
    """
    status: str = Field("ok", description="Status of the API service.")
    timestamp: datetime = Field(..., description="Current server time.")
    version: str = Field(..., description="Application version.")
