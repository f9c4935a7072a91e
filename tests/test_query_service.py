import pytest
from docsearch.core.errors import InternalInconsistency, NoIndex, NoResults, ScopeViolation
from docsearch.core.scope import ScopeFilter
from docsearch.core.search_index import DOCS_BOOSTS, DOCS_FIELDS, EXAMPLE_BOOSTS, EXAMPLE_FIELDS, SearchIndex
from docsearch.models.document import GitHubExample, GitHubMeta, IndexedPage, IndexMeta, RepoSummary
from docsearch.services.corpus_state import CorpusState, StateHolder
from docsearch.services.query_service import QueryService, truncate_text

BASE = "https://docs.example.com/Product"

def make_page(page_id, title, text="", headings=None, code_blocks=None, url=None):
    return IndexedPage(
        id=page_id,
        url=url or f"{BASE}/{page_id}",
        title=title,
        headings=headings or [],
        text=text,
        code_blocks=code_blocks or [],
    )

def make_example(example_id, title, language="csharp", content="public class Sample { }"):
    return GitHubExample(
        id=example_id,
        title=title,
        file_path=f"{example_id}.cs",
        repo_name="repo",
        repo_url="https://github.com/owner/repo",
        file_url=f"https://github.com/owner/repo/blob/HEAD/{example_id}",
        language=language,
        content=content,
        content_preview=content[:500],
        description=f"{title} sample",
    )

def docs_state(pages, meta=None):
    return CorpusState.build(pages, meta, DOCS_FIELDS, DOCS_BOOSTS)

def examples_state(examples, meta=None):
    return CorpusState.build(examples, meta, EXAMPLE_FIELDS, EXAMPLE_BOOSTS)

@pytest.fixture
def scope():
    return ScopeFilter("docs.example.com", "/Product/")

@pytest.fixture
def holders():
    return StateHolder("docs"), StateHolder("examples")

@pytest.fixture
def service(holders, scope):
    docs_holder, examples_holder = holders
    return QueryService(docs_holder, examples_holder, scope)

@pytest.fixture
def grid_pages():
    return [
        make_page(
            "grid",
            "Grid View",
            text="The grid view control displays data. " * 10,
            headings=[f"Heading {i}" for i in range(15)],
            code_blocks=[f"grid.Block{i}();" for i in range(8)],
        ),
        make_page("charts", "Charts", text="Charts can draw a grid."),
        make_page("editors", "Editors", text="Editors sit next to the grid."),
        make_page("layout", "Layout", text="A layout may hold a grid."),
    ]

def test_truncate_text():
    assert truncate_text("short", 10) == "short"
    assert truncate_text("a" * 20, 10) == "a" * 10 + "\n\n[... truncated at 10 characters ...]"

def test_open_top_result_without_index_raises_no_index(service):
    with pytest.raises(NoIndex) as exc_info:
        service.open_top_result("grid")
    assert exc_info.value.is_error is False
    assert exc_info.value.status == "no_index"

def test_open_top_result_without_hits_raises_no_results(service, holders, grid_pages):
    holders[0].swap(docs_state(grid_pages))

    with pytest.raises(NoResults) as exc_info:
        service.open_top_result("kubernetes")

    assert exc_info.value.query == "kubernetes"
    assert exc_info.value.message == 'No results found for query: "kubernetes"'
    assert exc_info.value.is_error is False

def test_open_top_result_returns_full_top_page(service, holders, grid_pages):
    holders[0].swap(docs_state(grid_pages))

    result = service.open_top_result("grid view", max_chars=50)

    assert result.title == "Grid View"
    assert result.url == f"{BASE}/grid"
    assert len(result.headings) == 10
    assert result.text.startswith("The grid view control displays data.")
    assert result.text.endswith("[... truncated at 50 characters ...]")
    assert len(result.code_blocks) == 5
    assert len(result.top3_results) == 3
    assert result.top3_results[0].url == f"{BASE}/grid"
    scores = [summary.score for summary in result.top3_results]
    assert scores == sorted(scores, reverse=True)

def test_open_top_result_without_code(service, holders, grid_pages):
    holders[0].swap(docs_state(grid_pages))

    result = service.open_top_result("grid view", include_code=False)

    assert result.code_blocks is None
    # Default limit leaves short pages untouched
    assert "truncated" not in result.text

def test_open_top_result_page_without_code_blocks(service, holders):
    holders[0].swap(docs_state([make_page("plain", "Plain page", text="nothing to run")]))
    assert service.open_top_result("plain").code_blocks is None

def test_open_top_result_unresolved_hit_raises_internal_inconsistency(service, holders):
    page = make_page("ghost", "Ghost page")
    index = SearchIndex.build([page], DOCS_FIELDS, DOCS_BOOSTS)
    holders[0].swap(CorpusState(records=(page,), index=index, by_id={}))

    with pytest.raises(InternalInconsistency):
        service.open_top_result("ghost")

def test_open_top_result_rejects_out_of_scope_stored_url(service, holders):
    """Test a stored record that points off the allowed host is never served."""
    page = make_page("leak", "Leaked page", url="https://evil.example.com/Product/leak")
    holders[0].swap(docs_state([page]))

    with pytest.raises(ScopeViolation):
        service.open_top_result("leaked")

def test_open_top_result_reads_one_snapshot(service, holders, grid_pages):
    """Test a swap after the call started does not change what it returns."""
    holders[0].swap(docs_state(grid_pages))
    first = service.open_top_result("grid view")

    holders[0].swap(docs_state([make_page("grid2", "Grid View Two", text="grid view")]))
    second = service.open_top_result("grid view")

    assert first.url == f"{BASE}/grid"
    assert second.url == f"{BASE}/grid2"

def test_search_examples_without_index_raises_no_index(service):
    with pytest.raises(NoIndex):
        service.search_examples("grid")

def test_search_examples_filters_by_language(service, holders):
    holders[1].swap(examples_state([
        make_example("a", "Grid binding", language="csharp"),
        make_example("b", "Grid markup", language="aspx"),
        make_example("c", "Grid control", language="ascx"),
    ]))

    result = service.search_examples("grid", language="aspx")

    assert [example.id for example in result.results] == ["b"]
    assert result.total_matches == 1
    assert result.results[0].language == "aspx"

def test_search_examples_caps_results_and_reports_total(service, holders):
    holders[1].swap(examples_state([make_example(f"e{i}", f"Grid sample {i}") for i in range(8)]))

    result = service.search_examples("grid", max_results=3)

    assert len(result.results) == 3
    assert result.total_matches == 8
    assert result.query == "grid"
    assert result.results[0].repo_url == "https://github.com/owner/repo"

def test_search_examples_language_filter_without_matches(service, holders):
    holders[1].swap(examples_state([make_example("a", "Grid binding", language="csharp")]))

    with pytest.raises(NoResults):
        service.search_examples("grid", language="aspx")

def test_search_examples_skips_unresolved_hits(service, holders):
    examples = [make_example("a", "Grid binding"), make_example("b", "Grid paging")]
    index = SearchIndex.build(examples, EXAMPLE_FIELDS, EXAMPLE_BOOSTS)
    holders[1].swap(CorpusState(records=tuple(examples), index=index, by_id={"b": examples[1]}))

    result = service.search_examples("grid")

    assert [example.id for example in result.results] == ["b"]

def test_status_without_corpora(service):
    result = service.status()
    assert result.docs.status == "no_index"
    assert result.docs.message
    assert result.examples.status == "no_index"

def test_status_with_corpora(service, holders, grid_pages):
    meta = IndexMeta(
        start_url=f"{BASE}/grid",
        max_pages=100,
        delay_ms=0,
        indexed_count=4,
        visited_count=6,
        failure_count=2,
        allowed_host="docs.example.com",
        allowed_path_prefix="/Product/",
        stop_reason="frontier_exhausted",
    )
    holders[0].swap(docs_state(grid_pages, meta))
    github_meta = GitHubMeta(
        total_examples=1,
        repos=[RepoSummary(name="owner/repo", url="https://github.com/owner/repo", files_indexed=1)],
    )
    holders[1].swap(examples_state([make_example("a", "Grid binding")], github_meta))

    result = service.status()

    assert result.docs.status == "ok"
    assert result.docs.indexed_count == 4
    assert result.docs.visited_count == 6
    assert result.docs.failure_count == 2
    assert result.docs.stop_reason == "frontier_exhausted"
    assert result.examples.status == "ok"
    assert result.examples.total_examples == 1
    assert result.examples.repos[0].name == "owner/repo"
