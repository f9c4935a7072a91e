import json
import pytest
from docsearch.models.document import GitHubExample, GitHubMeta, IndexedPage, IndexMeta, RepoSummary
from docsearch.services.corpus_store import docs_store, examples_store

@pytest.fixture
def pages():
    """Provides two documentation pages."""
    return [
        IndexedPage(id="a1", url="https://docs.example.com/Product/a", title="A", headings=["H"], text="alpha", code_blocks=["x = 1"]),
        IndexedPage(id="b2", url="https://docs.example.com/Product/b", title="B", text="beta"),
    ]

@pytest.fixture
def meta():
    return IndexMeta(
        start_url="https://docs.example.com/Product/a",
        max_pages=10,
        delay_ms=0,
        indexed_count=2,
        visited_count=3,
        failure_count=1,
        allowed_host="docs.example.com",
        allowed_path_prefix="/Product/",
        stop_reason="frontier_exhausted",
    )

def test_save_creates_directory_and_writes_camel_case_json(tmp_path, pages, meta):
    data_dir = tmp_path / "nested" / "data"
    store = docs_store(str(data_dir))

    store.save(pages, meta)

    raw_pages = json.loads((data_dir / "pages.json").read_text(encoding="utf-8"))
    raw_meta = json.loads((data_dir / "meta.json").read_text(encoding="utf-8"))
    assert raw_pages[0]["codeBlocks"] == ["x = 1"]
    assert "fetchedAt" in raw_pages[0]
    assert raw_meta["startUrl"] == "https://docs.example.com/Product/a"
    assert raw_meta["allowedPathPrefix"] == "/Product/"
    # Pretty-printed
    assert (data_dir / "pages.json").read_text(encoding="utf-8").startswith("[\n  {")

def test_load_returns_saved_records(tmp_path, pages, meta):
    store = docs_store(str(tmp_path))
    store.save(pages, meta)

    loaded_pages, loaded_meta = store.load()

    assert [page.url for page in loaded_pages] == [page.url for page in pages]
    assert loaded_pages[0].code_blocks == ["x = 1"]
    assert loaded_meta.failure_count == 1
    assert loaded_meta.stop_reason == "frontier_exhausted"

def test_load_missing_files(tmp_path):
    pages, meta = docs_store(str(tmp_path / "does-not-exist")).load()
    assert pages == []
    assert meta is None

def test_load_malformed_json_is_treated_as_empty(tmp_path, meta):
    (tmp_path / "pages.json").write_text('[{"id": "a1", "url": ', encoding="utf-8")
    (tmp_path / "meta.json").write_text(json.dumps(meta.to_json()), encoding="utf-8")

    pages, loaded_meta = docs_store(str(tmp_path)).load()

    assert pages == []
    assert loaded_meta is not None

def test_load_schema_mismatch_is_treated_as_empty(tmp_path):
    (tmp_path / "pages.json").write_text(json.dumps({"not": "a list"}), encoding="utf-8")
    (tmp_path / "meta.json").write_text(json.dumps({"startUrl": 5}), encoding="utf-8")

    pages, meta = docs_store(str(tmp_path)).load()

    assert pages == []
    assert meta is None

def test_load_accepts_records_without_optional_fields(tmp_path):
    """Test files written without stopReason still load."""
    (tmp_path / "pages.json").write_text(json.dumps([
        {"id": "x", "url": "https://docs.example.com/Product/x", "title": "X", "headings": [],
         "text": "", "codeBlocks": [], "fetchedAt": "2024-01-01T00:00:00.000Z"}
    ]), encoding="utf-8")
    pages, meta = docs_store(str(tmp_path)).load()
    assert pages[0].title == "X"
    assert meta is None

def test_examples_store_round_trip(tmp_path):
    store = examples_store(str(tmp_path))
    example = GitHubExample(
        id="repo:src/Grid.cs",
        title="Grid",
        file_path="src/Grid.cs",
        repo_name="repo",
        repo_url="https://github.com/owner/repo",
        file_url="https://github.com/owner/repo/blob/HEAD/src/Grid.cs",
        language="csharp",
        content="public class Grid {}",
        related_classes=["Grid"],
    )
    github_meta = GitHubMeta(total_examples=1, repos=[RepoSummary(name="owner/repo", url="https://github.com/owner/repo", files_indexed=1)])

    store.save([example], github_meta)

    assert (tmp_path / "github-examples.json").exists()
    raw_meta = json.loads((tmp_path / "github-meta.json").read_text(encoding="utf-8"))
    assert raw_meta["repos"][0]["filesIndexed"] == 1
    examples, loaded_meta = store.load()
    assert examples[0].related_classes == ["Grid"]
    assert loaded_meta.total_examples == 1
