import pytest
from docsearch.core.errors import ScopeViolation
from docsearch.core.scope import ScopeFilter

@pytest.fixture
def scope():
    """Provides a ScopeFilter for docs.example.com/Product/."""
    return ScopeFilter("docs.example.com", "/Product/")

@pytest.mark.parametrize("url, expected", [
    ("https://docs.example.com/Product/page1#intro", "https://docs.example.com/Product/page1"),
    ("https://docs.example.com/Product/page1?x=1&y=2", "https://docs.example.com/Product/page1"),
    ("https://docs.example.com/Product/", "https://docs.example.com/Product"),
    ("https://docs.example.com/", "https://docs.example.com/"),
    ("https://docs.example.com", "https://docs.example.com/"),
    ("HTTPS://Docs.Example.com/Product/Page", "https://docs.example.com/Product/Page"),
])
def test_normalize(scope, url, expected):
    """Test fragment, query and trailing slash removal."""
    assert scope.normalize(url) == expected

@pytest.mark.parametrize("url", [
    "not a url",
    "/Product/relative",
    "",
    "http://[::1",
])
def test_normalize_returns_malformed_input_unchanged(scope, url):
    assert scope.normalize(url) == url

@pytest.mark.parametrize("url", [
    "https://docs.example.com/Product/page1#a",
    "https://docs.example.com/Product/a//",
    "https://docs.example.com/?q=1",
    "http://[::1",
    "garbage",
    "https://docs.example.com/Product/page?x=1#frag",
])
def test_normalize_is_idempotent(scope, url):
    once = scope.normalize(url)
    assert scope.normalize(once) == once

def test_is_allowed(scope):
    """Test host and path prefix checks."""
    assert scope.is_allowed("https://docs.example.com/Product/page1")
    assert scope.is_allowed("http://DOCS.example.com/Product/page1")
    assert not scope.is_allowed("https://docs.example.com/Other/page3")
    assert not scope.is_allowed("https://other.example.com/Product/page4")
    assert not scope.is_allowed("https://docs.example.com.evil.com/Product/page")
    assert not scope.is_allowed("ftp://docs.example.com/Product/file")
    assert not scope.is_allowed("not a url")
    assert not scope.is_allowed("http://[::1")

@pytest.mark.parametrize("url", [
    "https://docs.example.com/Product/page1/",
    "https://docs.example.com/Product/page1?tab=2",
    "https://docs.example.com/Product/deep/page#section",
    "https://docs.example.com/Product/",
])
def test_allowed_urls_stay_allowed_after_normalize(scope, url):
    assert scope.is_allowed(url)
    assert scope.is_allowed(scope.normalize(url))

def test_require_allowed_returns_normalized_url(scope):
    assert scope.require_allowed("https://docs.example.com/Product/page1/#top") == "https://docs.example.com/Product/page1"

def test_require_allowed_rejects_other_host(scope):
    with pytest.raises(ScopeViolation) as exc_info:
        scope.require_allowed("https://evil.example.com/Product/page1")
    assert exc_info.value.status == "scope_violation"
    assert exc_info.value.http_status == 400
    assert "docs.example.com" in exc_info.value.message
