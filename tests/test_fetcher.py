import pytest
import httpx
from unittest.mock import AsyncMock, MagicMock, patch
from docsearch.core.errors import FetchError, FetchErrorKind
from docsearch.core.fetcher import PageFetcher

def make_fetcher(handler):
    """Builds a PageFetcher whose client answers through ``handler``."""
    client = httpx.AsyncClient(transport=httpx.MockTransport(handler), follow_redirects=True)
    return PageFetcher("test-agent", client=client)

@pytest.mark.asyncio
async def test_fetch_success():
    """Test a 200 response is returned as a RawPage."""
    fetcher = make_fetcher(lambda request: httpx.Response(200, text="<html>Hello</html>"))
    async with fetcher:
        page = await fetcher.fetch("https://docs.example.com/Product/page1")
    assert page.status_code == 200
    assert page.html == "<html>Hello</html>"
    assert page.url == "https://docs.example.com/Product/page1"

@pytest.mark.asyncio
async def test_fetch_http_status_error():
    """Test non-2xx responses raise an HTTP_STATUS FetchError."""
    fetcher = make_fetcher(lambda request: httpx.Response(404, text="missing"))
    with pytest.raises(FetchError) as exc_info:
        await fetcher.fetch("https://docs.example.com/Product/missing")
    assert exc_info.value.kind == FetchErrorKind.HTTP_STATUS
    assert exc_info.value.status_code == 404
    await fetcher.close()

@pytest.mark.asyncio
async def test_fetch_transport_error():
    """Test network failures raise a TRANSPORT FetchError."""
    def handler(request):
        raise httpx.ConnectError("connection refused", request=request)

    fetcher = make_fetcher(handler)
    with pytest.raises(FetchError) as exc_info:
        await fetcher.fetch("https://docs.example.com/Product/page1")
    assert exc_info.value.kind == FetchErrorKind.TRANSPORT
    assert exc_info.value.status_code is None
    assert "connection refused" in exc_info.value.message
    await fetcher.close()

@pytest.mark.asyncio
async def test_fetch_timeout_is_transport_error():
    def handler(request):
        raise httpx.ReadTimeout("timed out", request=request)

    fetcher = make_fetcher(handler)
    with pytest.raises(FetchError) as exc_info:
        await fetcher.fetch("https://docs.example.com/Product/slow")
    assert exc_info.value.kind == FetchErrorKind.TRANSPORT
    await fetcher.close()

@pytest.mark.asyncio
async def test_fetch_follows_redirects():
    def handler(request):
        if request.url.path == "/Product/old":
            return httpx.Response(301, headers={"Location": "https://docs.example.com/Product/new"})
        return httpx.Response(200, text="<html>New</html>")

    fetcher = make_fetcher(handler)
    page = await fetcher.fetch("https://docs.example.com/Product/old")
    assert page.html == "<html>New</html>"
    await fetcher.close()

def test_default_client_sends_identifying_headers():
    """Test the default client is created with User-Agent and Accept headers."""
    with patch('httpx.AsyncClient') as MockAsyncClient:
        PageFetcher("DocSearch-Test/1.0", request_timeout=5)
    kwargs = MockAsyncClient.call_args.kwargs
    assert kwargs["headers"]["User-Agent"] == "DocSearch-Test/1.0"
    assert kwargs["headers"]["Accept"] == "text/html,application/xhtml+xml"
    assert kwargs["timeout"] == 5
    assert kwargs["follow_redirects"] is True

@pytest.mark.asyncio
async def test_fetch_does_not_retry():
    """Test one failing request means exactly one GET."""
    client = MagicMock()
    client.get = AsyncMock(side_effect=httpx.RequestError("boom", request=httpx.Request("GET", "https://docs.example.com")))
    fetcher = PageFetcher("test-agent", client=client)
    with pytest.raises(FetchError):
        await fetcher.fetch("https://docs.example.com/Product/page1")
    assert client.get.call_count == 1
