import logging
from fastapi import APIRouter, Depends
from docsearch.dependencies import get_query_service, get_refresh_service
from docsearch.models.schemas import (
    DocsRefreshRequest,
    DocsRefreshResponse,
    DocsSearchRequest,
    ErrorResponse,
    TopResultResponse,
)
from docsearch.services.query_service import QueryService
from docsearch.services.refresh_service import RefreshService

logger = logging.getLogger(__name__)
router = APIRouter()

@router.post(
    "/docs/refresh",
    response_model=DocsRefreshResponse,
    responses={400: {"model": ErrorResponse}, 409: {"model": ErrorResponse}},
    summary="Crawl the documentation site and rebuild its index"
)
async def refresh_docs(request: DocsRefreshRequest, refresh_service: RefreshService = Depends(get_refresh_service)):
    """
    Crawls the documentation breadth-first from the start URL, stores the pages
    and swaps in a freshly built search index. Runs to completion before
    responding; queries keep using the previous index meanwhile.
    """
    logger.info(f"Received documentation refresh request: {request.model_dump(exclude_none=True)}")
    return await refresh_service.refresh_docs(
        start_url=request.start_url,
        max_pages=request.max_pages,
        delay_ms=request.delay_ms,
        resume=request.resume,
    )

@router.post(
    "/docs/search",
    response_model=TopResultResponse,
    response_model_exclude_none=True,
    responses={500: {"model": ErrorResponse}},
    summary="Search the documentation and open the best match"
)
async def search_docs(request: DocsSearchRequest, query_service: QueryService = Depends(get_query_service)):
    """
    Returns the full text of the best matching page together with the top 3
    matches. An empty index or an empty result set is reported as a payload
    with isError set to false.
    """
    return query_service.open_top_result(request.query, request.include_code, request.max_chars)
