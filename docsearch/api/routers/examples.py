import logging
from fastapi import APIRouter, Depends
from docsearch.dependencies import get_query_service, get_refresh_service
from docsearch.models.schemas import (
    ErrorResponse,
    ExampleSearchRequest,
    ExampleSearchResponse,
    ExamplesRefreshRequest,
    ExamplesRefreshResponse,
)
from docsearch.services.query_service import QueryService
from docsearch.services.refresh_service import RefreshService

logger = logging.getLogger(__name__)
router = APIRouter()

@router.post(
    "/examples/refresh",
    response_model=ExamplesRefreshResponse,
    responses={409: {"model": ErrorResponse}},
    summary="Walk the example repositories and rebuild their index"
)
async def refresh_examples(request: ExamplesRefreshRequest, refresh_service: RefreshService = Depends(get_refresh_service)):
    # The token is never logged
    logger.info(f"Received code example refresh request (max_files: {request.max_files}, delay_ms: {request.delay_ms})")
    return await refresh_service.refresh_examples(
        max_files=request.max_files,
        github_token=request.github_token,
        delay_ms=request.delay_ms,
    )

@router.post(
    "/examples/search",
    response_model=ExampleSearchResponse,
    summary="Search indexed code examples"
)
async def search_examples(request: ExampleSearchRequest, query_service: QueryService = Depends(get_query_service)):
    """
    Returns up to maxResults matching code files, optionally restricted to one
    language tag.
    """
    return query_service.search_examples(request.query, request.language, request.max_results)
