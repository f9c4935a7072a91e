import logging
from fastapi import APIRouter, Depends
from docsearch.dependencies import get_query_service
from docsearch.models.schemas import StatusResponse
from docsearch.services.query_service import QueryService

logger = logging.getLogger(__name__)
router = APIRouter()

@router.get("/status", response_model=StatusResponse, summary="Get the state of both corpora")
async def get_status(query_service: QueryService = Depends(get_query_service)):
    """
    Reports page and example counts plus the metadata of the last refresh of
    each corpus. A corpus that was never built is reported as 'no_index'.
    """
    result = query_service.status()
    logger.info(f"Status: docs={result.docs.status}, examples={result.examples.status}")
    return result
