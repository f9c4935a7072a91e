from fastapi import APIRouter
from docsearch.models.schemas import HealthCheckResponse
from docsearch.models.document import utc_now
from docsearch.config import settings

router = APIRouter()

@router.get("/health", response_model=HealthCheckResponse, summary="Perform a health check")
async def health_check():
    """
    Performs a health check on the API service.
    Returns:
        HealthCheckResponse: The current status of the service.
    """
    return HealthCheckResponse(
        status="ok",
        timestamp=utc_now(),
        version=settings.APP_VERSION
    )
