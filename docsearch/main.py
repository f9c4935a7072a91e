import time
import logging
from contextlib import asynccontextmanager # Import for lifespan management
from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse
from docsearch.api.routers import health, status as status_router, docs, examples
from docsearch.config import settings
from docsearch.core.errors import DocSearchError
from docsearch.dependencies import refresh_service
from docsearch.models.schemas import ErrorResponse
from docsearch.utils.logger import setup_logging

# Configure logging
setup_logging()
logger = logging.getLogger(__name__)

@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Context manager for managing the lifespan of the FastAPI application.
    Loads both persisted corpora and builds their search indexes on startup.
    """
    logger.info("Application startup...")
    refresh_service.load_corpora()
    yield # Application runs
    logger.info("Application shutdown...")

# Create FastAPI app instance
app = FastAPI(
    title=settings.APP_NAME,
    version=settings.APP_VERSION,
    description="Crawls a documentation site and code example repositories and serves full-text search over them.",
    lifespan=lifespan # Assign the lifespan manager
)

def error_payload(error: DocSearchError) -> dict:
    return ErrorResponse(
        status=error.status,
        message=error.message,
        is_error=error.is_error,
        query=getattr(error, "query", None),
    ).model_dump(by_alias=True, exclude_none=True)

@app.exception_handler(DocSearchError)
async def docsearch_error_handler(request: Request, exc: DocSearchError):
    """
    Turns every expected failure into a {status, message, isError} payload.
    """
    if exc.is_error:
        logger.warning(f"{request.method} {request.url.path} failed: {exc.status}: {exc.message}")
    else:
        logger.info(f"{request.method} {request.url.path}: {exc.status}")
    return JSONResponse(status_code=exc.http_status, content=error_payload(exc))

@app.exception_handler(Exception)
async def unexpected_error_handler(request: Request, exc: Exception):
    """
    Last resort: the stack trace goes to the log, never to the client.
    """
    logger.error(f"Unhandled error on {request.method} {request.url.path}: {exc}", exc_info=True)
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content=ErrorResponse(
            status="error",
            message=f"Internal server error: {type(exc).__name__}",
        ).model_dump(by_alias=True, exclude_none=True),
    )

# Add a middleware to log requests
@app.middleware("http")
async def log_requests(request: Request, call_next):
    """
    Middleware to log incoming requests and their processing time.
    """
    start_time = time.time()
    logger.info(f"Incoming request: {request.method} {request.url.path}")
    response = await call_next(request)
    process_time = time.time() - start_time
    logger.info(f"Request finished: {request.method} {request.url.path} with status {response.status_code} in {process_time:.4f}s")
    return response

# Include API routers
app.include_router(health.router, prefix=settings.API_PREFIX, tags=["Health"])
app.include_router(status_router.router, prefix=settings.API_PREFIX, tags=["Status"])
app.include_router(docs.router, prefix=settings.API_PREFIX, tags=["Documentation"])
app.include_router(examples.router, prefix=settings.API_PREFIX, tags=["Code Examples"])

@app.get("/", tags=["Root"])
async def read_root():
    """
    Root endpoint providing a welcome message.
    """
    return {"message": f"Welcome to {settings.APP_NAME}!"}
