"""
API routers initialization
"""
from .health import router as health_router
from .status import router as status_router
from .docs import router as docs_router
from .examples import router as examples_router

__all__ = ["health_router", "status_router", "docs_router", "examples_router"]
