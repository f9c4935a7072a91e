"""
Service wiring and dependencies for FastAPI endpoints
"""
from docsearch.config import settings
from docsearch.core.scope import ScopeFilter
from docsearch.services.corpus_state import StateHolder
from docsearch.services.corpus_store import docs_store, examples_store
from docsearch.services.query_service import QueryService
from docsearch.services.refresh_service import RefreshService

scope = ScopeFilter(settings.DOCS_ALLOWED_HOST, settings.DOCS_ALLOWED_PATH_PREFIX)

docs_holder = StateHolder("docs")
examples_holder = StateHolder("examples")

refresh_service = RefreshService(
    docs_holder,
    examples_holder,
    docs_store(settings.DATA_DIR),
    examples_store(settings.DATA_DIR),
    scope,
)
query_service = QueryService(docs_holder, examples_holder, scope)


def get_query_service() -> QueryService:
    return query_service


def get_refresh_service() -> RefreshService:
    return refresh_service
