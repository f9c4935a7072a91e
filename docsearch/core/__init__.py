"""
Core pipeline components
"""
from .scope import ScopeFilter
from .fetcher import PageFetcher
from .extractor import ContentExtractor
from .crawler import CrawlEngine
from .repo_walker import GitHubClient, RepositoryFileWalker
from .search_index import SearchIndex

__all__ = [
    "ScopeFilter",
    "PageFetcher",
    "ContentExtractor",
    "CrawlEngine",
    "GitHubClient",
    "RepositoryFileWalker",
    "SearchIndex",
]
