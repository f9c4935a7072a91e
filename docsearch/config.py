from typing import List, Optional
from pydantic_settings import BaseSettings
from dotenv import load_dotenv

# Load environment variables from .env file
load_dotenv()

class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.
    """
    # App
    APP_NAME: str = "DocSearch"
    APP_VERSION: str = "0.1.0"
    LOG_LEVEL: str = "INFO"
    LOG_PATH: Optional[str] = None
    API_PREFIX: str = "/api"

    # Corpus storage
    DATA_DIR: str = "./data"

    # Documentation crawl
    DOCS_START_URL: str = "https://docs.devexpress.com/AspNetBootstrap/117864/aspnet-bootstrap-controls"
    DOCS_ALLOWED_HOST: str = "docs.devexpress.com"
    DOCS_ALLOWED_PATH_PREFIX: str = "/AspNetBootstrap/"
    DOCS_MAX_PAGES: int = 800
    DOCS_DELAY_MS: int = 200
    BOILERPLATE_SELECTORS: List[str] = [
        ".header", ".footer", ".navigation", ".sidebar", ".dx-header", ".dx-footer"
    ]

    # Crawler
    CRAWLER_USER_AGENT: str = "DocSearch-Crawler/0.1 (Documentation Indexer)"
    CRAWLER_REQUEST_TIMEOUT: float = 30.0
    CRAWLER_MAX_CONSECUTIVE_FAILURES: int = 10
    CRAWLER_CHECKPOINT_INTERVAL: int = 50 # Successful pages between checkpoints

    # GitHub examples
    GITHUB_API_URL: str = "https://api.github.com"
    GITHUB_TOKEN: Optional[str] = None
    GITHUB_MAX_FILES: int = 100
    GITHUB_DELAY_MS: int = 100
    GITHUB_MAX_DEPTH: int = 3

    # Search
    SEARCH_FUZZY: float = 0.2 # Edit distance allowed, as a fraction of the term length
    DEFAULT_MAX_CHARS: int = 15000

    class Config:
        case_sensitive = True

# Instantiate settings
settings = Settings()
