"""Command line interface for DocSearch."""

import asyncio
import logging
from enum import Enum
from typing import Optional

import typer
import uvicorn
from rich.console import Console
from rich.table import Table

from docsearch.config import settings
from docsearch.core.errors import DocSearchError
from docsearch.dependencies import refresh_service
from docsearch.utils.logger import setup_logging

logger = logging.getLogger(__name__)

console = Console()
app = typer.Typer(help="DocSearch - crawl documentation and code examples, then search them")


class CrawlType(str, Enum):
    docs = "docs"
    github = "github"
    all = "all"


def _setup_logging(verbose: bool) -> None:
    setup_logging(level="DEBUG" if verbose else settings.LOG_LEVEL)


async def _run_crawl(
    crawl_type: CrawlType,
    max_items: Optional[int],
    delay: Optional[int],
    url: Optional[str],
    resume: bool,
    github_token: Optional[str],
):
    summaries = []
    if crawl_type in (CrawlType.docs, CrawlType.all):
        result = await refresh_service.refresh_docs(start_url=url, max_pages=max_items, delay_ms=delay, resume=resume)
        summaries.append(("Documentation pages", result.indexed_count, f"visited {result.visited_count}, failures {result.failure_count}, stopped: {result.stop_reason}"))
    if crawl_type in (CrawlType.github, CrawlType.all):
        result = await refresh_service.refresh_examples(max_files=max_items, github_token=github_token, delay_ms=delay)
        detail = f"{len(result.repos)} repositories"
        if result.last_error:
            detail += f", last error: {result.last_error}"
        summaries.append(("Code examples", result.total_examples, detail))
    return summaries


@app.command()
def crawl(
    crawl_type: CrawlType = typer.Option(CrawlType.docs, "--type", help="What to crawl"),
    max_items: Optional[int] = typer.Option(None, "--max", min=1, help="Maximum pages (docs) or files (github)"),
    delay: Optional[int] = typer.Option(None, "--delay", min=0, help="Delay between requests in milliseconds"),
    url: Optional[str] = typer.Option(None, "--url", help="Documentation start URL"),
    resume: bool = typer.Option(False, "--continue", help="Keep stored pages and append newly crawled ones"),
    github_token: Optional[str] = typer.Option(None, "--github-token", help="GitHub token for higher rate limits"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Verbose logging"),
) -> None:
    """Crawl the documentation site and/or the example repositories and store the results."""
    _setup_logging(verbose)
    console.print(f"Crawling [bold]{crawl_type.value}[/bold] into [bold]{settings.DATA_DIR}[/bold]...")

    try:
        summaries = asyncio.run(_run_crawl(crawl_type, max_items, delay, url, resume, github_token))
    except DocSearchError as e:
        console.print(f"[red]Error:[/red] {e.message}")
        raise typer.Exit(code=1)
    except Exception as e:
        logger.error(f"Crawl failed: {e}", exc_info=True)
        console.print(f"[red]Fatal error:[/red] {e}")
        raise typer.Exit(code=1)

    table = Table(show_header=True, header_style="bold magenta")
    table.add_column("Corpus")
    table.add_column("Indexed")
    table.add_column("Details")
    for name, count, detail in summaries:
        table.add_row(name, str(count), detail)
    console.print(table)


@app.command()
def serve(
    host: str = typer.Option("127.0.0.1", help="Host interface"),
    port: int = typer.Option(8000, help="Server port"),
) -> None:
    """Start the HTTP API."""
    console.print(f"Starting DocSearch API on http://{host}:{port}{settings.API_PREFIX}")
    uvicorn.run("docsearch.main:app", host=host, port=port, reload=False, log_level="info")


if __name__ == "__main__":
    app()
