import re
import logging
from dataclasses import dataclass, field
from typing import List, Optional, Sequence
from urllib.parse import urljoin

from bs4 import BeautifulSoup

from docsearch.core.scope import ScopeFilter
from docsearch.models.document import IndexedPage, page_id_for, utc_now

logger = logging.getLogger(__name__)

# Elements that never carry indexable body text
NON_CONTENT_TAGS = ["script", "style", "nav", "header", "footer", "iframe", "noscript"]

DEFAULT_BOILERPLATE_SELECTORS = [
    ".header", ".footer", ".navigation", ".sidebar", ".dx-header", ".dx-footer"
]


@dataclass
class ExtractedContent:
    title: str = ""
    headings: List[str] = field(default_factory=list)
    text: str = ""
    code_blocks: List[str] = field(default_factory=list)
    links: List[str] = field(default_factory=list)


def collapse_whitespace(text: str) -> str:
    return re.sub(r'\s+', ' ', text).strip()


class ContentExtractor:
    """
    Turns raw documentation HTML into title, headings, body text, code blocks and
    in-scope outbound links.

    Code blocks, headings and links are read from the untouched document. Only
    then are navigation and boilerplate nodes removed to compute the body text,
    since those nodes frequently hold the links the crawl needs.
    """
    def __init__(self, scope: ScopeFilter, boilerplate_selectors: Optional[Sequence[str]] = None):
        self.scope = scope
        self.boilerplate_selectors = list(
            DEFAULT_BOILERPLATE_SELECTORS if boilerplate_selectors is None else boilerplate_selectors
        )

    def extract(self, html: str, base_url: str) -> ExtractedContent:
        soup = BeautifulSoup(html or "", 'html.parser')

        content = ExtractedContent(
            title=self._extract_title(soup),
            headings=self._extract_headings(soup),
            code_blocks=self._extract_code_blocks(soup),
            links=self._extract_links(soup, base_url),
        )

        for element in soup(NON_CONTENT_TAGS):
            element.decompose()
        for selector in self.boilerplate_selectors:
            for element in soup.select(selector):
                element.decompose()

        body = soup.body or soup
        content.text = collapse_whitespace(body.get_text(" "))

        logger.debug(
            f"Extracted {base_url}: {len(content.headings)} headings, "
            f"{len(content.code_blocks)} code blocks, {len(content.links)} links"
        )
        return content

    @staticmethod
    def _extract_title(soup: BeautifulSoup) -> str:
        og_title = soup.find("meta", attrs={"property": "og:title"})
        if og_title and og_title.get("content", "").strip():
            return og_title["content"].strip()
        if soup.title and soup.title.string:
            return soup.title.string.strip()
        if soup.title:
            return soup.title.get_text().strip()
        return ""

    @staticmethod
    def _extract_headings(soup: BeautifulSoup) -> List[str]:
        headings = []
        for heading in soup.find_all(["h1", "h2", "h3"]):
            text = heading.get_text().strip()
            if text:
                headings.append(text)
        return headings

    @staticmethod
    def _extract_code_blocks(soup: BeautifulSoup) -> List[str]:
        blocks = []
        for pre in soup.find_all("pre"):
            code = pre.get_text().strip()
            if code:
                blocks.append(code)
        return blocks

    def _extract_links(self, soup: BeautifulSoup, base_url: str) -> List[str]:
        """Resolves every href against ``base_url`` and keeps the in-scope ones, first occurrence only."""
        links = []
        seen = set()
        for a_tag in soup.find_all('a', href=True):
            try:
                full_url = urljoin(base_url, a_tag['href'].strip())
            except ValueError:
                logger.debug(f"Skipping unparsable link {a_tag['href']!r} on {base_url}")
                continue

            normalized = self.scope.normalize(full_url)
            if normalized in seen or not self.scope.is_allowed(normalized):
                continue
            seen.add(normalized)
            links.append(normalized)
        return links


def build_page(content: ExtractedContent, url: str) -> IndexedPage:
    """Creates the stored record for a successfully fetched page."""
    return IndexedPage(
        id=page_id_for(url),
        url=url,
        title=content.title,
        headings=content.headings,
        text=content.text,
        code_blocks=content.code_blocks,
        fetched_at=utc_now(),
    )
