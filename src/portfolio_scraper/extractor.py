"""
Content extraction for crawled pages.

Visible text is read from the live, rendered DOM (better for SPAs); links,
images and asset URLs are parsed from the static HTML snapshot of the
rendered page with BeautifulSoup.
"""
import logging
from typing import Iterable, List, Optional

from bs4 import BeautifulSoup
from playwright.async_api import Page

from portfolio_scraper.config import ScraperConfig
from portfolio_scraper.constants import (
    DEFAULT_LINK_TARGET,
    MAX_TEXT_ITEMS_PER_PAGE,
    MIN_TEXT_LENGTH,
    NON_CONTENT_TAGS,
)
from portfolio_scraper.models import ImageRecord, LinkRecord, PageContentRecord, TextItem
from portfolio_scraper.utils.url_tools import is_invalid_reference, resolve_url

logger = logging.getLogger(__name__)


# Collects every element under <body> in document order with its own and
# its parent's whitespace-collapsed rendered text. <body> counts as a parent,
# so a page-wide wrapper (<main>, an SPA root) is dropped in favour of its
# children.
COLLECT_TEXT_SCRIPT = """
() => {
    const clean = (el) => ((el && (el.innerText || el.textContent)) || "").trim().replace(/\\s+/g, " ");
    const items = [];
    document.querySelectorAll("body *").forEach((el) => {
        items.push({
            tag: el.tagName.toLowerCase(),
            text: clean(el),
            parentText: el.parentElement ? clean(el.parentElement) : null,
        });
    });
    return items;
}
"""


def _collapse_whitespace(text: str) -> str:
    return " ".join(text.split())


def filter_visible_texts(
    raw_items: Iterable[dict],
    max_items: int = MAX_TEXT_ITEMS_PER_PAGE,
    min_length: int = MIN_TEXT_LENGTH,
) -> List[TextItem]:
    """Reduce raw per-element text into deduplicated content items.

    Args:
        raw_items: Dicts with ``tag``, ``text`` and ``parentText`` in document order
        max_items: Cap on retained items
        min_length: Minimum characters for a text to count

    Returns:
        TextItems in document order, without duplicates, and without children
        whose text is identical to their parent's
    """
    texts: List[TextItem] = []
    seen = set()

    for item in raw_items or []:
        tag = (item.get("tag") or "").lower()
        text = _collapse_whitespace(item.get("text") or "")

        if tag in NON_CONTENT_TAGS or len(text) < min_length:
            continue
        if text in seen:
            continue

        parent_text = item.get("parentText")
        if parent_text is not None and _collapse_whitespace(parent_text) == text:
            continue

        texts.append(TextItem(tag=tag, text=text))
        seen.add(text)
        if len(texts) >= max_items:
            break

    return texts


def _link_text(anchor) -> str:
    text = _collapse_whitespace(anchor.get_text(" ", strip=True))
    if text:
        return text
    text = anchor.get("title") or anchor.get("aria-label") or ""
    if not text:
        image = anchor.find("img")
        if image is not None:
            text = image.get("alt") or ""
    return _collapse_whitespace(text)


def parse_links(soup: BeautifulSoup, base_url: str) -> List[LinkRecord]:
    """Harvest anchors with absolute hrefs, text fallbacks and target values."""
    links: List[LinkRecord] = []
    for anchor in soup.find_all("a"):
        href = anchor.get("href")
        if is_invalid_reference(href):
            continue
        absolute = resolve_url(base_url, href)
        if absolute is None:
            continue
        target = anchor.get("target") or DEFAULT_LINK_TARGET
        links.append(LinkRecord(
            href=absolute,
            text=_link_text(anchor) or href.strip(),
            target=target,
        ))
    return links


def parse_images(soup: BeautifulSoup, base_url: str) -> List[ImageRecord]:
    images: List[ImageRecord] = []
    for image in soup.find_all("img"):
        src = resolve_url(base_url, image.get("src"))
        if src is None:
            continue
        images.append(ImageRecord(src=src, alt=image.get("alt") or ""))
    return images


def parse_stylesheets(soup: BeautifulSoup, base_url: str) -> List[str]:
    urls = (resolve_url(base_url, link.get("href")) for link in soup.find_all("link", rel="stylesheet"))
    return [url for url in urls if url]


def parse_scripts(soup: BeautifulSoup, base_url: str) -> List[str]:
    urls = (resolve_url(base_url, script.get("src")) for script in soup.find_all("script", src=True))
    return [url for url in urls if url]


def build_record(
    url: str,
    html: str,
    raw_texts: Optional[Iterable[dict]] = None,
    max_text_items: int = MAX_TEXT_ITEMS_PER_PAGE,
    min_text_length: int = MIN_TEXT_LENGTH,
) -> PageContentRecord:
    """Assemble a PageContentRecord from rendered text items and an HTML snapshot."""
    soup = BeautifulSoup(html or "", "html.parser")
    return PageContentRecord(
        url=url,
        texts=tuple(filter_visible_texts(raw_texts or [], max_text_items, min_text_length)),
        links=tuple(parse_links(soup, url)),
        images=tuple(parse_images(soup, url)),
        stylesheets=tuple(parse_stylesheets(soup, url)),
        scripts=tuple(parse_scripts(soup, url)),
    )


class ContentExtractor:
    """Pulls a PageContentRecord out of a loaded page."""

    def __init__(self, config: Optional[ScraperConfig] = None):
        self._config = config or ScraperConfig()

    async def extract(self, page: Page, current_url: str) -> PageContentRecord:
        """Extract text, links, images and asset URLs from a loaded page.

        Args:
            page: Playwright page that has finished navigating to current_url
            current_url: URL the page was crawled as; base for relative references

        Returns:
            PageContentRecord for the page
        """
        raw_texts = await page.evaluate(COLLECT_TEXT_SCRIPT)
        html = await page.content()

        record = build_record(
            current_url,
            html,
            raw_texts,
            max_text_items=self._config.max_text_items,
            min_text_length=self._config.min_text_length,
        )

        logger.info(
            f"Scraped {current_url}: {len(record.texts)} text elements, "
            f"{len(record.links)} links, {len(record.images)} images"
        )
        return record
