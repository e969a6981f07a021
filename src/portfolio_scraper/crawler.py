"""Portfolio crawler: frontier-driven, platform-aware traversal of a portfolio site."""

import asyncio
import logging
import random
from collections import deque
from dataclasses import dataclass, field
from typing import Callable, Dict, List, Optional, Set

from portfolio_scraper.config import ScraperConfig
from portfolio_scraper.extractor import ContentExtractor
from portfolio_scraper.infrastructure.browser_session import (
    BrowserConnectionLostError,
    BrowserSession,
)
from portfolio_scraper.models import CrawlResult, CrawlTarget, PageContentRecord, PageState
from portfolio_scraper.navigation import NavigationError, Navigator
from portfolio_scraper.platform_rules import CrawlPolicy, classify
from portfolio_scraper.utils.url_tools import (
    WEB_SCHEMES,
    is_invalid_reference,
    normalize_url,
)

logger = logging.getLogger(__name__)


class InvalidURLError(ValueError):
    """Raised when the crawl root is missing or not an http(s) URL."""


@dataclass
class CrawlState:
    """Mutable state owned by a single crawl invocation."""

    policy: CrawlPolicy
    frontier: deque = field(default_factory=deque)
    visited: Set[str] = field(default_factory=set)
    states: Dict[str, PageState] = field(default_factory=dict)
    records: List[PageContentRecord] = field(default_factory=list)
    pages_fetched: int = 0
    aborted: bool = False
    error: Optional[str] = None

    def mark(self, url: str, state: PageState) -> None:
        self.states[url] = state


def validate_root_url(url) -> str:
    """Check and normalize the crawl root before any browser is launched.

    Raises:
        InvalidURLError: For missing, blank, or non-http(s) URLs
    """
    if not isinstance(url, str) or not url.strip():
        raise InvalidURLError("Missing URL")
    normalized = normalize_url(url.strip())
    if normalized is None:
        raise InvalidURLError(f"Invalid URL (expected http or https): {url!r}")
    return normalized


class PortfolioCrawler:
    """Crawls a portfolio site one page at a time.

    Discovered links pass through the root's platform policy before entering
    the frontier. Traversal is depth-first by default (each link's subtree is
    finished before its next sibling) and breadth-first when configured.

    Per-page failures skip the page; losing the browser aborts the crawl and
    the pages already collected are returned.
    """

    def __init__(
        self,
        config: Optional[ScraperConfig] = None,
        session_factory: Callable[[ScraperConfig], BrowserSession] = BrowserSession,
        navigator_factory: Callable[[BrowserSession, ScraperConfig], Navigator] = Navigator,
        extractor: Optional[ContentExtractor] = None,
    ):
        """Initialize the crawler.

        Args:
            config: Crawl settings (defaults to ScraperConfig())
            session_factory: Builds the browser session for each crawl
            navigator_factory: Builds the navigator bound to that session
            extractor: Content extractor shared across crawls
        """
        self.config = config or ScraperConfig()
        self._session_factory = session_factory
        self._navigator_factory = navigator_factory
        self._extractor = extractor or ContentExtractor(self.config)

    async def crawl(self, url: str) -> CrawlResult:
        """Crawl a portfolio starting from ``url``.

        Args:
            url: Root portfolio URL

        Returns:
            CrawlResult with every page that was successfully extracted

        Raises:
            InvalidURLError: If the root URL is missing or invalid
            BrowserLaunchError: If no browser could be started
        """
        root_url = validate_root_url(url)
        classification = classify(root_url)
        state = CrawlState(policy=classification.policy)
        self._schedule(state, CrawlTarget(url=root_url, depth=0))

        logger.info(
            f"Starting crawl from {root_url} "
            f"({classification.policy.platform or 'same-origin'} policy, "
            f"{self.config.traversal_order.replace('_', '-')})"
        )

        async with self._session_factory(self.config) as session:
            navigator = self._navigator_factory(session, self.config)
            await self._run(state, session, navigator)

        result = CrawlResult.from_records(
            state.records,
            self.config.success_min_text_length,
            aborted=state.aborted,
            error=state.error,
        )

        if not result.success:
            logger.warning(
                f"No meaningful content scraped from {root_url}. "
                f"Total pages: {result.total_pages}"
            )
        logger.info(
            f"Crawl complete: {result.total_pages} pages "
            f"({sum(1 for s in state.states.values() if s is PageState.SKIPPED)} skipped)"
            + (" [aborted]" if state.aborted else "")
        )
        return result

    def _schedule(self, state: CrawlState, target: CrawlTarget) -> None:
        state.frontier.append(target)
        state.states.setdefault(target.url, PageState.PENDING)

    def _next_target(self, state: CrawlState) -> CrawlTarget:
        if self.config.traversal_order == "breadth_first":
            return state.frontier.popleft()
        return state.frontier.pop()

    async def _run(self, state: CrawlState, session: BrowserSession, navigator: Navigator) -> None:
        """Drain the frontier until it is empty or the crawl is aborted."""
        while state.frontier:
            target = self._next_target(state)

            if target.url in state.visited:
                continue

            # Not marked visited: the same URL may still be reached at a shallower depth
            if not state.policy.depth_allowed(target.depth):
                logger.debug(f"Skipping {target.url}: depth {target.depth} exceeds {state.policy.max_depth}")
                state.mark(target.url, PageState.SKIPPED)
                continue
            state.visited.add(target.url)

            if self.config.max_pages is not None and state.pages_fetched >= self.config.max_pages:
                logger.info(f"Reached max pages ({self.config.max_pages}), stopping")
                break

            if state.pages_fetched > 0:
                await self._polite_delay()

            state.mark(target.url, PageState.IN_FLIGHT)
            state.pages_fetched += 1

            try:
                record = await self._fetch(target, session, navigator)
            except BrowserConnectionLostError as e:
                self._abort(state, target, e)
                break
            except NavigationError as e:
                # A dying browser can surface as plain timeouts
                if not session.is_connected():
                    self._abort(state, target, e)
                    break
                logger.warning(f"Failed to crawl {target.url}: {e.message}")
                state.mark(target.url, PageState.SKIPPED)
                continue
            except Exception as e:
                if not session.is_connected():
                    self._abort(state, target, e)
                    break
                logger.warning(f"Failed to crawl {target.url}: {e}")
                state.mark(target.url, PageState.SKIPPED)
                continue

            state.records.append(record)
            state.mark(target.url, PageState.COMPLETED)

            children = self._discover(state, record, target.depth + 1)
            # Reversed onto the stack so the first link on the page is crawled first
            if self.config.traversal_order == "depth_first":
                children.reverse()
            for child in children:
                self._schedule(state, child)

    async def _fetch(
        self,
        target: CrawlTarget,
        session: BrowserSession,
        navigator: Navigator,
    ) -> PageContentRecord:
        page = await session.get_valid_page()
        page = await navigator.navigate(page, target.url)
        return await self._extractor.extract(page, target.url)

    def _abort(self, state: CrawlState, target: CrawlTarget, error: Exception) -> None:
        logger.error(
            f"Browser connection lost while crawling {target.url}; "
            f"returning {len(state.records)} pages collected so far"
        )
        state.mark(target.url, PageState.ABORTED)
        state.aborted = True
        state.error = str(error) or type(error).__name__

    def _discover(self, state: CrawlState, record: PageContentRecord, depth: int) -> List[CrawlTarget]:
        """Filter a page's links into new crawl targets."""
        discovered: List[CrawlTarget] = []
        queued: Set[str] = set()

        for link in record.links:
            href = link.href
            if is_invalid_reference(href):
                continue
            lowered = href.lower()
            if "undefined" in lowered or "null" in lowered:
                continue
            if not lowered.startswith(WEB_SCHEMES):
                continue

            normalized = normalize_url(href)
            if normalized is None or normalized in state.visited or normalized in queued:
                continue
            if not state.policy.allows(normalized):
                continue

            queued.add(normalized)
            discovered.append(CrawlTarget(url=normalized, depth=depth))

        return discovered

    async def _polite_delay(self) -> None:
        low = self.config.inter_page_delay_min
        high = max(low, self.config.inter_page_delay_max)
        delay = random.uniform(low, high)
        if delay > 0:
            await asyncio.sleep(delay)


async def scrape_website(url: str, config: Optional[ScraperConfig] = None) -> CrawlResult:
    """Crawl a portfolio URL and return its content snapshot.

    Args:
        url: Portfolio URL (http or https)
        config: Optional crawl settings

    Returns:
        CrawlResult for the caller to evaluate
    """
    crawler = PortfolioCrawler(config=config)
    return await crawler.crawl(url)
