"""
Navigation engine.

Loads a URL with an escalating list of wait conditions and then waits for
single-page-application content to materialize before extraction.
"""
import logging
from typing import Optional

from playwright.async_api import Page
from playwright.async_api import Error as PlaywrightError

from portfolio_scraper.config import ScraperConfig
from portfolio_scraper.constants import FRAME_ERROR_MARKERS
from portfolio_scraper.infrastructure.browser_session import (
    BrowserConnectionLostError,
    BrowserSession,
)
from portfolio_scraper.infrastructure.retry import RetryPolicy
from portfolio_scraper.utils.challenge_handler import wait_for_challenge_resolution

logger = logging.getLogger(__name__)


class NavigationError(Exception):
    """Raised when every wait strategy failed to load a URL."""

    def __init__(self, message: str, url: str, attempts: Optional[list] = None):
        self.message = message
        self.url = url
        self.attempts = attempts or []
        super().__init__(message)


def is_frame_error(error: BaseException) -> bool:
    """Classify errors caused by the rendering context disappearing mid-operation."""
    message = str(error).lower()
    return any(marker in message for marker in FRAME_ERROR_MARKERS)


class Navigator:
    """
    Loads pages for the crawl orchestrator.

    Each navigation walks the configured wait strategies from least to most
    strict and stops at the first that succeeds. Frame/connection failures
    trigger a connectivity check and a fresh page before escalating.
    """

    def __init__(
        self,
        session: BrowserSession,
        config: ScraperConfig,
        retry_policy: Optional[RetryPolicy] = None,
    ):
        self._session = session
        self._config = config
        self._retry_policy = retry_policy or RetryPolicy(
            max_attempts=len(config.wait_strategies),
            initial_delay=config.initial_backoff,
            max_delay=config.max_backoff,
            retryable=lambda error: not isinstance(error, BrowserConnectionLostError),
        )

    async def navigate(self, page: Page, url: str) -> Page:
        """Navigate to ``url`` and wait for its content.

        Args:
            page: Current page handle
            url: Absolute URL to load

        Returns:
            The page handle that loaded the URL; differs from ``page`` when the
            original handle had to be replaced after a frame error

        Raises:
            BrowserConnectionLostError: If the browser process disconnected
            NavigationError: If every wait strategy failed
        """
        attempts = []

        for index, strategy in enumerate(self._config.wait_strategies):
            try:
                await page.goto(url, wait_until=strategy.wait_until, timeout=strategy.timeout)
                logger.debug(f"Loaded {url} (wait_until={strategy.wait_until})")
                break
            except PlaywrightError as e:
                attempts.append(f"{strategy.wait_until}: {e}")

                if not is_frame_error(e):
                    logger.warning(
                        f"Navigation to {url} failed with wait_until={strategy.wait_until}: {e}"
                    )
                    continue

                if not self._session.is_connected():
                    raise BrowserConnectionLostError(
                        f"Browser disconnected while loading {url}"
                    ) from e

                logger.warning(f"Frame error loading {url} ({e}), retrying with a fresh page")
                await self._retry_policy.sleep(index)
                page = await self._session.get_valid_page()
        else:
            raise NavigationError(
                f"All wait strategies failed for {url}",
                url=url,
                attempts=attempts,
            )

        await self.wait_for_content(page)
        return page

    async def wait_for_content(self, page: Page) -> None:
        """
        Wait for dynamic content to load.

        Target pages are frequently SPAs whose content is not present at
        initial load, so: content containers first, then body text length,
        then a fixed settle delay.
        """
        found_container = False
        if self._config.content_selectors:
            selector = ", ".join(self._config.content_selectors)
            try:
                await page.wait_for_selector(
                    selector, timeout=self._config.content_selector_timeout
                )
                found_container = True
                logger.debug("Found content container")
            except PlaywrightError:
                pass

        if not found_container:
            try:
                await page.wait_for_function(
                    "(minChars) => ((document.body && document.body.innerText) || '').trim().length > minChars",
                    arg=self._config.min_content_chars,
                    timeout=self._config.content_text_timeout,
                )
            except PlaywrightError:
                logger.debug(f"Content text threshold not reached on {page.url}")

        if self._config.settle_delay:
            await page.wait_for_timeout(self._config.settle_delay)

        if self._config.challenge_detection:
            await wait_for_challenge_resolution(page, self._config.challenge_auto_timeout)
