"""Tests for the navigation engine."""

import pytest
from unittest.mock import AsyncMock, MagicMock, patch

from playwright.async_api import Error as PlaywrightError
from playwright.async_api import TimeoutError as PlaywrightTimeoutError

from portfolio_scraper.config import ScraperConfig, WaitStrategy
from portfolio_scraper.infrastructure.browser_session import BrowserConnectionLostError
from portfolio_scraper.navigation import NavigationError, Navigator, is_frame_error

URL = "https://example-portfolio.test/alice"


def make_page(goto_side_effect=None):
    page = MagicMock()
    page.url = URL
    page.goto = AsyncMock(side_effect=goto_side_effect)
    page.wait_for_selector = AsyncMock()
    page.wait_for_function = AsyncMock()
    page.wait_for_timeout = AsyncMock()
    return page


def make_session(connected=True, fresh_page=None):
    session = MagicMock()
    session.is_connected = MagicMock(return_value=connected)
    session.get_valid_page = AsyncMock(return_value=fresh_page or make_page())
    return session


@pytest.fixture
def config():
    return ScraperConfig(
        settle_delay=0,
        challenge_detection=False,
        initial_backoff=0,
    )


class TestIsFrameError:
    """Test cases for frame error classification."""

    @pytest.mark.parametrize("message", [
        "Frame was detached",
        "Target page, context or browser has been closed",
        "Protocol error (Page.navigate): Session closed.",
        "Connection closed",
    ])
    def test_frame_errors(self, message):
        assert is_frame_error(PlaywrightError(message))

    def test_timeout_is_not_frame_error(self):
        assert not is_frame_error(PlaywrightTimeoutError("Timeout 30000ms exceeded."))


class TestNavigate:
    """Test cases for Navigator.navigate()."""

    @pytest.mark.asyncio
    async def test_first_strategy_succeeds(self, config):
        """Test the least strict strategy is tried first and stops on success."""
        page = make_page()
        navigator = Navigator(make_session(), config)

        result = await navigator.navigate(page, URL)

        assert result is page
        page.goto.assert_awaited_once_with(URL, wait_until="domcontentloaded", timeout=30000)

    @pytest.mark.asyncio
    async def test_escalates_on_timeout(self, config):
        """Test a timeout moves on to the next wait strategy on the same page."""
        page = make_page(goto_side_effect=[
            PlaywrightTimeoutError("Timeout 30000ms exceeded."),
            None,
        ])
        session = make_session()
        navigator = Navigator(session, config)

        result = await navigator.navigate(page, URL)

        assert result is page
        assert [call.kwargs["wait_until"] for call in page.goto.await_args_list] == [
            "domcontentloaded",
            "load",
        ]
        session.get_valid_page.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_frame_error_gets_fresh_page(self, config):
        """Test a detached frame is replaced before the next strategy."""
        page = make_page(goto_side_effect=PlaywrightError("Frame was detached"))
        fresh = make_page()
        session = make_session(fresh_page=fresh)
        navigator = Navigator(session, config)

        result = await navigator.navigate(page, URL)

        assert result is fresh
        session.get_valid_page.assert_awaited_once()
        fresh.goto.assert_awaited_once_with(URL, wait_until="load", timeout=45000)

    @pytest.mark.asyncio
    async def test_frame_error_with_dead_browser_raises_connection_lost(self, config):
        """Test a disconnected browser escalates instead of retrying."""
        page = make_page(goto_side_effect=PlaywrightError("Target page, context or browser has been closed"))
        session = make_session(connected=False)
        navigator = Navigator(session, config)

        with pytest.raises(BrowserConnectionLostError):
            await navigator.navigate(page, URL)

        session.get_valid_page.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_all_strategies_fail(self, config):
        """Test NavigationError lists every failed attempt."""
        page = make_page(goto_side_effect=PlaywrightTimeoutError("Timeout exceeded"))
        navigator = Navigator(make_session(), config)

        with pytest.raises(NavigationError) as exc_info:
            await navigator.navigate(page, URL)

        assert exc_info.value.url == URL
        assert len(exc_info.value.attempts) == 3
        assert page.goto.await_count == 3

    @pytest.mark.asyncio
    async def test_custom_strategies(self):
        """Test the configured strategy list is honored."""
        config = ScraperConfig(
            wait_strategies=[WaitStrategy(wait_until="networkidle", timeout=5000)],
            settle_delay=0,
            challenge_detection=False,
        )
        page = make_page()
        navigator = Navigator(make_session(), config)

        await navigator.navigate(page, URL)

        page.goto.assert_awaited_once_with(URL, wait_until="networkidle", timeout=5000)


class TestWaitForContent:
    """Test cases for Navigator.wait_for_content()."""

    @pytest.mark.asyncio
    async def test_container_found_skips_text_wait(self, config):
        page = make_page()
        navigator = Navigator(make_session(), config)

        await navigator.wait_for_content(page)

        page.wait_for_selector.assert_awaited_once()
        page.wait_for_function.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_falls_back_to_text_threshold(self, config):
        """Test a missing container falls back to the body-text check."""
        page = make_page()
        page.wait_for_selector = AsyncMock(side_effect=PlaywrightTimeoutError("Timeout 3000ms exceeded."))
        navigator = Navigator(make_session(), config)

        await navigator.wait_for_content(page)

        page.wait_for_function.assert_awaited_once()
        assert page.wait_for_function.await_args.kwargs["arg"] == config.min_content_chars

    @pytest.mark.asyncio
    async def test_timeouts_are_not_fatal(self, config):
        """Test a page that never renders content still proceeds."""
        page = make_page()
        page.wait_for_selector = AsyncMock(side_effect=PlaywrightTimeoutError("Timeout"))
        page.wait_for_function = AsyncMock(side_effect=PlaywrightTimeoutError("Timeout"))
        navigator = Navigator(make_session(), config)

        await navigator.wait_for_content(page)

    @pytest.mark.asyncio
    async def test_settle_delay(self):
        config = ScraperConfig(settle_delay=750, challenge_detection=False)
        page = make_page()
        navigator = Navigator(make_session(), config)

        await navigator.wait_for_content(page)

        page.wait_for_timeout.assert_awaited_once_with(750)

    @pytest.mark.asyncio
    async def test_challenge_check_when_enabled(self):
        """Test challenge resolution runs with the configured timeout."""
        config = ScraperConfig(settle_delay=0, challenge_detection=True, challenge_auto_timeout=1.5)
        page = make_page()
        navigator = Navigator(make_session(), config)

        with patch(
            "portfolio_scraper.navigation.wait_for_challenge_resolution",
            new=AsyncMock(return_value=None),
        ) as wait_mock:
            await navigator.wait_for_content(page)

        wait_mock.assert_awaited_once_with(page, 1.5)
