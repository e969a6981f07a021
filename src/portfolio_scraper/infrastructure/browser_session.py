"""
Browser Session Management.

Owns the single headless Chromium process used by one crawl and the one
page handle that is active at a time. Pages that stop responding are
replaced; losing the browser process itself is reported upward as
BrowserConnectionLostError and is never retried here.

Executable resolution tries, in order:
- an explicitly configured executable
- Playwright's bundled Chromium
- known Playwright cache directories
- Chrome/Chromium binaries on PATH
"""

import logging
import os
import shutil
from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional

from playwright.async_api import Browser, BrowserContext, Page, async_playwright
from playwright.async_api import Error as PlaywrightError

from portfolio_scraper.config import ScraperConfig
from portfolio_scraper.constants import BROWSER_INSTALL_HINT, PATH_BROWSER_NAMES
from portfolio_scraper.infrastructure.retry import RetryPolicy

logger = logging.getLogger(__name__)


class BrowserLaunchError(RuntimeError):
    """Raised when no browser executable could be launched."""


class BrowserConnectionLostError(RuntimeError):
    """Raised when the browser process has disconnected mid-crawl."""


# Stealth JavaScript injected into every page of the session.
# These scripts hide automation signals that bot detectors check for.
STEALTH_SCRIPTS = {
    "webdriver": """
        // Hide navigator.webdriver
        Object.defineProperty(navigator, 'webdriver', {
            get: () => undefined,
            configurable: true
        });
    """,
    "plugins": """
        // Add realistic plugins array
        Object.defineProperty(navigator, 'plugins', {
            get: () => {
                const plugins = [
                    { name: 'Chrome PDF Plugin', filename: 'internal-pdf-viewer', description: 'Portable Document Format' },
                    { name: 'Chrome PDF Viewer', filename: 'mhjfbmdgcfjbbpaeojofohoefgiehjai', description: '' },
                    { name: 'Native Client', filename: 'internal-nacl-plugin', description: '' }
                ];
                plugins.item = (index) => plugins[index];
                plugins.namedItem = (name) => plugins.find(p => p.name === name);
                plugins.refresh = () => {};
                return plugins;
            },
            configurable: true
        });
    """,
    "languages": """
        Object.defineProperty(navigator, 'languages', {
            get: () => ['en-US', 'en'],
            configurable: true
        });
    """,
    "chrome_runtime": """
        if (!window.chrome) {
            window.chrome = {};
        }
        if (!window.chrome.runtime) {
            window.chrome.runtime = {};
        }
    """,
    "permissions": """
        if (window.navigator.permissions && window.navigator.permissions.query) {
            const originalQuery = window.navigator.permissions.query.bind(window.navigator.permissions);
            window.navigator.permissions.query = (parameters) => (
                parameters && parameters.name === 'notifications' ?
                    Promise.resolve({ state: Notification.permission }) :
                    originalQuery(parameters)
            );
        }
    """,
    "automation_markers": """
        // Remove chromedriver leftovers
        delete window.cdc_adoQpoasnfa76pfcZLmcfl_Array;
        delete window.cdc_adoQpoasnfa76pfcZLmcfl_Promise;
        delete window.cdc_adoQpoasnfa76pfcZLmcfl_Symbol;
    """,
}

# Combined stealth script for injection
COMBINED_STEALTH_SCRIPT = "\n".join(STEALTH_SCRIPTS.values())

EXTRA_HTTP_HEADERS = {
    "Accept": "text/html,application/xhtml+xml,application/xml;q=0.9,image/avif,image/webp,image/apng,*/*;q=0.8",
    "Accept-Language": "en-US,en;q=0.9",
    "Upgrade-Insecure-Requests": "1",
}


@dataclass(frozen=True)
class ExecutableCandidate:
    """A browser executable to try, tagged with the strategy that found it.

    ``path`` of None means "let Playwright use its bundled browser".
    """
    strategy: str
    path: Optional[str]


def _cache_dir_candidates(cache_dir: Path) -> List[str]:
    """Find Chromium binaries inside a Playwright cache directory, newest first."""
    if not cache_dir.is_dir():
        return []
    patterns = (
        "chromium-*/chrome-linux*/chrome",
        "chromium-*/chrome-mac*/Chromium.app/Contents/MacOS/Chromium",
        "chromium-*/chrome-win*/chrome.exe",
        "chromium_headless_shell-*/chrome-linux*/headless_shell",
    )
    found: List[str] = []
    for pattern in patterns:
        matches = sorted(cache_dir.glob(pattern), reverse=True)
        found.extend(str(match) for match in matches if match.is_file())
    return found


def known_cache_dirs(config: ScraperConfig) -> List[Path]:
    """Playwright cache directories worth searching, in priority order."""
    dirs: List[Path] = []
    if config.browsers_path:
        dirs.append(Path(config.browsers_path))
    env_path = os.getenv("PLAYWRIGHT_BROWSERS_PATH")
    if env_path and env_path != "0":
        dirs.append(Path(env_path))
    dirs.extend([
        Path.cwd() / ".cache" / "ms-playwright",
        Path.home() / ".cache" / "ms-playwright",
        Path.home() / "Library" / "Caches" / "ms-playwright",
        Path("/opt/render/.cache/ms-playwright"),
    ])
    unique: List[Path] = []
    for directory in dirs:
        if directory not in unique:
            unique.append(directory)
    return unique


def resolve_executable_candidates(
    config: ScraperConfig,
    bundled_path: Optional[str] = None,
) -> List[ExecutableCandidate]:
    """Build the ordered list of executables to attempt a launch with.

    Args:
        config: Scraper configuration (may carry an explicit executable path)
        bundled_path: Path Playwright reports for its bundled Chromium

    Returns:
        Candidates in launch order, without duplicates. Paths that do not
        exist on disk are left out.
    """
    candidates: List[ExecutableCandidate] = []
    seen: set = set()

    def add(strategy: str, path: Optional[str]) -> None:
        key = path or f"<{strategy}>"
        if key in seen:
            return
        seen.add(key)
        candidates.append(ExecutableCandidate(strategy=strategy, path=path))

    if config.executable_path and Path(config.executable_path).is_file():
        add("configured", config.executable_path)
    elif config.executable_path:
        logger.warning(f"Configured browser executable not found: {config.executable_path}")

    if bundled_path and Path(bundled_path).is_file():
        add("bundled", None)

    for cache_dir in known_cache_dirs(config):
        for path in _cache_dir_candidates(cache_dir):
            add("cache", path)

    for name in PATH_BROWSER_NAMES:
        path = shutil.which(name)
        if path:
            add("path", path)

    if not any(candidate.path is None for candidate in candidates):
        # Last resort: let Playwright locate a browser on its own
        add("default", None)

    return candidates


async def verify_stealth(page: Page) -> dict:
    """
    Verify that fingerprint masking is working on a page.

    Checks for:
    - navigator.webdriver is undefined
    - navigator.plugins has entries
    - navigator.languages has entries
    - window.chrome.runtime exists

    Returns:
        Dict with one boolean per check plus ``all_passed``
    """
    checks = {
        "webdriver_undefined": "() => typeof navigator.webdriver === 'undefined'",
        "plugins_non_empty": "() => navigator.plugins.length > 0",
        "languages_non_empty": "() => navigator.languages.length > 0",
        "chrome_runtime_exists": "() => typeof window.chrome !== 'undefined' && typeof window.chrome.runtime !== 'undefined'",
    }

    results = {}
    for name, script in checks.items():
        try:
            results[name] = await page.evaluate(script) is True
        except PlaywrightError as e:
            logger.debug(f"Stealth check {name} failed: {e}")
            results[name] = False

    results["all_passed"] = all(results.values())

    if results["all_passed"]:
        logger.debug("All stealth verifications passed")
    else:
        logger.warning(f"Stealth verification issues: {results}")

    return results


class BrowserSession:
    """
    Headless browser lifecycle for one crawl.

    Designed to be used as an async context manager so the browser is
    released on every exit path:

        async with BrowserSession(config) as session:
            page = await session.get_valid_page()
    """

    def __init__(self, config: ScraperConfig, retry_policy: Optional[RetryPolicy] = None):
        """
        Initialize the session.

        Args:
            config: ScraperConfig with browser settings
            retry_policy: Bounds page re-creation attempts; defaults to one
                built from the config
        """
        self._config = config
        self._retry_policy = retry_policy or RetryPolicy(
            max_attempts=config.max_retries,
            initial_delay=config.initial_backoff,
            max_delay=config.max_backoff,
            retryable=lambda error: not isinstance(error, BrowserConnectionLostError),
        )
        self._playwright = None
        self._browser: Optional[Browser] = None
        self._context: Optional[BrowserContext] = None
        self._page: Optional[Page] = None
        self._disconnected = False
        self.executable_strategy: Optional[str] = None

    async def __aenter__(self) -> "BrowserSession":
        await self.launch()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.shutdown()

    @property
    def is_launched(self) -> bool:
        return self._browser is not None

    def is_connected(self) -> bool:
        """Check whether the browser process is still reachable."""
        if self._browser is None or self._disconnected:
            return False
        try:
            return self._browser.is_connected()
        except PlaywrightError:
            return False

    async def launch(self) -> None:
        """Start Playwright and launch Chromium, trying each executable strategy.

        Raises:
            BrowserLaunchError: If every resolution strategy fails
        """
        if self._browser is not None:
            return

        self._playwright = await async_playwright().start()
        chromium = self._playwright.chromium

        try:
            bundled_path = chromium.executable_path
        except PlaywrightError:
            bundled_path = None

        candidates = resolve_executable_candidates(self._config, bundled_path)
        failures: List[str] = []

        for candidate in candidates:
            launch_options = {
                "headless": self._config.headless,
                "args": self._config.launch_args,
            }
            if candidate.path:
                launch_options["executable_path"] = candidate.path

            try:
                logger.info(
                    f"Launching Chromium via {candidate.strategy} strategy"
                    + (f" ({candidate.path})" if candidate.path else "")
                )
                self._browser = await chromium.launch(**launch_options)
                self.executable_strategy = candidate.strategy
                break
            except PlaywrightError as e:
                first_line = str(e).strip().splitlines()[0] if str(e).strip() else type(e).__name__
                failures.append(f"{candidate.strategy}: {first_line}")
                logger.warning(f"Browser launch via {candidate.strategy} failed: {first_line}")

        if self._browser is None:
            await self._stop_playwright()
            detail = "; ".join(failures) if failures else "no browser executable found"
            raise BrowserLaunchError(
                f"Chromium executable not found or failed to start ({detail}). "
                f"Please ensure Chromium is installed. {BROWSER_INSTALL_HINT}"
            )

        self._disconnected = False
        try:
            self._browser.on("disconnected", self._on_disconnected)
            self._context = await self._new_context()
        except BaseException:
            # __aexit__ never runs when __aenter__ raises
            logger.error("Browser context setup failed, releasing browser")
            await self.shutdown()
            raise
        logger.info("Browser launched successfully")

    def _on_disconnected(self, *args) -> None:
        logger.warning("Browser process disconnected")
        self._disconnected = True

    async def _new_context(self) -> BrowserContext:
        """Create a browser context carrying the fingerprint masking."""
        context = await self._browser.new_context(
            viewport={"width": self._config.viewport_width, "height": self._config.viewport_height},
            user_agent=self._config.user_agent,
            locale="en-US",
            timezone_id="America/New_York",
            device_scale_factor=1,
            has_touch=False,
            is_mobile=False,
            java_script_enabled=True,
            extra_http_headers=EXTRA_HTTP_HEADERS,
        )
        await context.add_init_script(COMBINED_STEALTH_SCRIPT)
        return context

    def _ensure_connected(self) -> None:
        if not self.is_connected():
            raise BrowserConnectionLostError("Browser connection lost")

    async def _is_responsive(self, page: Page) -> bool:
        if page.is_closed():
            return False
        try:
            await page.evaluate("1 + 1")
            return True
        except PlaywrightError as e:
            logger.debug(f"Page unresponsive: {e}")
            return False

    async def _close_page(self, page: Page) -> None:
        try:
            if not page.is_closed():
                await page.close()
        except Exception as e:
            logger.debug(f"Ignoring error closing dead page: {e}")

    async def _open_page(self) -> Page:
        self._ensure_connected()
        try:
            return await self._context.new_page()
        except PlaywrightError as e:
            # Context is gone but the browser is alive: rebuild the context
            self._ensure_connected()
            logger.warning(f"Page creation failed ({e}), recreating browser context")
            try:
                await self._context.close()
            except PlaywrightError:
                pass
            self._context = await self._new_context()
            return await self._context.new_page()

    async def get_valid_page(self) -> Page:
        """Return a responsive page, replacing the current one if it died.

        Raises:
            BrowserConnectionLostError: If the browser process has disconnected
            RuntimeError: If the session was never launched
        """
        if self._browser is None:
            raise RuntimeError(
                "Browser is not running. Use BrowserSession as an async context manager: "
                "async with BrowserSession(config) as session:"
            )
        self._ensure_connected()

        if self._page is not None:
            if await self._is_responsive(self._page):
                return self._page
            logger.info("Current page is no longer responsive, opening a fresh one")
            await self._close_page(self._page)
            self._page = None

        self._page = await self._retry_policy.run(self._open_page, description="open page")
        return self._page

    async def shutdown(self) -> None:
        """Close page, context, browser and Playwright. Safe to call repeatedly."""
        if self._page is not None:
            await self._close_page(self._page)
            self._page = None

        if self._context is not None:
            try:
                await self._context.close()
            except Exception as e:
                logger.debug(f"Error closing context: {e}")
            self._context = None

        if self._browser is not None:
            logger.info("Closing browser")
            try:
                await self._browser.close()
            except Exception as e:
                logger.warning(f"Error closing browser: {e}")
            self._browser = None

        await self._stop_playwright()

    async def _stop_playwright(self) -> None:
        if self._playwright is not None:
            try:
                await self._playwright.stop()
            except Exception as e:
                logger.warning(f"Error stopping playwright: {e}")
            self._playwright = None
