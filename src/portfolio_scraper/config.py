"""
Configuration for the portfolio scraper.

Environment-driven settings are loaded from a .env file via python-dotenv.
Crawl tunables live in a validated Pydantic model with pre-configured
instances for common use cases.
"""
import os
from typing import List, Literal, Optional

from dotenv import load_dotenv
from pydantic import BaseModel, Field

from portfolio_scraper.constants import (
    CONTENT_CONTAINER_SELECTORS,
    CONTENT_SELECTOR_TIMEOUT_MS,
    CONTENT_TEXT_TIMEOUT_MS,
    CHALLENGE_AUTO_TIMEOUT_SECONDS,
    DEFAULT_MAX_RETRIES,
    DEFAULT_USER_AGENT,
    DEFAULT_WAIT_STRATEGIES,
    DESKTOP_VIEWPORT_HEIGHT,
    DESKTOP_VIEWPORT_WIDTH,
    INITIAL_BACKOFF_DELAY_SECONDS,
    INTER_PAGE_DELAY_MAX_SECONDS,
    INTER_PAGE_DELAY_MIN_SECONDS,
    MAX_BACKOFF_DELAY_SECONDS,
    MAX_TEXT_ITEMS_PER_PAGE,
    MIN_CONTENT_CHARS,
    MIN_TEXT_LENGTH,
    SETTLE_DELAY_MS,
    SUCCESS_MIN_TEXT_LENGTH,
)

load_dotenv()  # Loads variables from .env file


def _env_flag(name: str, default: bool) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in ("1", "true", "yes", "on")


class Settings:
    """
    Manages application settings loaded from environment variables.
    """
    CHROME_EXECUTABLE_PATH = os.getenv("CHROME_EXECUTABLE_PATH")
    PLAYWRIGHT_BROWSERS_PATH = os.getenv("PLAYWRIGHT_BROWSERS_PATH")
    SCRAPER_HEADLESS = _env_flag("SCRAPER_HEADLESS", True)
    SCRAPER_USER_AGENT = os.getenv("SCRAPER_USER_AGENT", DEFAULT_USER_AGENT)
    LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")


settings = Settings()


class WaitStrategy(BaseModel):
    """One navigation attempt: a Playwright wait condition and its timeout."""

    wait_until: Literal["commit", "domcontentloaded", "load", "networkidle"]
    timeout: int = Field(ge=1000, le=300000, description="Timeout in milliseconds")


def _default_wait_strategies() -> List[WaitStrategy]:
    return [
        WaitStrategy(wait_until=wait_until, timeout=timeout)
        for wait_until, timeout in DEFAULT_WAIT_STRATEGIES
    ]


class ScraperConfig(BaseModel):
    """
    Configuration for a portfolio crawl.

    All fields are validated by Pydantic to ensure type safety and valid values.
    """

    # Browser
    headless: bool = Field(
        default=True,
        description="Run browser in headless mode (no visible UI)"
    )

    executable_path: Optional[str] = Field(
        default=None,
        description="Explicit browser executable; tried before any other resolution strategy"
    )

    browsers_path: Optional[str] = Field(
        default=None,
        description="Extra Playwright browser cache directory to search for Chromium"
    )

    user_agent: str = Field(
        default=DEFAULT_USER_AGENT,
        description="User agent presented by every page"
    )

    viewport_width: int = Field(default=DESKTOP_VIEWPORT_WIDTH, ge=320, le=7680)
    viewport_height: int = Field(default=DESKTOP_VIEWPORT_HEIGHT, ge=240, le=4320)

    launch_args: List[str] = Field(
        default_factory=lambda: [
            "--disable-blink-features=AutomationControlled",
            "--no-sandbox",
            "--disable-setuid-sandbox",
            "--disable-dev-shm-usage",
            "--disable-gpu",
            "--no-first-run",
            "--no-default-browser-check",
        ],
        description="Browser launch arguments"
    )

    # Navigation
    wait_strategies: List[WaitStrategy] = Field(
        default_factory=_default_wait_strategies,
        min_length=1,
        description="Navigation wait conditions, least strict first"
    )

    content_selectors: List[str] = Field(
        default_factory=lambda: list(CONTENT_CONTAINER_SELECTORS),
        description="Selectors that indicate primary content has rendered"
    )

    content_selector_timeout: int = Field(default=CONTENT_SELECTOR_TIMEOUT_MS, ge=0)
    min_content_chars: int = Field(default=MIN_CONTENT_CHARS, ge=0)
    content_text_timeout: int = Field(default=CONTENT_TEXT_TIMEOUT_MS, ge=0)
    settle_delay: int = Field(default=SETTLE_DELAY_MS, ge=0, description="Final settle delay in milliseconds")

    challenge_detection: bool = Field(
        default=True,
        description="Check loaded pages for CAPTCHA/bot challenges"
    )

    challenge_auto_timeout: float = Field(
        default=CHALLENGE_AUTO_TIMEOUT_SECONDS,
        ge=0,
        description="Seconds to wait for challenges to auto-resolve"
    )

    # Retry
    max_retries: int = Field(default=DEFAULT_MAX_RETRIES, ge=1, le=10)
    initial_backoff: float = Field(default=INITIAL_BACKOFF_DELAY_SECONDS, ge=0)
    max_backoff: float = Field(default=MAX_BACKOFF_DELAY_SECONDS, ge=0)

    # Crawl
    traversal_order: Literal["depth_first", "breadth_first"] = Field(
        default="depth_first",
        description="Order in which discovered links are visited"
    )

    max_pages: Optional[int] = Field(
        default=None,
        ge=1,
        description="Stop after this many pages were fetched (None = unbounded)"
    )

    inter_page_delay_min: float = Field(default=INTER_PAGE_DELAY_MIN_SECONDS, ge=0)
    inter_page_delay_max: float = Field(default=INTER_PAGE_DELAY_MAX_SECONDS, ge=0)

    # Extraction
    max_text_items: int = Field(default=MAX_TEXT_ITEMS_PER_PAGE, ge=1)
    min_text_length: int = Field(default=MIN_TEXT_LENGTH, ge=1)

    success_min_text_length: int = Field(
        default=SUCCESS_MIN_TEXT_LENGTH,
        ge=0,
        description="Total page text length above which a crawl counts as successful"
    )

    class Config:
        """Pydantic model configuration."""
        frozen = False
        validate_assignment = True

    @classmethod
    def from_env(cls) -> "ScraperConfig":
        """Build a configuration from environment variables.

        Returns:
            ScraperConfig: Configuration instance with values from environment
        """
        return cls(
            headless=settings.SCRAPER_HEADLESS,
            executable_path=settings.CHROME_EXECUTABLE_PATH,
            browsers_path=settings.PLAYWRIGHT_BROWSERS_PATH,
            user_agent=settings.SCRAPER_USER_AGENT,
        )


# --- Pre-configured Instances for Common Use Cases ---

FAST_CONFIG = ScraperConfig(
    wait_strategies=[
        WaitStrategy(wait_until="domcontentloaded", timeout=15000),
        WaitStrategy(wait_until="load", timeout=20000),
    ],
    content_selector_timeout=1500,
    content_text_timeout=2000,
    settle_delay=300,
    challenge_auto_timeout=2.0,
    inter_page_delay_min=0.5,
    inter_page_delay_max=1.0,
)
"""
Fast configuration optimized for speed.

Drops the network-idle strategy and shortens every content wait.
Best for static portfolio sites that render without heavy JavaScript.
"""
