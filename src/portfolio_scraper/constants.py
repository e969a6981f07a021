# src/portfolio_scraper/constants.py
"""Centralized constants for the portfolio scraper.

This module contains magic numbers and default values that are used
across multiple modules. For user-configurable settings, see config.py
and ScraperConfig.
"""

# =============================================================================
# Content Extraction Constants
# =============================================================================

# Tags whose text never counts as visible content
NON_CONTENT_TAGS = frozenset({"script", "style", "noscript", "meta", "link"})

# Minimum characters for a text node to be recorded
MIN_TEXT_LENGTH = 2

# Maximum text items retained per page
MAX_TEXT_ITEMS_PER_PAGE = 200

# href/src values that are template artifacts rather than real references
INVALID_REFERENCE_VALUES = frozenset({"undefined", "null"})

# Target value recorded for anchors without a target attribute
DEFAULT_LINK_TARGET = "none"


# =============================================================================
# Crawl Result Constants
# =============================================================================

# Total text characters a page needs before the crawl counts as successful
SUCCESS_MIN_TEXT_LENGTH = 50


# =============================================================================
# Navigation Constants
# =============================================================================

# Ordered from least to most strict: (wait_until, timeout in milliseconds)
DEFAULT_WAIT_STRATEGIES = (
    ("domcontentloaded", 30000),
    ("load", 45000),
    ("networkidle", 60000),
)

# Selectors that signal primary content has rendered
CONTENT_CONTAINER_SELECTORS = (
    "main",
    "article",
    "[role='main']",
    "#root > *",
    "#__next > *",
    "#app > *",
    ".content",
)

# Timeout for the content-container selector wait (ms)
CONTENT_SELECTOR_TIMEOUT_MS = 3000

# Rendered body text length that counts as "content loaded"
MIN_CONTENT_CHARS = 100

# Timeout for the body text length wait (ms)
CONTENT_TEXT_TIMEOUT_MS = 5000

# Fixed settle delay after the content waits (ms)
SETTLE_DELAY_MS = 1000

# Message fragments identifying frame/connection failures (lowercase)
FRAME_ERROR_MARKERS = (
    "detached",
    "target closed",
    "target page, context or browser has been closed",
    "browser has been closed",
    "protocol error",
    "connection closed",
    "session closed",
)


# =============================================================================
# Crawler Constants
# =============================================================================

# Randomized delay between page fetches (seconds)
INTER_PAGE_DELAY_MIN_SECONDS = 1.0
INTER_PAGE_DELAY_MAX_SECONDS = 2.0

# Retry policy defaults
DEFAULT_MAX_RETRIES = 3
EXPONENTIAL_BACKOFF_BASE = 2
INITIAL_BACKOFF_DELAY_SECONDS = 0.5
MAX_BACKOFF_DELAY_SECONDS = 5.0

# Seconds to wait for an anti-bot challenge to clear on its own
CHALLENGE_AUTO_TIMEOUT_SECONDS = 5.0


# =============================================================================
# Viewport and Browser Constants
# =============================================================================

DESKTOP_VIEWPORT_WIDTH = 1920
DESKTOP_VIEWPORT_HEIGHT = 1080

DEFAULT_USER_AGENT = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36"
)

# Executable names tried on PATH when no bundled browser is found
PATH_BROWSER_NAMES = ("google-chrome", "google-chrome-stable", "chromium", "chromium-browser", "chrome")

BROWSER_INSTALL_HINT = "Run: playwright install chromium"
