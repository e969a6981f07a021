"""Portfolio crawler: headless-browser content extraction for portfolio sites."""

__version__ = "0.1.0"

from portfolio_scraper.crawler import (
    CrawlState,
    InvalidURLError,
    PortfolioCrawler,
    scrape_website,
)
from portfolio_scraper.config import ScraperConfig, WaitStrategy, FAST_CONFIG, settings
from portfolio_scraper.extractor import ContentExtractor
from portfolio_scraper.navigation import Navigator, NavigationError
from portfolio_scraper.platform_rules import (
    PLATFORM_RULES,
    Classification,
    CrawlPolicy,
    PlatformRule,
    classify,
)
from portfolio_scraper.models import (
    CrawlResult,
    CrawlTarget,
    ImageRecord,
    LinkRecord,
    PageContentRecord,
    PageState,
    TextItem,
)
from portfolio_scraper.prompt_formatter import format_crawl_result, format_page

from portfolio_scraper.infrastructure import (
    BrowserConnectionLostError,
    BrowserLaunchError,
    BrowserSession,
    RetryPolicy,
)

__all__ = [
    # Core
    "PortfolioCrawler",
    "CrawlState",
    "InvalidURLError",
    "scrape_website",
    "ContentExtractor",
    "Navigator",
    "NavigationError",
    # Platform rules
    "PLATFORM_RULES",
    "Classification",
    "CrawlPolicy",
    "PlatformRule",
    "classify",
    # Models
    "CrawlResult",
    "CrawlTarget",
    "ImageRecord",
    "LinkRecord",
    "PageContentRecord",
    "PageState",
    "TextItem",
    # Config
    "ScraperConfig",
    "WaitStrategy",
    "FAST_CONFIG",
    "settings",
    # Formatting
    "format_crawl_result",
    "format_page",
    # Infrastructure
    "BrowserSession",
    "BrowserLaunchError",
    "BrowserConnectionLostError",
    "RetryPolicy",
]
