"""Command-line interface for the portfolio scraper."""

import asyncio
import json
import sys
from typing import Optional

from portfolio_scraper.config import FAST_CONFIG, ScraperConfig, settings
from portfolio_scraper.crawler import InvalidURLError, PortfolioCrawler
from portfolio_scraper.infrastructure.browser_session import BrowserLaunchError
from portfolio_scraper.logging_config import get_logger, setup_logging
from portfolio_scraper.prompt_formatter import format_crawl_result

logger = get_logger(__name__)


def build_config(args) -> ScraperConfig:
    """Derive the crawl configuration from parsed CLI arguments.

    Args:
        args: argparse namespace

    Returns:
        ScraperConfig with CLI overrides applied on top of the environment
    """
    base = FAST_CONFIG if args.fast else ScraperConfig()
    env = ScraperConfig.from_env()
    overrides = {
        "headless": env.headless and not args.headed,
        "executable_path": env.executable_path,
        "browsers_path": env.browsers_path,
        "user_agent": env.user_agent,
    }
    if args.max_pages is not None:
        overrides["max_pages"] = args.max_pages
    if args.breadth_first:
        overrides["traversal_order"] = "breadth_first"
    return base.model_copy(update=overrides)


def print_summary(result) -> None:
    """Print a crawl result in a human readable way."""
    status = "✅" if result.success else "⚠️"
    print(f"\n{'=' * 60}")
    print(f"{status} Crawled {result.total_pages} pages (success={result.success})")
    if result.aborted:
        print(f"   Aborted: {result.error}")
    print(f"{'=' * 60}")
    for record in result.scraped_data:
        print(f"\n📄 {record.url}")
        print(f"  • Text elements: {len(record.texts)}")
        print(f"  • Links: {len(record.links)}")
        print(f"  • Images: {len(record.images)}")
        print(f"  • Stylesheets: {len(record.stylesheets)}, Scripts: {len(record.scripts)}")


def crawl_command(args) -> int:
    """Run a crawl and write the result in the requested format."""
    config = build_config(args)
    crawler = PortfolioCrawler(config=config)

    try:
        result = asyncio.run(crawler.crawl(args.url))
    except InvalidURLError as e:
        logger.error(str(e))
        return 1
    except BrowserLaunchError as e:
        logger.error(str(e))
        return 1

    if args.output == "json":
        output: Optional[str] = json.dumps(result.to_dict(), indent=2, ensure_ascii=False)
    elif args.output == "prompt":
        output = format_crawl_result(result, args.url)
    else:
        output = None
        print_summary(result)

    if output is not None:
        if args.output_file:
            with open(args.output_file, "w", encoding="utf-8") as f:
                f.write(output)
            print(f"Result written to {args.output_file}")
        else:
            print(output)

    return 0


def main(argv=None) -> int:
    """Main CLI entry point."""
    import argparse

    parser = argparse.ArgumentParser(
        description="Portfolio Scraper - Crawl a portfolio site and extract its content"
    )
    parser.add_argument("url", help="Portfolio URL to crawl (http or https)")
    parser.add_argument(
        "--output",
        "-o",
        choices=["text", "json", "prompt"],
        default="text",
        help="Output format (default: text)",
    )
    parser.add_argument(
        "--output-file",
        "-f",
        help="Write output to file (json and prompt formats)",
    )
    parser.add_argument(
        "--max-pages",
        type=int,
        default=None,
        help="Maximum pages to crawl (default: unbounded)",
    )
    parser.add_argument(
        "--breadth-first",
        action="store_true",
        help="Visit discovered links breadth-first instead of depth-first",
    )
    parser.add_argument(
        "--fast",
        action="store_true",
        help="Use shorter waits (for static sites)",
    )
    parser.add_argument(
        "--headed",
        action="store_true",
        help="Show the browser window",
    )
    parser.add_argument(
        "--log-level",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        default=None,
        help="Set logging verbosity (default: LOG_LEVEL env or INFO)",
    )
    parser.add_argument(
        "--log-file",
        help="Write logs to file in addition to console",
    )

    args = parser.parse_args(argv)

    setup_logging(
        level=args.log_level or settings.LOG_LEVEL,
        log_file=args.log_file,
    )

    return crawl_command(args)


if __name__ == "__main__":
    sys.exit(main())
