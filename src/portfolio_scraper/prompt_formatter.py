"""Render crawl results as the plain-text block handed to the evaluation service."""

from portfolio_scraper.models import CrawlResult, PageContentRecord

PAGE_SEPARATOR = "\n\n---\n\n"


def format_page(record: PageContentRecord) -> str:
    """Render one page's texts, links and images."""
    texts = "\n".join(f"{item.tag}: {item.text}" for item in record.texts)
    links = "\n".join(
        f"Link: {link.text} ({link.href}) [Target: {link.target or 'none'}]"
        for link in record.links
    )
    images = "\n".join(f"Image: {image.src} (Alt: {image.alt})" for image in record.images)
    return (
        f"Page: {record.url}\n\n"
        f"Visible Texts:\n{texts}\n\n"
        f"Links:\n{links}\n\n"
        f"Images:\n{images}"
    )


def format_crawl_result(result: CrawlResult, url: str = "") -> str:
    """Render every page of a crawl, or an explanation when nothing usable was found.

    Args:
        result: Result returned by the crawler
        url: Portfolio URL, quoted in the fallback message

    Returns:
        Text suitable for embedding in an evaluation prompt
    """
    if result.success and result.scraped_data:
        return PAGE_SEPARATOR.join(format_page(record) for record in result.scraped_data)

    return (
        "Scraping attempted but no meaningful content was extracted from the website. "
        "The website may be using advanced bot protection, require authentication, "
        "or have content that loads in a way that cannot be scraped automatically. "
        f"Portfolio URL: {url or 'unknown'}"
    )
