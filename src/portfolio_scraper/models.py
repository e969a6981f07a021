"""Data models for portfolio crawling."""

from dataclasses import dataclass, field
from enum import Enum
from typing import Optional


class PageState(Enum):
    """Lifecycle of a crawl target within one crawl invocation."""
    PENDING = "pending"
    IN_FLIGHT = "in_flight"
    COMPLETED = "completed"
    SKIPPED = "skipped"
    ABORTED = "aborted"


@dataclass(frozen=True)
class CrawlTarget:
    """A URL awaiting fetch plus the depth at which it was discovered."""

    url: str
    depth: int = 0

    def __post_init__(self):
        if self.depth < 0:
            raise ValueError(f"depth must be non-negative, got {self.depth}")


@dataclass(frozen=True)
class TextItem:
    """A visible text fragment and the tag it was rendered in."""

    tag: str
    text: str

    def to_dict(self) -> dict:
        return {"tag": self.tag, "text": self.text}


@dataclass(frozen=True)
class LinkRecord:
    """An anchor harvested from a page."""

    href: str
    text: str
    target: str

    def to_dict(self) -> dict:
        return {"href": self.href, "text": self.text, "target": self.target}


@dataclass(frozen=True)
class ImageRecord:
    """An image harvested from a page."""

    src: str
    alt: str = ""

    def to_dict(self) -> dict:
        return {"src": self.src, "alt": self.alt}


@dataclass(frozen=True)
class PageContentRecord:
    """Normalized snapshot of one crawled page."""

    url: str
    texts: tuple[TextItem, ...] = ()
    links: tuple[LinkRecord, ...] = ()
    images: tuple[ImageRecord, ...] = ()
    stylesheets: tuple[str, ...] = ()
    scripts: tuple[str, ...] = ()

    @property
    def total_text_length(self) -> int:
        """Combined character count of all text items."""
        return sum(len(item.text) for item in self.texts)

    def has_meaningful_content(self, min_text_length: int) -> bool:
        """True when the page has texts or links and enough text overall."""
        return bool(self.texts or self.links) and self.total_text_length > min_text_length

    def to_dict(self) -> dict:
        return {
            "page": self.url,
            "content": {
                "visible_texts": [item.to_dict() for item in self.texts],
                "links": [link.to_dict() for link in self.links],
                "images": [image.to_dict() for image in self.images],
                "css_files": list(self.stylesheets),
                "js_files": list(self.scripts),
            },
        }


@dataclass
class CrawlResult:
    """Aggregate output of one crawl invocation."""

    success: bool
    total_pages: int
    scraped_data: list[PageContentRecord] = field(default_factory=list)
    aborted: bool = False
    error: Optional[str] = None

    @classmethod
    def from_records(
        cls,
        records: list[PageContentRecord],
        min_text_length: int,
        aborted: bool = False,
        error: Optional[str] = None,
    ) -> "CrawlResult":
        """Build a result, computing success from aggregate content richness."""
        has_content = any(record.has_meaningful_content(min_text_length) for record in records)
        return cls(
            success=has_content and len(records) > 0,
            total_pages=len(records),
            scraped_data=list(records),
            aborted=aborted,
            error=error,
        )

    @property
    def page_urls(self) -> list[str]:
        return [record.url for record in self.scraped_data]

    def to_dict(self) -> dict:
        return {
            "success": self.success,
            "total_pages": self.total_pages,
            "scraped_data": [record.to_dict() for record in self.scraped_data],
            "aborted": self.aborted,
            "error": self.error,
        }
