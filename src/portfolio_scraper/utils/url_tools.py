"""URL helpers shared by the extractor, the platform rules and the crawler.

Every function here is total: malformed input yields ``None`` or ``False``,
never an exception.
"""
from typing import Optional
from urllib.parse import urljoin, urlparse

from portfolio_scraper.constants import INVALID_REFERENCE_VALUES

WEB_SCHEMES = ("http", "https")


def is_invalid_reference(value: Optional[str]) -> bool:
    """True for missing, blank, or template-artifact ("undefined"/"null") references."""
    if value is None:
        return True
    stripped = value.strip()
    return not stripped or stripped.lower() in INVALID_REFERENCE_VALUES


def resolve_url(base: Optional[str], reference: Optional[str]) -> Optional[str]:
    """Resolve ``reference`` against ``base`` into an absolute URL.

    Args:
        base: URL of the page the reference was found on
        reference: Raw href/src attribute value

    Returns:
        The absolute URL, or None when the reference is missing, an artifact,
        or cannot be resolved into a well-formed absolute URL
    """
    if is_invalid_reference(reference):
        return None
    try:
        absolute = urljoin(base or "", reference.strip())
        parsed = urlparse(absolute)
        # Accessing .port validates the netloc
        parsed.port
    except (ValueError, TypeError, AttributeError):
        return None

    if not parsed.scheme:
        return None
    if parsed.scheme in WEB_SCHEMES and not parsed.hostname:
        return None
    return absolute


def normalize_url(url: Optional[str]) -> Optional[str]:
    """Normalize URL by removing fragments and trailing slashes.

    Args:
        url: URL to normalize

    Returns:
        Normalized URL, or None when the URL is not an absolute http(s) URL
    """
    if not url:
        return None
    try:
        parsed = urlparse(url.strip())
        parsed.port
    except (ValueError, TypeError, AttributeError):
        return None
    if parsed.scheme not in WEB_SCHEMES or not parsed.hostname:
        return None

    path = parsed.path or "/"
    normalized = f"{parsed.scheme}://{parsed.netloc.lower()}{path}"
    if parsed.query:
        normalized += f"?{parsed.query}"
    if not parsed.query and normalized.endswith('/') and len(path) > 1:
        normalized = normalized[:-1]
    return normalized


def get_origin(url: Optional[str]) -> Optional[str]:
    """Return ``scheme://host[:port]`` for an http(s) URL, else None."""
    if not url:
        return None
    try:
        parsed = urlparse(url)
        port = parsed.port
    except (ValueError, TypeError, AttributeError):
        return None
    if parsed.scheme not in WEB_SCHEMES or not parsed.hostname:
        return None
    default_port = 443 if parsed.scheme == "https" else 80
    if port is None or port == default_port:
        return f"{parsed.scheme}://{parsed.hostname}"
    return f"{parsed.scheme}://{parsed.hostname}:{port}"


def is_same_origin(base_url: Optional[str], test_url: Optional[str]) -> bool:
    """Check whether two URLs share scheme, host and port."""
    base_origin = get_origin(base_url)
    return base_origin is not None and base_origin == get_origin(test_url)


def strip_www(hostname: Optional[str]) -> str:
    """Lowercase a hostname and drop a leading ``www.``."""
    if not hostname:
        return ""
    hostname = hostname.lower()
    return hostname[4:] if hostname.startswith("www.") else hostname
