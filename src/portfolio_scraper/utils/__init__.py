"""
Utilities Package.

Provides URL helpers and bot-challenge detection.
"""

from .challenge_handler import (
    detect_challenge,
    wait_for_challenge_resolution,
    CHALLENGE_INDICATORS,
    CHALLENGE_URL_PATTERNS,
    CHALLENGE_TITLE_MARKERS,
)
from .url_tools import (
    get_origin,
    is_invalid_reference,
    is_same_origin,
    normalize_url,
    resolve_url,
    strip_www,
)

__all__ = [
    # Challenge handling
    "detect_challenge",
    "wait_for_challenge_resolution",
    "CHALLENGE_INDICATORS",
    "CHALLENGE_URL_PATTERNS",
    "CHALLENGE_TITLE_MARKERS",
    # URL helpers
    "get_origin",
    "is_invalid_reference",
    "is_same_origin",
    "normalize_url",
    "resolve_url",
    "strip_www",
]
