"""
Infrastructure Package.

Provides the browser session and the retry policy shared by crawl components.
"""

from .browser_session import (
    BrowserSession,
    BrowserLaunchError,
    BrowserConnectionLostError,
    ExecutableCandidate,
    resolve_executable_candidates,
    verify_stealth,
    STEALTH_SCRIPTS,
    COMBINED_STEALTH_SCRIPT,
)
from .retry import RetryPolicy

__all__ = [
    # Browser Session
    "BrowserSession",
    "BrowserLaunchError",
    "BrowserConnectionLostError",
    "ExecutableCandidate",
    "resolve_executable_candidates",
    "verify_stealth",
    "STEALTH_SCRIPTS",
    "COMBINED_STEALTH_SCRIPT",
    # Retry
    "RetryPolicy",
]
