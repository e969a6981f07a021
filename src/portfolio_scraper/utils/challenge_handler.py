"""
Challenge/CAPTCHA detection.

Detects bot challenges (CAPTCHA, Cloudflare, Akamai, etc.) on a loaded
page and gives self-resolving challenges a short window to clear before
content is extracted.
"""
import asyncio
import logging
import time
from typing import Optional

from playwright.async_api import Page
from playwright.async_api import Error as PlaywrightError

logger = logging.getLogger(__name__)


# =============================================================================
# Challenge Detection Selectors
# =============================================================================

CHALLENGE_INDICATORS = {
    # reCAPTCHA
    "recaptcha_iframe": "iframe[src*='recaptcha'], iframe[title*='reCAPTCHA']",
    "recaptcha_challenge": ".recaptcha-challenge, #rc-imageselect",

    # hCaptcha
    "hcaptcha_iframe": "iframe[src*='hcaptcha']",

    # Akamai Bot Manager
    "akamai_challenge": "#sec-cpt-if, #ak-challenge",

    # Cloudflare
    "cloudflare_challenge": "#cf-challenge-running, .cf-browser-verification, #challenge-form",
    "cloudflare_turnstile": "iframe[src*='challenges.cloudflare']",
}

# URL patterns that indicate a challenge page
CHALLENGE_URL_PATTERNS = [
    "captcha",
    "/challenge",
    "security-check",
    "cdn-cgi/challenge-platform",
]

# Document titles served by interstitial challenge pages (lowercase)
CHALLENGE_TITLE_MARKERS = [
    "just a moment",
    "attention required",
    "verify you are human",
    "access denied",
]


async def detect_challenge(page: Page) -> Optional[str]:
    """
    Detect if the current page has a CAPTCHA or bot challenge.

    Args:
        page: Playwright Page instance

    Returns:
        Name of detected challenge type, or None if no challenge found
    """
    current_url = (page.url or "").lower()
    for pattern in CHALLENGE_URL_PATTERNS:
        if pattern in current_url:
            return f"url_pattern:{pattern}"

    try:
        title = (await page.title() or "").lower()
    except PlaywrightError:
        title = ""
    for marker in CHALLENGE_TITLE_MARKERS:
        if marker in title:
            return f"title:{marker}"

    for name, selector in CHALLENGE_INDICATORS.items():
        try:
            if await page.locator(selector).count() > 0:
                return name
        except PlaywrightError:
            continue

    return None


async def wait_for_challenge_resolution(
    page: Page,
    timeout: float,
    poll_interval: float = 0.5,
) -> Optional[str]:
    """
    Give a detected challenge time to resolve on its own.

    Args:
        page: Playwright Page instance
        timeout: Seconds to keep polling
        poll_interval: Seconds between checks

    Returns:
        The challenge still present after the timeout, or None once clear
    """
    challenge = await detect_challenge(page)
    if challenge is None:
        return None

    logger.info(f"Challenge detected ({challenge}) on {page.url}, waiting up to {timeout:.1f}s")
    deadline = time.monotonic() + timeout
    while time.monotonic() < deadline:
        await asyncio.sleep(poll_interval)
        challenge = await detect_challenge(page)
        if challenge is None:
            logger.info(f"Challenge resolved on {page.url}")
            return None

    logger.warning(f"Challenge still present on {page.url}: {challenge}")
    return challenge
