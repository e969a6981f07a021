"""
Platform rule registry.

Maps recognized portfolio-hosting platforms to crawl policies so that a
crawl rooted at a profile page stays on that profile's own work instead of
wandering into search, job boards or other users' pages. Unrecognized hosts
get the default same-origin policy with unbounded depth.

Adding a platform is a data change: append a PlatformRule to PLATFORM_RULES.
Profile patterns capture a named ``profile`` group; allow and deny patterns
may reference it as ``{profile}``.
"""
import logging
import re
from dataclasses import dataclass, field
from typing import Optional, Pattern
from urllib.parse import urlparse

from portfolio_scraper.utils.url_tools import WEB_SCHEMES, is_same_origin, strip_www

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PlatformRule:
    """Static crawl rule for one hosting platform."""

    name: str
    hostnames: tuple[str, ...]
    profile_pattern: str
    allow_patterns: tuple[str, ...]
    deny_patterns: tuple[str, ...] = ()
    max_depth: Optional[int] = None

    def matches_host(self, hostname: str) -> bool:
        hostname = strip_www(hostname)
        return any(hostname == host or hostname.endswith("." + host) for host in self.hostnames)


@dataclass(frozen=True)
class CrawlPolicy:
    """Resolved policy for one crawl root."""

    root_url: str
    platform: Optional[str] = None
    hostnames: tuple[str, ...] = ()
    allow: tuple[Pattern, ...] = ()
    deny: tuple[Pattern, ...] = ()
    max_depth: Optional[int] = None

    @property
    def is_platform_site(self) -> bool:
        return self.platform is not None

    def depth_allowed(self, depth: int) -> bool:
        return self.max_depth is None or depth <= self.max_depth

    def allows(self, url: Optional[str]) -> bool:
        """Decide whether a discovered URL may be crawled under this policy.

        Deny patterns are checked before allow patterns; a platform URL that
        matches neither list is denied.
        """
        if not url:
            return False
        try:
            parsed = urlparse(url)
            hostname = parsed.hostname
        except ValueError:
            return False
        if parsed.scheme not in WEB_SCHEMES or not hostname:
            return False

        if not self.is_platform_site:
            return is_same_origin(self.root_url, url)

        hostname = strip_www(hostname)
        if not any(hostname == host or hostname.endswith("." + host) for host in self.hostnames):
            return False

        path = parsed.path or "/"
        if any(pattern.search(path) for pattern in self.deny):
            return False
        return any(pattern.search(path) for pattern in self.allow)


@dataclass(frozen=True)
class Classification:
    """Result of classifying a crawl root."""

    policy: CrawlPolicy
    is_platform_site: bool = field(default=False)


# Path segment shapes shared by several platforms
_SLUG = r"[A-Za-z0-9_-]+"
_GITHUB_LOGIN = r"[A-Za-z0-9](?:[A-Za-z0-9-]*[A-Za-z0-9])?"

# Top-level site sections per platform; never profile names
_BEHANCE_SECTIONS = (
    "search", "joblist", "galleries", "assets", "live", "hire", "onboarding",
    "signup", "login", "blog", "about", "pro", "adobe",
)
_DRIBBBLE_SECTIONS = (
    "search", "jobs", "designers", "signup", "session", "tags", "stories",
    "learn", "pro", "hiring", "following", "uploads",
)
_GITHUB_SECTIONS = (
    "features", "pricing", "login", "signup", "join", "explore", "topics",
    "marketplace", "sponsors", "settings", "orgs", "about", "enterprise",
    "collections", "trending", "notifications",
)
_ARTSTATION_SECTIONS = (
    "learning", "jobs", "marketplace", "search", "prints", "blogs", "contests",
    "signup", "users", "sign_in", "channels",
)


def _sections(names: tuple[str, ...]) -> str:
    return "|".join(names)


def _profile_pattern(reserved: tuple[str, ...], segment: str = _SLUG) -> str:
    """Single-segment profile path that refuses the platform's own sections."""
    return rf"^/(?!(?:{_sections(reserved)})(?:/|$))(?P<profile>{segment})/?$"


def _section_deny(reserved: tuple[str, ...]) -> str:
    return rf"^/({_sections(reserved)})(/|$)"


PLATFORM_RULES: tuple[PlatformRule, ...] = (
    PlatformRule(
        name="behance",
        hostnames=("behance.net",),
        profile_pattern=_profile_pattern(_BEHANCE_SECTIONS + ("gallery",)),
        allow_patterns=(
            r"^/{profile}/?$",
            r"^/{profile}/(projects|info|moodboards|services)/?$",
            r"^/gallery/\d+(/[^/]*)?/?$",
        ),
        deny_patterns=(
            _section_deny(_BEHANCE_SECTIONS),
            r"/(appreciated|followers|following)/?$",
        ),
        max_depth=2,
    ),
    PlatformRule(
        name="dribbble",
        hostnames=("dribbble.com",),
        profile_pattern=_profile_pattern(_DRIBBBLE_SECTIONS + ("shots",)),
        allow_patterns=(
            r"^/{profile}/?$",
            r"^/{profile}/(about|shots|projects|collections)/?$",
            r"^/shots/\d+[A-Za-z0-9_-]*/?$",
        ),
        deny_patterns=(
            r"^/shots/(popular|recent|following)(/|$)",
            _section_deny(_DRIBBBLE_SECTIONS),
            r"/(likes|followers|following)/?$",
        ),
        max_depth=2,
    ),
    PlatformRule(
        name="github",
        hostnames=("github.com",),
        profile_pattern=_profile_pattern(_GITHUB_SECTIONS, segment=_GITHUB_LOGIN),
        allow_patterns=(
            r"^/{profile}/?$",
            r"^/{profile}/[A-Za-z0-9_.-]+/?$",
        ),
        deny_patterns=(
            _section_deny(_GITHUB_SECTIONS),
            r"^/{profile}/[^/]+/(issues|pulls|actions|commits|blob|tree|releases|network|stargazers|watchers|forks|security|pulse|graphs|projects|wiki)(/|$)",
        ),
        max_depth=1,
    ),
    PlatformRule(
        name="artstation",
        hostnames=("artstation.com",),
        profile_pattern=_profile_pattern(_ARTSTATION_SECTIONS + ("artwork",)),
        allow_patterns=(
            r"^/{profile}/?$",
            r"^/{profile}/(albums|profile|likes)/?$",
            r"^/artwork/[A-Za-z0-9]+/?$",
        ),
        deny_patterns=(
            _section_deny(_ARTSTATION_SECTIONS),
        ),
        max_depth=2,
    ),
)


def _compile(patterns: tuple[str, ...], profile: str) -> tuple[Pattern, ...]:
    escaped = re.escape(profile)
    return tuple(re.compile(pattern.replace("{profile}", escaped)) for pattern in patterns)


def _default_policy(root_url: str) -> CrawlPolicy:
    return CrawlPolicy(root_url=root_url)


def classify(url: Optional[str], rules: tuple[PlatformRule, ...] = PLATFORM_RULES) -> Classification:
    """Classify a crawl root into a platform or default policy.

    Args:
        url: The crawl root URL
        rules: Platform rules to match against (defaults to the built-in registry)

    Returns:
        Classification carrying the resolved CrawlPolicy. Malformed URLs fall
        through to the default same-origin policy.
    """
    root_url = url or ""
    try:
        parsed = urlparse(root_url)
        hostname = parsed.hostname
    except (ValueError, TypeError, AttributeError):
        logger.debug(f"Could not parse {root_url!r}; using default policy")
        return Classification(policy=_default_policy(root_url))

    if not hostname:
        return Classification(policy=_default_policy(root_url))

    path = parsed.path or "/"
    for rule in rules:
        if not rule.matches_host(hostname):
            continue
        match = re.match(rule.profile_pattern, path)
        if not match:
            continue

        profile = match.groupdict().get("profile") or ""
        policy = CrawlPolicy(
            root_url=root_url,
            platform=rule.name,
            hostnames=rule.hostnames,
            allow=_compile(rule.allow_patterns, profile),
            deny=_compile(rule.deny_patterns, profile),
            max_depth=rule.max_depth,
        )
        logger.info(f"Recognized {rule.name} profile '{profile}' (max depth {rule.max_depth})")
        return Classification(policy=policy, is_platform_site=True)

    return Classification(policy=_default_policy(root_url))
