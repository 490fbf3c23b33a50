"""
Best-effort request classification: user agent, referrer, screen, country.

The user-agent classifier is an ordered substring rule list, first match
wins. It is not a parser: Edge and Opera report "Chrome" in their UA string
and are labelled Chrome. Rule order must not change without a data migration.
"""

from urllib.parse import urlparse

UNKNOWN_BROWSER = "Unknown"
DEFAULT_DEVICE = "desktop"

DEVICE_RULES: tuple[tuple[str, tuple[str, ...]], ...] = (
    ("mobile", ("Mobile", "Android")),
    ("tablet", ("Tablet", "iPad")),
)

BROWSER_RULES: tuple[str, ...] = ("Firefox", "Chrome", "Safari", "Edge")

# Upper bounds (exclusive) in CSS pixels
SCREEN_BUCKETS: tuple[tuple[int, str], ...] = (
    (768, "small"),
    (1024, "medium"),
    (1440, "large"),
)
LARGEST_SCREEN_BUCKET = "xlarge"

# Cloudflare placeholders for unknown country and Tor exit nodes
_COUNTRY_PLACEHOLDERS = {"XX", "T1"}


def classify_user_agent(ua: str | None) -> tuple[str, str]:
    """Return ``(browser, device_type)`` for a User-Agent header value."""
    if not ua:
        return UNKNOWN_BROWSER, DEFAULT_DEVICE

    device_type = DEFAULT_DEVICE
    for label, needles in DEVICE_RULES:
        if any(needle in ua for needle in needles):
            device_type = label
            break

    browser = next((name for name in BROWSER_RULES if name in ua), UNKNOWN_BROWSER)
    return browser, device_type


def extract_registrable_domain(url: str | None) -> str | None:
    """
    Hostname of *url* with one leading ``www.`` removed.

    Only that exact prefix is stripped; other subdomains are kept as-is.
    Returns None for empty, unparseable or host-less input.
    """
    if not url:
        return None
    try:
        hostname = urlparse(url).hostname
    except ValueError:
        return None
    if not hostname:
        return None
    if hostname.startswith("www."):
        hostname = hostname[len("www."):]
    return hostname or None


def screen_bucket(width: int | None) -> str | None:
    if width is None or width < 0:
        return None
    for upper, label in SCREEN_BUCKETS:
        if width < upper:
            return label
    return LARGEST_SCREEN_BUCKET


def normalize_country(value: str | None) -> str | None:
    """Two-letter upper-case country code, or None."""
    if not value:
        return None
    code = value.strip().upper()
    if len(code) != 2 or not code.isalpha() or code in _COUNTRY_PLACEHOLDERS:
        return None
    return code
