"""URL classification: which extractor applies, and whether the page must be rendered."""

import re

GOOGLE = "google"
YELP = "yelp"
GENERAL = "general"
SOURCES = (GOOGLE, YELP, GENERAL)

_GOOGLE_MARKERS = ("google.com/maps", "google.com/place", "maps.google.com")
_YELP_MARKERS = ("yelp.com/biz/", "yelp.com/")

# Google Maps and Yelp pages are not listed here; their extractors rely on
# structured data that ships in the initial HTML.
_RENDER_PATTERNS = (
    re.compile(r"sosnc\.gov", re.IGNORECASE),
    re.compile(r"javascript", re.IGNORECASE),
    re.compile(r"\.aspx", re.IGNORECASE),
    re.compile(r"\.php\?", re.IGNORECASE),
)


def is_google_url(url: str) -> bool:
    if not url:
        return False
    return any(marker in url for marker in _GOOGLE_MARKERS)


def is_yelp_url(url: str) -> bool:
    if not url:
        return False
    return any(marker in url for marker in _YELP_MARKERS)


def classify_source(url: str) -> str:
    if is_google_url(url):
        return GOOGLE
    if is_yelp_url(url):
        return YELP
    return GENERAL


def needs_rendering(url: str) -> bool:
    """True when the page content is only available after client-side scripts run."""
    if not url:
        return False
    return any(pattern.search(url) for pattern in _RENDER_PATTERNS)


def normalize_url(url: str) -> str:
    """Prefix ``https://`` when the URL carries no scheme."""
    stripped = (url or "").strip()
    if stripped.startswith("http"):
        return stripped
    return f"https://{stripped}"
