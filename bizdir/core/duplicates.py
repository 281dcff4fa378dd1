"""Layered duplicate detection against businesses already in the directory.

Signals are checked strongest first and the first hit wins:

1. ``name_and_address``: same name (case-insensitive) and the candidate's
   street segment (text before the first comma) appears in the stored address.
2. ``website``: same host once scheme and ``www.`` are stripped. Google and
   Yelp hosts never match, since those URLs point at the listing page.
3. ``phone``: same last ten digits.
4. ``name``: same name after lower-casing and collapsing whitespace.

The check is advisory. Store failures are logged and reported as "no
duplicate" so ingestion is never blocked by an infrastructure error.
"""

import logging
import re
from typing import Any, Dict, Optional
from urllib.parse import urlparse

from bizdir.models import DuplicateMatch

logger = logging.getLogger(__name__)

NAME_AND_ADDRESS = "name_and_address"
WEBSITE = "website"
PHONE = "phone"
NAME = "name"

_MIN_PHONE_DIGITS = 10
_PLATFORM_HOST = re.compile(r"(?:^|\.)(?:google|yelp)\.[a-z.]+$")


def normalize_name(value: Optional[str]) -> str:
    return re.sub(r"\s+", " ", (value or "").lower().strip())


def normalize_phone(value: Optional[str]) -> str:
    return re.sub(r"\D", "", value or "")


def normalize_website(value: Optional[str]) -> str:
    if not value:
        return ""
    raw = value.strip()
    candidate = raw if raw.startswith("http") else f"https://{raw}"
    try:
        host = urlparse(candidate).hostname or ""
    except ValueError:
        host = ""
    if not host:
        host = raw.lower().split("/")[0]
    host = re.sub(r"^www\.", "", host.lower())
    if _PLATFORM_HOST.search(host):
        return ""
    return host


def _field(candidate: Any, name: str) -> Optional[str]:
    if isinstance(candidate, dict):
        return candidate.get(name)
    return getattr(candidate, name, None)


def find_duplicate(candidate: Any, store) -> Optional[DuplicateMatch]:
    """Return the first matching persisted business, or ``None``.

    ``candidate`` may be a ``RawExtractedBusiness`` or a mapping with
    ``name``, ``address``, ``website`` and ``phone`` keys.
    """
    try:
        return _find_duplicate(candidate, store)
    except Exception as exc:  # noqa: BLE001
        logger.warning("Duplicate check failed for %r: %s", _field(candidate, "name"), exc)
        return None


def _find_duplicate(candidate: Any, store) -> Optional[DuplicateMatch]:
    name = (_field(candidate, "name") or "").strip()
    address = (_field(candidate, "address") or "").strip()
    normalized_name = normalize_name(name)
    normalized_phone = normalize_phone(_field(candidate, "phone"))
    normalized_website = normalize_website(_field(candidate, "website"))

    if normalized_name and address:
        street = address.split(",")[0].strip()
        existing = store.find_business_by_name_and_address(name, street)
        if existing:
            return DuplicateMatch(NAME_AND_ADDRESS, existing)

    if normalized_website:
        for existing in store.find_businesses_with_website():
            if existing.get("website") and normalize_website(existing["website"]) == normalized_website:
                return DuplicateMatch(WEBSITE, existing)

    if len(normalized_phone) >= _MIN_PHONE_DIGITS:
        for existing in store.find_businesses_with_phone():
            if not existing.get("phone"):
                continue
            if normalize_phone(existing["phone"])[-10:] == normalized_phone[-10:]:
                return DuplicateMatch(PHONE, existing)

    if normalized_name:
        existing = store.find_business_by_name(name)
        if existing and normalize_name(existing.get("name")) == normalized_name:
            return DuplicateMatch(NAME, existing)

    return None


def describe(match: Optional[DuplicateMatch]) -> Optional[Dict[str, Any]]:
    return match.to_dict() if match else None
