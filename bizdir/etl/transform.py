"""Utilities for turning extracted businesses into directory rows."""

import logging
import re
from typing import Any, Dict, Optional

from bizdir.models import GeoCoordinate, ParsedAddress, RawExtractedBusiness, optional_text

logger = logging.getLogger(__name__)

# First match wins: "street, city, ST ZIP", "street, city, ST", "city, ST".
_ADDRESS_PATTERNS = (
    re.compile(r"^(.+?),\s*(.+?),\s*([A-Z]{2})\s+(\d{5}(?:-\d{4})?)$"),
    re.compile(r"^(.+?),\s*(.+?),\s*([A-Z]{2})$"),
    re.compile(r"^(.+?),\s*([A-Z]{2})$"),
)
_STATE_ZIP = re.compile(r"^([A-Z]{2})(?:\s+(\d{5}(?:-\d{4})?))?$")


def parse_address(address_text: Optional[str]) -> ParsedAddress:
    """Split a US-style address into street, city, state and zip.

    Text that matches no known shape is returned whole as the street so a
    stored business always keeps some address.
    """
    if not address_text:
        return ParsedAddress()

    text = address_text.strip()
    for pattern in _ADDRESS_PATTERNS:
        match = pattern.fullmatch(text)
        if not match:
            continue
        groups = [group.strip() for group in match.groups()]
        if len(groups) == 4:
            return ParsedAddress(street=groups[0], city=groups[1], state=groups[2], zip=groups[3])
        if len(groups) == 3:
            return ParsedAddress(street=groups[0], city=groups[1], state=groups[2])
        return ParsedAddress(city=groups[0], state=groups[1])

    parts = [part.strip() for part in text.split(",")]
    if len(parts) >= 2:
        state_zip = _STATE_ZIP.fullmatch(parts[-1])
        if state_zip:
            return ParsedAddress(
                street=", ".join(parts[:-2]),
                city=parts[-2],
                state=state_zip.group(1),
                zip=state_zip.group(2) or "",
            )

    return ParsedAddress(street=address_text)


def to_business_record(
    business: RawExtractedBusiness,
    *,
    parsed: ParsedAddress,
    coordinates: Optional[GeoCoordinate],
    category_id: Optional[str],
    default_city: str,
    default_state: str,
    description_limit: Optional[int] = None,
) -> Dict[str, Any]:
    """Assemble the row that would be stored for ``business``, applying local defaults."""
    description = (business.description or "").strip()
    if description_limit is not None:
        description = description[:description_limit]

    return {
        "name": (business.name or "").strip(),
        "description": description,
        "address": parsed.street or (business.address or "").strip(),
        "city": parsed.city or default_city,
        "state": parsed.state or default_state,
        "zip": parsed.zip,
        "phone": optional_text(business.phone),
        "email": optional_text(business.email),
        "website": optional_text(business.website),
        "categoryId": category_id or None,
        "latitude": coordinates.latitude if coordinates else None,
        "longitude": coordinates.longitude if coordinates else None,
        "images": list(business.images),
        "source": business.source or None,
    }
