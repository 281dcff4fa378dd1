"""Core data models shared by the business ingestion pipeline."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

MAX_IMAGES = 5


@dataclass(slots=True)
class RawExtractedBusiness:
    """Normalized snapshot of one business as produced by an extractor."""

    name: str
    description: str = ""
    address: str = ""
    phone: str = ""
    email: str = ""
    website: str = ""
    images: List[str] = field(default_factory=list)
    source: str = ""

    @classmethod
    def from_mapping(cls, data: Dict[str, Any], source: str = "") -> "RawExtractedBusiness":
        """Build a record from loosely-typed model output, coercing every field to a string."""

        def _text(key: str) -> str:
            value = data.get(key)
            if value is None:
                return ""
            return str(value).strip()

        return cls(
            name=_text("name"),
            description=_text("description"),
            address=_text("address"),
            phone=_text("phone"),
            email=_text("email"),
            website=_text("website"),
            source=_text("source") or source,
        )


@dataclass(frozen=True, slots=True)
class ParsedAddress:
    street: str = ""
    city: str = ""
    state: str = ""
    zip: str = ""


@dataclass(frozen=True, slots=True)
class GeoCoordinate:
    latitude: float
    longitude: float
    formatted_address: str = ""


@dataclass(frozen=True, slots=True)
class DuplicateMatch:
    """Which signal matched an existing business, and the persisted record it matched."""

    match_type: str
    existing_business: Dict[str, Any] = field(repr=False)

    def to_dict(self) -> Dict[str, Any]:
        return {"match": self.match_type, "business": self.existing_business}


def unique_images(urls: List[str], limit: int = MAX_IMAGES) -> List[str]:
    """Drop empty and repeated image URLs, keeping the first ``limit`` in order."""

    result: List[str] = []
    for url in urls:
        if not url or url in result:
            continue
        result.append(url)
        if len(result) >= limit:
            break
    return result


def optional_text(value: Optional[str]) -> Optional[str]:
    if value is None:
        return None
    stripped = value.strip()
    return stripped or None
