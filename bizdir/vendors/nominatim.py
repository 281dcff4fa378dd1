"""Client utilities for the OpenStreetMap Nominatim search API."""

import logging
from typing import Optional

import requests

from bizdir.core.config import DEFAULT_GEOCODER_URL, DEFAULT_GEOCODER_USER_AGENT
from bizdir.models import GeoCoordinate

logger = logging.getLogger(__name__)
_SESSION = requests.Session()
_TIMEOUT = 10


def geocode(
    address: Optional[str],
    *,
    base_url: str = DEFAULT_GEOCODER_URL,
    user_agent: str = DEFAULT_GEOCODER_USER_AGENT,
) -> Optional[GeoCoordinate]:
    """Return the best match for ``address`` or ``None``; never raises."""
    query = (address or "").strip()
    if not query:
        return None

    params = {"format": "json", "q": query, "limit": 1}
    try:
        response = _SESSION.get(base_url, params=params, headers={"User-Agent": user_agent}, timeout=_TIMEOUT)
        if not response.ok:
            logger.error("Geocoding failed: status=%s reason=%s", response.status_code, response.reason)
            return None
        results = response.json()
        if not results:
            logger.info("No geocoding match for %s", query)
            return None
        first = results[0]
        return GeoCoordinate(
            latitude=float(first["lat"]),
            longitude=float(first["lon"]),
            formatted_address=first.get("display_name", ""),
        )
    except (requests.RequestException, ValueError, KeyError, TypeError) as exc:
        logger.warning("Geocoding error for %s: %s", query, exc)
        return None


class NominatimGeocoder:
    """Geocoder bound to configured endpoint settings."""

    def __init__(self, base_url: str = DEFAULT_GEOCODER_URL, user_agent: str = DEFAULT_GEOCODER_USER_AGENT) -> None:
        self.base_url = base_url
        self.user_agent = user_agent

    def geocode(self, address: Optional[str]) -> Optional[GeoCoordinate]:
        return geocode(address, base_url=self.base_url, user_agent=self.user_agent)
