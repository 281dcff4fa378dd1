"""Extract a business from its own website using structured data, meta tags and heuristics."""

import logging
from urllib.parse import urlparse

from bs4 import BeautifulSoup

from bizdir.core.errors import ExtractionError
from bizdir.core.sources import GENERAL
from bizdir.extractors import structured
from bizdir.models import RawExtractedBusiness, unique_images

logger = logging.getLogger(__name__)

SCHEMA_TYPES = ("LocalBusiness", "Restaurant", "Store", "Organization", "Business", "FoodEstablishment")

ADDRESS_SELECTORS = (
    '[class*="address"]',
    '[id*="address"]',
    "address",
    '[class*="contact"] [class*="address"]',
    ".address",
    "#address",
)
PHONE_SELECTORS = (
    'a[href^="tel:"]',
    '[class*="phone"]',
    '[id*="phone"]',
    '[class*="contact"] [class*="phone"]',
)
LOGO_SELECTORS = (
    'img[class*="logo"]',
    'img[class*="Logo"]',
    'img[id*="logo"]',
    'img[alt*="logo"]',
    'img[alt*="Logo"]',
)


def name_from_domain(url: str) -> str:
    host = (urlparse(url).hostname or "").lower()
    if host.startswith("www."):
        host = host[4:]
    label = host.split(".")[0]
    return label[:1].upper() + label[1:]


class GeneralExtractor:
    source = GENERAL

    def extract(self, html: str, url: str) -> RawExtractedBusiness:
        soup = structured.load_soup(html)
        business = RawExtractedBusiness(name="", source=url)

        structured.apply_json_ld(business, soup, SCHEMA_TYPES, url)
        self._prepend_logo(business, soup, url)

        if not business.name:
            business.name = (
                structured.meta_content(soup, prop="og:title")
                or structured.meta_content(soup, prop="og:site_name")
                or structured.title_head(soup)
            )
        if not business.description:
            business.description = structured.meta_content(soup, prop="og:description") or structured.meta_content(
                soup, name="description"
            )

        if not business.name:
            business.name = structured.first_text(soup, ('[itemprop="name"]',))
        if not business.description:
            business.description = structured.first_text(soup, ('[itemprop="description"]',))

        if not business.address:
            business.address = self._address(soup)
        if not business.phone:
            business.phone = self._phone(soup)
        if not business.email:
            business.email = structured.find_email(soup)
        if not business.images:
            business.images = self._images(soup, url)

        structured.finalize(business)
        business.website = business.website or url
        if not business.name:
            business.name = name_from_domain(url)
        if not business.name:
            raise ExtractionError("Could not extract business name from website")
        logger.info("Extracted business %s from %s", business.name, url)
        return business

    @staticmethod
    def _prepend_logo(business: RawExtractedBusiness, soup: BeautifulSoup, url: str) -> None:
        for data in structured.iter_json_ld(soup):
            if not structured.type_matches(data, SCHEMA_TYPES):
                continue
            logo = data.get("logo")
            if isinstance(logo, dict):
                logo = logo.get("url")
            if isinstance(logo, str) and logo.strip():
                business.images = unique_images([structured.absolute_url(logo, url)] + business.images)
                return

    @staticmethod
    def _address(soup: BeautifulSoup) -> str:
        street = structured.first_text(soup, ('[itemprop="streetAddress"]',))
        if street:
            locality = structured.first_text(soup, ('[itemprop="addressLocality"]',))
            region = structured.first_text(soup, ('[itemprop="addressRegion"]',))
            postal = structured.first_text(soup, ('[itemprop="postalCode"]',))
            region_zip = " ".join(part for part in (region, postal) if part)
            return ", ".join(part for part in (street, locality, region_zip) if part)
        return structured.first_text(soup, ADDRESS_SELECTORS, min_length=11, require_digit=True)

    @staticmethod
    def _phone(soup: BeautifulSoup) -> str:
        node = soup.select_one('[itemprop="telephone"]')
        if node is not None:
            value = node.get_text(" ", strip=True) or (node.get("content") or "").strip()
            if value:
                return value
        return structured.first_phone(soup, PHONE_SELECTORS, require_digit=True)

    @staticmethod
    def _images(soup: BeautifulSoup, url: str) -> list:
        candidates = []
        og_image = structured.meta_content(soup, prop="og:image")
        if og_image:
            candidates.append(structured.absolute_url(og_image, url))
        for selector in LOGO_SELECTORS:
            found = structured.collect_img_sources(soup, (selector,), url)
            if found:
                candidates.append(found[0])
        return unique_images(candidates)
