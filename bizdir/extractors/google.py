"""Extract a business from a Google Maps / Business Profile page."""

import logging

from bizdir.core.errors import ExtractionError
from bizdir.core.sources import GOOGLE
from bizdir.extractors import structured
from bizdir.models import RawExtractedBusiness

logger = logging.getLogger(__name__)

SCHEMA_TYPES = ("LocalBusiness", "Restaurant", "Store")

# Google's obfuscated class names change often; these are the last known ones.
ADDRESS_SELECTORS = (
    '[data-value="Address"]',
    ".Io6YTe",
    '[data-value="address"]',
    ".rogA2c .Io6YTe",
    ".LrzXr",
)
PHONE_SELECTORS = (
    '[data-value="Phone"]',
    '[data-value="phone"]',
    'a[href^="tel:"]',
    '.rogA2c a[href^="tel:"]',
)
WEBSITE_SELECTORS = (
    'a[data-value="Website"]',
    'a[data-value="website"]',
    'a[aria-label*="Website"]',
)


class GoogleExtractor:
    source = GOOGLE

    def extract(self, html: str, url: str) -> RawExtractedBusiness:
        soup = structured.load_soup(html)
        business = RawExtractedBusiness(name="", source=url)

        structured.apply_json_ld(business, soup, SCHEMA_TYPES, url)

        if not business.name:
            business.name = (
                structured.meta_content(soup, prop="og:title")
                or structured.meta_content(soup, name="title")
                or structured.first_heading(soup)
                or structured.title_head(soup)
            )
        if not business.description:
            business.description = structured.meta_content(soup, prop="og:description") or structured.meta_content(
                soup, name="description"
            )

        if not business.address:
            business.address = structured.first_text(soup, ADDRESS_SELECTORS)
        if not business.phone:
            business.phone = structured.first_phone(soup, PHONE_SELECTORS)
        if not business.website:
            for selector in WEBSITE_SELECTORS:
                anchor = soup.select_one(selector)
                if anchor and anchor.get("href"):
                    business.website = anchor["href"]
                    break
            else:
                business.website = structured.first_external_link(soup, ("google",))

        structured.finalize(business)
        if not business.name:
            raise ExtractionError("Could not extract business name from Google Maps page")
        business.website = business.website or url
        logger.info("Extracted Google business %s", business.name)
        return business
