"""Extract a business from a Yelp business page."""

import logging

from bizdir.core.errors import ExtractionError
from bizdir.core.sources import YELP
from bizdir.extractors import structured
from bizdir.models import RawExtractedBusiness

logger = logging.getLogger(__name__)

SCHEMA_TYPES = ("LocalBusiness", "Restaurant", "FoodEstablishment")

ADDRESS_SELECTORS = (
    '[class*="address"]',
    '[class*="Address"]',
    "address",
    '[data-testid="address"]',
    ".css-1vhakgw",
)
PHONE_SELECTORS = (
    'a[href^="tel:"]',
    '[class*="phone"]',
    '[class*="Phone"]',
    '[data-testid="phone"]',
)
WEBSITE_SELECTORS = (
    'a[class*="website"]',
    'a[class*="Website"]',
    'a[data-testid="website"]',
)


class YelpExtractor:
    source = YELP

    def extract(self, html: str, url: str) -> RawExtractedBusiness:
        soup = structured.load_soup(html)
        business = RawExtractedBusiness(name="", source=url)

        structured.apply_json_ld(business, soup, SCHEMA_TYPES, url)

        if not business.name:
            business.name = (
                structured.meta_content(soup, prop="og:title")
                or structured.meta_content(soup, name="yelp-biz-name")
                or structured.first_heading(soup)
                or structured.title_head(soup)
            )
        if not business.description:
            business.description = (
                structured.meta_content(soup, prop="og:description")
                or structured.meta_content(soup, name="description")
                or structured.first_text(soup, ('p[class*="comment"]',))
            )

        if not business.address:
            business.address = structured.first_text(soup, ADDRESS_SELECTORS, min_length=11)
        if not business.phone:
            business.phone = structured.first_phone(soup, PHONE_SELECTORS, min_length=10)
        if not business.website:
            business.website = self._website(soup)
        if not business.images:
            business.images = [
                src
                for src in structured.collect_img_sources(soup, ('img[class*="photo"]',), url)
                if "yelp" not in src
            ]

        structured.finalize(business)
        if not business.name:
            raise ExtractionError("Could not extract business name from Yelp page")
        logger.info("Extracted Yelp business %s", business.name)
        return business

    @staticmethod
    def _website(soup) -> str:
        link = ""
        for selector in WEBSITE_SELECTORS:
            anchor = soup.select_one(selector)
            if anchor and anchor.get("href"):
                link = anchor["href"]
                break
        if not link:
            link = structured.first_external_link(soup, ("yelp", "facebook"))
        if "yelp.com" in link:
            return ""
        return link
