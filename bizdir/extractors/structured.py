"""HTML helpers shared by the per-source business extractors."""

from __future__ import annotations

import json
import logging
import re
from typing import Any, Dict, Iterable, Iterator, List, Optional, Sequence
from urllib.parse import urljoin

from bs4 import BeautifulSoup, Tag

from bizdir.models import MAX_IMAGES, RawExtractedBusiness, unique_images

logger = logging.getLogger(__name__)

EMAIL_REGEX = re.compile(r"[A-Z0-9._%+-]+@[A-Z0-9.-]+\.[A-Z]{2,}", re.IGNORECASE)


def load_soup(html: str) -> BeautifulSoup:
    return BeautifulSoup(html or "", "html.parser")


def iter_json_ld(soup: BeautifulSoup) -> Iterator[Dict[str, Any]]:
    """Yield every JSON-LD object on the page, unwrapping top-level lists and ``@graph``."""
    for script in soup.find_all("script", attrs={"type": "application/ld+json"}):
        raw = script.string or script.get_text()
        if not raw or not raw.strip():
            continue
        try:
            data = json.loads(raw)
        except ValueError:
            logger.debug("Skipping invalid JSON-LD block")
            continue

        items = data if isinstance(data, list) else [data]
        for item in items:
            if not isinstance(item, dict):
                continue
            graph = item.get("@graph")
            if isinstance(graph, list):
                yield from (node for node in graph if isinstance(node, dict))
            else:
                yield item


def type_matches(data: Dict[str, Any], accepted: Iterable[str]) -> bool:
    declared = data.get("@type")
    declared_types = declared if isinstance(declared, list) else [declared]
    accepted_set = set(accepted)
    return any(isinstance(value, str) and value in accepted_set for value in declared_types)


def flatten_address(address: Any) -> str:
    """Render a JSON-LD address (string or PostalAddress object) as one line."""
    if isinstance(address, str):
        return address.strip()
    if isinstance(address, list) and address:
        return flatten_address(address[0])
    if not isinstance(address, dict):
        return ""

    street = str(address.get("streetAddress") or "").strip()
    if not street:
        return ""
    locality = str(address.get("addressLocality") or "").strip()
    region_zip = " ".join(
        part for part in (str(address.get("addressRegion") or "").strip(), str(address.get("postalCode") or "").strip()) if part
    )
    return ", ".join(part for part in (street, locality, region_zip) if part)


def absolute_url(src: str, base_url: str) -> str:
    src = (src or "").strip()
    if not src or src.startswith("http"):
        return src
    return urljoin(base_url, src)


def image_urls(value: Any, base_url: str) -> List[str]:
    """Normalise a JSON-LD ``image`` value (string, object or list) to absolute URLs."""
    values = value if isinstance(value, list) else [value]
    urls: List[str] = []
    for item in values:
        if isinstance(item, dict):
            item = item.get("url") or item.get("contentUrl")
        if isinstance(item, str) and item.strip():
            urls.append(absolute_url(item, base_url))
    return unique_images(urls)


def apply_json_ld(business: RawExtractedBusiness, soup: BeautifulSoup, accepted_types: Sequence[str], base_url: str) -> None:
    """Fill empty fields of ``business`` from business-like JSON-LD blocks."""
    for data in iter_json_ld(soup):
        if not type_matches(data, accepted_types):
            continue

        if data.get("name") and not business.name:
            business.name = str(data["name"]).strip()
        if data.get("description") and not business.description:
            business.description = str(data["description"]).strip()
        if data.get("address") and not business.address:
            business.address = flatten_address(data["address"])
        if data.get("telephone") and not business.phone:
            business.phone = str(data["telephone"]).strip()
        if data.get("url") and not business.website:
            business.website = str(data["url"]).strip()
        if data.get("email") and not business.email:
            business.email = str(data["email"]).replace("mailto:", "").strip()
        if data.get("image") and not business.images:
            business.images = image_urls(data["image"], base_url)


def meta_content(soup: BeautifulSoup, *, prop: Optional[str] = None, name: Optional[str] = None) -> str:
    attrs = {"property": prop} if prop else {"name": name}
    tag = soup.find("meta", attrs=attrs)
    if tag and tag.get("content"):
        return tag["content"].strip()
    return ""


def title_head(soup: BeautifulSoup) -> str:
    """Page ``<title>`` up to the first `` - `` (drops "| Site name" style suffixes)."""
    if not soup.title:
        return ""
    return soup.title.get_text().split(" - ")[0].strip()


def first_heading(soup: BeautifulSoup) -> str:
    heading = soup.find("h1")
    return heading.get_text(" ", strip=True) if heading else ""


def first_text(
    soup: BeautifulSoup,
    selectors: Sequence[str],
    *,
    min_length: int = 1,
    require_digit: bool = False,
) -> str:
    """Text of the first node matched by the first selector that yields acceptable text."""
    for selector in selectors:
        node = soup.select_one(selector)
        if node is None:
            continue
        text = node.get_text(" ", strip=True)
        if len(text) < min_length:
            continue
        if require_digit and not re.search(r"\d", text):
            continue
        return text
    return ""


def tel_value(node: Tag) -> str:
    text = node.get_text(" ", strip=True)
    if text:
        return text
    href = node.get("href") or ""
    if href.lower().startswith("tel:"):
        return href.split(":", 1)[1].strip()
    return ""


def first_phone(
    soup: BeautifulSoup,
    selectors: Sequence[str],
    *,
    min_length: int = 1,
    require_digit: bool = False,
) -> str:
    for selector in selectors:
        node = soup.select_one(selector)
        if node is None:
            continue
        value = tel_value(node)
        if len(value) < min_length:
            continue
        if require_digit and not re.search(r"\d", value):
            continue
        return value
    return ""


def first_external_link(soup: BeautifulSoup, excluded_hosts: Sequence[str]) -> str:
    for anchor in soup.select('a[href^="http"]'):
        href = anchor.get("href", "").strip()
        if href and not any(host in href for host in excluded_hosts):
            return href
    return ""


def find_email(soup: BeautifulSoup) -> str:
    anchor = soup.select_one('a[href^="mailto:"]')
    if anchor:
        value = anchor["href"].split(":", 1)[1].split("?")[0].strip()
        if value:
            return value
    body = soup.body or soup
    match = EMAIL_REGEX.search(body.get_text(" ", strip=True))
    return match.group(0) if match else ""


def collect_img_sources(soup: BeautifulSoup, selectors: Sequence[str], base_url: str) -> List[str]:
    urls: List[str] = []
    for selector in selectors:
        for img in soup.select(selector):
            src = img.get("src") or img.get("data-src")
            if src:
                urls.append(absolute_url(src, base_url))
    return urls


def finalize(business: RawExtractedBusiness) -> RawExtractedBusiness:
    """Trim every string field and enforce the image cap."""
    business.name = (business.name or "").strip()
    business.description = (business.description or "").strip()
    business.address = (business.address or "").strip()
    business.phone = (business.phone or "").strip()
    business.email = (business.email or "").strip()
    business.website = (business.website or "").strip()
    business.images = unique_images([image.strip() for image in business.images], MAX_IMAGES)
    return business
