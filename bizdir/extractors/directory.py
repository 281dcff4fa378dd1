"""Language-model extraction of many businesses from a directory listing page."""

from __future__ import annotations

import json
import logging
import re
from typing import Any, List, Optional

from bizdir.core.errors import ExtractionError
from bizdir.extractors import structured
from bizdir.models import RawExtractedBusiness
from bizdir.vendors.llm import CompletionClient

logger = logging.getLogger(__name__)

MAX_PAGE_CHARS = 8000
SNIPPET_CHARS = 200

PROMPT_TEMPLATE = """Extract all {region} businesses from this directory page. Return ONLY a valid JSON array, no explanatory text.

Required format: [{{"name": "", "address": "", "phone": "", "website": "", "email": "", "description": ""}}]

Rules:
- Only include businesses with valid names and addresses
- If a field is not available, use an empty string
- Return ONLY the JSON array, no other text
- If no businesses are found, return an empty array: []

Raw HTML content: {content}"""

_FENCED_ARRAY = re.compile(r"```(?:json)?\s*(\[[\s\S]*?\])\s*```")
_ANY_ARRAY = re.compile(r"\[[\s\S]*\]")


def page_text(html: str, limit: int = MAX_PAGE_CHARS) -> str:
    """Visible body text, cut at ``limit`` characters (may split a listing in half)."""
    soup = structured.load_soup(html)
    for tag in soup(["script", "style", "noscript", "template"]):
        tag.decompose()
    root = soup.body or soup
    text = re.sub(r"\s+", " ", root.get_text(" ", strip=True))
    return text[:limit]


def build_prompt(content: str, region: str = "Johnston County") -> str:
    return PROMPT_TEMPLATE.format(region=region, content=content)


def parse_model_json_array(text: Optional[str]) -> List[Any]:
    """Recover a JSON array from free-form model output.

    Tries, in order: the contents of a markdown code fence, the slice between
    the first ``[`` and the last ``]``, the whole text, and finally a regex
    search for any bracketed span.
    """
    if not text or not text.strip():
        raise ExtractionError("Empty response from completion endpoint")

    raw = text.strip()
    fenced = _FENCED_ARRAY.search(raw)
    if fenced:
        candidate = fenced.group(1).strip()
    else:
        start, end = raw.find("["), raw.rfind("]")
        candidate = raw[start : end + 1] if start != -1 and end > start else raw

    try:
        parsed = json.loads(candidate)
    except ValueError as parse_error:
        logger.warning("Model response is not clean JSON: %s", raw[:500])
        rescue = _ANY_ARRAY.search(candidate)
        if not rescue:
            raise ExtractionError(
                f"Failed to parse JSON from model response: {parse_error}. Response: {raw[:SNIPPET_CHARS]}"
            ) from parse_error
        try:
            parsed = json.loads(rescue.group(0))
        except ValueError:
            raise ExtractionError(
                f"Failed to parse JSON from model response: {parse_error}. Extracted text: {candidate[:SNIPPET_CHARS]}"
            ) from parse_error

    if not isinstance(parsed, list):
        raise ExtractionError("Model response is not an array")
    return parsed


class DirectoryExtractor:
    """Send a truncated page extract to the model and parse the business list it returns."""

    source = "directory"

    def __init__(self, client: CompletionClient, *, region: str = "Johnston County", max_chars: int = MAX_PAGE_CHARS) -> None:
        self.client = client
        self.region = region
        self.max_chars = max_chars

    def extract_businesses(self, html: str, url: str) -> List[RawExtractedBusiness]:
        prompt = build_prompt(page_text(html, self.max_chars), self.region)
        response_text = self.client.complete(prompt)
        items = parse_model_json_array(response_text)

        businesses = [RawExtractedBusiness.from_mapping({**item, "source": url}) for item in items if isinstance(item, dict)]
        skipped = len(items) - len(businesses)
        if skipped:
            logger.warning("Ignored %d non-object entries in model output for %s", skipped, url)
        logger.info("Model returned %d businesses for %s", len(businesses), url)
        return businesses
