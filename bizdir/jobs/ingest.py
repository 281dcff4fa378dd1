"""Business ingestion: scrape one business page, or bulk-import directory listing pages."""

import argparse
import json
import logging
import time
from datetime import datetime, timezone
from typing import Any, Callable, Dict, List, Optional, Sequence
from urllib.parse import urlparse

from bizdir.core.config import ConfigError, Settings, get_settings
from bizdir.core.db import PostgresBusinessStore
from bizdir.core.deadline import Deadline
from bizdir.core.duplicates import describe, find_duplicate
from bizdir.core.errors import CategoryResolutionError, IngestError, ValidationError
from bizdir.core.fetcher import PageFetcher
from bizdir.core.sources import GENERAL, GOOGLE, SOURCES, YELP, classify_source, normalize_url
from bizdir.etl.transform import parse_address, to_business_record
from bizdir.extractors.directory import DirectoryExtractor
from bizdir.extractors.general import GeneralExtractor
from bizdir.extractors.google import GoogleExtractor
from bizdir.extractors.yelp import YelpExtractor
from bizdir.models import RawExtractedBusiness
from bizdir.vendors.llm import CompletionClient
from bizdir.vendors.nominatim import NominatimGeocoder

logger = logging.getLogger(__name__)

DESCRIPTION_LIMIT = 1000
MISSING_FIELDS = "Missing required fields: name and address"


def default_extractors() -> Dict[str, Any]:
    return {GOOGLE: GoogleExtractor(), YELP: YelpExtractor(), GENERAL: GeneralExtractor()}


def validate_url(url: Optional[str]) -> str:
    """Return the URL with a scheme, or raise ``ValidationError``."""
    if not url or not str(url).strip():
        raise ValidationError("URL is required")
    full_url = normalize_url(str(url))
    try:
        parsed = urlparse(full_url)
    except ValueError as exc:
        raise ValidationError("Invalid URL format") from exc
    if parsed.scheme not in {"http", "https"} or not parsed.netloc or any(ch.isspace() for ch in full_url):
        raise ValidationError("Invalid URL format")
    return full_url


def _empty_batch_result(total_urls: int) -> Dict[str, Any]:
    return {
        "success": True,
        "totalUrls": total_urls,
        "totalFound": 0,
        "totalSaved": 0,
        "totalDuplicates": 0,
        "totalErrors": 0,
        "urlResults": [],
        "errors": [],
        "partial": False,
        "processedUrls": 0,
    }


class BusinessIngestionPipeline:
    """classify -> fetch -> extract -> parse address -> geocode -> dedupe -> (optionally) persist."""

    def __init__(
        self,
        settings: Settings,
        store,
        *,
        fetcher: Optional[PageFetcher] = None,
        geocoder: Optional[NominatimGeocoder] = None,
        directory_extractor: Optional[DirectoryExtractor] = None,
        extractors: Optional[Dict[str, Any]] = None,
        sleep: Callable[[float], None] = time.sleep,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.settings = settings
        self.store = store
        self.fetcher = fetcher or PageFetcher(settings)
        self.geocoder = geocoder or NominatimGeocoder(settings.geocoder_url, settings.geocoder_user_agent)
        self.directory_extractor = directory_extractor or DirectoryExtractor(CompletionClient(settings))
        self.extractors = extractors or default_extractors()
        self._sleep = sleep
        self._clock = clock

    # ---------- shared ----------

    def resolve_category(self, category_id: Optional[str], record: Optional[Dict[str, Any]] = None) -> str:
        if category_id:
            return category_id
        category = self.store.find_first_category_alphabetically()
        if not category:
            raise CategoryResolutionError("No category provided and no default category found", record=record)
        logger.info("Using default category %s", category["id"])
        return category["id"]

    def _geocode(self, address: str):
        if not address:
            return None
        coordinates = self.geocoder.geocode(address)
        if coordinates is None:
            logger.warning("Could not geocode %s; coordinates left unset", address)
        return coordinates

    def _record(self, business: RawExtractedBusiness, coordinates, category_id, **kwargs) -> Dict[str, Any]:
        return to_business_record(
            business,
            parsed=parse_address(business.address),
            coordinates=coordinates,
            category_id=category_id,
            default_city=self.settings.default_city,
            default_state=self.settings.default_state,
            **kwargs,
        )

    # ---------- single business ----------

    def ingest_one(
        self,
        url: Optional[str],
        source: Optional[str] = None,
        category_id: Optional[str] = None,
        persist: bool = False,
    ) -> Dict[str, Any]:
        full_url = validate_url(url)
        detected_source = source or classify_source(full_url)
        extractor = self.extractors.get(detected_source)
        if extractor is None:
            raise ValidationError(f"Unknown source: {detected_source}")

        logger.info("Scraping %s as %s", full_url, detected_source)
        html = self.fetcher.fetch_html(full_url)
        scraped = extractor.extract(html, full_url)

        coordinates = self._geocode(scraped.address)
        duplicate = find_duplicate(scraped, self.store)
        record = self._record(scraped, coordinates, category_id)

        saved = None
        if persist and duplicate is None:
            if not record["name"] or not record["address"]:
                raise ValidationError(f"{MISSING_FIELDS} are required", record=record)
            record["categoryId"] = self.resolve_category(category_id, record)
            saved = self.store.create_business(record)
            logger.info("Saved business %s", record["name"])
        elif duplicate is not None:
            logger.info("Business %s matches an existing record by %s", record["name"], duplicate.match_type)

        return {
            "success": True,
            "scrapedData": record,
            "duplicate": describe(duplicate),
            "savedBusiness": saved,
            "detectedSource": detected_source,
            "geocoded": coordinates is not None,
        }

    # ---------- directory pages ----------

    def process_business(self, business: RawExtractedBusiness, category_id: str) -> Dict[str, Any]:
        """Validate, dedupe and store one extracted business; failures are reported, not raised."""
        outcome: Dict[str, Any] = {"saved": False, "duplicate": False, "error": None, "business": None}
        try:
            if not business.name or not business.address:
                outcome["error"] = MISSING_FIELDS
                return outcome

            if find_duplicate(business, self.store) is not None:
                outcome["duplicate"] = True
                return outcome

            coordinates = self._geocode(business.address)
            record = self._record(business, coordinates, category_id, description_limit=DESCRIPTION_LIMIT)
            record["source"] = business.source or "directory"
            outcome["business"] = self.store.create_business(record)
            outcome["saved"] = True
        except Exception as exc:  # noqa: BLE001
            logger.warning("Failed to process business %s: %s", business.name, exc)
            outcome["error"] = str(exc)
        return outcome

    def ingest_from_directories(self, urls: Optional[Sequence[str]], category_id: Optional[str] = None) -> Dict[str, Any]:
        if not urls or isinstance(urls, str) or not isinstance(urls, (list, tuple)):
            raise ValidationError("URLs array is required")

        deadline = Deadline(
            self.settings.max_execution_seconds,
            buffer_seconds=self.settings.time_buffer_seconds,
            clock=self._clock,
        )
        default_category_id = self.resolve_category(category_id)
        results = _empty_batch_result(len(urls))
        limit = self.settings.max_businesses_per_url

        for index, url in enumerate(urls):
            if deadline.expired():
                logger.warning("Time budget exhausted, stopping after %d URLs", index)
                results["partial"] = True
                results["errors"].append(
                    {
                        "url": "Timeout",
                        "error": (
                            f"Function timeout approaching. Processed {index} of {len(urls)} URLs. "
                            "Please try with fewer URLs or process in batches."
                        ),
                    }
                )
                break

            url_result: Dict[str, Any] = {"url": url, "found": 0, "saved": 0, "duplicates": 0, "errors": []}
            try:
                logger.info("Processing URL %d/%d: %s", index + 1, len(urls), url)
                html = self.fetcher.fetch_html(url)

                if deadline.expired():
                    logger.warning("Time budget exhausted after fetching %s", url)
                    url_result["errors"].append({"business": "URL processing", "error": "Timeout after fetching HTML"})
                    results["totalErrors"] += 1
                    results["urlResults"].append(url_result)
                    results["partial"] = True
                    break

                businesses = self.directory_extractor.extract_businesses(html, url)
                url_result["found"] = len(businesses)
                results["totalFound"] += len(businesses)

                if len(businesses) > limit:
                    logger.warning("Capping %s at %d of %d businesses", url, limit, len(businesses))
                    url_result["errors"].append(
                        {
                            "business": "Processing limit",
                            "error": f"Only processing first {limit} of {len(businesses)} businesses to prevent timeout",
                        }
                    )

                for business in businesses[:limit]:
                    if deadline.expired():
                        logger.warning("Time budget exhausted while processing %s", url)
                        results["partial"] = True
                        break

                    outcome = self.process_business(business, default_category_id)
                    if outcome["saved"]:
                        url_result["saved"] += 1
                        results["totalSaved"] += 1
                    elif outcome["duplicate"]:
                        url_result["duplicates"] += 1
                        results["totalDuplicates"] += 1
                    elif outcome["error"]:
                        url_result["errors"].append({"business": business.name, "error": outcome["error"]})
                        results["totalErrors"] += 1

                if index < len(urls) - 1 and deadline.has_time():
                    self._sleep(self.settings.inter_url_delay_seconds)
            except IngestError as exc:
                logger.warning("Failed to process %s: %s", url, exc)
                self._record_url_failure(results, url_result, url, exc)
            except Exception as exc:  # noqa: BLE001
                logger.exception("Unexpected error processing %s", url)
                self._record_url_failure(results, url_result, url, exc)

            results["urlResults"].append(url_result)
            results["processedUrls"] = index + 1

        logger.info(
            "Directory run finished: urls=%d/%d found=%d saved=%d duplicates=%d errors=%d partial=%s",
            results["processedUrls"],
            results["totalUrls"],
            results["totalFound"],
            results["totalSaved"],
            results["totalDuplicates"],
            results["totalErrors"],
            results["partial"],
        )
        return results

    @staticmethod
    def _record_url_failure(results: Dict[str, Any], url_result: Dict[str, Any], url: str, exc: Exception) -> None:
        url_result["errors"].append({"business": "URL processing", "error": str(exc)})
        results["totalErrors"] += 1
        results["errors"].append({"url": url, "error": str(exc)})

    def run_scheduled_scrape(self) -> Dict[str, Any]:
        """Bulk-import the directory URLs configured in ``SCRAPE_DIRECTORIES_URLS``."""
        urls: List[str] = list(self.settings.scheduled_urls)
        if not urls:
            logger.info("SCRAPE_DIRECTORIES_URLS not set, skipping scheduled scrape")
            return {"message": "No URLs configured for scheduled scraping"}

        logger.info("Starting scheduled scrape of %d URLs", len(urls))
        results = self.ingest_from_directories(urls)
        results["timestamp"] = datetime.now(timezone.utc).isoformat()
        return results

    def close(self) -> None:
        self.fetcher.close()

    def __enter__(self) -> "BusinessIngestionPipeline":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()


def build_pipeline(settings: Optional[Settings] = None) -> BusinessIngestionPipeline:
    settings = settings or get_settings()
    return BusinessIngestionPipeline(settings, PostgresBusinessStore())


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Scrape businesses into the directory")
    subparsers = parser.add_subparsers(dest="command", required=True)

    one = subparsers.add_parser("one", help="Scrape a single business page")
    one.add_argument("url", help="Business page URL")
    one.add_argument("--source", choices=SOURCES, help="Force an extractor instead of detecting it from the URL")
    one.add_argument("--category-id", dest="category_id", help="Category for the saved business")
    one.add_argument("--save", action="store_true", help="Store the business when no duplicate exists")

    directories = subparsers.add_parser("directories", help="Import every business listed on directory pages")
    directories.add_argument("urls", nargs="+", help="Directory page URLs")
    directories.add_argument("--category-id", dest="category_id", help="Category for saved businesses")

    subparsers.add_parser("scheduled", help="Import the directory pages listed in SCRAPE_DIRECTORIES_URLS")
    return parser


def run_command(args: argparse.Namespace, pipeline: BusinessIngestionPipeline) -> Dict[str, Any]:
    if args.command == "one":
        return pipeline.ingest_one(args.url, source=args.source, category_id=args.category_id, persist=args.save)
    if args.command == "directories":
        return pipeline.ingest_from_directories(args.urls, category_id=args.category_id)
    return pipeline.run_scheduled_scrape()


def main(argv: Optional[Sequence[str]] = None) -> None:
    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(name)s - %(message)s")
    args = build_parser().parse_args(argv)

    try:
        with build_pipeline() as pipeline:
            result = run_command(args, pipeline)
    except ConfigError as exc:
        logger.error("Configuration error: %s", exc)
        raise SystemExit(2) from exc
    except (ValidationError, CategoryResolutionError) as exc:
        logger.error("%s", exc)
        raise SystemExit(2) from exc
    except Exception as exc:  # noqa: BLE001
        logger.error("Ingestion failed: %s", exc, exc_info=True)
        raise SystemExit(1) from exc

    print(json.dumps(result, indent=2, default=str))


if __name__ == "__main__":
    main()
