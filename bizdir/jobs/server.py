"""HTTP entrypoint exposing the scrape operations to the directory's admin UI."""

from __future__ import annotations

import logging
import os
from typing import Any, Dict

from flask import Flask, jsonify, request

from bizdir.core.config import get_settings
from bizdir.core.errors import CategoryResolutionError, ValidationError
from bizdir.jobs.ingest import build_pipeline

# ---------- Logging ----------
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s %(levelname)s %(name)s - %(message)s",
)
logger = logging.getLogger(__name__)

# ---------- App ----------
app = Flask(__name__)

# ---------- Routes ----------


@app.get("/healthz")
def healthcheck() -> Any:
    """Lightweight health endpoint; reads settings only, never touches the database."""
    settings = get_settings()
    return (
        jsonify(
            {
                "status": "ok",
                "worker_port_config": settings.worker_port,
                "llm_configured": bool(settings.llm_api_key),
            }
        ),
        200,
    )


@app.post("/scrape-business")
def scrape_business() -> Any:
    """
    Scrape one business page.
    Required JSON fields: url
    Optional: source (google|yelp|general), categoryId, saveToDatabase (bool)
    """
    payload: Dict[str, Any] = request.get_json(silent=True) or {}

    try:
        with build_pipeline() as pipeline:
            result = pipeline.ingest_one(
                payload.get("url"),
                source=payload.get("source") or None,
                category_id=payload.get("categoryId") or None,
                persist=_as_bool(payload.get("saveToDatabase")),
            )
    except (ValidationError, CategoryResolutionError) as exc:
        return jsonify(_client_error(exc)), 400
    except Exception as exc:  # noqa: BLE001
        logger.exception("Scrape failed for %s", payload.get("url"))
        return jsonify({"error": "Failed to scrape business", "message": str(exc)}), 500

    return jsonify(result), 200


@app.post("/scrape-directories")
def scrape_directories() -> Any:
    """
    Bulk-import businesses from directory listing pages.
    Required JSON fields: urls (non-empty list)
    Optional: categoryId
    """
    payload: Dict[str, Any] = request.get_json(silent=True) or {}

    try:
        with build_pipeline() as pipeline:
            result = pipeline.ingest_from_directories(payload.get("urls"), category_id=payload.get("categoryId") or None)
    except (ValidationError, CategoryResolutionError) as exc:
        return jsonify(_client_error(exc)), 400
    except Exception as exc:  # noqa: BLE001
        logger.exception("Directory scrape failed")
        return jsonify({"error": "Failed to scrape directories", "message": str(exc)}), 500

    return jsonify(result), 200


# ---------- Internals ----------


_TRUE_STRINGS = {"true", "1", "yes", "on"}


def _as_bool(value: Any) -> bool:
    """JSON booleans as-is; strings only when they spell "true"."""
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        return value.strip().lower() in _TRUE_STRINGS
    if isinstance(value, (int, float)):
        return value == 1
    return False


def _client_error(exc: Exception) -> Dict[str, Any]:
    body: Dict[str, Any] = {"error": str(exc)}
    record = getattr(exc, "record", None)
    if record is not None:
        body["scrapedData"] = record
    return body


def main() -> None:
    port = int(os.getenv("PORT") or get_settings().worker_port)
    logger.info("[BOOT] Binding on 0.0.0.0:%d", port)
    app.run(host="0.0.0.0", port=port)


if __name__ == "__main__":
    main()
