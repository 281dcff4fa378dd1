"""Page retrieval: plain HTTP GET, or a headless Chromium render for script-heavy pages."""

from __future__ import annotations

import logging
import time
from typing import Callable, Optional, Sequence

import requests
from playwright.sync_api import TimeoutError as PlaywrightTimeoutError, sync_playwright

from bizdir.core.config import Settings, get_settings
from bizdir.core.errors import FetchError, FetchTimeoutError
from bizdir.core.sources import needs_rendering, normalize_url

logger = logging.getLogger(__name__)

BROWSER_USER_AGENT = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36"
)
HTML_ACCEPT = "text/html,application/xhtml+xml,application/xml;q=0.9,*/*;q=0.8"
_CHUNK_SIZE = 64 * 1024


class PlaywrightRenderer:
    """Launch Chromium for a single page render and always shut it down afterwards."""

    def __init__(
        self,
        timeout_ms: int = 15000,
        *,
        executable_path: Optional[str] = None,
        args: Sequence[str] = (),
    ) -> None:
        self._timeout_ms = timeout_ms
        self._executable_path = executable_path
        self._args = list(args)

    def render(self, url: str) -> str:
        with sync_playwright() as playwright:
            browser = playwright.chromium.launch(
                headless=True,
                executable_path=self._executable_path,
                args=self._args,
            )
            try:
                page = browser.new_page(user_agent=BROWSER_USER_AGENT)
                page.goto(url, wait_until="networkidle", timeout=self._timeout_ms)
                return page.content()
            finally:
                browser.close()


class PageFetcher:
    """Fetch raw HTML, choosing the render path from the URL alone."""

    def __init__(
        self,
        settings: Optional[Settings] = None,
        *,
        session: Optional[requests.Session] = None,
        renderer: Optional[PlaywrightRenderer] = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.settings = settings or get_settings()
        self._clock = clock
        self.session = session or requests.Session()
        self.session.headers.setdefault("User-Agent", BROWSER_USER_AGENT)
        self.session.headers.setdefault("Accept", HTML_ACCEPT)
        self.renderer = renderer or PlaywrightRenderer(
            timeout_ms=int(self.settings.render_timeout_seconds * 1000),
            executable_path=self.settings.chromium_executable_path,
            args=self.settings.chromium_args,
        )

    def fetch_html(self, url: str) -> str:
        full_url = normalize_url(url)
        if needs_rendering(full_url):
            return self._fetch_rendered(full_url)
        return self._fetch_static(full_url, timeout=self.settings.fetch_timeout_seconds)

    def _fetch_static(self, url: str, *, timeout: float) -> str:
        """GET ``url``; ``timeout`` bounds the whole request, body included."""
        started = self._clock()
        try:
            response = self.session.get(url, timeout=timeout, allow_redirects=True, stream=True)
        except requests.Timeout as exc:
            raise FetchTimeoutError("Request timed out while fetching the page") from exc
        except requests.RequestException as exc:
            raise FetchError(f"Failed to fetch {url}: {exc}") from exc

        try:
            if not 200 <= response.status_code < 300:
                raise FetchError(
                    f"HTTP {response.status_code}: {response.reason or ''}".strip(),
                    status_code=response.status_code,
                )
            chunks = []
            for chunk in response.iter_content(chunk_size=_CHUNK_SIZE):
                chunks.append(chunk)
                if self._clock() - started > timeout:
                    raise FetchTimeoutError("Request timed out while fetching the page")
        except requests.Timeout as exc:
            raise FetchTimeoutError("Request timed out while fetching the page") from exc
        except requests.RequestException as exc:
            raise FetchError(f"Failed to fetch {url}: {exc}") from exc
        finally:
            response.close()

        body = b"".join(chunks)
        try:
            return body.decode(response.encoding or "utf-8", errors="replace")
        except LookupError:
            return body.decode("utf-8", errors="replace")

    def _fetch_rendered(self, url: str) -> str:
        logger.info("Rendering %s with headless Chromium", url)
        try:
            return self.renderer.render(url)
        except PlaywrightTimeoutError as exc:
            browser_error: Exception = exc
            logger.warning("Playwright timed out rendering %s; falling back to plain fetch", url)
        except Exception as exc:  # noqa: BLE001
            browser_error = exc
            logger.warning("Playwright failed for %s: %s; falling back to plain fetch", url, exc)

        try:
            return self._fetch_static(url, timeout=self.settings.render_timeout_seconds)
        except FetchError as fallback_exc:
            raise FetchError(
                f"Failed to fetch with headless browser: {browser_error}. "
                f"Fallback also failed: {fallback_exc}",
                status_code=fallback_exc.status_code,
            ) from fallback_exc

    def close(self) -> None:
        self.session.close()

    def __enter__(self) -> "PageFetcher":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()
