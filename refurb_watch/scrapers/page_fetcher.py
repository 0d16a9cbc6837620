# refurb_watch/scrapers/page_fetcher.py

"""Fetches the raw listing document with browser impersonation."""

import logging
import time
from typing import Any

import cloudscraper  # type: ignore[import-untyped]
from curl_cffi import requests as curl_requests

from refurb_watch.config.settings import Settings


class FetchError(RuntimeError):
    """The listing document could not be retrieved at all."""

    def __init__(self, url: str, status_code: int | None = None) -> None:
        self.url = url
        self.status_code = status_code
        detail = (
            f"HTTP {status_code}" if status_code is not None
            else "no response"
        )
        super().__init__(f"Failed to fetch {url}: {detail}")


class PageFetcher:
    """Retrieve a page as text; stateless apart from its HTTP session.

    curl_cffi (browser TLS fingerprint) is tried first with retries and
    adaptive backoff. If every attempt fails, a single cloudscraper
    request is made before giving up with :class:`FetchError`.
    """

    def __init__(self) -> None:
        self.logger = logging.getLogger("refurb_watch.fetcher")
        self.settings = Settings()
        self.session = curl_requests.Session(
            impersonate=self.settings.IMPERSONATE_BROWSER
        )
        self._current_delay: float = self.settings.REQUEST_DELAY
        self._request_timeout: int = self.settings.REQUEST_TIMEOUT

    def _escalate_delay(self) -> None:
        """Double the current delay up to the configured max."""
        max_delay = (
            self.settings.REQUEST_DELAY
            * self.settings.MAX_DELAY_MULTIPLIER
        )
        self._current_delay = min(self._current_delay * 2, max_delay)
        self.logger.warning(
            "Rate-limited, delay escalated to %.1fs",
            self._current_delay,
        )

    def _fetch_get(
        self, url: str, headers: dict[str, str],
    ) -> tuple[str | None, int | None]:
        """GET with retries; returns (body, last status code)."""
        last_status: int | None = None
        for attempt in range(self.settings.MAX_RETRIES):
            try:
                resp = self.session.get(
                    url,
                    headers=headers,
                    timeout=self._request_timeout,
                )
                last_status = resp.status_code
                if 200 <= resp.status_code < 300:
                    self._current_delay = self.settings.REQUEST_DELAY
                    return resp.text, last_status
                self.logger.warning(
                    "HTTP %d on attempt %d for %s",
                    resp.status_code,
                    attempt + 1,
                    url,
                )
                if resp.status_code in (429, 403):
                    self._escalate_delay()
                    time.sleep(self._current_delay)
            except Exception as exc:
                self.logger.warning(
                    "Request error on attempt %d: %s",
                    attempt + 1,
                    exc,
                    exc_info=True,
                )
                time.sleep(self._current_delay * (attempt + 1))
        return None, last_status

    def _fetch_cloudscraper(
        self, url: str, headers: dict[str, str],
    ) -> tuple[str | None, int | None]:
        """Last-resort fetch through cloudscraper's challenge solver."""
        try:
            _cs: Any = cloudscraper
            scraper: Any = _cs.create_scraper()
            resp: Any = scraper.get(
                url,
                headers=headers,
                timeout=self._request_timeout,
            )
            status = int(resp.status_code)
            if 200 <= status < 300:
                return str(resp.text), status
            self.logger.warning("cloudscraper HTTP %d for %s", status, url)
            return None, status
        except Exception as exc:
            self.logger.error(
                "cloudscraper fallback failed: %s", exc, exc_info=True,
            )
            return None, None

    def fetch(self, url: str) -> str:
        """Return the document at *url* or raise :class:`FetchError`."""
        headers = dict(self.settings.DEFAULT_HEADERS)

        text, status = self._fetch_get(url, headers)
        if text is not None:
            self.logger.debug("Fetched %d chars from %s", len(text), url)
            return text

        self.logger.info(
            "curl_cffi exhausted, falling back to cloudscraper",
        )
        text, fallback_status = self._fetch_cloudscraper(url, headers)
        if text is not None:
            return text

        raise FetchError(
            url,
            fallback_status if fallback_status is not None else status,
        )
