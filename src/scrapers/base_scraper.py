# src/scrapers/base_scraper.py

"""Abstract base class for the Discogs and Bandcamp source adapters."""

import asyncio
import logging
import re
from abc import ABC, abstractmethod
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from typing import Any

import cloudscraper  # type: ignore[import-untyped]
from curl_cffi.requests import AsyncSession

from src.config.settings import Settings
from src.models.errors import NetworkError
from src.models.listing import Listing
from src.scrapers.extractors import load_selectors
from src.services.progress_channel import ProgressChannel
from src.services.retrying_fetcher import (
    RetryingFetcher,
    RetryPolicy,
    decode_json,
)


class BaseScraper(ABC):
    """Shared session, retry and page-fetch plumbing for source adapters.

    A scraper instance serves one pipeline run.  When no session is
    injected, :meth:`fetch_listings` opens a ``curl_cffi`` ``AsyncSession``
    for the duration of the run and closes it afterwards.
    """

    # Cloudflare challenge page markers
    _CF_CHALLENGE_MARKERS: list[str] = [
        "challenges.cloudflare.com",
        "cdn-cgi/challenge-platform",
        "just a moment",
        "cf-turnstile",
        "cf_chl_opt",
    ]

    def __init__(
        self,
        source_name: str,
        session: Any = None,
        settings: Settings | None = None,
        policy: RetryPolicy | None = None,
        progress: ProgressChannel | None = None,
    ) -> None:
        self.source_name = source_name
        self.logger = logging.getLogger(
            f"crate_scout.{source_name}"
        )
        self.settings = settings or Settings()
        self.selectors: dict[str, str] = load_selectors(source_name)
        self.progress = progress
        self.session = session
        self.fetcher = RetryingFetcher(
            session,
            policy=policy,
            timeout=self.settings.REQUEST_TIMEOUT,
            source_name=source_name,
        )

    @asynccontextmanager
    async def _open_session(self) -> AsyncIterator[None]:
        """Use the injected session, or own a fresh one for this run."""
        if self.session is not None:
            yield
            return
        async with AsyncSession(
            impersonate=self.settings.IMPERSONATE_BROWSER,
            max_clients=self.settings.MAX_BATCH_SIZE,
        ) as session:
            self.session = session
            self.fetcher.session = session
            try:
                yield
            finally:
                self.session = None
                self.fetcher.session = None

    def _is_challenge(self, text: str) -> bool:
        """Detect a Cloudflare interstitial served with a 200 status."""
        lower = text[:20000].lower()
        for marker in self._CF_CHALLENGE_MARKERS:
            if marker in lower:
                self.logger.warning(
                    "[%s] Cloudflare challenge detected (marker: '%s')",
                    self.source_name,
                    marker,
                )
                return True
        return False

    def _cloudscraper_get(
        self, url: str, headers: dict[str, str],
    ) -> str | None:
        """Blocking cloudscraper fetch, run in a worker thread."""
        try:
            _cs: Any = cloudscraper
            scraper: Any = _cs.create_scraper()
            resp: Any = scraper.get(
                url,
                headers=headers,
                timeout=self.settings.REQUEST_TIMEOUT,
            )
            if resp.status_code == 200:
                return str(resp.text)
            self.logger.warning(
                "[%s] cloudscraper got HTTP %d for %s",
                self.source_name,
                resp.status_code,
                url,
            )
        except Exception as e:
            self.logger.error(
                "[%s] cloudscraper fallback also failed: %s",
                self.source_name,
                e,
                exc_info=True,
            )
        return None

    async def _get_page(self, url: str) -> str:
        """Fetch an HTML page, falling back to cloudscraper on failure.

        Raises :class:`NetworkError` when both clients fail.
        """
        headers: dict[str, str] = {
            **self.settings.DEFAULT_HEADERS,
            "Referer": self._get_homepage(),
        }
        try:
            resp = await self.fetcher.fetch(url, headers=headers)
            text = str(resp.text)
            if not self._is_challenge(text):
                return text
            error = NetworkError(f"Challenge page served for {url}", url=url)
        except NetworkError as exc:
            error = exc

        self.logger.info(
            "[%s] curl_cffi exhausted, falling back to cloudscraper",
            self.source_name,
        )
        fallback = await asyncio.to_thread(
            self._cloudscraper_get, url, headers
        )
        if fallback is None:
            raise error
        return fallback

    async def _get_json(self, url: str) -> Any:
        """Fetch and decode a JSON API endpoint (no cloudscraper fallback)."""
        resp = await self.fetcher.fetch(
            url, headers=self.settings.API_HEADERS
        )
        return decode_json(resp)

    def _report(self, message: str, percent: float | None = None) -> None:
        """Publish a milestone; without a percentage the bar holds still."""
        if self.progress is None:
            return
        if percent is None:
            self.progress.advance(message)
        else:
            self.progress.publish(percent, message)

    @staticmethod
    def extract_price(text: str | None) -> float | None:
        """Extract a numeric amount from a string like '€1,299.00 EUR'."""
        if not text:
            return None
        cleaned = text.replace(",", "")
        numbers = re.findall(r"\d+\.?\d*", cleaned)
        return float(numbers[0]) if numbers else None

    async def fetch_listings(self, username: str) -> list[Listing]:
        """Run this source end to end for *username*."""
        async with self._open_session():
            return await self._collect(username)

    @abstractmethod
    def _get_homepage(self) -> str:
        """Return the homepage URL for the Referer header."""
        ...

    @abstractmethod
    async def _collect(self, username: str) -> list[Listing]:
        """Produce normalised listings for *username*."""
        ...
