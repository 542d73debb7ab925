# tests/test_base_scraper.py

"""Tests for BaseScraper page fetching and fallbacks."""

import unittest
from typing import Any
from unittest.mock import MagicMock, patch

from fakes import FakeResponse, FakeSession

from src.models.errors import NetworkError
from src.models.listing import Listing
from src.scrapers.base_scraper import BaseScraper
from src.services.progress_channel import ProgressChannel
from src.services.retrying_fetcher import RetryPolicy

FAST = RetryPolicy(max_attempts=2, delay=0.0)
PAGE_URL = "https://example.com/page"
CHALLENGE_HTML = (
    "<html><head><title>Just a moment...</title></head>"
    '<body><script src="/cdn-cgi/challenge-platform/h/b"></script>'
    "</body></html>"
)


class _StubScraper(BaseScraper):
    """Concrete scraper exposing protected members for testing."""

    def __init__(self, session: Any = None, **kwargs: Any) -> None:
        super().__init__("bandcamp", session, policy=FAST, **kwargs)

    def _get_homepage(self) -> str:
        return "https://example.com/"

    async def _collect(self, username: str) -> list[Listing]:
        html = await self.get_page(f"https://example.com/{username}")
        return [Listing(name=html, price=1.0, condition="New")]

    async def get_page(self, url: str) -> str:
        """Public wrapper for _get_page."""
        return await self._get_page(url)

    async def get_json(self, url: str) -> Any:
        """Public wrapper for _get_json."""
        return await self._get_json(url)

    def is_challenge(self, text: str) -> bool:
        """Public wrapper for _is_challenge."""
        return self._is_challenge(text)

    def report(self, message: str, percent: float | None = None) -> None:
        """Public wrapper for _report."""
        self._report(message, percent)


def _cloudscraper_returning(status_code: int, text: str = "") -> MagicMock:
    """A create_scraper mock whose scraper answers with *status_code*."""
    scraper = MagicMock()
    scraper.get.return_value = MagicMock(status_code=status_code, text=text)
    return MagicMock(return_value=scraper)


class TestExtractPrice(unittest.TestCase):
    """BaseScraper.extract_price parsing."""

    def test_symbol_and_code(self) -> None:
        """Symbols, thousands separators and codes are ignored."""
        self.assertEqual(BaseScraper.extract_price("€1,299.00 EUR"), 1299.0)
        self.assertEqual(BaseScraper.extract_price("$7"), 7.0)
        self.assertEqual(BaseScraper.extract_price("£12.50"), 12.5)

    def test_no_number(self) -> None:
        """Text without digits or empty text yields None."""
        self.assertIsNone(BaseScraper.extract_price("name your price"))
        self.assertIsNone(BaseScraper.extract_price(""))
        self.assertIsNone(BaseScraper.extract_price(None))


class TestChallengeDetection(unittest.TestCase):
    """Cloudflare interstitial detection."""

    def setUp(self) -> None:
        self.scraper = _StubScraper(FakeSession(lambda url: None))

    def test_challenge_page(self) -> None:
        """Known markers are detected case-insensitively."""
        self.assertTrue(self.scraper.is_challenge(CHALLENGE_HTML))

    def test_normal_page(self) -> None:
        """Ordinary HTML is not a challenge."""
        self.assertFalse(
            self.scraper.is_challenge("<html><body>Blue Train</body></html>")
        )


class TestGetPage(unittest.IsolatedAsyncioTestCase):
    """_get_page primary fetch and cloudscraper fallback."""

    async def test_returns_body(self) -> None:
        """A successful fetch returns the body text with a Referer."""
        session = FakeSession(lambda url: FakeResponse(200, text="<p>ok</p>"))
        scraper = _StubScraper(session)
        self.assertEqual(await scraper.get_page(PAGE_URL), "<p>ok</p>")
        self.assertEqual(session.calls, [PAGE_URL])

    async def test_raises_when_fallback_fails(self) -> None:
        """Both clients failing surfaces the curl_cffi NetworkError."""
        session = FakeSession(lambda url: FakeResponse(503))
        scraper = _StubScraper(session)
        with self.assertRaises(NetworkError) as ctx:
            await scraper.get_page(PAGE_URL)
        self.assertEqual(ctx.exception.status_code, 503)
        self.assertEqual(len(session.calls), FAST.max_attempts)

    async def test_fallback_rescues_failed_fetch(self) -> None:
        """cloudscraper's body is used when curl_cffi gives up."""
        session = FakeSession(lambda url: FakeResponse(403))
        scraper = _StubScraper(session)
        with patch(
            "src.scrapers.base_scraper.cloudscraper.create_scraper",
            _cloudscraper_returning(200, "<p>rescued</p>"),
        ):
            self.assertEqual(
                await scraper.get_page(PAGE_URL), "<p>rescued</p>"
            )

    async def test_challenge_page_triggers_fallback(self) -> None:
        """A 200 challenge page is not accepted as content."""
        session = FakeSession(
            lambda url: FakeResponse(200, text=CHALLENGE_HTML)
        )
        scraper = _StubScraper(session)
        with patch(
            "src.scrapers.base_scraper.cloudscraper.create_scraper",
            _cloudscraper_returning(200, "<p>real</p>"),
        ):
            self.assertEqual(await scraper.get_page(PAGE_URL), "<p>real</p>")

    async def test_challenge_without_fallback_raises(self) -> None:
        """A challenge page with no working fallback is a NetworkError."""
        session = FakeSession(
            lambda url: FakeResponse(200, text=CHALLENGE_HTML)
        )
        scraper = _StubScraper(session)
        with self.assertRaises(NetworkError):
            await scraper.get_page(PAGE_URL)

    async def test_fallback_non_200_raises(self) -> None:
        """A cloudscraper error status does not count as a rescue."""
        session = FakeSession(lambda url: FakeResponse(403))
        scraper = _StubScraper(session)
        with patch(
            "src.scrapers.base_scraper.cloudscraper.create_scraper",
            _cloudscraper_returning(403),
        ):
            with self.assertRaises(NetworkError):
                await scraper.get_page(PAGE_URL)


class TestGetJson(unittest.IsolatedAsyncioTestCase):
    """_get_json decoding."""

    async def test_decodes_payload(self) -> None:
        """JSON bodies are decoded."""
        session = FakeSession(lambda url: FakeResponse(200, {"wants": []}))
        self.assertEqual(
            await _StubScraper(session).get_json(PAGE_URL), {"wants": []}
        )

    async def test_no_cloudscraper_for_json(self) -> None:
        """API failures are not retried through cloudscraper."""
        session = FakeSession(lambda url: FakeResponse(500))
        create = _cloudscraper_returning(200, "{}")
        with patch(
            "src.scrapers.base_scraper.cloudscraper.create_scraper", create
        ):
            with self.assertRaises(NetworkError):
                await _StubScraper(session).get_json(PAGE_URL)
        create.assert_not_called()


class TestFetchListings(unittest.IsolatedAsyncioTestCase):
    """Session ownership and progress reporting."""

    async def test_injected_session_is_kept(self) -> None:
        """An injected session is used and left in place."""
        session = FakeSession(lambda url: FakeResponse(200, text="page"))
        scraper = _StubScraper(session)
        listings = await scraper.fetch_listings("digger")
        self.assertEqual(listings[0].name, "page")
        self.assertIs(scraper.session, session)
        self.assertEqual(session.calls, ["https://example.com/digger"])

    async def test_owns_session_when_none_injected(self) -> None:
        """Without an injected session one is opened and closed per run."""
        session = FakeSession(lambda url: FakeResponse(200, text="page"))
        session_cls = MagicMock()
        session_cls.return_value.__aenter__.return_value = session
        with patch("src.scrapers.base_scraper.AsyncSession", session_cls):
            scraper = _StubScraper()
            listings = await scraper.fetch_listings("digger")
        self.assertEqual(listings[0].name, "page")
        session_cls.return_value.__aexit__.assert_awaited_once()
        self.assertIsNone(scraper.session)
        self.assertIsNone(scraper.fetcher.session)

    async def test_report_without_percent_holds_position(self) -> None:
        """A message-only report keeps the current percentage."""
        channel = ProgressChannel()
        sub = channel.subscribe()
        scraper = _StubScraper(FakeSession(lambda url: None), progress=channel)
        scraper.report("Fetched wantlist", 20)
        scraper.report("Gathering Bandcamp wishlist data")
        channel.close()
        events = [event async for event in sub]
        self.assertEqual([e.percent for e in events], [20, 20])


if __name__ == "__main__":
    unittest.main()
