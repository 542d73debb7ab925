# src/scrapers/bandcamp_scraper.py

"""Bandcamp source: wishlist → album pages → converted digital prices."""

import asyncio
from typing import Any

from src.config.settings import Settings
from src.models.errors import CrateScoutError, ParseError
from src.models.listing import Listing, WishlistItem
from src.scrapers.base_scraper import BaseScraper
from src.scrapers.extractors import BandcampPageExtractor
from src.services.currency import CurrencyConverter, detect_currency
from src.services.progress_channel import ProgressChannel
from src.services.retrying_fetcher import RetryPolicy


class BandcampScraper(BaseScraper):
    """Bandcamp adapter.

    Album pages are fetched concurrently.  Prices are converted into the
    reference currency here, at the adapter boundary, with one rate
    lookup per source currency per run.
    """

    WISHLIST_URL = "{base}/{username}/wishlist"

    def __init__(
        self,
        session: Any = None,
        settings: Settings | None = None,
        policy: RetryPolicy | None = None,
        progress: ProgressChannel | None = None,
    ) -> None:
        super().__init__("bandcamp", session, settings, policy, progress)
        self.extractor = BandcampPageExtractor(self.selectors)
        self.converter = CurrencyConverter(
            self.fetcher,
            api_key=self.settings.currency_api_key,
            fallback_rate=self.settings.FALLBACK_RATE,
        )

    def _get_homepage(self) -> str:
        """Return the Bandcamp homepage URL."""
        return "https://bandcamp.com/"

    async def fetch_wishlist(self, username: str) -> list[WishlistItem]:
        """Fetch and parse the wishlist page for *username*."""
        url = self.WISHLIST_URL.format(
            base=self.settings.BANDCAMP_URL, username=username
        )
        html = await self._get_page(url)
        items = self.extractor.extract_wishlist_items(html)
        self.logger.info(
            "[bandcamp] Wishlist for %s has %d items", username, len(items)
        )
        return items

    async def fetch_album(
        self,
        item: WishlistItem,
        rates: dict[str, asyncio.Task[float]],
    ) -> Listing | None:
        """Build a listing for one album; None when it is sold out."""
        html = await self._get_page(item.link)
        price = self.extractor.extract_album_price(html)
        if price.sold_out:
            self.logger.info("[bandcamp] Sold out: %s", item.link)
            return None

        amount = self.extract_price(price.text)
        if amount is None:
            raise ParseError(
                f"No digital price on {item.link}: {price.text!r}"
            )

        currency = detect_currency(price.text)
        target = self.settings.REFERENCE_CURRENCY
        key = currency or ""
        # One lookup per currency; concurrent albums await the same task
        if key not in rates:
            rates[key] = asyncio.create_task(
                self.converter.get_rate(currency, target)
            )
        rate = await rates[key]

        return Listing(
            name=f"{item.title} by {item.artist}",
            price=amount * rate,
            condition="New",
            sleeve_condition="New",
            link=item.link,
            image=self.extractor.extract_image(html),
            source="bandcamp",
        )

    async def _collect(self, username: str) -> list[Listing]:
        """Fetch every wishlist album concurrently, isolating failures."""
        self._report("Gathering Bandcamp wishlist data")
        wishlist = await self.fetch_wishlist(username)

        rates: dict[str, asyncio.Task[float]] = {}
        outcomes = await asyncio.gather(
            *(self.fetch_album(item, rates) for item in wishlist),
            return_exceptions=True,
        )

        listings: list[Listing] = []
        for item, outcome in zip(wishlist, outcomes):
            if isinstance(outcome, Listing):
                listings.append(outcome)
            elif isinstance(outcome, Exception):
                self.logger.error(
                    "[bandcamp] Error fetching album details for %s: %s",
                    item.link,
                    outcome,
                    exc_info=(
                        None
                        if isinstance(outcome, CrateScoutError)
                        else outcome
                    ),
                )
            elif isinstance(outcome, BaseException):
                raise outcome

        self._report("Integrated Bandcamp data")
        self.logger.info(
            "[bandcamp] Collected %d listings from %d wishlist items",
            len(listings),
            len(wishlist),
        )
        return listings
