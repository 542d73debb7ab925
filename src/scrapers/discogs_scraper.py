# src/scrapers/discogs_scraper.py

"""Discogs source: want list → sale pages → marketplace listing details."""

from typing import Any

from src.config.settings import Settings
from src.models.errors import ParseError, RateLimitRejection
from src.models.listing import Listing
from src.scrapers.base_scraper import BaseScraper
from src.scrapers.extractors import DiscogsPageExtractor
from src.services.batch_fetcher import BatchFetcher
from src.services.id_collector import (
    collect_marketplace_ids,
    collect_release_ids,
)
from src.services.progress_channel import ProgressChannel
from src.services.retrying_fetcher import RetryPolicy


class DiscogsScraper(BaseScraper):
    """Discogs adapter.

    The want list and listing details come from the public JSON API; the
    ids of listings currently for sale are scraped from each release's
    HTML sale page.  Listing details are fetched through the
    rate-budgeted :class:`BatchFetcher`, priced in the reference currency
    via the ``curr_abbr`` query parameter.
    """

    WANTS_URL = "{api}/users/{username}/wants?per_page={per_page}"
    SELL_URL = "{web}/sell/release/{release_id}"
    LISTING_URL = (
        "{api}/marketplace/listings/{listing_id}?curr_abbr={currency}"
    )

    def __init__(
        self,
        session: Any = None,
        settings: Settings | None = None,
        policy: RetryPolicy | None = None,
        progress: ProgressChannel | None = None,
        cooldown: float | None = None,
        max_batch_size: int | None = None,
    ) -> None:
        super().__init__("discogs", session, settings, policy, progress)
        self.extractor = DiscogsPageExtractor(self.selectors)
        self.cooldown = (
            self.settings.WAVE_COOLDOWN if cooldown is None else cooldown
        )
        self.max_batch_size = max_batch_size or self.settings.MAX_BATCH_SIZE

    def _get_homepage(self) -> str:
        """Return the Discogs homepage URL."""
        return "https://www.discogs.com/"

    def _listing_url(self, listing_id: str) -> str:
        return self.LISTING_URL.format(
            api=self.settings.DISCOGS_API_URL,
            listing_id=listing_id,
            currency=self.settings.REFERENCE_CURRENCY,
        )

    async def _fetch_sale_page(self, release_id: str) -> str:
        return await self._get_page(
            self.SELL_URL.format(
                web=self.settings.DISCOGS_WEB_URL,
                release_id=release_id,
            )
        )

    @staticmethod
    def parse_listing(data: Any) -> Listing:
        """Normalise a marketplace listing payload.

        Raises :class:`RateLimitRejection` for the throttling message
        Discogs sometimes returns with a 200 status, and
        :class:`ParseError` for any other unexpected shape.
        """
        if (
            isinstance(data, dict)
            and data.get("message") == Settings.RATE_LIMIT_MESSAGE
        ):
            raise RateLimitRejection(data["message"])
        try:
            release = data["release"]
            images = release.get("images") or []
            return Listing(
                name=str(release["description"]),
                price=float(data["price"]["value"]),
                condition=str(data["condition"]),
                sleeve_condition=data.get("sleeve_condition"),
                link=str(data["uri"]),
                image=images[0].get("uri") if images else None,
                source="discogs",
            )
        except (KeyError, TypeError, ValueError, AttributeError) as exc:
            raise ParseError(
                f"Unexpected listing payload: {exc!r}"
            ) from exc

    async def fetch_wantlist(self, username: str) -> list[dict[str, Any]]:
        """Fetch every want-list entry, following API pagination."""
        self.logger.info("[discogs] Fetching wantlist for %s", username)
        url: str | None = self.WANTS_URL.format(
            api=self.settings.DISCOGS_API_URL,
            username=username,
            per_page=self.settings.DISCOGS_WANTS_PER_PAGE,
        )
        wants: list[dict[str, Any]] = []
        while url:
            data = await self._get_json(url)
            try:
                wants.extend(data["wants"])
                url = (
                    data.get("pagination", {}).get("urls", {}).get("next")
                )
            except (KeyError, TypeError, AttributeError) as exc:
                raise ParseError(
                    f"Unexpected wantlist payload: {exc!r}"
                ) from exc
        self.logger.info("[discogs] Wantlist has %d entries", len(wants))
        return wants

    async def _collect(self, username: str) -> list[Listing]:
        """Want list → release ids → listing ids → listing details."""
        wants = await self.fetch_wantlist(username)
        self._report("Fetched wantlist", 20)

        release_ids = collect_release_ids(wants)
        self._report("Collected release IDs", 40)

        listing_ids = await collect_marketplace_ids(
            release_ids,
            self._fetch_sale_page,
            self.extractor,
            self.progress,
        )
        self._report("Collected marketplace IDs", 60)

        batch = BatchFetcher(
            self.fetcher,
            self._listing_url,
            self.parse_listing,
            progress=self.progress,
            max_batch_size=self.max_batch_size,
            cooldown=self.cooldown,
            wave_deadline=self.settings.wave_deadline,
            headers=self.settings.API_HEADERS,
        )
        result = await batch.fetch_all(listing_ids)
        self._report("Fetched marketplace data", 90)
        return result.listings
