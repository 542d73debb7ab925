# src/services/pipeline.py

"""Runs both sources concurrently and merges them into a ranked result."""

import asyncio
import importlib
import logging
from typing import Any

from src.config.settings import Settings
from src.filters.ranker import merge_and_rank
from src.models.errors import ConfigurationError
from src.models.listing import Listing
from src.models.pipeline_result import PipelineResult, SourceOutcome
from src.services.progress_channel import ProgressChannel

logger = logging.getLogger("crate_scout.pipeline")


def _load_scraper_class(dotted_path: str) -> type[Any]:
    """Dynamically import a scraper class from its dotted module path."""
    module_path, class_name = dotted_path.rsplit(".", 1)
    module = importlib.import_module(module_path)
    cls: type[Any] = getattr(module, class_name)
    return cls


class WantlistPipeline:
    """Coordinates the Discogs and Bandcamp adapters for one request.

    Each :meth:`run` builds fresh scraper instances and its own progress
    channel, so every accumulator (ids, listings, exchange rates, percent)
    belongs to that run alone and concurrent runs never see each other's
    data.
    """

    def __init__(
        self,
        settings: Settings | None = None,
        scraper_kwargs: dict[str, dict[str, Any]] | None = None,
    ) -> None:
        self.settings = settings or Settings()
        self.scraper_kwargs = scraper_kwargs or {}

    # ── Private helpers ──────────────────────────────────

    async def _run_source(
        self,
        source: dict[str, str],
        username: str,
        progress: ProgressChannel,
    ) -> list[Listing]:
        """Build and run one source adapter."""
        if not username:
            raise ConfigurationError(
                f"No {source['label']} username supplied"
            )
        scraper_cls = _load_scraper_class(source["scraper"])
        scraper = scraper_cls(
            settings=self.settings,
            progress=progress,
            **self.scraper_kwargs.get(source["id"], {}),
        )
        listings: list[Listing] = await scraper.fetch_listings(username)
        return listings

    async def _run_sources(
        self,
        usernames: dict[str, str],
        progress: ProgressChannel,
    ) -> list[SourceOutcome]:
        """Run every source concurrently; failures become outcomes."""
        sources = self.settings.AVAILABLE_SOURCES
        tasks = [
            self._run_source(src, usernames.get(src["id"], ""), progress)
            for src in sources
        ]
        batches = await asyncio.gather(*tasks, return_exceptions=True)

        outcomes: list[SourceOutcome] = []
        for src, batch in zip(sources, batches):
            if isinstance(batch, list):
                outcomes.append(SourceOutcome.ok(src["id"], batch))
                logger.info(
                    "%s returned %d listings", src["label"], len(batch)
                )
            elif isinstance(batch, Exception):
                outcomes.append(SourceOutcome.failed(src["id"], batch))
                logger.error(
                    "Error processing %s data: %s",
                    src["label"],
                    batch,
                    exc_info=batch,
                )
            else:
                raise batch
        return outcomes

    def _merge(
        self,
        outcomes: list[SourceOutcome],
        progress: ProgressChannel,
    ) -> PipelineResult:
        """Assemble the final result once every source has settled."""
        status = {o.source: o.succeeded for o in outcomes}
        result = PipelineResult(
            discogs_success=status.get("discogs", False),
            bandcamp_success=status.get("bandcamp", False),
            errors=[
                f"{o.source}: {o.error}"
                for o in outcomes
                if o.error is not None
            ],
        )

        if not any(status.values()):
            progress.publish(100, "Both sources failed.")
            return result

        progress.publish(95, "Removing duplicates")
        combined = [
            listing for o in outcomes for listing in o.listings
        ]
        result.results = merge_and_rank(combined, self.settings.TOP_N)
        progress.publish(100, "Done!")
        return result

    # ── Public API ───────────────────────────────────────

    async def run(
        self,
        discogs_username: str | None = None,
        bandcamp_username: str | None = None,
        progress: ProgressChannel | None = None,
    ) -> PipelineResult:
        """Fetch, merge and rank listings for the given users.

        Raises :class:`ConfigurationError` before any network activity
        when required settings are missing.  Source failures never
        raise; they clear that source's success flag instead.

        *progress* receives this run's events and is closed when the run
        ends, so each run needs its own channel.  A private one is used
        when none is given.
        """
        self.settings.validate()
        progress = progress or ProgressChannel()
        usernames = {
            "discogs": discogs_username or self.settings.discogs_username,
            "bandcamp": bandcamp_username or self.settings.bandcamp_username,
        }
        logger.info(
            "Pipeline starting (discogs=%s, bandcamp=%s)",
            usernames["discogs"],
            usernames["bandcamp"] or "-",
        )
        try:
            outcomes = await self._run_sources(usernames, progress)
            result = self._merge(outcomes, progress)
        finally:
            progress.close()

        logger.info(
            "Pipeline finished: %d results (discogs=%s, bandcamp=%s)",
            len(result.results),
            result.discogs_success,
            result.bandcamp_success,
        )
        return result
