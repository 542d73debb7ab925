# src/services/batch_fetcher.py

"""Rate-budgeted batch fetch of listing details.

Listing ids are processed in sequential *waves*.  Each wave starts with
a single probe request whose response headers report the current rate
budget; the wave then covers ``min(remaining, max_batch_size)`` ids,
reusing the probe's response for the first one and dispatching the rest
concurrently.  Waves are separated by a fixed cooldown because the
upstream exposes no reset timestamp.
"""

import asyncio
import logging
import math
from collections.abc import Callable, Sequence
from dataclasses import dataclass, field
from typing import Any

from src.config.settings import Settings
from src.models.errors import NetworkError, ParseError, RateLimitRejection
from src.models.listing import Listing
from src.models.rate_budget import RateBudget
from src.services.progress_channel import ProgressChannel
from src.services.retrying_fetcher import RetryingFetcher, decode_json

logger = logging.getLogger("crate_scout.batch")


@dataclass
class WaveReport:
    """Bookkeeping for one wave."""

    index: int
    start: int
    budget: RateBudget
    batch_size: int
    size: int = 0           # ids covered, probe included
    dispatched: int = 0     # new requests beyond the probe
    collected: int = 0
    rejected: int = 0
    dropped: int = 0


@dataclass
class BatchResult:
    """Listings gathered by one :meth:`BatchFetcher.fetch_all` call."""

    listings: list[Listing] = field(
        default_factory=lambda: list[Listing]()
    )
    waves: list[WaveReport] = field(
        default_factory=lambda: list[WaveReport]()
    )

    @property
    def attempted(self) -> int:
        return sum(w.size for w in self.waves)


class BatchFetcher:
    """Fetch detail records for a list of ids within a rate budget."""

    def __init__(
        self,
        fetcher: RetryingFetcher,
        url_for: Callable[[str], str],
        parse: Callable[[Any], Listing],
        progress: ProgressChannel | None = None,
        max_batch_size: int = Settings.MAX_BATCH_SIZE,
        cooldown: float = Settings.WAVE_COOLDOWN,
        wave_deadline: float | None = None,
        progress_span: tuple[float, float] = (60.0, 90.0),
        headers: dict[str, str] | None = None,
    ) -> None:
        if max_batch_size < 1:
            raise ValueError("max_batch_size must be >= 1")
        self.fetcher = fetcher
        self.url_for = url_for
        self.parse = parse
        self.progress = progress
        self.max_batch_size = max_batch_size
        self.cooldown = cooldown
        self.wave_deadline = wave_deadline
        self.progress_span = progress_span
        self.headers = headers

    # ── Private helpers ──────────────────────────────────

    def _absorb(
        self,
        listing_id: str,
        resp: Any,
        listings: list[Listing],
        report: WaveReport,
    ) -> None:
        """Parse one response into *listings*, dropping bad payloads."""
        try:
            listing = self.parse(decode_json(resp))
        except RateLimitRejection:
            report.rejected += 1
            logger.warning(
                "Listing %s rejected: upstream is throttling",
                listing_id,
            )
            return
        except ParseError as exc:
            report.dropped += 1
            logger.error(
                "Listing %s dropped, unparsable payload: %s",
                listing_id,
                exc,
            )
            return
        listings.append(listing)
        report.collected += 1

    async def _fetch_one(
        self,
        listing_id: str,
        listings: list[Listing],
        report: WaveReport,
    ) -> None:
        """Fetch and absorb a single listing; failures only log."""
        try:
            resp = await self.fetcher.fetch(
                self.url_for(listing_id), headers=self.headers
            )
        except NetworkError as exc:
            report.dropped += 1
            logger.error(
                "Listing %s dropped after retries: %s",
                listing_id,
                exc,
            )
            return
        self._absorb(listing_id, resp, listings, report)

    async def _run_wave(
        self,
        ids: Sequence[str],
        listings: list[Listing],
        report: WaveReport,
    ) -> None:
        """Dispatch a wave concurrently, honouring the wave deadline."""
        if not ids:
            return
        tasks = [
            asyncio.create_task(
                self._fetch_one(listing_id, listings, report)
            )
            for listing_id in ids
        ]
        _done, pending = await asyncio.wait(
            tasks, timeout=self.wave_deadline
        )
        if pending:
            for task in pending:
                task.cancel()
            await asyncio.gather(*pending, return_exceptions=True)
            report.dropped += len(pending)
            logger.warning(
                "Wave %d deadline of %.0fs hit, cancelled %d requests",
                report.index,
                self.wave_deadline or 0,
                len(pending),
            )

    def _publish(self, done: int, total: int, wave_size: int) -> None:
        """Report wave progress with an ETA for the remaining cooldowns."""
        if self.progress is None:
            return
        start, end = self.progress_span
        percent = start + (end - start) * done / total
        waves_left = math.ceil((total - done) / max(wave_size, 1))
        self.progress.publish(
            percent,
            f"Fetched {done}/{total} listings",
            eta_seconds=round(waves_left * self.cooldown),
        )

    # ── Public API ───────────────────────────────────────

    async def fetch_all(self, listing_ids: Sequence[str]) -> BatchResult:
        """Fetch every id exactly once, wave by wave.

        The accumulator is local to this call, so concurrent runs never
        share results.  A failing probe raises :class:`NetworkError`
        and aborts the whole batch; single-item failures are dropped.
        """
        result = BatchResult()
        total = len(listing_ids)
        i = 0

        while i < total:
            probe_id = listing_ids[i]
            probe = await self.fetcher.fetch(
                self.url_for(probe_id), headers=self.headers
            )
            budget = RateBudget.from_headers(probe.headers)
            batch_size = budget.batch_size(self.max_batch_size)
            wave_size = min(max(batch_size, 1), total - i)

            report = WaveReport(
                index=len(result.waves),
                start=i,
                budget=budget,
                batch_size=batch_size,
                size=wave_size,
                dispatched=wave_size - 1,
            )
            result.waves.append(report)
            logger.info(
                "Wave %d: ids %d-%d, budget %d/%d remaining",
                report.index,
                i,
                i + wave_size - 1,
                budget.remaining,
                budget.limit,
            )

            self._absorb(probe_id, probe, result.listings, report)
            await self._run_wave(
                listing_ids[i + 1:i + wave_size],
                result.listings,
                report,
            )

            i += wave_size
            logger.info(
                "Processed %d/%d listings (%d collected this wave)",
                i,
                total,
                report.collected,
            )
            self._publish(i, total, wave_size)

            if i < total:
                logger.info(
                    "Waiting %.0f seconds to respect rate limit",
                    self.cooldown,
                )
                await asyncio.sleep(self.cooldown)

        logger.info(
            "Completed listing fetch: %d/%d collected in %d waves",
            len(result.listings),
            total,
            len(result.waves),
        )
        return result
