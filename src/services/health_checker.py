# src/services/health_checker.py

"""Upstream connectivity health checker."""

import asyncio
import logging
import time
from dataclasses import dataclass
from typing import Any

from curl_cffi.requests import AsyncSession

from src.config.settings import Settings
from src.models.rate_budget import REMAINING_HEADER, RateBudget

logger = logging.getLogger("crate_scout.health")

_HEALTH_TIMEOUT = 10  # seconds per source
_SLOW_MS = 5000


@dataclass
class HealthResult:
    """Result of a single source health check."""

    source_id: str
    status: str  # "ok", "slow", "down"
    latency_ms: float
    message: str
    budget: RateBudget | None = None


async def probe_source(
    session: Any, source: dict[str, str],
) -> HealthResult:
    """Probe a single upstream for connectivity and rate budget."""
    source_id = source["id"]
    start = time.monotonic()
    try:
        resp = await session.get(
            source["homepage"],
            headers=Settings.API_HEADERS,
            timeout=_HEALTH_TIMEOUT,
        )
    except Exception as exc:
        return HealthResult(
            source_id=source_id,
            status="down",
            latency_ms=(time.monotonic() - start) * 1000,
            message=str(exc)[:80],
        )
    elapsed_ms = (time.monotonic() - start) * 1000

    if not 200 <= resp.status_code < 300:
        return HealthResult(
            source_id=source_id,
            status="down",
            latency_ms=elapsed_ms,
            message=f"HTTP {resp.status_code}",
        )

    budget = (
        RateBudget.from_headers(resp.headers)
        if resp.headers.get(REMAINING_HEADER) is not None
        else None
    )
    message = (
        f"{budget.remaining}/{budget.limit} requests left"
        if budget
        else ""
    )
    return HealthResult(
        source_id=source_id,
        status="slow" if elapsed_ms > _SLOW_MS else "ok",
        latency_ms=elapsed_ms,
        message=message or ("High latency" if elapsed_ms > _SLOW_MS else ""),
        budget=budget,
    )


class HealthChecker:
    """Runs concurrent health probes against all sources."""

    def __init__(self, session: Any = None) -> None:
        self.sources = Settings.AVAILABLE_SOURCES
        self.session = session

    async def _probe_all(self, session: Any) -> list[HealthResult]:
        return list(
            await asyncio.gather(
                *(probe_source(session, src) for src in self.sources)
            )
        )

    async def check_all(self) -> list[HealthResult]:
        """Probe every registered source concurrently."""
        if self.session is not None:
            results = await self._probe_all(self.session)
        else:
            async with AsyncSession(
                impersonate=Settings.IMPERSONATE_BROWSER
            ) as session:
                results = await self._probe_all(session)
        for r in results:
            logger.info(
                "Health check %s: %s (%.0fms) %s",
                r.source_id,
                r.status,
                r.latency_ms,
                r.message,
            )
        return results
