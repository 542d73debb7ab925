# src/models/rate_budget.py

"""Server-reported request budget read from Discogs response headers."""

import logging
from collections.abc import Mapping
from dataclasses import dataclass

logger = logging.getLogger("crate_scout.models")

LIMIT_HEADER = "X-Discogs-Ratelimit"
USED_HEADER = "X-Discogs-Ratelimit-Used"
REMAINING_HEADER = "X-Discogs-Ratelimit-Remaining"


def _header_int(headers: Mapping[str, str], name: str) -> int | None:
    """Parse an integer header, returning None when absent or malformed."""
    raw = headers.get(name)
    if raw is None:
        return None
    try:
        return int(str(raw).strip())
    except ValueError:
        return None


@dataclass(frozen=True)
class RateBudget:
    """Snapshot of the upstream rate budget.

    Each response carries a fresh snapshot that supersedes the previous
    one; budgets are never persisted.
    """

    limit: int
    used: int
    remaining: int

    def __post_init__(self) -> None:
        if self.remaining < 0:
            object.__setattr__(self, "remaining", 0)

    @classmethod
    def from_headers(cls, headers: Mapping[str, str]) -> "RateBudget":
        """Build a budget from response headers.

        Missing or unparsable headers produce an exhausted budget so the
        caller falls back to the most conservative wave size.
        """
        limit = _header_int(headers, LIMIT_HEADER)
        used = _header_int(headers, USED_HEADER)
        remaining = _header_int(headers, REMAINING_HEADER)
        if remaining is None:
            logger.warning(
                "Rate-limit headers missing or malformed; "
                "assuming an exhausted budget"
            )
            return cls(limit=limit or 0, used=used or 0, remaining=0)
        return cls(
            limit=limit if limit is not None else remaining,
            used=used if used is not None else 0,
            remaining=remaining,
        )

    def batch_size(self, max_batch_size: int) -> int:
        """Number of requests the next wave may account for."""
        return max(0, min(self.remaining, max_batch_size))
