# src/services/retrying_fetcher.py

"""Single-request wrapper with a bounded, fixed-delay retry policy."""

import asyncio
import logging
from dataclasses import dataclass
from typing import Any

from src.config.settings import Settings
from src.models.errors import NetworkError, ParseError



def decode_json(resp: Any) -> Any:
    """Decode a response body, mapping malformed JSON to ParseError."""
    try:
        return resp.json()
    except ValueError as exc:
        raise ParseError(f"Malformed JSON body: {exc}") from exc


@dataclass(frozen=True)
class RetryPolicy:
    """How many times to try a request and how long to wait between tries."""

    max_attempts: int = Settings.MAX_RETRIES
    delay: float = Settings.RETRY_DELAY

    def __post_init__(self) -> None:
        if self.max_attempts < 1:
            raise ValueError("max_attempts must be >= 1")
        if self.delay < 0:
            raise ValueError("delay must be >= 0")


class RetryingFetcher:
    """GET with retries over a shared ``curl_cffi`` ``AsyncSession``.

    A non-2xx status counts as a failed attempt exactly like a transport
    error.  The wait between attempts is fixed (``policy.delay``), not
    exponential.  Once attempts are exhausted a :class:`NetworkError`
    is raised; parsing the body is left to the caller.
    """

    def __init__(
        self,
        session: Any,
        policy: RetryPolicy | None = None,
        timeout: float = Settings.REQUEST_TIMEOUT,
        source_name: str = "http",
    ) -> None:
        self.session = session
        self.policy = policy or RetryPolicy()
        self.timeout = timeout
        self.source_name = source_name
        self.logger = logging.getLogger(
            f"crate_scout.{source_name}.fetch"
        )

    async def fetch(
        self,
        url: str,
        headers: dict[str, str] | None = None,
        policy: RetryPolicy | None = None,
    ) -> Any:
        """Fetch *url*, retrying failures according to *policy*."""
        policy = policy or self.policy
        last_error: Exception | None = None

        for attempt in range(1, policy.max_attempts + 1):
            try:
                resp = await self.session.get(
                    url,
                    headers=headers,
                    timeout=self.timeout,
                )
                if not 200 <= resp.status_code < 300:
                    raise NetworkError(
                        f"HTTP {resp.status_code} for {url}",
                        url=url,
                        status_code=resp.status_code,
                    )
                self.logger.debug(
                    "[%s] Attempt %d OK: %s",
                    self.source_name,
                    attempt,
                    url,
                )
                return resp
            except Exception as exc:
                last_error = exc
                self.logger.warning(
                    "[%s] Attempt %d/%d failed for %s: %s",
                    self.source_name,
                    attempt,
                    policy.max_attempts,
                    url,
                    exc,
                )
                if attempt < policy.max_attempts:
                    self.logger.info(
                        "[%s] Retrying in %.1fs",
                        self.source_name,
                        policy.delay,
                    )
                    await asyncio.sleep(policy.delay)

        if isinstance(last_error, NetworkError):
            raise last_error
        raise NetworkError(
            f"Request failed after {policy.max_attempts} attempts: {url}",
            url=url,
        ) from last_error
