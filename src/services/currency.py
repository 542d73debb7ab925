# src/services/currency.py

"""Exchange-rate lookup against currencyapi.com."""

import logging
import urllib.parse

from src.config.settings import Settings
from src.models.errors import NetworkError, ParseError
from src.services.retrying_fetcher import RetryingFetcher, decode_json

logger = logging.getLogger("crate_scout.currency")


def detect_currency(price_text: str) -> str | None:
    """Map the leading symbol of a price string to an ISO code."""
    stripped = price_text.strip()
    if not stripped:
        return None
    return Settings.CURRENCY_SYMBOLS.get(stripped[0])


class CurrencyConverter:
    """Looks up conversion multipliers; never raises.

    Any failure returns ``Settings.FALLBACK_RATE``, a deliberately absurd
    multiplier that makes a bad conversion obvious in the results
    instead of silently leaving the amount unconverted.
    """

    def __init__(
        self,
        fetcher: RetryingFetcher,
        api_key: str = "",
        fallback_rate: float = Settings.FALLBACK_RATE,
    ) -> None:
        self.fetcher = fetcher
        self.api_key = api_key
        self.fallback_rate = fallback_rate

    def _build_url(self, base: str, target: str) -> str:
        query = urllib.parse.urlencode(
            {
                "apikey": self.api_key,
                "currencies": target,
                "base_currency": base,
            }
        )
        return f"{Settings.CURRENCY_API_URL}?{query}"

    async def get_rate(self, base: str | None, target: str) -> float:
        """Return how many *target* units one *base* unit buys."""
        if base == target:
            return 1.0
        if not base:
            logger.error(
                "Unknown base currency, using fallback rate %s",
                self.fallback_rate,
            )
            return self.fallback_rate
        try:
            resp = await self.fetcher.fetch(
                self._build_url(base, target),
                headers=Settings.API_HEADERS,
            )
            data = decode_json(resp)
            return float(data["data"][target]["value"])
        except (NetworkError, ParseError) as exc:
            logger.error("Error in currency rate collection: %s", exc)
        except (KeyError, TypeError, ValueError) as exc:
            logger.error(
                "Unexpected currency API payload for %s->%s: %r",
                base,
                target,
                exc,
            )
        return self.fallback_rate
