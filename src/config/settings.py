# src/config/settings.py

"""Central configuration for the crate_scout pipeline."""

import math
import os
from pathlib import Path

from curl_cffi.requests import BrowserTypeLiteral
from dotenv import load_dotenv

from src.models.errors import ConfigurationError

load_dotenv()


class Settings:
    """Central configuration for the crate_scout pipeline.

    Class attributes hold fixed constants.  Environment-driven values
    (usernames, API key, timing) are read when an instance is created so
    that a ``.env`` change or a test override is picked up per run.
    """

    # --- Networking ---
    REQUEST_TIMEOUT: int = 15           # Seconds before a request times out
    MAX_RETRIES: int = 3                # Attempts per request
    RETRY_DELAY: float = 1.0            # Fixed wait between attempts (secs)

    # --- Rate budget ---
    MAX_BATCH_SIZE: int = 60            # Upper bound on one wave
    WAVE_COOLDOWN: float = 61.0         # Fixed wait between waves (secs)
    RATE_LIMIT_MESSAGE: str = "You are making requests too quickly."

    # --- Ranking / currency ---
    TOP_N: int = 3
    REFERENCE_CURRENCY: str = "AUD"
    FALLBACK_RATE: float = 10000.0      # Poison rate when lookup fails
    CURRENCY_SYMBOLS: dict[str, str] = {
        "$": "USD",
        "€": "EUR",
        "£": "GBP",
    }

    # --- Upstreams ---
    DISCOGS_API_URL: str = "https://api.discogs.com"
    DISCOGS_WEB_URL: str = "https://www.discogs.com"
    DISCOGS_WANTS_PER_PAGE: int = 100
    BANDCAMP_URL: str = "https://bandcamp.com"
    CURRENCY_API_URL: str = "https://api.currencyapi.com/v3/latest"

    # --- Browser Impersonation ---
    IMPERSONATE_BROWSER: BrowserTypeLiteral = "chrome131"
    DEFAULT_HEADERS: dict[str, str] = {
        "Accept": (
            "text/html,application/xhtml+xml,"
            "application/xml;q=0.9,image/avif,"
            "image/webp,image/apng,*/*;q=0.8"
        ),
        "Accept-Language": "en-US,en;q=0.9",
        "sec-fetch-dest": "document",
        "sec-fetch-mode": "navigate",
        "sec-fetch-site": "none",
        "Upgrade-Insecure-Requests": "1",
    }
    API_HEADERS: dict[str, str] = {
        "Accept": "application/json",
        "Accept-Language": "en-US,en;q=0.9",
    }

    # --- Paths ---
    BASE_DIR: Path = Path(__file__).resolve().parent.parent.parent
    SELECTORS_PATH: Path = BASE_DIR / "src" / "config" / "selectors.json"
    LOGS_DIR: Path = BASE_DIR / "logs"

    # --- Sources ---
    AVAILABLE_SOURCES: list[dict[str, str]] = [
        {
            "id": "discogs",
            "label": "Discogs",
            "scraper": "src.scrapers.discogs_scraper.DiscogsScraper",
            "homepage": "https://api.discogs.com/",
        },
        {
            "id": "bandcamp",
            "label": "Bandcamp",
            "scraper": "src.scrapers.bandcamp_scraper.BandcampScraper",
            "homepage": "https://bandcamp.com/",
        },
    ]

    def __init__(self) -> None:
        self.discogs_username: str = os.getenv("DGS_USERNAME", "").strip()
        self.bandcamp_username: str = os.getenv(
            "BANDCAMP_USERNAME", ""
        ).strip()
        self.currency_api_key: str = os.getenv(
            "CURRENCY_API_KEY", ""
        ).strip()
        self.timer_limit_raw: str = os.getenv("TIMER_LIMIT", "").strip()

    @property
    def wave_deadline(self) -> float:
        """Per-wave deadline in seconds, taken from ``TIMER_LIMIT``."""
        try:
            return float(self.timer_limit_raw)
        except ValueError as exc:
            raise ConfigurationError(
                f"TIMER_LIMIT must be a number, got {self.timer_limit_raw!r}"
            ) from exc

    def validate(self) -> None:
        """Fail fast when a required setting is missing or invalid."""
        problems: list[str] = []
        if not self.discogs_username:
            problems.append("DGS_USERNAME is not set")
        if not self.timer_limit_raw:
            problems.append("TIMER_LIMIT is not set")
        else:
            try:
                deadline = self.wave_deadline
            except ConfigurationError as exc:
                problems.append(str(exc))
            else:
                if not math.isfinite(deadline) or deadline <= 0:
                    problems.append(
                        "TIMER_LIMIT must be a positive, finite number"
                    )
        if problems:
            raise ConfigurationError(
                "Missing environment variables: " + "; ".join(problems)
                + ". Check the README for more info."
            )
