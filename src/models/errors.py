# src/models/errors.py

"""Exception taxonomy shared by the fetch pipeline."""


class CrateScoutError(Exception):
    """Base class for all crate_scout errors."""


class NetworkError(CrateScoutError):
    """Transport failure or non-2xx HTTP status after all retries."""

    def __init__(
        self,
        message: str,
        url: str = "",
        status_code: int | None = None,
    ) -> None:
        super().__init__(message)
        self.url = url
        self.status_code = status_code


class ParseError(CrateScoutError):
    """A page or JSON payload did not have the expected shape."""


class RateLimitRejection(CrateScoutError):
    """The upstream signalled throttling inside a 2xx payload."""


class ConfigurationError(CrateScoutError):
    """A required setting is missing or invalid."""
