# src/models/pipeline_result.py

"""Per-source outcomes and the final pipeline result."""

from dataclasses import dataclass, field

from src.models.listing import Listing


@dataclass
class SourceOutcome:
    """Tagged result of one source adapter: ok with listings, or failed."""

    source: str
    listings: list[Listing] = field(
        default_factory=lambda: list[Listing]()
    )
    error: BaseException | None = None

    @classmethod
    def ok(
        cls, source: str, listings: list[Listing],
    ) -> "SourceOutcome":
        return cls(source=source, listings=list(listings))

    @classmethod
    def failed(
        cls, source: str, error: BaseException,
    ) -> "SourceOutcome":
        return cls(source=source, error=error)

    @property
    def succeeded(self) -> bool:
        return self.error is None


@dataclass
class PipelineResult:
    """The only artifact returned to callers of the pipeline."""

    results: list[Listing] = field(
        default_factory=lambda: list[Listing]()
    )
    discogs_success: bool = True
    bandcamp_success: bool = True
    errors: list[str] = field(
        default_factory=lambda: list[str]()
    )

    def to_dict(self) -> dict[str, object]:
        """Serialise to ``{results, discogsSuccess, bandcampSuccess}``."""
        return {
            "results": [listing.to_dict() for listing in self.results],
            "discogsSuccess": self.discogs_success,
            "bandcampSuccess": self.bandcamp_success,
        }
