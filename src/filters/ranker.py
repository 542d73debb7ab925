# src/filters/ranker.py

"""Cheapest-first ranking of deduplicated listings."""

import logging

from src.config.settings import Settings
from src.filters.deduplicator import ListingDeduplicator
from src.models.listing import Listing

logger = logging.getLogger("crate_scout.filters")


def rank_listings(
    listings: list[Listing],
    top_n: int = Settings.TOP_N,
) -> list[Listing]:
    """Return the *top_n* cheapest listings.

    ``sorted`` is stable, so equal prices keep their input order.
    """
    ranked = sorted(listings, key=lambda listing: listing.price)
    return ranked[:top_n]


def merge_and_rank(
    listings: list[Listing],
    top_n: int = Settings.TOP_N,
) -> list[Listing]:
    """Deduplicate by name, then pick the cheapest *top_n*."""
    unique, _removed = ListingDeduplicator.deduplicate(listings)
    ranked = rank_listings(unique, top_n)
    logger.info(
        "Ranked %d unique listings (of %d), returning %d",
        len(unique),
        len(listings),
        len(ranked),
    )
    return ranked
