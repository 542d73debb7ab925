# src/filters/deduplicator.py

"""Listing deduplication across Discogs and Bandcamp."""

import logging

from src.models.listing import Listing

logger = logging.getLogger("crate_scout.filters")


class ListingDeduplicator:
    """Collapse listings that share a logical name, keeping the cheapest."""

    @staticmethod
    def deduplicate(
        listings: list[Listing],
    ) -> tuple[list[Listing], int]:
        """Remove duplicate names, keeping the lowest price per name.

        The winner of each group is chosen by explicit price comparison,
        so for distinct prices the outcome does not depend on input
        order.  A group keeps the position of its first occurrence;
        on an exact price tie the earlier record stays.

        Returns the deduplicated list and the count of removed dupes.
        """
        if not listings:
            return [], 0

        seen_names: dict[str, int] = {}
        kept: list[Listing] = []
        removed = 0

        for listing in listings:
            if listing.name in seen_names:
                existing_idx = seen_names[listing.name]
                if listing.price < kept[existing_idx].price:
                    kept[existing_idx] = listing
                removed += 1
                continue

            seen_names[listing.name] = len(kept)
            kept.append(listing)

        if removed:
            logger.info(
                "Deduplication removed %d duplicate listings",
                removed,
            )

        return kept, removed
