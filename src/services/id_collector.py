# src/services/id_collector.py

"""Turn a want list into marketplace listing identifiers."""

import logging
from collections.abc import Awaitable, Callable, Iterable, Sequence
from typing import Any, Protocol

from src.models.errors import CrateScoutError
from src.services.progress_channel import ProgressChannel

logger = logging.getLogger("crate_scout.ids")


class ListingIdExtractor(Protocol):
    """Anything that can pull listing ids out of a sale page."""

    def extract_listing_ids(self, html: str) -> list[str]: ...


def collect_release_ids(wants: Iterable[dict[str, Any]]) -> list[str]:
    """Flatten want-list entries into release ids, preserving order."""
    release_ids: list[str] = []
    for entry in wants:
        release_id = entry.get("id")
        if release_id is None:
            logger.warning("Want-list entry without an id skipped: %r", entry)
            continue
        release_ids.append(str(release_id))
    logger.info("Collected %d release ids", len(release_ids))
    return release_ids


async def collect_marketplace_ids(
    release_ids: Sequence[str],
    fetch_page: Callable[[str], Awaitable[str]],
    extractor: ListingIdExtractor,
    progress: ProgressChannel | None = None,
    progress_span: tuple[float, float] = (40.0, 60.0),
) -> list[str]:
    """Collect available listing ids from each release's sale page.

    Releases are visited one after another.  A release whose page cannot
    be fetched or parsed contributes no ids; the rest carry on.
    """
    marketplace_ids: list[str] = []
    total = len(release_ids)
    start, end = progress_span

    for done, release_id in enumerate(release_ids, 1):
        try:
            html = await fetch_page(release_id)
            found = extractor.extract_listing_ids(html)
        except CrateScoutError as exc:
            logger.error(
                "Error fetching marketplace ids for release %s: %s",
                release_id,
                exc,
            )
        else:
            logger.debug(
                "Release %s: %d available listings",
                release_id,
                len(found),
            )
            marketplace_ids.extend(found)

        if progress is not None:
            progress.publish(
                start + (end - start) * done / total,
                f"Collecting marketplace IDs: {done}/{total}",
            )

    logger.info(
        "Collected %d marketplace ids from %d releases",
        len(marketplace_ids),
        total,
    )
    return marketplace_ids
