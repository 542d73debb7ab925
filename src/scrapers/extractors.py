# src/scrapers/extractors.py

"""HTML extraction for Discogs sale pages and Bandcamp pages.

Selectors live in ``selectors.json`` so markup changes only touch
configuration.  Extractors are pure: they take page HTML and return
structured records, never touching the network.
"""

import json
import re
from typing import Any

from bs4 import BeautifulSoup

from src.config.settings import Settings
from src.models.listing import AlbumPrice, WishlistItem

_LEADING_NON_DIGITS_RE = re.compile(r"^\D+")
_BY_PREFIX_RE = re.compile(r"^by\s+", re.IGNORECASE)


def load_selectors(source_name: str) -> dict[str, str]:
    """Load CSS selectors for *source_name* from selectors.json."""
    with open(Settings.SELECTORS_PATH, encoding="utf-8") as f:
        all_selectors: dict[str, Any] = json.load(f)
    result: dict[str, str] = all_selectors.get(source_name, {})
    return result


class DiscogsPageExtractor:
    """Pulls available marketplace listing ids from a release sale page."""

    def __init__(self, selectors: dict[str, str] | None = None) -> None:
        self.selectors = selectors or load_selectors("discogs")

    def extract_listing_ids(self, html: str) -> list[str]:
        """Return listing ids in page order, skipping unavailable rows.

        Listing links look like ``/sell/item/123456``; everything before
        the first digit is stripped.
        """
        soup = BeautifulSoup(html, "lxml")
        ids: list[str] = []
        for row in soup.select(self.selectors["listing_row"]):
            link = row.select_one(self.selectors["listing_link"])
            href = link.get("href") if link else None
            if not href:
                continue
            listing_id = _LEADING_NON_DIGITS_RE.sub("", str(href))
            if listing_id:
                ids.append(listing_id)
        return ids


class BandcampPageExtractor:
    """Reads wishlist entries, prices and artwork from Bandcamp pages."""

    def __init__(self, selectors: dict[str, str] | None = None) -> None:
        self.selectors = selectors or load_selectors("bandcamp")

    def extract_wishlist_items(self, html: str) -> list[WishlistItem]:
        """Return ``(title, artist, link)`` triples in wishlist order."""
        soup = BeautifulSoup(html, "lxml")
        items: list[WishlistItem] = []
        for element in soup.select(self.selectors["wishlist_item"]):
            link = element.get("href")
            if not link:
                continue
            title_el = element.select_one(self.selectors["item_title"])
            artist_el = element.select_one(self.selectors["item_artist"])
            items.append(
                WishlistItem(
                    title=title_el.get_text(strip=True) if title_el else "",
                    artist=_BY_PREFIX_RE.sub(
                        "", artist_el.get_text(strip=True) if artist_el else ""
                    ),
                    link=str(link),
                )
            )
        return items

    def extract_album_price(self, html: str) -> AlbumPrice:
        """Return the digital price text and whether the album is sold out."""
        soup = BeautifulSoup(html, "lxml")
        notable = " ".join(
            el.get_text() for el in soup.select(self.selectors["sold_out"])
        )
        price_text = " ".join(
            el.get_text(strip=True)
            for el in soup.select(self.selectors["digital_price"])
        )
        return AlbumPrice(
            text=price_text.strip(),
            sold_out="Sold Out" in notable,
        )

    def extract_image(self, html: str) -> str | None:
        """Return the album artwork URL, if present."""
        soup = BeautifulSoup(html, "lxml")
        img = soup.select_one(self.selectors["album_art"])
        src = img.get("src") if img else None
        return str(src) if src else None
