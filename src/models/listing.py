# src/models/listing.py

"""Normalised listing records shared by every source."""

from dataclasses import dataclass


@dataclass
class Listing:
    """One purchasable offer, priced in the reference currency."""

    name: str
    price: float
    condition: str
    sleeve_condition: str | None = None
    link: str = ""
    image: str | None = None
    source: str = ""

    def to_dict(self) -> dict[str, object]:
        """Serialise to the wire shape returned to callers."""
        return {
            "name": self.name,
            "price": self.price,
            "condition": self.condition,
            "sleeve_condition": self.sleeve_condition,
            "link": self.link,
            "image": self.image,
        }


@dataclass
class WishlistItem:
    """A Bandcamp wishlist entry."""

    title: str
    artist: str
    link: str


@dataclass
class AlbumPrice:
    """Raw price text from an album page plus its sold-out flag."""

    text: str
    sold_out: bool = False
