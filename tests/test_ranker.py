# tests/test_ranker.py

"""Tests for cheapest-first ranking."""

import unittest

from src.filters.ranker import merge_and_rank, rank_listings
from src.models.listing import Listing


def _make(name: str, price: float) -> Listing:
    return Listing(name=name, price=price, condition="M")


class TestRankListings(unittest.TestCase):
    """rank_listings ordering and truncation."""

    def test_top_three_ascending(self) -> None:
        """At most three results, cheapest first."""
        listings = [
            _make("a", 30.0),
            _make("b", 5.0),
            _make("c", 12.5),
            _make("d", 7.0),
        ]
        ranked = rank_listings(listings)
        self.assertEqual([l.name for l in ranked], ["b", "d", "c"])

    def test_fewer_than_three(self) -> None:
        """Short inputs are returned whole."""
        self.assertEqual(len(rank_listings([_make("a", 1.0)])), 1)
        self.assertEqual(rank_listings([]), [])

    def test_stable_on_ties(self) -> None:
        """Equal prices keep insertion order."""
        listings = [_make("first", 9.0), _make("second", 9.0)]
        self.assertEqual(
            [l.name for l in rank_listings(listings)], ["first", "second"]
        )

    def test_custom_top_n(self) -> None:
        """top_n controls the cut-off."""
        listings = [_make(str(i), float(i)) for i in range(10)]
        self.assertEqual(len(rank_listings(listings, top_n=5)), 5)

    def test_non_decreasing(self) -> None:
        """Output prices never decrease."""
        listings = [_make(str(i), float((i * 7) % 11)) for i in range(20)]
        prices = [l.price for l in rank_listings(listings)]
        self.assertEqual(prices, sorted(prices))
        self.assertLessEqual(len(prices), 3)


class TestMergeAndRank(unittest.TestCase):
    """merge_and_rank dedupes before picking the top three."""

    def test_dedup_happens_before_cut(self) -> None:
        """A duplicate cannot take two of the three slots."""
        listings = [
            _make("Abbey Road", 25.00),
            _make("Abbey Road", 19.99),
            _make("Revolver", 30.0),
            _make("Help!", 40.0),
        ]
        ranked = merge_and_rank(listings)
        self.assertEqual(
            [(l.name, l.price) for l in ranked],
            [("Abbey Road", 19.99), ("Revolver", 30.0), ("Help!", 40.0)],
        )


if __name__ == "__main__":
    unittest.main()
