# tests/test_extractors.py

"""Tests for the Discogs and Bandcamp page extractors."""

import unittest

from pages import bandcamp_album, bandcamp_wishlist, discogs_sale_page

from src.scrapers.extractors import (
    BandcampPageExtractor,
    DiscogsPageExtractor,
    load_selectors,
)


class TestLoadSelectors(unittest.TestCase):
    """selectors.json loading."""

    def test_known_sources_have_selectors(self) -> None:
        """Both sources define their selectors."""
        self.assertIn("listing_row", load_selectors("discogs"))
        self.assertIn("wishlist_item", load_selectors("bandcamp"))

    def test_unknown_source_is_empty(self) -> None:
        """An unknown source yields an empty mapping."""
        self.assertEqual(load_selectors("nowhere"), {})


class TestDiscogsPageExtractor(unittest.TestCase):
    """extract_listing_ids behaviour."""

    def setUp(self) -> None:
        self.extractor = DiscogsPageExtractor()

    def test_available_ids_in_page_order(self) -> None:
        """Unavailable rows are skipped; order is preserved."""
        html = discogs_sale_page(
            ("1001", True), ("1002", False), ("1003", True)
        )
        self.assertEqual(
            self.extractor.extract_listing_ids(html), ["1001", "1003"]
        )

    def test_empty_page(self) -> None:
        """A release with no offers yields no ids."""
        self.assertEqual(
            self.extractor.extract_listing_ids("<html></html>"), []
        )

    def test_row_without_link_skipped(self) -> None:
        """Rows lacking a listing link are ignored."""
        html = (
            '<table><tr class="shortcut_navigable"><td>no link</td></tr>'
            "</table>"
        )
        self.assertEqual(self.extractor.extract_listing_ids(html), [])


class TestBandcampPageExtractor(unittest.TestCase):
    """Wishlist, price and artwork extraction."""

    def setUp(self) -> None:
        self.extractor = BandcampPageExtractor()

    def test_wishlist_items(self) -> None:
        """Items are read in order and 'also' links are ignored."""
        html = bandcamp_wishlist(
            ("Blue Train", "John Coltrane", "https://a.bandcamp.com/album/1"),
            ("Kind of Blue", "Miles Davis", "https://b.bandcamp.com/album/2"),
        )
        items = self.extractor.extract_wishlist_items(html)
        self.assertEqual(len(items), 2)
        self.assertEqual(items[0].title, "Blue Train")
        self.assertEqual(items[0].artist, "John Coltrane")
        self.assertEqual(items[1].link, "https://b.bandcamp.com/album/2")

    def test_album_price(self) -> None:
        """The digital price text is extracted."""
        price = self.extractor.extract_album_price(bandcamp_album("€15"))
        self.assertEqual(price.text, "€15")
        self.assertFalse(price.sold_out)

    def test_sold_out_flag(self) -> None:
        """A 'Sold Out' notice sets the flag."""
        price = self.extractor.extract_album_price(
            bandcamp_album(sold_out=True)
        )
        self.assertTrue(price.sold_out)

    def test_missing_price(self) -> None:
        """Pages without a digital price give empty text."""
        price = self.extractor.extract_album_price("<html></html>")
        self.assertEqual(price.text, "")

    def test_image(self) -> None:
        """Album art src is returned, or None when absent."""
        self.assertEqual(
            self.extractor.extract_image(bandcamp_album()),
            "https://f4.bcbits.com/img/a1_16.jpg",
        )
        self.assertIsNone(
            self.extractor.extract_image(bandcamp_album(image=None))
        )


if __name__ == "__main__":
    unittest.main()
