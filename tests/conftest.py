# tests/conftest.py

"""Shared pytest fixtures for all pipeline tests."""

from collections.abc import Generator
from unittest.mock import patch

import pytest


@pytest.fixture(autouse=True)
def pipeline_env(
    monkeypatch: pytest.MonkeyPatch,
) -> Generator[None, None, None]:
    """Provide the required settings so Settings() validates."""
    monkeypatch.setenv("DGS_USERNAME", "digger")
    monkeypatch.setenv("TIMER_LIMIT", "30")
    monkeypatch.delenv("BANDCAMP_USERNAME", raising=False)
    monkeypatch.delenv("CURRENCY_API_KEY", raising=False)
    yield


@pytest.fixture(autouse=True)
def offline_cloudscraper() -> Generator[None, None, None]:
    """Make the cloudscraper fallback fail instead of hitting the network."""
    with patch(
        "src.scrapers.base_scraper.cloudscraper.create_scraper",
        side_effect=RuntimeError("offline"),
    ):
        yield
