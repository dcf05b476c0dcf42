"""Shared fixtures for the review scraper tests."""

import pytest

from reviewscraper.config import ScrapeSettings

from listing_fixtures import listing_page, review_card


@pytest.fixture
def fast_settings():
    """Settings with every wait at zero."""
    return ScrapeSettings(
        consent_timeout=0,
        consent_settle=0,
        navigation_backoff=0,
        record_wait_timeout=0,
        pagination_settle=0,
        inter_page_delay=0,
    )


@pytest.fixture
def two_page_site():
    """Page 1: 20 reviews, next enabled. Page 2: 7 reviews, next disabled."""
    page_one = listing_page(
        [review_card(i) for i in range(20)],
        page_numbers=("1", "2"),
        next_state="enabled",
    )
    page_two = listing_page(
        [review_card(i) for i in range(20, 27)],
        page_numbers=("1", "2"),
        next_state="aria-disabled",
    )
    return [page_one, page_two]
