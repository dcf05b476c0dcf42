"""Tests for consent dismissal and page count resolution."""

import pytest

from reviewscraper.errors import ErrorKind
from reviewscraper.models import ErrorReport
from reviewscraper.page_state import PageStateDetector
from reviewscraper.site_profile import TRUSTPILOT
from reviewscraper.snapshot import SnapshotSession

from listing_fixtures import listing_page, open_snapshot, review_card


class BrokenControlsSession(SnapshotSession):
    """Fails every query for pagination controls."""

    async def query_first(self, selector, scope=None):
        if selector.startswith("[data-pagination"):
            raise RuntimeError("controls unavailable")
        return await super().query_first(selector, scope)


async def _detector(document, fast_settings, session_cls=SnapshotSession):
    session = await open_snapshot([document], session_cls=session_cls)
    report = ErrorReport()
    return PageStateDetector(session, TRUSTPILOT, fast_settings, report), session, report


class TestPageCount:
    """Page count resolution."""

    @pytest.mark.asyncio
    async def test_largest_page_number(self, fast_settings):
        page = listing_page([review_card(0)], page_numbers=("1", "2", "3", "...", "5"))
        detector, _, report = await _detector(page, fast_settings)
        assert await detector.resolve_page_count() == 5
        assert len(report) == 0

    @pytest.mark.asyncio
    async def test_no_controls_means_single_page(self, fast_settings):
        page = listing_page([review_card(0)], page_numbers=(), next_state=None)
        detector, _, _ = await _detector(page, fast_settings)
        assert await detector.resolve_page_count() == 1

    @pytest.mark.asyncio
    async def test_last_page_control_preferred(self, fast_settings):
        """Test the last-page label wins over the visible page numbers."""
        page = listing_page([review_card(0)], page_numbers=("1", "2", "3"), last_page="42")
        detector, _, _ = await _detector(page, fast_settings)
        assert await detector.resolve_page_count() == 42

    @pytest.mark.asyncio
    async def test_non_numeric_last_page_falls_back(self, fast_settings):
        page = listing_page([review_card(0)], page_numbers=("1", "2", "3"), last_page="Last")
        detector, _, _ = await _detector(page, fast_settings)
        assert await detector.resolve_page_count() == 3

    @pytest.mark.asyncio
    async def test_fault_defaults_to_one(self, fast_settings):
        page = listing_page([review_card(0)], page_numbers=("1", "2"))
        detector, _, report = await _detector(page, fast_settings, BrokenControlsSession)

        assert await detector.resolve_page_count() == 1
        entries = report.of_kind(ErrorKind.PAGE_COUNT_UNRESOLVED)
        assert len(entries) == 1
        assert "controls unavailable" in entries[0].message


class TestConsent:
    """Consent overlay handling."""

    @pytest.mark.asyncio
    async def test_consent_clicked_when_present(self, fast_settings):
        page = listing_page([review_card(0)], consent=True)
        detector, session, report = await _detector(page, fast_settings)

        assert await detector.dismiss_consent() is True
        assert len(session.clicks) == 1
        assert await session.query_first(TRUSTPILOT.consent_accept) is None
        assert len(report) == 0

    @pytest.mark.asyncio
    async def test_missing_consent_is_recorded(self, fast_settings):
        page = listing_page([review_card(0)], consent=False)
        detector, session, report = await _detector(page, fast_settings)

        assert await detector.dismiss_consent() is False
        assert session.clicks == []
        assert len(report.of_kind(ErrorKind.CONSENT_HANDLING_SKIPPED)) == 1

    @pytest.mark.asyncio
    async def test_lazy_settle_never_raises(self, fast_settings):
        class ScriptErrorSession(SnapshotSession):
            async def evaluate(self, script, arg=None):
                raise RuntimeError("Execution context was destroyed")

        page = listing_page([review_card(0)])
        detector, _, report = await _detector(page, fast_settings, ScriptErrorSession)
        await detector.settle_lazy_content()
        assert len(report) == 0
