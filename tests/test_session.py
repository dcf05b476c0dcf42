"""Tests for session lifecycle and the Playwright-backed session."""

import asyncio
from unittest.mock import AsyncMock, MagicMock, patch

import pytest
from playwright.async_api import Error as PlaywrightError
from playwright.async_api import TimeoutError as PlaywrightTimeoutError

from reviewscraper.browser_config import BrowserConfig, FAST_CONFIG
from reviewscraper.errors import RenderError, RenderTimeout, SessionInitError
from reviewscraper.playwright_session import STEALTH_SCRIPT, PlaywrightSession
from reviewscraper.session import acquire_session
from reviewscraper.snapshot import SnapshotSession


def _mock_playwright():
    """Build an async_playwright() stand-in and return (starter, pw, browser, context, page)."""
    page = MagicMock()
    page.goto = AsyncMock()
    page.route = AsyncMock()
    page.title = AsyncMock(return_value="Reviews")
    page.wait_for_timeout = AsyncMock()

    context = MagicMock()
    context.new_page = AsyncMock(return_value=page)
    context.add_init_script = AsyncMock()
    context.close = AsyncMock()

    browser = MagicMock()
    browser.new_context = AsyncMock(return_value=context)
    browser.close = AsyncMock()

    pw = MagicMock()
    pw.chromium.launch = AsyncMock(return_value=browser)
    pw.stop = AsyncMock()

    starter = MagicMock()
    starter.return_value.start = AsyncMock(return_value=pw)
    return starter, pw, browser, context, page


# =============================================================================
# acquire_session Tests
# =============================================================================

class TestAcquireSession:
    """Session release on every exit path."""

    @pytest.mark.asyncio
    async def test_closed_after_normal_exit(self):
        session = SnapshotSession(["<html><title>t</title></html>"])
        async with acquire_session(lambda: session) as acquired:
            assert acquired is session
            assert session.is_open
        assert session.close_calls == 1

    @pytest.mark.asyncio
    async def test_closed_after_error_in_body(self):
        session = SnapshotSession(["<html></html>"])
        with pytest.raises(KeyError):
            async with acquire_session(lambda: session):
                raise KeyError("boom")
        assert session.close_calls == 1

    @pytest.mark.asyncio
    async def test_open_failure_is_session_init_error(self):
        session = SnapshotSession([])
        with pytest.raises(SessionInitError):
            async with acquire_session(lambda: session):
                pass
        assert session.close_calls == 1

    @pytest.mark.asyncio
    async def test_closed_on_cancellation(self):
        session = SnapshotSession(["<html></html>"])
        entered = asyncio.Event()

        async def hold():
            async with acquire_session(lambda: session):
                entered.set()
                await asyncio.sleep(10)

        task = asyncio.create_task(hold())
        await entered.wait()
        task.cancel()
        with pytest.raises(asyncio.CancelledError):
            await task
        assert session.close_calls == 1


# =============================================================================
# PlaywrightSession Tests
# =============================================================================

class TestPlaywrightSession:
    """PlaywrightSession against a mocked Playwright driver."""

    @pytest.mark.asyncio
    async def test_open_builds_context_from_config(self):
        """Test open() applies viewport, user agent and the stealth script."""
        starter, pw, browser, context, page = _mock_playwright()
        config = BrowserConfig(user_agent="Custom UA", viewport_width=1920, viewport_height=1080)

        with patch("reviewscraper.playwright_session.async_playwright", starter):
            session = PlaywrightSession(config)
            await session.open()

        pw.chromium.launch.assert_awaited_once()
        assert pw.chromium.launch.await_args.kwargs["headless"] is True
        kwargs = browser.new_context.await_args.kwargs
        assert kwargs["user_agent"] == "Custom UA"
        assert kwargs["viewport"] == {"width": 1920, "height": 1080}
        context.set_default_timeout.assert_called_once_with(30000)
        context.add_init_script.assert_awaited_once_with(STEALTH_SCRIPT)
        page.route.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_resource_blocking_installs_route(self):
        starter, _, _, context, page = _mock_playwright()

        with patch("reviewscraper.playwright_session.async_playwright", starter):
            await PlaywrightSession(FAST_CONFIG).open()

        page.route.assert_awaited_once()
        assert page.route.await_args.args[0] == "**/*"

    @pytest.mark.asyncio
    async def test_stealth_off_skips_init_script(self):
        starter, _, _, context, _ = _mock_playwright()

        with patch("reviewscraper.playwright_session.async_playwright", starter):
            await PlaywrightSession(BrowserConfig(stealth_mode=False)).open()

        context.add_init_script.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_close_is_idempotent(self):
        starter, pw, browser, context, _ = _mock_playwright()

        with patch("reviewscraper.playwright_session.async_playwright", starter):
            session = PlaywrightSession()
            await session.open()

        await session.close()
        await session.close()

        context.close.assert_awaited_once()
        browser.close.assert_awaited_once()
        pw.stop.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_close_never_raises(self):
        starter, pw, browser, _, _ = _mock_playwright()
        browser.close.side_effect = PlaywrightError("Target closed")

        with patch("reviewscraper.playwright_session.async_playwright", starter):
            session = PlaywrightSession()
            await session.open()

        await session.close()
        pw.stop.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_close_before_open(self):
        await PlaywrightSession().close()

    @pytest.mark.asyncio
    async def test_navigate_converts_timeout_to_milliseconds(self):
        starter, _, _, _, page = _mock_playwright()
        page.goto.return_value = MagicMock(status=200)

        with patch("reviewscraper.playwright_session.async_playwright", starter):
            session = PlaywrightSession()
            await session.open()

        status = await session.navigate("https://example.com", "commit", 10)

        assert status == 200
        page.goto.assert_awaited_once_with("https://example.com", wait_until="commit", timeout=10000)

    @pytest.mark.asyncio
    async def test_timeout_translated(self):
        starter, _, _, _, page = _mock_playwright()
        page.goto.side_effect = PlaywrightTimeoutError("Timeout 10000ms exceeded")

        with patch("reviewscraper.playwright_session.async_playwright", starter):
            session = PlaywrightSession()
            await session.open()

        with pytest.raises(RenderTimeout):
            await session.navigate("https://example.com", "commit", 10)

    @pytest.mark.asyncio
    async def test_error_translated(self):
        starter, _, _, _, page = _mock_playwright()
        page.goto.side_effect = PlaywrightError("net::ERR_NAME_NOT_RESOLVED")

        with patch("reviewscraper.playwright_session.async_playwright", starter):
            session = PlaywrightSession()
            await session.open()

        with pytest.raises(RenderError) as exc_info:
            await session.navigate("https://example.com", "load", 30)
        assert not isinstance(exc_info.value, RenderTimeout)

    @pytest.mark.asyncio
    async def test_use_before_open(self):
        with pytest.raises(RenderError, match="not open"):
            await PlaywrightSession().title()
