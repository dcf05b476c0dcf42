"""
Scrape orchestration.

ScrapeOrchestrator runs one extraction end to end:

    open session -> navigate -> dismiss consent -> resolve page count
    -> loop: wait for records, extract, advance -> close session

Each run owns a fresh session from the session factory and releases it on
every exit path, so concurrent runs never share a browser.
"""
import asyncio
import logging
from typing import Optional, Sequence

from .browser_config import BrowserConfig
from .config import ScrapeSettings
from .errors import ErrorKind, NavigationExhausted, RenderError
from .extractor import RecordExtractor
from .models import ErrorReport, PageState, ScrapeResult, utc_now_iso
from .navigation import DEFAULT_STRATEGIES, NavigationController, NavigationStrategy
from .page_state import PageStateDetector
from .pagination import PaginationDriver
from .session import RenderSession, SessionFactory, acquire_session
from .site_profile import SiteProfile, TRUSTPILOT

logger = logging.getLogger(__name__)


def playwright_session_factory(config: Optional[BrowserConfig] = None) -> SessionFactory:
    """Factory producing a new PlaywrightSession per run."""
    from .playwright_session import PlaywrightSession

    def factory() -> RenderSession:
        return PlaywrightSession(config)

    return factory


class ScrapeOrchestrator:
    """
    Coordinates navigation, page-state detection, extraction and pagination.

        orchestrator = ScrapeOrchestrator()
        result = await orchestrator.run("https://www.trustpilot.com/review/example.com")

    run() raises SessionInitError or NavigationExhausted for fatal failures;
    every other fault ends up in ScrapeResult.errors.
    """

    def __init__(
        self,
        session_factory: Optional[SessionFactory] = None,
        settings: Optional[ScrapeSettings] = None,
        profile: SiteProfile = TRUSTPILOT,
        strategies: Sequence[NavigationStrategy] = DEFAULT_STRATEGIES,
        browser_config: Optional[BrowserConfig] = None,
    ):
        """
        Args:
            session_factory: Builds the render session for each run;
                a Playwright session from browser_config when omitted
            settings: Waits, budgets and bounds
            profile: Site selectors
            strategies: Navigation strategies, loosest first
            browser_config: Used only when session_factory is omitted
        """
        self.session_factory = session_factory or playwright_session_factory(browser_config)
        self.settings = settings or ScrapeSettings()
        self.profile = profile
        self.strategies = list(strategies)

    async def run(self, target_url: str) -> ScrapeResult:
        """
        Scrape every page of the listing at target_url.

        Args:
            target_url: Review listing URL

        Returns:
            ScrapeResult with records in page order, then DOM order

        Raises:
            SessionInitError: The browser could not be started
            NavigationExhausted: The listing could not be loaded or is blocked
        """
        logger.info(f"Starting to scrape: {target_url}")
        report = ErrorReport()
        result = ScrapeResult(target_url=target_url)

        async with acquire_session(self.session_factory) as session:
            navigator = NavigationController(session, self.settings, self.strategies, self.profile)
            await navigator.navigate(target_url)

            detector = PageStateDetector(session, self.profile, self.settings, report)
            await detector.dismiss_consent()
            total_pages = await detector.resolve_page_count()
            if self.settings.max_pages:
                total_pages = min(total_pages, self.settings.max_pages)

            state = PageState(current_page_index=1, total_pages=total_pages)
            result.total_pages = total_pages

            await self._collect_pages(session, state, result, detector, report)

        result.errors = report.entries
        result.finished_at = utc_now_iso()
        logger.info(
            f"Total reviews scraped: {result.total_records} "
            f"from {result.page_count} pages ({len(result.errors)} non-fatal errors)"
        )
        return result

    async def _collect_pages(
        self,
        session: RenderSession,
        state: PageState,
        result: ScrapeResult,
        detector: PageStateDetector,
        report: ErrorReport,
    ) -> None:
        extractor = RecordExtractor(self.profile, report)
        paginator = PaginationDriver(session, self.profile, self.settings, report)

        while state.should_continue():
            page_index = state.current_page_index
            logger.info(f"Scraping page {page_index} of {state.total_pages}...")

            try:
                await session.wait_for_selector(
                    self.profile.record_container, self.settings.record_wait_timeout
                )
                if self.settings.scroll_for_lazy_images:
                    await detector.settle_lazy_content()
                records = await extractor.extract(session, page_index)
            except RenderError as e:
                self._stop_on_page_fault(result, state, report, page_index, e)
                break

            result.add_page(records)
            logger.info(f"Found {len(records)} reviews on page {page_index}")

            if state.total_pages is not None and page_index >= state.total_pages:
                state.finish()
                break

            if not await paginator.advance(page_index):
                state.finish()
                break

            state.advance()
            try:
                await session.pause(self.settings.inter_page_delay)
            except RenderError as e:
                logger.debug(f"Inter-page delay cut short: {e}")

    def _stop_on_page_fault(
        self,
        result: ScrapeResult,
        state: PageState,
        report: ErrorReport,
        page_index: int,
        error: RenderError,
    ) -> None:
        """
        Handle a page whose records could not be read.

        Fatal before any page was collected; afterwards the run stops and
        keeps what it has.

        Raises:
            NavigationExhausted: No page has been collected yet
        """
        if result.page_count == 0:
            raise NavigationExhausted(
                f"Reviews never rendered on {result.target_url}: {error}"
            ) from error
        logger.warning(f"Reviews could not be read on page {page_index}; stopping: {error}")
        report.add(
            ErrorKind.PAGINATION_STALL,
            f"Reviews could not be read on page {page_index}: {error}",
            page_index=page_index,
        )
        state.finish()


async def run_with_deadline(
    orchestrator: ScrapeOrchestrator,
    target_url: str,
    deadline: Optional[float] = None,
) -> ScrapeResult:
    """
    Run with an overall wall-clock budget.

    On expiry the run is cancelled (its session is still released) and
    asyncio.TimeoutError is raised.
    """
    if deadline is None:
        return await orchestrator.run(target_url)
    return await asyncio.wait_for(orchestrator.run(target_url), timeout=deadline)


def scrape_sync(target_url: str, **kwargs) -> ScrapeResult:
    """
    Synchronous wrapper for a single run.

    Convenience function for non-async contexts. Keyword arguments go to
    ScrapeOrchestrator.
    """
    orchestrator = ScrapeOrchestrator(**kwargs)
    return asyncio.run(
        run_with_deadline(orchestrator, target_url, orchestrator.settings.run_deadline)
    )
