"""
Page state detection.

Handles the consent overlay that gates the listing, works out how many pages
the listing has, and nudges lazy-loaded content into rendering. All of it is
best-effort: nothing here can fail a run.
"""
import logging
from typing import List, Optional

from .config import ScrapeSettings
from .errors import ErrorKind, RenderTimeout
from .models import ErrorReport
from .rules import parse_int
from .session import RenderSession
from .site_profile import SiteProfile, TRUSTPILOT

logger = logging.getLogger(__name__)


# Scroll down in viewport steps so lazy images request their sources, then back up
LAZY_SCROLL_SCRIPT = """
    async () => {
        const scrollHeight = document.body.scrollHeight;
        const viewportHeight = window.innerHeight;

        for (let y = 0; y < scrollHeight; y += viewportHeight) {
            window.scrollTo(0, y);
            await new Promise(r => setTimeout(r, 100));
        }

        window.scrollTo(0, 0);
    }
"""


class PageStateDetector:
    """Consent dismissal and page-count resolution for the current document."""

    def __init__(
        self,
        session: RenderSession,
        profile: SiteProfile = TRUSTPILOT,
        settings: Optional[ScrapeSettings] = None,
        report: Optional[ErrorReport] = None,
    ):
        self.session = session
        self.profile = profile
        self.settings = settings or ScrapeSettings()
        self.report = report if report is not None else ErrorReport()

    async def dismiss_consent(self) -> bool:
        """
        Accept the consent overlay if one shows up within the consent timeout.

        Returns:
            True if a consent control was found and clicked
        """
        try:
            button = await self.session.wait_for_selector(
                self.profile.consent_accept, self.settings.consent_timeout
            )
            await self.session.click(button)
            await self.session.pause(self.settings.consent_settle)
        except RenderTimeout:
            logger.info("No cookie consent found or already accepted")
            self.report.add(ErrorKind.CONSENT_HANDLING_SKIPPED, "No consent control found")
            return False
        except Exception as e:
            logger.info(f"Cookie consent could not be handled: {e}")
            self.report.add(ErrorKind.CONSENT_HANDLING_SKIPPED, f"Consent handling failed: {e}")
            return False

        logger.info("Cookie consent handled")
        return True

    async def resolve_page_count(self) -> int:
        """
        Total number of listing pages.

        Prefers the numeric label of the "last page" control, then the largest
        number among the page-number controls, then 1. A fault while reading
        the controls also yields 1.
        """
        try:
            total = await self._read_page_count()
        except Exception as e:
            logger.warning(f"Could not determine total pages, defaulting to 1: {e}")
            self.report.add(ErrorKind.PAGE_COUNT_UNRESOLVED, f"Page count lookup failed: {e}")
            return 1

        logger.info(f"Found {total} total pages to scrape")
        return total

    async def _read_page_count(self) -> int:
        last = await self.session.query_first(self.profile.pagination_last)
        if last is not None:
            last_page = parse_int(await self.session.text_content(last))
            if last_page > 0:
                return last_page

        numbers: List[int] = []
        for control in await self.session.query_all(self.profile.pagination_pages):
            number = parse_int(await self.session.text_content(control))
            if number > 0:
                numbers.append(number)

        return max(numbers) if numbers else 1

    async def settle_lazy_content(self) -> None:
        """Scroll through the page so lazy-loaded images get real sources."""
        try:
            await self.session.evaluate(LAZY_SCROLL_SCRIPT)
        except Exception as e:
            logger.debug(f"Lazy-load scroll skipped: {e}")
