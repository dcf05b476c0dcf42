"""Next-page detection and activation."""
import logging
from typing import Optional

from .config import ScrapeSettings
from .errors import ErrorKind
from .models import ErrorReport
from .session import Node, RenderSession
from .site_profile import SiteProfile, TRUSTPILOT

logger = logging.getLogger(__name__)


class PaginationDriver:
    """
    Operates the listing's "next page" control.

    Exhaustion is inferred conservatively: a missing or disabled control, and
    any fault while activating it, all mean there is no further page.
    """

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

    async def is_disabled(self, control: Node) -> bool:
        if await self.session.get_attribute(control, "disabled") is not None:
            return True
        return (await self.session.get_attribute(control, "aria-disabled")) == "true"

    async def advance(self, page_index: Optional[int] = None) -> bool:
        """
        Move to the next page if there is one.

        Args:
            page_index: Current 1-based page, used in fault entries

        Returns:
            True if the next page was requested and given time to render
        """
        try:
            control = await self.session.query_first(self.profile.pagination_next)
            if control is None:
                logger.info("No next page control found")
                return False

            if await self.is_disabled(control):
                logger.info("Next page control is disabled")
                return False

            await self.session.click(control)
            await self.session.pause(self.settings.pagination_settle)
            return True

        except Exception as e:
            logger.warning(f"No next page found or error navigating: {e}")
            self.report.add(
                ErrorKind.PAGINATION_STALL,
                f"Could not advance past page {page_index}: {e}",
                page_index=page_index,
            )
            return False
