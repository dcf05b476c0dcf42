"""
Navigation with escalating strategies.

NavigationController loads the target URL by trying an ordered list of
strategies, loosest load-completion condition first. Each strategy gets a
fixed number of attempts with a fixed backoff between failures; the first
successful attempt ends the search. A load that succeeds at the transport
level but shows a blocked or error page still counts as a failure.
"""
import asyncio
import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional, Sequence

from .config import ScrapeSettings
from .errors import NavigationExhausted
from .session import RenderSession
from .site_profile import SiteProfile, TRUSTPILOT

logger = logging.getLogger(__name__)


class NavigationState(Enum):
    """Lifecycle of one navigation request."""
    PENDING = "pending"
    SUCCEEDED = "succeeded"
    EXHAUSTED = "exhausted"


@dataclass(frozen=True)
class NavigationStrategy:
    """A load-completion condition paired with its timeout (seconds)."""
    wait_until: str
    timeout: float


DEFAULT_STRATEGIES = (
    NavigationStrategy("commit", 10.0),
    NavigationStrategy("domcontentloaded", 15.0),
    NavigationStrategy("load", 30.0),
    NavigationStrategy("networkidle", 45.0),
)


@dataclass
class NavigationAttempt:
    """One try of one strategy."""
    strategy: NavigationStrategy
    attempt: int
    succeeded: bool = False
    error: Optional[str] = None
    status_code: Optional[int] = None


@dataclass
class NavigationOutcome:
    """Summary returned by a successful navigate()."""
    url: str
    title: str
    strategy: NavigationStrategy
    attempts: List[NavigationAttempt] = field(default_factory=list)


class NavigationController:
    """
    Drives a render session to a URL with bounded retries.

        controller = NavigationController(session, settings)
        outcome = await controller.navigate("https://www.trustpilot.com/review/example.com")

    Raises NavigationExhausted when every strategy has used its retry budget,
    or when the loaded document is a blocked/error page.
    """

    def __init__(
        self,
        session: RenderSession,
        settings: Optional[ScrapeSettings] = None,
        strategies: Sequence[NavigationStrategy] = DEFAULT_STRATEGIES,
        profile: SiteProfile = TRUSTPILOT,
    ):
        if not strategies:
            raise ValueError("At least one navigation strategy is required")

        self.session = session
        self.settings = settings or ScrapeSettings()
        self.strategies = list(strategies)
        self.profile = profile
        self.state = NavigationState.PENDING
        self.attempts: List[NavigationAttempt] = []

    async def navigate(self, url: str) -> NavigationOutcome:
        """
        Load url, escalating through strategies until one attempt succeeds.

        Args:
            url: Target URL

        Returns:
            NavigationOutcome for the successful attempt

        Raises:
            NavigationExhausted: All attempts failed or the content is blocked
        """
        self.state = NavigationState.PENDING
        self.attempts = []
        retries = max(self.settings.navigation_retries, 1)

        succeeded: Optional[NavigationAttempt] = None
        for strategy in self.strategies:
            succeeded = await self._try_strategy(url, strategy, retries)
            if succeeded:
                break

        if succeeded is None:
            self.state = NavigationState.EXHAUSTED
            last_error = self.attempts[-1].error if self.attempts else "no attempts made"
            message = (
                f"Failed to load {url} after {len(self.attempts)} attempts "
                f"across {len(self.strategies)} strategies: {last_error}"
            )
            logger.error(message)
            raise NavigationExhausted(message)

        self.state = NavigationState.SUCCEEDED
        title = await self._validate_content(url)

        logger.info(
            f"Loaded {url} with {succeeded.strategy.wait_until} "
            f"(attempt {succeeded.attempt}, title={title!r})"
        )
        return NavigationOutcome(
            url=url,
            title=title,
            strategy=succeeded.strategy,
            attempts=list(self.attempts),
        )

    async def _try_strategy(
        self, url: str, strategy: NavigationStrategy, retries: int
    ) -> Optional[NavigationAttempt]:
        for number in range(1, retries + 1):
            attempt = NavigationAttempt(strategy=strategy, attempt=number)
            self.attempts.append(attempt)

            try:
                attempt.status_code = await self.session.navigate(
                    url, strategy.wait_until, strategy.timeout
                )
                attempt.succeeded = True
                return attempt
            except Exception as e:
                attempt.error = str(e)
                logger.warning(
                    f"Navigation attempt {number}/{retries} with {strategy.wait_until} "
                    f"({strategy.timeout}s) failed: {e}"
                )

            if number < retries:
                await asyncio.sleep(self.settings.navigation_backoff)

        return None

    async def _validate_content(self, url: str) -> str:
        """Reject error/blocked pages that loaded fine at the transport level."""
        try:
            title = (await self.session.title()).strip()
        except Exception as e:
            self.state = NavigationState.EXHAUSTED
            raise NavigationExhausted(f"Could not read title of {url}: {e}") from e

        if not title:
            self.state = NavigationState.EXHAUSTED
            raise NavigationExhausted(f"Page blocked or failed to load: {url} has an empty title")

        for marker in self.settings.blocked_title_markers:
            if marker in title:
                self.state = NavigationState.EXHAUSTED
                raise NavigationExhausted(f"Page blocked or failed to load: title {title!r}")

        if self.settings.challenge_detection:
            challenge = await self.detect_challenge()
            if challenge:
                self.state = NavigationState.EXHAUSTED
                raise NavigationExhausted(f"Bot challenge detected on {url}: {challenge}")

        return title

    async def detect_challenge(self) -> Optional[str]:
        """
        Name of the anti-bot challenge shown on the current page, if any.

        Returns:
            Indicator name, or None if no challenge found
        """
        for name, selector in self.profile.challenge_indicators.items():
            try:
                if await self.session.query_first(selector) is not None:
                    return name
            except Exception:
                continue
        return None
