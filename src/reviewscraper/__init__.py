"""Resilient paginated review extraction for JavaScript-rendered listings."""

__version__ = "0.1.0"

from reviewscraper.orchestrator import (
    ScrapeOrchestrator,
    playwright_session_factory,
    run_with_deadline,
    scrape_sync,
)
from reviewscraper.navigation import (
    NavigationController,
    NavigationState,
    NavigationStrategy,
    DEFAULT_STRATEGIES,
)
from reviewscraper.page_state import PageStateDetector
from reviewscraper.pagination import PaginationDriver
from reviewscraper.extractor import RecordExtractor
from reviewscraper.rules import FieldRule, build_field_rules, normalize_image_url
from reviewscraper.models import (
    Record,
    ScrapeResult,
    ErrorEntry,
    ErrorReport,
    PageState,
)
from reviewscraper.errors import (
    ErrorKind,
    ScrapeError,
    SessionInitError,
    NavigationExhausted,
    RenderError,
    RenderTimeout,
    InvalidTargetError,
)
from reviewscraper.session import RenderSession, acquire_session
from reviewscraper.snapshot import SnapshotSession
from reviewscraper.site_profile import SiteProfile, TRUSTPILOT
from reviewscraper.browser_config import BrowserConfig
from reviewscraper.config import ScrapeSettings, settings

__all__ = [
    # Core
    "ScrapeOrchestrator",
    "playwright_session_factory",
    "run_with_deadline",
    "scrape_sync",
    "NavigationController",
    "NavigationState",
    "NavigationStrategy",
    "DEFAULT_STRATEGIES",
    "PageStateDetector",
    "PaginationDriver",
    "RecordExtractor",
    "FieldRule",
    "build_field_rules",
    "normalize_image_url",
    # Models
    "Record",
    "ScrapeResult",
    "ErrorEntry",
    "ErrorReport",
    "PageState",
    # Errors
    "ErrorKind",
    "ScrapeError",
    "SessionInitError",
    "NavigationExhausted",
    "RenderError",
    "RenderTimeout",
    "InvalidTargetError",
    # Sessions
    "RenderSession",
    "acquire_session",
    "SnapshotSession",
    # Configuration
    "SiteProfile",
    "TRUSTPILOT",
    "BrowserConfig",
    "ScrapeSettings",
    "settings",
]
