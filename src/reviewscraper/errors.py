"""
Error kinds and exception types for review scraping.

Only two kinds abort a run (SESSION_INIT_ERROR, NAVIGATION_EXHAUSTED); they
are raised as ScrapeError subclasses. Every other kind is absorbed by the
component that hit it and recorded as an ErrorEntry on the run's report.
"""
from enum import Enum
from typing import Optional


class ErrorKind(str, Enum):
    """Kinds of failure a scrape run can encounter."""
    SESSION_INIT_ERROR = "session_init_error"
    NAVIGATION_EXHAUSTED = "navigation_exhausted"
    RECORD_EXTRACTION_FAULT = "record_extraction_fault"
    PAGE_COUNT_UNRESOLVED = "page_count_unresolved"
    PAGINATION_STALL = "pagination_stall"
    CONSENT_HANDLING_SKIPPED = "consent_handling_skipped"

    @property
    def is_fatal(self) -> bool:
        return self in (ErrorKind.SESSION_INIT_ERROR, ErrorKind.NAVIGATION_EXHAUSTED)


class ScrapeError(Exception):
    """A fatal error that aborts a scrape run."""

    kind: ErrorKind = ErrorKind.NAVIGATION_EXHAUSTED

    def __init__(self, message: str, kind: Optional[ErrorKind] = None):
        super().__init__(message)
        self.message = message
        if kind is not None:
            self.kind = kind

    def to_dict(self) -> dict:
        return {"kind": self.kind.value, "message": self.message}


class SessionInitError(ScrapeError):
    """The render collaborator could not be started."""

    kind = ErrorKind.SESSION_INIT_ERROR


class NavigationExhausted(ScrapeError):
    """Every navigation strategy failed, or the loaded content was blocked."""

    kind = ErrorKind.NAVIGATION_EXHAUSTED


class RenderError(Exception):
    """A fault reported by the render collaborator."""


class RenderTimeout(RenderError):
    """A bounded wait on the render collaborator elapsed."""


class InvalidTargetError(ValueError):
    """The target URL is missing or is not a review-listing URL."""
