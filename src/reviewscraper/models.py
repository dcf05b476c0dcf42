"""Data models for review scraping."""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Optional

from .errors import ErrorKind


def utc_now_iso() -> str:
    """Current instant as an ISO-8601 UTC timestamp."""
    return datetime.now(timezone.utc).isoformat().replace("+00:00", "Z")


@dataclass(frozen=True)
class Record:
    """One review extracted from a listing page."""

    record_id: str
    reviewer_name: str = ""
    reviewer_image_url: str = ""
    rating: int = 0  # 0 = unknown
    title: str = ""
    content: str = ""
    review_date_iso: str = ""
    review_date_display: str = ""
    date_of_experience: str = ""
    content_image_urls: tuple[str, ...] = ()
    is_verified: bool = False
    business_reply_text: str = ""
    reviewer_location: str = ""
    reviewer_total_reviews_display: str = ""
    helpful_votes_count: int = 0
    extracted_at_iso: str = field(default_factory=utc_now_iso)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "record_id": self.record_id,
            "reviewer_name": self.reviewer_name,
            "reviewer_image_url": self.reviewer_image_url,
            "rating": self.rating,
            "title": self.title,
            "content": self.content,
            "review_date_iso": self.review_date_iso,
            "review_date_display": self.review_date_display,
            "date_of_experience": self.date_of_experience,
            "content_image_urls": list(self.content_image_urls),
            "is_verified": self.is_verified,
            "business_reply_text": self.business_reply_text,
            "reviewer_location": self.reviewer_location,
            "reviewer_total_reviews_display": self.reviewer_total_reviews_display,
            "helpful_votes_count": self.helpful_votes_count,
            "extracted_at_iso": self.extracted_at_iso,
        }


@dataclass(frozen=True)
class ErrorEntry:
    """A non-fatal fault recorded during a run."""

    kind: ErrorKind
    message: str
    page_index: Optional[int] = None
    record_index: Optional[int] = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "kind": self.kind.value,
            "message": self.message,
            "page_index": self.page_index,
            "record_index": self.record_index,
        }


class ErrorReport:
    """
    Ordered collection of non-fatal faults for one run.

    Each component of a run appends to the same report, so the caller can
    inspect partial-failure detail after the run returns.
    """

    def __init__(self) -> None:
        self._entries: list[ErrorEntry] = []

    def add(
        self,
        kind: ErrorKind,
        message: str,
        page_index: Optional[int] = None,
        record_index: Optional[int] = None,
    ) -> ErrorEntry:
        entry = ErrorEntry(kind, message, page_index, record_index)
        self._entries.append(entry)
        return entry

    @property
    def entries(self) -> list[ErrorEntry]:
        return list(self._entries)

    def of_kind(self, kind: ErrorKind) -> list[ErrorEntry]:
        return [e for e in self._entries if e.kind == kind]

    def __len__(self) -> int:
        return len(self._entries)


@dataclass
class PageState:
    """Pagination position of a run. Owned by the orchestrator."""

    current_page_index: int = 1
    total_pages: Optional[int] = None  # None = unknown
    has_next: bool = True

    def within_bounds(self) -> bool:
        if self.total_pages is None:
            return True
        return self.current_page_index <= self.total_pages

    def should_continue(self) -> bool:
        return self.has_next and self.within_bounds()

    def finish(self) -> None:
        """Mark the state terminal."""
        self.has_next = False

    def advance(self) -> None:
        if not self.has_next:
            raise RuntimeError("Pagination state is terminal")
        self.current_page_index += 1


@dataclass
class ScrapeResult:
    """Accumulated output of one scrape run."""

    target_url: str
    records: list[Record] = field(default_factory=list)
    per_page_counts: list[int] = field(default_factory=list)
    errors: list[ErrorEntry] = field(default_factory=list)
    total_pages: int = 1
    started_at: str = field(default_factory=utc_now_iso)
    finished_at: Optional[str] = None

    @property
    def page_count(self) -> int:
        """Number of pages records were extracted from."""
        return len(self.per_page_counts)

    @property
    def total_records(self) -> int:
        return len(self.records)

    def add_page(self, records: list[Record]) -> None:
        self.records.extend(records)
        self.per_page_counts.append(len(records))

    def to_payload(self, company: str) -> dict[str, Any]:
        """Build the success payload handed to API or CLI callers."""
        return {
            "success": True,
            "company": company,
            "url": self.target_url,
            "scraped_at": self.finished_at or utc_now_iso(),
            "total_reviews": self.total_records,
            "page_count": self.page_count,
            "total_pages": self.total_pages,
            "per_page_counts": list(self.per_page_counts),
            "reviews": [r.to_dict() for r in self.records],
            "errors": [e.to_dict() for e in self.errors],
        }


def failure_payload(error: Exception, url: str) -> dict[str, Any]:
    """Build the failure payload for a run that raised."""
    kind = getattr(error, "kind", None)
    return {
        "success": False,
        "error": "Scraping failed",
        "kind": kind.value if kind is not None else "unexpected_error",
        "message": str(error),
        "url": url,
    }
