"""
Record extraction.

RecordExtractor turns every record root on the current page into a Record by
running the field rule chains from reviewscraper.rules. A missing field
degrades to its default; a fault on one record is recorded and the page
continues with the next record.
"""
import logging
from typing import Dict, List, Optional

from .errors import ErrorKind
from .models import ErrorReport, Record, utc_now_iso
from .rules import (
    FieldRule,
    build_field_rules,
    collect_image_urls,
    content_image_exclusion,
    content_image_selectors,
    evaluate_chain,
    parse_int,
    parse_rating,
)
from .session import Node, RenderSession
from .site_profile import SiteProfile, TRUSTPILOT

logger = logging.getLogger(__name__)


class RecordExtractor:
    """Extracts Records from the record roots of the current document."""

    def __init__(
        self,
        profile: SiteProfile = TRUSTPILOT,
        report: Optional[ErrorReport] = None,
        field_rules: Optional[Dict[str, List[FieldRule]]] = None,
    ):
        """
        Args:
            profile: Site selectors and host markers
            report: Where per-record faults are recorded
            field_rules: Override for the rule table built from profile
        """
        self.profile = profile
        self.report = report if report is not None else ErrorReport()
        self.field_rules = field_rules or build_field_rules(profile)
        self._content_selectors = content_image_selectors(profile)

    async def extract(self, session: RenderSession, page_index: int = 1) -> List[Record]:
        """
        Extract every record on the current page, in document order.

        Args:
            session: Open render session showing the page
            page_index: 1-based page number, used in fault entries

        Returns:
            Records that extracted successfully
        """
        roots = await session.query_all(self.profile.record_container)
        records: List[Record] = []

        for index, root in enumerate(roots):
            try:
                records.append(await self.extract_record(session, root, index))
            except Exception as e:
                logger.warning(f"Error extracting record {index} on page {page_index}: {e}")
                self.report.add(
                    ErrorKind.RECORD_EXTRACTION_FAULT,
                    f"Error extracting record {index}: {e}",
                    page_index=page_index,
                    record_index=index,
                )

        with_images = sum(1 for r in records if r.reviewer_image_url)
        logger.info(
            f"Reviews with profile images on page {page_index}: {with_images}/{len(records)}"
        )
        return records

    async def extract_record(self, session: RenderSession, root: Node, index: int) -> Record:
        """Build one Record from a record root node."""
        values = {}
        for field_name, chain in self.field_rules.items():
            values[field_name] = await evaluate_chain(session, root, chain)

        reviewer_image_url = values.get("reviewer_image_url", "")
        content_image_urls = await collect_image_urls(
            session,
            root,
            self._content_selectors,
            content_image_exclusion(self.profile, reviewer_image_url),
        )

        return Record(
            record_id=values.get("record_id") or f"record-{index}",
            reviewer_name=values.get("reviewer_name", ""),
            reviewer_image_url=reviewer_image_url,
            rating=parse_rating(values.get("rating")),
            title=values.get("title", ""),
            content=values.get("content", ""),
            review_date_iso=values.get("review_date_iso", ""),
            review_date_display=values.get("review_date_display", ""),
            date_of_experience=values.get("date_of_experience", ""),
            content_image_urls=tuple(content_image_urls),
            is_verified=self.profile.verified_marker in values.get("verification", ""),
            business_reply_text=values.get("business_reply_text", ""),
            reviewer_location=values.get("reviewer_location", ""),
            reviewer_total_reviews_display=values.get("reviewer_total_reviews_display", ""),
            helpful_votes_count=max(parse_int(values.get("helpful_votes")), 0),
            extracted_at_iso=utc_now_iso(),
        )
