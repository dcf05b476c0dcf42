"""
Field extraction rules.

Each output field of a Record has an ordered chain of FieldRules. A rule pairs
a locator (a CSS selector scoped to the record root, or the root itself) with
an accessor (text, an attribute, an image source). The first rule in a chain
that yields a non-empty value wins; an exhausted chain yields "".

Rules are plain data built from a SiteProfile, so the fallback policy can be
inspected and tested against fixture trees without a live browser.
"""

import logging
import re
from dataclasses import dataclass
from typing import Awaitable, Callable, Dict, Iterable, List, Optional

from .session import Node, RenderSession
from .site_profile import SiteProfile

logger = logging.getLogger(__name__)

CandidateFilter = Callable[[RenderSession, Node], Awaitable[bool]]

PROFILE_IMAGE_MAX_PX = 100

_INT = re.compile(r"-?\d+")


# =============================================================================
# Value helpers
# =============================================================================

def normalize_image_url(url: Optional[str]) -> str:
    """Rewrite protocol-relative URLs ("//host/x.png") to https. Idempotent."""
    if not url:
        return ""
    url = url.strip()
    if url.startswith("//"):
        return "https:" + url
    return url


def parse_int(text: Optional[str], default: int = 0) -> int:
    """First integer in text, or default."""
    if not text:
        return default
    match = _INT.search(text.replace(",", ""))
    return int(match.group()) if match else default


def parse_rating(text: Optional[str]) -> int:
    """Star rating 0-5; anything unparseable or out of range is 0 (unknown)."""
    rating = parse_int(text)
    return rating if 0 <= rating <= 5 else 0


# =============================================================================
# Accessors
# =============================================================================

class Text:
    """Stripped text content, optionally with a leading label removed."""

    def __init__(self, strip_prefix: str = ""):
        self.strip_prefix = strip_prefix

    async def read(self, session: RenderSession, node: Node) -> str:
        text = (await session.text_content(node)).strip()
        if self.strip_prefix and text.startswith(self.strip_prefix):
            text = text[len(self.strip_prefix):].strip()
        return text

    def __repr__(self) -> str:
        return f"Text({self.strip_prefix!r})" if self.strip_prefix else "Text()"


class Attribute:
    """Stripped attribute value."""

    def __init__(self, name: str):
        self.name = name

    async def read(self, session: RenderSession, node: Node) -> str:
        return ((await session.get_attribute(node, self.name)) or "").strip()

    def __repr__(self) -> str:
        return f"Attribute({self.name!r})"


class ImageSource:
    """Image URL from src (or a lazy-load data-src), made absolute.

    Inline placeholders (data:, about:blank) sit in src until the real image
    loads; they are skipped in favour of data-src.
    """

    ATTRIBUTES = ("src", "data-src")
    PLACEHOLDER_SCHEMES = ("data:", "about:")

    async def read(self, session: RenderSession, node: Node) -> str:
        for name in self.ATTRIBUTES:
            value = normalize_image_url(await session.get_attribute(node, name))
            if value and not value.lower().startswith(self.PLACEHOLDER_SCHEMES):
                return value
        return ""

    def __repr__(self) -> str:
        return "ImageSource()"


# =============================================================================
# Rules
# =============================================================================

@dataclass(frozen=True)
class FieldRule:
    """
    One (locator, accessor) step of a fallback chain.

    Without a filter, only the first candidate is read. With a filter, every
    candidate is considered in document order and the first one that passes
    the filter and yields a value is used.
    """
    selector: Optional[str]
    accessor: object
    where: Optional[CandidateFilter] = None
    name: str = ""

    async def apply(self, session: RenderSession, root: Node) -> str:
        if self.selector is None:
            candidates = [root]
        elif self.where is None:
            first = await session.query_first(self.selector, root)
            candidates = [first] if first is not None else []
        else:
            candidates = await session.query_all(self.selector, root)

        for candidate in candidates:
            if self.where is not None and not await self.where(session, candidate):
                continue
            value = await self.accessor.read(session, candidate)
            if value:
                return value
        return ""


async def evaluate_chain(session: RenderSession, root: Node, rules: Iterable[FieldRule]) -> str:
    """Value of the first rule that yields something, else ""."""
    for rule in rules:
        value = await rule.apply(session, root)
        if value:
            logger.debug(f"Rule {rule.name or rule.selector} matched")
            return value
    return ""


async def collect_image_urls(
    session: RenderSession,
    root: Node,
    selectors: Iterable[str],
    exclude: Callable[[str], bool],
) -> List[str]:
    """
    Image URLs from the first selector tier that yields any.

    Every candidate's source is normalized, excluded URLs are dropped and
    duplicates removed, keeping document order.
    """
    source = ImageSource()
    for selector in selectors:
        urls: List[str] = []
        for node in await session.query_all(selector, root):
            url = await source.read(session, node)
            if url and not exclude(url) and url not in urls:
                urls.append(url)
        if urls:
            return urls
    return []


# =============================================================================
# Rule tables
# =============================================================================

def structural_profile_image(profile: SiteProfile) -> CandidateFilter:
    """
    Filter for the last-resort profile image rule.

    Accepts an image hosted on the site's asset host that is not a rating
    graphic and whose rendered size is within (0, 100] pixels on both axes.
    """
    async def accept(session: RenderSession, node: Node) -> bool:
        src = await ImageSource().read(session, node)
        if profile.asset_host not in src:
            return False
        if any(marker in src for marker in profile.rating_image_markers):
            return False
        width, height = await session.dimensions(node)
        return 0 < width <= PROFILE_IMAGE_MAX_PX and 0 < height <= PROFILE_IMAGE_MAX_PX

    return accept


def profile_image_rules(profile: SiteProfile) -> List[FieldRule]:
    """Reviewer avatar chain, most to least reliable."""
    px = profile.profile_thumbnail_px
    source = ImageSource()
    rules = [FieldRule(f'img[src*="{profile.user_image_host}"]', source, name="user_image_host")]
    rules += [
        FieldRule(f"{container} img", source, name="avatar_container")
        for container in profile.avatar_containers
    ]
    rules += [
        FieldRule('img[alt*="avatar"]', source, name="avatar_alt"),
        FieldRule('img[alt*="profile"]', source, name="profile_alt"),
        FieldRule(f'img[width="{px}"][height="{px}"]', source, name="thumbnail_size"),
        FieldRule(f'img[style*="{px}px"]', source, name="thumbnail_style"),
        FieldRule("img", source, where=structural_profile_image(profile), name="structural"),
    ]
    return rules


def content_image_selectors(profile: SiteProfile) -> List[str]:
    """Content image tiers: dedicated container, known media paths, any image."""
    selectors = []
    if profile.content_image_container:
        selectors.append(f"{profile.content_image_container} img")
    if profile.content_image_paths:
        selectors.append(", ".join(f'img[src*="{path}"]' for path in profile.content_image_paths))
    selectors.append("img")
    return selectors


def content_image_exclusion(profile: SiteProfile, profile_image_url: str) -> Callable[[str], bool]:
    """Predicate that rejects avatars, rating stars, icons and the profile image."""
    markers = tuple(profile.excluded_image_markers) + (profile.user_image_host,)

    def excluded(url: str) -> bool:
        if profile_image_url and url == profile_image_url:
            return True
        return any(marker in url for marker in markers)

    return excluded


def build_field_rules(profile: SiteProfile) -> Dict[str, List[FieldRule]]:
    """Fallback chains for every single-valued Record field."""
    text = Text()
    table = {
        "reviewer_name": [
            FieldRule(profile.reviewer_name, text),
        ],
        "reviewer_image_url": profile_image_rules(profile),
        "rating": [
            FieldRule(profile.rating, Attribute(profile.rating_attribute)),
            FieldRule('img[alt*="Rated"]', Attribute("alt")),
        ],
        "title": [
            FieldRule(profile.title, text),
            FieldRule("h2", text),
        ],
        "content": [
            FieldRule(profile.content, text),
        ],
        "review_date_iso": [
            FieldRule(profile.review_date, Attribute("datetime")),
        ],
        "review_date_display": [
            FieldRule(profile.review_date, text),
        ],
        "date_of_experience": [
            FieldRule(profile.date_of_experience, Text(profile.date_of_experience_prefix)),
        ],
        "verification": [
            FieldRule(profile.verification, text),
        ],
        "business_reply_text": [
            FieldRule(profile.business_reply, text),
        ],
        "record_id": [
            FieldRule(None, Attribute(profile.natural_id_attribute)),
        ],
        "reviewer_location": [
            FieldRule(profile.reviewer_location, text),
        ],
        "reviewer_total_reviews_display": [
            FieldRule(profile.reviewer_review_count, text),
        ],
        "helpful_votes": [
            FieldRule(profile.helpful_counter, text),
        ],
    }
    # A profile leaves a selector blank when the site has no such element
    return {
        field_name: [rule for rule in chain if rule.selector != ""]
        for field_name, chain in table.items()
    }
