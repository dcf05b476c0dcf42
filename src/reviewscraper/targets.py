"""Target URL validation for review listings."""
from typing import Optional
from urllib.parse import urlparse

from .errors import InvalidTargetError
from .site_profile import SiteProfile, TRUSTPILOT


def validate_review_url(url: Optional[str], profile: SiteProfile = TRUSTPILOT) -> str:
    """
    Check that url is a review-listing URL for the profile's site.

    Args:
        url: Candidate target URL
        profile: Site the URL must belong to

    Returns:
        The stripped URL

    Raises:
        InvalidTargetError: If url is missing, not http(s), or not a listing URL
    """
    if not url or not url.strip():
        raise InvalidTargetError("Missing required parameter: url")

    url = url.strip()
    parsed = urlparse(url)
    if parsed.scheme not in ("http", "https") or not parsed.netloc:
        raise InvalidTargetError(f"Invalid URL: {url}")

    if profile.review_url_marker not in url:
        raise InvalidTargetError(
            f"Invalid URL. Must be a {profile.name} review URL "
            f"(containing '{profile.review_url_marker}')"
        )
    return url


def company_from_url(url: str) -> str:
    """Company slug after /review/ (query string dropped), or "Unknown"."""
    if "/review/" not in url:
        return "Unknown"
    slug = url.split("/review/", 1)[1].split("?", 1)[0].split("#", 1)[0].strip("/")
    return slug or "Unknown"
