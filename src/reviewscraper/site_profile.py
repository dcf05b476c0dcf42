"""
Site Profile Model.

A SiteProfile holds everything the engine knows about one review site:
- the review-listing URL pattern
- page-level selectors (record container, consent control, pagination)
- the hosts and path markers the image rules key off

The field rule tables in reviewscraper.rules are built from a profile, so a
markup change on the target is a data change here rather than a code change.
"""

from dataclasses import dataclass, field


@dataclass(frozen=True)
class SiteProfile:
    """Selectors and host markers for one review-listing site."""

    name: str
    review_url_marker: str

    # Page-level selectors
    record_container: str
    consent_accept: str
    pagination_last: str
    pagination_pages: str
    pagination_next: str

    # Image hosts
    user_image_host: str
    asset_host: str
    profile_thumbnail_px: int = 73

    # Record-level selectors
    reviewer_name: str = ""
    rating: str = ""
    rating_attribute: str = ""
    title: str = ""
    content: str = ""
    review_date: str = "time"
    date_of_experience: str = ""
    date_of_experience_prefix: str = ""
    content_image_container: str = ""
    content_image_paths: tuple[str, ...] = ()
    verification: str = ""
    verified_marker: str = "Verified"
    business_reply: str = ""
    reviewer_location: str = ""
    reviewer_review_count: str = ""
    helpful_counter: str = ""
    avatar_containers: tuple[str, ...] = ()
    natural_id_attribute: str = "id"

    # Source substrings that disqualify an image from being review content
    excluded_image_markers: tuple[str, ...] = ("avatar", "star", "icon")
    rating_image_markers: tuple[str, ...] = ("star",)

    # Known anti-bot widgets; any match means the page is a challenge, not content
    challenge_indicators: dict[str, str] = field(default_factory=lambda: {
        "recaptcha_iframe": "iframe[src*='recaptcha'], iframe[title*='reCAPTCHA']",
        "hcaptcha_iframe": "iframe[src*='hcaptcha']",
        "cloudflare_challenge": "#cf-challenge-running, .cf-browser-verification",
        "cloudflare_turnstile": "iframe[src*='challenges.cloudflare']",
        "akamai_challenge": "#sec-cpt-if, #ak-challenge",
    })


TRUSTPILOT = SiteProfile(
    name="trustpilot",
    review_url_marker="trustpilot.com/review/",
    record_container="[data-service-review-card-paper]",
    consent_accept="#onetrust-accept-btn-handler",
    pagination_last="[data-pagination-button-last]",
    pagination_pages="[data-pagination-button]",
    pagination_next="[data-pagination-button-next]",
    user_image_host="user-images.trustpilot.com",
    asset_host="trustpilot",
    reviewer_name="[data-consumer-name-typography]",
    rating="[data-service-review-rating]",
    rating_attribute="data-service-review-rating",
    title="[data-service-review-title-typography]",
    content="[data-service-review-text-typography]",
    date_of_experience="[data-service-review-date-of-experience-typography]",
    date_of_experience_prefix="Date of experience:",
    content_image_container="[data-service-review-image]",
    content_image_paths=("review-images", "media"),
    verification="[data-service-review-verification-typography]",
    business_reply="[data-service-review-business-reply-content]",
    reviewer_location="[data-consumer-country-typography]",
    reviewer_review_count="[data-consumer-reviews-count-typography]",
    helpful_counter="[data-service-review-helpful-counter]",
    avatar_containers=("[data-consumer-avatar]", ".consumer-avatar"),
)
