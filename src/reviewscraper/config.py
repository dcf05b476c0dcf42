from dotenv import load_dotenv
from dataclasses import dataclass, field
from typing import Optional
from pathlib import Path
import json
import os

load_dotenv()  # Loads variables from .env file


DEFAULT_TARGET_URL = "https://www.trustpilot.com/review/safeledger.ae"


class Settings:
    """
    Manages process settings loaded from environment variables.
    """
    LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")
    LOG_FILE = os.getenv("LOG_FILE")
    DEFAULT_TARGET_URL = os.getenv("DEFAULT_TARGET_URL", DEFAULT_TARGET_URL)
    USER_AGENT = os.getenv("USER_AGENT")


settings = Settings()


@dataclass
class ScrapeSettings:
    """Tunable waits, budgets and bounds for one scrape run.

    All durations are in seconds.
    """

    # Consent overlay
    consent_timeout: float = 3.0
    consent_settle: float = 2.0

    # Navigation
    navigation_retries: int = 3
    navigation_backoff: float = 5.0
    challenge_detection: bool = True
    blocked_title_markers: list[str] = field(
        default_factory=lambda: ["Error", "403", "Access Denied", "Forbidden", "Just a moment"]
    )

    # Page loop
    record_wait_timeout: float = 10.0
    pagination_settle: float = 3.0
    inter_page_delay: float = 2.0
    scroll_for_lazy_images: bool = True
    max_pages: Optional[int] = None  # None = follow the discovered page count

    # Whole-run budget enforced by the caller
    run_deadline: Optional[float] = None

    @classmethod
    def from_env(cls) -> "ScrapeSettings":
        """Load settings from environment variables.

        Environment variables are prefixed with REVIEW_SCRAPER_
        e.g., REVIEW_SCRAPER_INTER_PAGE_DELAY=3.5

        Returns:
            ScrapeSettings with values from environment
        """
        scrape_settings = cls()
        prefix = "REVIEW_SCRAPER_"

        for field_name, dataclass_field in scrape_settings.__dataclass_fields__.items():
            env_value = os.getenv(f"{prefix}{field_name.upper()}")
            if env_value is None:
                continue

            try:
                setattr(scrape_settings, field_name, _coerce(dataclass_field.type, env_value))
            except ValueError:
                pass  # Keep default if conversion fails

        return scrape_settings

    @classmethod
    def from_file(cls, path: str) -> "ScrapeSettings":
        """Load settings from a JSON configuration file.

        Args:
            path: Path to JSON configuration file

        Returns:
            ScrapeSettings with values from file
        """
        scrape_settings = cls()
        file_path = Path(path)

        if not file_path.exists():
            return scrape_settings

        with open(file_path, 'r') as f:
            config = json.load(f)

        scrape_config = config.get('scrape', config)

        for field_name in scrape_settings.__dataclass_fields__:
            if field_name in scrape_config:
                setattr(scrape_settings, field_name, scrape_config[field_name])

        return scrape_settings

    def to_dict(self) -> dict:
        """Convert settings to dictionary."""
        return {
            field_name: getattr(self, field_name)
            for field_name in self.__dataclass_fields__
        }

    def save_to_file(self, path: str) -> None:
        """Save current settings to a JSON file.

        Args:
            path: Path to save configuration
        """
        with open(path, 'w') as f:
            json.dump({'scrape': self.to_dict()}, f, indent=2)


def _coerce(field_type, raw: str):
    """Convert an environment string to the declared field type."""
    if field_type is bool:
        return raw.strip().lower() in ("1", "true", "yes", "on")
    if field_type is int:
        return int(raw)
    if field_type is float:
        return float(raw)
    if field_type == list[str]:
        return [part.strip() for part in raw.split(",") if part.strip()]
    if field_type in (Optional[int], Optional[float]):
        if raw.strip().lower() in ("", "none", "null"):
            return None
        return int(raw) if field_type == Optional[int] else float(raw)
    return raw

