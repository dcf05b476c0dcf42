"""
Browser configuration for the Playwright render session.

This module provides a validated Pydantic configuration model for the browser
that backs a scrape run, and pre-configured instances for common use cases.

Resource blocking and stealth measures are explicit fields rather than
constants, so each run can choose its own trade-off between speed and
detectability.
"""
import random
from typing import Dict, List, Literal, Optional

from pydantic import BaseModel, Field


# User agent pool for rotation
USER_AGENTS = [
    # Chrome on Windows
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 (KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36",
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 (KHTML, like Gecko) Chrome/119.0.0.0 Safari/537.36",
    # Chrome on Mac
    "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) AppleWebKit/537.36 (KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36",
    # Firefox on Windows
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64; rv:121.0) Gecko/20100101 Firefox/121.0",
    # Safari on Mac
    "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) AppleWebKit/605.1.15 (KHTML, like Gecko) Version/17.2 Safari/605.1.15",
]


def get_random_user_agent() -> str:
    """Get a random user agent from the pool."""
    return random.choice(USER_AGENTS)


class BrowserConfig(BaseModel):
    """
    Configuration for PlaywrightSession.

    All fields are validated by Pydantic to ensure type safety and valid values.
    """

    headless: bool = Field(
        default=True,
        description="Run browser in headless mode (no visible UI)"
    )

    browser_type: Literal["chromium", "firefox", "webkit"] = Field(
        default="chromium",
        description="Browser engine to launch"
    )

    stealth_mode: bool = Field(
        default=True,
        description="Inject the anti-detection init script (masks navigator.webdriver etc.)"
    )

    default_timeout: int = Field(
        default=30000,
        description="Default timeout for page operations in milliseconds",
        ge=1000,
        le=300000
    )

    viewport_width: int = Field(default=1280, ge=320, le=3840)
    viewport_height: int = Field(default=720, ge=320, le=2160)

    locale: str = Field(default="en-US")
    timezone_id: str = Field(default="America/New_York")

    block_resources: List[str] = Field(
        default_factory=list,
        description="Resource types to abort (e.g., 'image', 'font', 'stylesheet'). "
                    "Blocking 'image' leaves natural image sizes at zero."
    )

    extra_headers: Dict[str, str] = Field(
        default_factory=lambda: {"Accept-Language": "en-US,en;q=0.9"},
        description="Extra HTTP headers sent with every request"
    )

    launch_args: List[str] = Field(
        default_factory=lambda: [
            "--no-sandbox",
            "--disable-setuid-sandbox",
            "--disable-dev-shm-usage",
            "--disable-gpu",
            "--no-first-run",
        ],
        description="Additional browser launch arguments"
    )

    user_agent: Optional[str] = Field(
        default=None,
        description="Custom user agent. If None and rotate_user_agent=True, a random one is used."
    )

    rotate_user_agent: bool = Field(
        default=True,
        description="Pick a random user agent for each session"
    )

    class Config:
        """Pydantic model configuration."""
        frozen = False
        validate_assignment = True

    def get_user_agent(self) -> str:
        """Get the user agent to use for this config."""
        if self.user_agent:
            return self.user_agent
        if self.rotate_user_agent:
            return get_random_user_agent()
        return USER_AGENTS[0]


# --- Pre-configured Instances for Common Use Cases ---

DEFAULT_CONFIG = BrowserConfig()
"""
Balanced configuration: full rendering, stealth on, no resource blocking.
"""

FAST_CONFIG = BrowserConfig(
    headless=True,
    stealth_mode=True,
    default_timeout=15000,
    block_resources=["font", "stylesheet", "media"],
)
"""
Fast configuration optimized for speed.

Blocks heavy resources but keeps images so profile-image sizing still works.
"""

STEALTH_CONFIG = BrowserConfig(
    headless=True,
    stealth_mode=True,
    default_timeout=45000,
    rotate_user_agent=True,
    viewport_width=1920,
    viewport_height=1080,
    launch_args=[
        "--disable-blink-features=AutomationControlled",
        "--disable-features=IsolateOrigins,site-per-process",
        "--disable-http2",
        "--no-first-run",
        "--no-default-browser-check",
        "--no-sandbox",
        "--disable-dev-shm-usage",
    ],
)
"""
Stealth configuration for targets with aggressive anti-bot protection.

Uses longer timeouts, a common desktop resolution and automation-hiding flags.
"""
