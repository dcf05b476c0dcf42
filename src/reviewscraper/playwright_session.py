"""
Playwright-backed render session.

Owns one browser process, one isolated context and one page for the lifetime
of a scrape run. Every instance is independent; concurrent runs each create
their own session, so there is no shared browser registry to guard.
"""
import logging
from contextlib import asynccontextmanager
from typing import Any, List, Optional, Tuple

from playwright.async_api import (
    Error as PlaywrightError,
    TimeoutError as PlaywrightTimeoutError,
    async_playwright,
)

from .browser_config import BrowserConfig, DEFAULT_CONFIG
from .errors import RenderError, RenderTimeout
from .session import Node, RenderSession

logger = logging.getLogger(__name__)


# Masks the most common automation indicators before any page script runs
STEALTH_SCRIPT = """
    Object.defineProperty(navigator, 'webdriver', {
        get: () => undefined
    });

    window.chrome = {
        runtime: {}
    };

    const originalQuery = window.navigator.permissions.query;
    window.navigator.permissions.query = (parameters) => (
        parameters.name === 'notifications' ?
            Promise.resolve({ state: Notification.permission }) :
            originalQuery(parameters)
    );

    Object.defineProperty(navigator, 'plugins', {
        get: () => [
            { name: 'Chrome PDF Plugin', filename: 'internal-pdf-viewer', description: 'Portable Document Format' },
            { name: 'Chrome PDF Viewer', filename: 'internal-pdf-viewer', description: 'Portable Document Format' },
            { name: 'Native Client', filename: 'internal-nacl-plugin', description: '' }
        ]
    });

    Object.defineProperty(navigator, 'languages', {
        get: () => ['en-US', 'en']
    });

    Object.defineProperty(navigator, 'hardwareConcurrency', {
        get: () => 8
    });
"""

# naturalWidth is 0 until the image has loaded; fall back to the layout box
DIMENSIONS_SCRIPT = """
    (el) => [
        el.naturalWidth || el.width || el.getBoundingClientRect().width || 0,
        el.naturalHeight || el.height || el.getBoundingClientRect().height || 0
    ]
"""


@asynccontextmanager
async def _translated_errors(action: str):
    """Re-raise Playwright failures as RenderError/RenderTimeout."""
    try:
        yield
    except PlaywrightTimeoutError as e:
        raise RenderTimeout(f"{action} timed out: {e}") from e
    except PlaywrightError as e:
        raise RenderError(f"{action} failed: {e}") from e


class PlaywrightSession(RenderSession):
    """
    RenderSession backed by a Playwright browser.

        session = PlaywrightSession(config)
        await session.open()
        try:
            await session.navigate(url, "domcontentloaded", 15)
        finally:
            await session.close()

    In practice the orchestrator drives open/close through acquire_session().
    """

    def __init__(self, config: Optional[BrowserConfig] = None):
        """
        Initialize the session.

        Args:
            config: BrowserConfig instance; DEFAULT_CONFIG when omitted
        """
        self._config = config or DEFAULT_CONFIG
        self._playwright = None
        self._browser = None
        self._context = None
        self._page = None

        logger.debug(f"PlaywrightSession initialized with config: {self._config}")

    @property
    def page(self):
        if self._page is None:
            raise RenderError("Session is not open. Call open() first.")
        return self._page

    async def open(self) -> None:
        """Launch the browser, create an isolated context and a page."""
        logger.info(f"Launching {self._config.browser_type} browser (headless={self._config.headless})")

        self._playwright = await async_playwright().start()
        browser_launcher = getattr(self._playwright, self._config.browser_type)

        launch_options = {"headless": self._config.headless}
        if self._config.launch_args:
            launch_options["args"] = self._config.launch_args

        self._browser = await browser_launcher.launch(**launch_options)

        self._context = await self._browser.new_context(
            viewport={
                "width": self._config.viewport_width,
                "height": self._config.viewport_height,
            },
            user_agent=self._config.get_user_agent(),
            locale=self._config.locale,
            timezone_id=self._config.timezone_id,
            extra_http_headers=self._config.extra_headers or None,
            java_script_enabled=True,
        )
        self._context.set_default_timeout(self._config.default_timeout)

        if self._config.stealth_mode:
            await self._context.add_init_script(STEALTH_SCRIPT)
            logger.debug("Stealth measures applied")

        self._page = await self._context.new_page()

        if self._config.block_resources:
            blocked = set(self._config.block_resources)
            await self._page.route(
                "**/*",
                lambda route: (
                    route.abort()
                    if route.request.resource_type in blocked
                    else route.continue_()
                )
            )

        logger.info("Browser launched successfully")

    async def close(self) -> None:
        """Close page, context and browser, then stop Playwright."""
        for name in ("_context", "_browser"):
            resource = getattr(self, name)
            if resource is None:
                continue
            try:
                await resource.close()
            except Exception as e:
                logger.warning(f"Error closing {name.lstrip('_')}: {e}")
            setattr(self, name, None)

        self._page = None

        if self._playwright is not None:
            try:
                await self._playwright.stop()
            except Exception as e:
                logger.warning(f"Error stopping Playwright: {e}")
            self._playwright = None
            logger.info("Browser closed")

    async def navigate(self, url: str, wait_until: str, timeout: float) -> Optional[int]:
        async with _translated_errors(f"Navigation to {url} ({wait_until})"):
            response = await self.page.goto(url, wait_until=wait_until, timeout=timeout * 1000)
        return response.status if response else None

    async def title(self) -> str:
        async with _translated_errors("Reading title"):
            return await self.page.title()

    async def wait_for_selector(self, selector: str, timeout: float) -> Node:
        async with _translated_errors(f"Waiting for {selector}"):
            node = await self.page.wait_for_selector(selector, state="attached", timeout=timeout * 1000)
        if node is None:
            raise RenderTimeout(f"Waiting for {selector} returned nothing")
        return node

    async def query_all(self, selector: str, scope: Optional[Node] = None) -> List[Node]:
        async with _translated_errors(f"Querying {selector}"):
            return await (scope or self.page).query_selector_all(selector)

    async def query_first(self, selector: str, scope: Optional[Node] = None) -> Optional[Node]:
        async with _translated_errors(f"Querying {selector}"):
            return await (scope or self.page).query_selector(selector)

    async def click(self, node: Node) -> None:
        async with _translated_errors("Click"):
            await node.click()

    async def get_attribute(self, node: Node, name: str) -> Optional[str]:
        async with _translated_errors(f"Reading attribute {name}"):
            return await node.get_attribute(name)

    async def text_content(self, node: Node) -> str:
        async with _translated_errors("Reading text"):
            return (await node.text_content()) or ""

    async def dimensions(self, node: Node) -> Tuple[float, float]:
        async with _translated_errors("Measuring element"):
            width, height = await node.evaluate(DIMENSIONS_SCRIPT)
        return float(width or 0), float(height or 0)

    async def evaluate(self, script: str, arg: Any = None) -> Any:
        async with _translated_errors("Evaluating script"):
            return await self.page.evaluate(script, arg)

    async def pause(self, seconds: float) -> None:
        if seconds <= 0:
            return
        if self._page is None:
            await super().pause(seconds)
            return
        await self._page.wait_for_timeout(seconds * 1000)
