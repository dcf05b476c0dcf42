"""
Render session contract.

A RenderSession is an exclusively-owned handle on one rendering engine
instance (one browser, one active page). The extraction engine only talks to
this interface, so the same components run against a live Playwright browser
(PlaywrightSession) or against saved HTML (SnapshotSession).

Nodes returned by the query methods are opaque handles; pass them back to the
same session's accessors and never share them across sessions.

Faults are reported as RenderError, bounded waits that elapse as
RenderTimeout.
"""
import asyncio
import logging
from abc import ABC, abstractmethod
from contextlib import asynccontextmanager
from typing import Any, AsyncIterator, Callable, List, Optional, Tuple

from .errors import SessionInitError

logger = logging.getLogger(__name__)

Node = Any


class RenderSession(ABC):
    """Async interface the extraction engine drives."""

    @abstractmethod
    async def open(self) -> None:
        """Start the rendering engine and open a page."""

    @abstractmethod
    async def close(self) -> None:
        """Release every resource. Must be idempotent and must not raise."""

    @abstractmethod
    async def navigate(self, url: str, wait_until: str, timeout: float) -> Optional[int]:
        """
        Load a URL.

        Args:
            url: Target URL
            wait_until: Load-completion condition ("commit", "domcontentloaded",
                "load" or "networkidle")
            timeout: Seconds before the load is abandoned

        Returns:
            HTTP status of the main response when known
        """

    @abstractmethod
    async def title(self) -> str:
        """Title of the current document."""

    @abstractmethod
    async def wait_for_selector(self, selector: str, timeout: float) -> Node:
        """Wait up to timeout seconds for selector to be attached; raise RenderTimeout otherwise."""

    @abstractmethod
    async def query_all(self, selector: str, scope: Optional[Node] = None) -> List[Node]:
        """All nodes matching selector, in document order, under scope or the document."""

    @abstractmethod
    async def query_first(self, selector: str, scope: Optional[Node] = None) -> Optional[Node]:
        """First node matching selector under scope or the document."""

    @abstractmethod
    async def click(self, node: Node) -> None:
        """Activate a node."""

    @abstractmethod
    async def get_attribute(self, node: Node, name: str) -> Optional[str]:
        """Attribute value, or None when the attribute is absent."""

    @abstractmethod
    async def text_content(self, node: Node) -> str:
        """Text content of a node ("" when empty)."""

    @abstractmethod
    async def dimensions(self, node: Node) -> Tuple[float, float]:
        """Rendered (width, height) of a node in pixels; (0, 0) when unknown."""

    @abstractmethod
    async def evaluate(self, script: str, arg: Any = None) -> Any:
        """Evaluate a script in the page."""

    async def pause(self, seconds: float) -> None:
        """Settle interval: let asynchronous rendering finish."""
        if seconds > 0:
            await asyncio.sleep(seconds)


SessionFactory = Callable[[], RenderSession]


@asynccontextmanager
async def acquire_session(factory: SessionFactory) -> AsyncIterator[RenderSession]:
    """
    Open a fresh session and guarantee its release.

    Usage:
        async with acquire_session(factory) as session:
            await session.navigate(url, "load", 30)

    close() is awaited exactly once on every exit path, including a failed
    open() and task cancellation; it is shielded so a second cancellation
    cannot interrupt the release.

    Raises:
        SessionInitError: If the session could not be opened
    """
    try:
        session = factory()
    except Exception as e:
        raise SessionInitError(f"Failed to create browser session: {e}") from e

    try:
        try:
            await session.open()
        except Exception as e:
            logger.error(f"Failed to initialize render session: {e}")
            raise SessionInitError(f"Failed to initialize browser session: {e}") from e

        yield session
    finally:
        await asyncio.shield(session.close())
