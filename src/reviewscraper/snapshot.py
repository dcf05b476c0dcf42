"""Offline render session over saved HTML pages.

SnapshotSession replays a sequence of captured listing pages without a
browser. It lets the whole engine (rules, page-state detection, pagination,
orchestration) run against fixtures or against pages saved from a live run.

Clicking the next-page control loads the next document in the sequence.
Clicking any other node detaches it from the tree, which is how a dismissed
consent control behaves. Script evaluation is a no-op.
"""
from __future__ import annotations

import asyncio
import logging
import re
from pathlib import Path
from typing import Any, Iterable, List, Optional, Sequence, Tuple

from bs4 import BeautifulSoup, Tag

from .errors import RenderError, RenderTimeout
from .session import RenderSession

logger = logging.getLogger(__name__)

_PX = re.compile(r"(\d+(?:\.\d+)?)")
_STYLE_DIMENSION = re.compile(r"(width|height)\s*:\s*(\d+(?:\.\d+)?)px", re.IGNORECASE)


def _to_px(value: Optional[str]) -> float:
    if not value:
        return 0.0
    match = _PX.match(value.strip())
    return float(match.group(1)) if match else 0.0


class SnapshotSession(RenderSession):
    """RenderSession over an ordered list of HTML documents."""

    def __init__(
        self,
        documents: Sequence[str],
        next_selector: Optional[str] = None,
        parser: str = "html.parser",
    ):
        """
        Args:
            documents: HTML of page 1, page 2, ...
            next_selector: Selector of the next-page control
            parser: BeautifulSoup parser name
        """
        self._documents = list(documents)
        self._next_selector = next_selector
        self._parser = parser
        self._index = -1
        self._soup: Optional[BeautifulSoup] = None
        self.is_open = False
        self.close_calls = 0
        self.clicks: List[Tag] = []

    @classmethod
    def from_files(cls, paths: Iterable[str | Path], **kwargs) -> "SnapshotSession":
        """Build a session from saved HTML files, in the order given."""
        documents = [Path(p).read_text(encoding="utf-8") for p in paths]
        return cls(documents, **kwargs)

    @property
    def document_index(self) -> int:
        return self._index

    @property
    def soup(self) -> BeautifulSoup:
        if self._soup is None:
            raise RenderError("No document loaded. Call navigate() first.")
        return self._soup

    def _load(self, index: int) -> None:
        if index >= len(self._documents):
            raise RenderError(f"No snapshot for page {index + 1}")
        self._index = index
        self._soup = BeautifulSoup(self._documents[index], self._parser)
        logger.debug(f"Loaded snapshot {index + 1}/{len(self._documents)}")

    async def open(self) -> None:
        if not self._documents:
            raise RenderError("SnapshotSession needs at least one document")
        self.is_open = True

    async def close(self) -> None:
        self.close_calls += 1
        self.is_open = False
        self._soup = None

    async def navigate(self, url: str, wait_until: str, timeout: float) -> Optional[int]:
        if not self.is_open:
            raise RenderError("Session is not open")
        self._load(0)
        return 200

    async def title(self) -> str:
        title = self.soup.title
        return title.get_text(strip=True) if title else ""

    async def wait_for_selector(self, selector: str, timeout: float) -> Tag:
        node = self.soup.select_one(selector)
        if node is None:
            raise RenderTimeout(f"Waiting for {selector} timed out after {timeout}s")
        return node

    async def query_all(self, selector: str, scope: Optional[Tag] = None) -> List[Tag]:
        return list((scope or self.soup).select(selector))

    async def query_first(self, selector: str, scope: Optional[Tag] = None) -> Optional[Tag]:
        return (scope or self.soup).select_one(selector)

    async def click(self, node: Tag) -> None:
        self.clicks.append(node)
        if self._next_selector and any(n is node for n in self.soup.select(self._next_selector)):
            self._load(self._index + 1)
            return
        node.decompose()

    async def get_attribute(self, node: Tag, name: str) -> Optional[str]:
        value = node.get(name)
        if isinstance(value, list):
            return " ".join(value)
        return value

    async def text_content(self, node: Tag) -> str:
        return node.get_text()

    async def dimensions(self, node: Tag) -> Tuple[float, float]:
        width = _to_px(node.get("width"))
        height = _to_px(node.get("height"))
        for prop, px in _STYLE_DIMENSION.findall(node.get("style", "")):
            if prop.lower() == "width" and not width:
                width = float(px)
            elif prop.lower() == "height" and not height:
                height = float(px)
        return width, height

    async def evaluate(self, script: str, arg: Any = None) -> Any:
        return None

    async def pause(self, seconds: float) -> None:
        await asyncio.sleep(0)
