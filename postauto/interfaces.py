# postauto/interfaces.py
"""
@file interfaces.py
@brief Abstract driver contract between the engine and a browser backend.

The locator, steps and workflow only talk to these interfaces. The Playwright
backend lives in browser.py; tests provide in-memory implementations.
"""

from abc import ABC, abstractmethod
from typing import List, Optional


class IElement(ABC):
    """
    A concrete element inside the current page snapshot.

    Valid until the next navigation or DOM mutation; never cache across steps.
    """

    @abstractmethod
    async def is_visible(self) -> bool:
        """Non-zero rendered size, not visibility:hidden and not display:none."""

    @abstractmethod
    async def is_enabled(self) -> bool:
        """Not disabled, not aria-disabled="true" and no 'disabled' class."""

    @abstractmethod
    async def label_texts(self) -> List[str]:
        """
        Visible text plus accessible labels, in priority order.

        Returns text content, aria-label, placeholder, data-placeholder and
        title, skipping empty values.
        """

    @abstractmethod
    async def click(self) -> None:
        pass

    @abstractmethod
    async def type(self, text: str, delay_ms: int = 0) -> None:
        """Type text key by key into the element."""

    @abstractmethod
    async def read_text(self) -> str:
        """Current value of an input, or the rendered text of an editable region."""


class IPage(ABC):
    """The single active page/tab of a session."""

    @property
    @abstractmethod
    def url(self) -> str:
        pass

    @abstractmethod
    async def goto(self, url: str, timeout: float) -> None:
        """Navigate and wait for DOMContentLoaded. Raises on timeout."""

    @abstractmethod
    async def wait_ready(self, timeout: float) -> None:
        """Wait for document.readyState == 'complete'. Raises on timeout."""

    @abstractmethod
    async def query_all(self, selector: str) -> List[IElement]:
        """All elements matching a CSS selector (or 'xpath=...'), in document order."""

    @abstractmethod
    async def press(self, keys: str) -> None:
        """Press a key chord on the page keyboard, e.g. 'Control+A'."""

    @abstractmethod
    async def scroll_to(self, y: int) -> None:
        pass

    @abstractmethod
    async def click_expecting_navigation(self, element: IElement, timeout: float) -> bool:
        """
        Click and wait for the resulting navigation.

        Returns False when no navigation completed before the timeout.
        """

    @abstractmethod
    async def screenshot(self, path: str, full_page: bool = True) -> None:
        pass

    @abstractmethod
    async def content(self) -> str:
        """Serialized page HTML."""


class ISession(ABC):
    """
    One live browser instance and its single active page.
    """

    @property
    @abstractmethod
    def page(self) -> Optional[IPage]:
        """The active page, or None before the first new_page()."""

    @abstractmethod
    async def open(self) -> None:
        """Launch the browser. May fail after acquiring some resources."""

    @abstractmethod
    async def new_page(self) -> IPage:
        """Open the single page of this session with its fixed configuration."""

    @abstractmethod
    async def close(self) -> None:
        """Release every resource acquired so far."""
