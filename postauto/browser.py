# postauto/browser.py
"""
@file browser.py
@brief Playwright (async API) implementation of the page/element driver contract.
"""

from __future__ import annotations

from typing import List

from playwright.async_api import ElementHandle, Page
from playwright.async_api import TimeoutError as PlaywrightTimeoutError

from .interfaces import IElement, IPage

_VISIBLE_JS = """
el => {
    const rect = el.getBoundingClientRect();
    const style = window.getComputedStyle(el);
    return rect.width > 0 && rect.height > 0 &&
           style.visibility !== 'hidden' &&
           style.display !== 'none';
}
"""

_ENABLED_JS = """
el => !el.disabled &&
      el.getAttribute('aria-disabled') !== 'true' &&
      !el.classList.contains('disabled')
"""

_LABELS_JS = """
el => [
    el.innerText || el.textContent || '',
    el.getAttribute('aria-label') || '',
    el.getAttribute('placeholder') || '',
    el.getAttribute('data-placeholder') || '',
    el.getAttribute('title') || '',
].map(t => t.trim()).filter(t => t.length > 0)
"""

_READ_TEXT_JS = """
el => (el.tagName === 'INPUT' || el.tagName === 'TEXTAREA') ? (el.value || '') : (el.innerText || '')
"""

_READY_JS = "() => document.readyState === 'complete'"


def _ms(seconds: float) -> float:
    return max(0.0, seconds) * 1000


class PlaywrightElement(IElement):
    """Wraps a Playwright ElementHandle."""

    def __init__(self, handle: ElementHandle):
        self._handle = handle

    async def is_visible(self) -> bool:
        return bool(await self._handle.evaluate(_VISIBLE_JS))

    async def is_enabled(self) -> bool:
        return bool(await self._handle.evaluate(_ENABLED_JS))

    async def label_texts(self) -> List[str]:
        return list(await self._handle.evaluate(_LABELS_JS))

    async def click(self) -> None:
        await self._handle.click()

    async def type(self, text: str, delay_ms: int = 0) -> None:
        await self._handle.type(text, delay=delay_ms)

    async def read_text(self) -> str:
        return str(await self._handle.evaluate(_READ_TEXT_JS))


class PlaywrightPage(IPage):
    """Wraps the single Playwright Page of a session."""

    def __init__(self, page: Page):
        self._page = page

    @property
    def url(self) -> str:
        return self._page.url

    async def goto(self, url: str, timeout: float) -> None:
        await self._page.goto(url, wait_until="domcontentloaded", timeout=_ms(timeout))

    async def wait_ready(self, timeout: float) -> None:
        await self._page.wait_for_function(_READY_JS, timeout=_ms(timeout))

    async def query_all(self, selector: str) -> List[IElement]:
        handles = await self._page.query_selector_all(selector)
        return [PlaywrightElement(h) for h in handles]

    async def press(self, keys: str) -> None:
        await self._page.keyboard.press(keys)

    async def scroll_to(self, y: int) -> None:
        await self._page.evaluate("y => window.scrollTo(0, y)", y)

    async def click_expecting_navigation(self, element: IElement, timeout: float) -> bool:
        try:
            async with self._page.expect_navigation(wait_until="domcontentloaded", timeout=_ms(timeout)):
                await element.click()
            return True
        except PlaywrightTimeoutError:
            return False

    async def screenshot(self, path: str, full_page: bool = True) -> None:
        await self._page.screenshot(path=path, full_page=full_page)

    async def content(self) -> str:
        return await self._page.content()
