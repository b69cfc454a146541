# postauto/session.py
"""
@file session.py
@brief Owns the single Playwright browser session of a run and its scoped release.
"""

from __future__ import annotations

import asyncio
import logging
from contextlib import asynccontextmanager
from typing import Any, AsyncIterator, Callable, Dict, Optional

from playwright.async_api import Browser, BrowserContext, Playwright, async_playwright

from .browser import PlaywrightPage
from .config import TimeConfig
from .interfaces import IPage, ISession
from .repository import BrowserConfig

log = logging.getLogger("postauto.session")


class BrowserSession(ISession):
    """
    One Chromium instance, one context and at most one page.

    close() releases whatever open() managed to acquire, in reverse order.
    """

    def __init__(self, config: BrowserConfig):
        self.config = config
        self._playwright: Optional[Playwright] = None
        self._browser: Optional[Browser] = None
        self._context: Optional[BrowserContext] = None
        self._page: Optional[PlaywrightPage] = None

    @property
    def page(self) -> Optional[IPage]:
        return self._page

    def _context_options(self) -> Dict[str, Any]:
        options: Dict[str, Any] = {
            "user_agent": self.config.user_agent,
            "extra_http_headers": dict(self.config.extra_headers),
        }
        if self.config.viewport is None:
            options["no_viewport"] = True
        else:
            width, height = self.config.viewport
            options["viewport"] = {"width": width, "height": height}
        return options

    async def open(self) -> None:
        if self._browser is not None:
            raise RuntimeError("Session already open.")

        log.info("Launching Chromium (headless=%s)", self.config.headless)
        self._playwright = await async_playwright().start()
        self._browser = await self._playwright.chromium.launch(
            headless=self.config.headless,
            args=list(self.config.args),
            slow_mo=self.config.slow_mo_ms,
        )
        self._context = await self._browser.new_context(**self._context_options())

    async def new_page(self) -> IPage:
        if self._context is None:
            raise RuntimeError("Session not open.")
        if self._page is not None:
            raise RuntimeError("Session already has its page.")

        raw = await self._context.new_page()
        raw.set_default_timeout(self.config.default_timeout * 1000)
        raw.set_default_navigation_timeout(self.config.navigation_timeout * 1000)
        self._page = PlaywrightPage(raw)
        return self._page

    async def close(self) -> None:
        page, context, browser, pw = self._page, self._context, self._browser, self._playwright
        self._page = self._context = self._browser = self._playwright = None

        # Each release is bounded by session_close and runs even if the previous one failed.
        timeout = TimeConfig.current().session_close.timeout
        try:
            try:
                if context is not None:
                    await asyncio.wait_for(context.close(), timeout=timeout)
            finally:
                if browser is not None:
                    await asyncio.wait_for(browser.close(), timeout=timeout)
        finally:
            if pw is not None:
                await asyncio.wait_for(pw.stop(), timeout=timeout)
        if browser is not None:
            log.info("Browser closed")


SessionFactory = Callable[[BrowserConfig], ISession]


@asynccontextmanager
async def session_scope(
    config: BrowserConfig,
    factory: SessionFactory = BrowserSession,
) -> AsyncIterator[ISession]:
    """
    Open exactly one session for the body and close it exactly once on
    every exit path, including a partially failed open().

    Close failures are logged and never replace the body's own error.
    """
    session = factory(config)
    try:
        await session.open()
        yield session
    finally:
        try:
            await session.close()
        except Exception:
            log.exception("Error while closing browser session")
