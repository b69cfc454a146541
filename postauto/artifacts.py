# postauto/artifacts.py
"""
@file artifacts.py
@brief Best-effort failure diagnostics: full-page screenshot and page source dump.
"""

from __future__ import annotations

import logging
import os
import time
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from .interfaces import IPage, ISession

log = logging.getLogger("postauto.artifacts")


def _ts() -> str:
    now = time.time()
    return time.strftime("%Y%m%d_%H%M%S", time.localtime(now)) + f"_{int(now * 1000) % 1000:03d}"


def _free_stem(out_dir: str, stem: str) -> str:
    """Suffix the stem until neither the PNG nor the HTML name is taken."""
    candidate, n = stem, 1
    while any(os.path.exists(os.path.join(out_dir, candidate + ext)) for ext in (".png", ".html")):
        n += 1
        candidate = f"{stem}-{n}"
    return candidate


def ensure_dir(path: str) -> None:
    os.makedirs(path, exist_ok=True)


@dataclass
class CaptureResult:
    """Paths that were written plus the reasons for what could not be."""
    screenshot: Optional[str] = None
    page_source: Optional[str] = None
    errors: List[str] = field(default_factory=list)

    @property
    def captured(self) -> bool:
        return self.screenshot is not None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "screenshot": self.screenshot,
            "page_source": self.page_source,
            "errors": list(self.errors),
        }


class DiagnosticsReporter:
    """
    Captures the state of the page when a run ends in a Failed outcome.

    Never raises. Every internal failure is logged and recorded on the
    returned CaptureResult.
    """

    def __init__(self, out_dir: str = "artifacts", name_prefix: str = "postauto"):
        self.out_dir = out_dir
        self.name_prefix = name_prefix
        self.captures: List[CaptureResult] = []

    async def capture_on_failure(self, session: Optional[ISession], stage: Optional[str] = None) -> CaptureResult:
        """
        @param session The live session of the failed run (may lack a page)
        @param stage Failing stage, added to the file names
        @return CaptureResult with the written paths
        """
        result = CaptureResult()
        self.captures.append(result)

        page: Optional[IPage] = session.page if session is not None else None
        if page is None:
            result.errors.append("no page to capture")
            log.warning("Diagnostics skipped: no page available")
            return result

        try:
            ensure_dir(self.out_dir)
        except OSError as e:
            result.errors.append(f"{type(e).__name__}: {e}")
            log.error("Cannot create artifacts dir %s: %s", self.out_dir, e)
            return result

        stem = f"{self.name_prefix}-error-{_ts()}"
        if stage:
            stem = f"{self.name_prefix}-{stage}-error-{_ts()}"
        stem = _free_stem(self.out_dir, stem)
        png_path = os.path.join(self.out_dir, f"{stem}.png")
        html_path = os.path.join(self.out_dir, f"{stem}.html")

        try:
            await page.screenshot(png_path, full_page=True)
            result.screenshot = png_path
            log.info("Error screenshot saved: %s", png_path)
        except Exception as e:
            result.errors.append(f"screenshot: {type(e).__name__}: {e}")
            log.error("Could not take error screenshot: %s", e)

        try:
            html = await page.content()
            with open(html_path, "w", encoding="utf-8") as f:
                f.write(html)
            result.page_source = html_path
        except Exception as e:
            result.errors.append(f"page_source: {type(e).__name__}: {e}")
            log.error("Could not dump page source: %s", e)

        return result
