# postauto/actionlogger.py
"""
@file actionlogger.py
@brief Structured event log for workflow steps, waits and retries.
"""

from __future__ import annotations

import json
import os
import threading
import time
import traceback
from datetime import datetime, timezone
from typing import Any, Dict, Optional

SENSITIVE_KEYS = {"password", "passwd", "secret", "token", "credentials", "identity"}
TEXT_KEYS = {"text", "content", "payload"}


class ActionLogger:
    """Thread-safe event logger with line/jsonl output. Disabled until enabled."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._enabled = False
        self._console = True
        self._file_path: Optional[str] = None
        self._level = "INFO"
        self._run_id = "default"
        self._format = "line"
        self._max_traceback_chars = 4000

    def configure(
        self,
        *,
        console: bool = True,
        file_path: Optional[str] = None,
        level: str = "INFO",
        run_id: Optional[str] = None,
        format: str = "line",
        max_traceback_chars: int = 4000,
    ) -> None:
        """Configure logger settings."""
        fmt = (format or "line").lower()
        if fmt not in {"line", "jsonl"}:
            raise ValueError("ActionLogger format must be 'line' or 'jsonl'")

        with self._lock:
            self._console = bool(console)
            self._file_path = file_path
            self._level = level.upper()
            self._format = fmt
            self._max_traceback_chars = max(256, int(max_traceback_chars))
            if run_id:
                self._run_id = run_id

    def enable(self) -> None:
        with self._lock:
            self._enabled = True

    def disable(self) -> None:
        with self._lock:
            self._enabled = False

    def is_enabled(self) -> bool:
        return self._enabled

    @property
    def run_id(self) -> str:
        return self._run_id

    def set_run_id(self, run_id: str) -> None:
        if run_id:
            with self._lock:
                self._run_id = run_id

    def log(
        self,
        *,
        action: str,
        target: Optional[str] = None,
        stage: Optional[str] = None,
        status: str = "ok",
        duration_ms: Optional[int] = None,
        metadata: Optional[Dict[str, Any]] = None,
        exception: Optional[BaseException] = None,
        attempt: Optional[int] = None,
        event: Optional[str] = None,
    ) -> None:
        """Emit a log event."""
        if not self._enabled:
            return

        event_obj: Dict[str, Any] = {
            "timestamp": time.strftime("%H:%M:%S"),
            "ts": datetime.now(timezone.utc).isoformat(timespec="milliseconds"),
            "level": self._level,
            "event": event or "action",
            "action": action,
            "target": target,
            "stage": stage,
            "status": status,
            "attempt": attempt,
            "duration_ms": duration_ms,
            "metadata": self._redact_metadata(dict(metadata or {})),
            "run_id": self._run_id,
        }

        if exception is not None:
            event_obj["exception"] = self._format_exception(exception)

        line = self._format_output(event_obj)

        if self._console:
            print(line, flush=True)

        if self._file_path:
            self._write_file(line)

    def _write_file(self, line: str) -> None:
        try:
            os.makedirs(os.path.dirname(os.path.abspath(self._file_path)) or ".", exist_ok=True)
            with open(self._file_path, "a", encoding="utf-8") as f:
                f.write(line + "\n")
        except OSError:
            pass

    def _format_output(self, event: Dict[str, Any]) -> str:
        if self._format == "jsonl":
            return json.dumps(event, ensure_ascii=False, separators=(",", ":"), default=str)
        return self._format_line(event)

    def _format_line(self, event: Dict[str, Any]) -> str:
        parts = [event.get("timestamp", ""), event.get("level", "INFO"), event.get("action", "")]

        for key in ("event", "stage", "target", "attempt", "status", "duration_ms", "run_id"):
            value = event.get(key)
            if value is None or value == "":
                continue
            if key == "target":
                parts.append(f"target='{value}'")
            else:
                parts.append(f"{key}={value}")

        for key, value in (event.get("metadata") or {}).items():
            parts.append(f"{key}={value}")

        exc = event.get("exception")
        if exc:
            parts.append(f"exc_type={exc.get('type')}")
            parts.append(f"exc_message={exc.get('message')}")

        return " | ".join(parts)

    def _redact_metadata(self, metadata: Dict[str, Any]) -> Dict[str, Any]:
        redacted = {}
        for key, value in metadata.items():
            if key.lower() in SENSITIVE_KEYS:
                redacted[key] = "***"
            elif key.lower() in TEXT_KEYS:
                redacted[key] = self._mask_text(str(value))
            else:
                redacted[key] = value
        return redacted

    @staticmethod
    def _mask_text(text: str, max_visible: int = 10) -> str:
        if len(text) <= max_visible:
            return text
        return f"{text[:max_visible]}..."

    def _format_exception(self, exception: BaseException) -> Dict[str, Any]:
        tb = "".join(traceback.format_exception(type(exception), exception, exception.__traceback__))
        if len(tb) > self._max_traceback_chars:
            tb = tb[: self._max_traceback_chars] + "...<truncated>"

        cause = exception.__cause__
        return {
            "type": type(exception).__name__,
            "message": str(exception),
            "traceback": tb.strip(),
            "cause_type": type(cause).__name__ if cause is not None else None,
            "cause_message": str(cause) if cause is not None else None,
        }


ACTION_LOGGER = ActionLogger()
