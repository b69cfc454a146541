# postauto/config.py
"""
@file config.py
@brief Centralized timeout, poll and pause configuration for a publication run.
"""

from __future__ import annotations

import threading
from contextlib import contextmanager
from copy import deepcopy
from dataclasses import dataclass
from typing import Any, Dict, Generator, Optional

from .exceptions import ConfigError
from .timings import PAUSE_FIELDS, TIMEOUT_FIELDS, build_preset_values, list_presets

STEP_FIELDS = tuple(name for name in TIMEOUT_FIELDS if name.startswith("step_"))

# Seconds added on top of a step's inner budget when overrides shrink it.
STEP_SLACK = 5.0


@dataclass
class TimeoutSettings:
    """Individual timeout settings for a specific operation type."""
    timeout: float
    interval: float
    retry_count: Optional[int] = None

    def with_overrides(
        self,
        timeout: Optional[float] = None,
        interval: Optional[float] = None,
        retry_count: Optional[int] = None,
    ) -> TimeoutSettings:
        """Create a new settings instance with overrides applied."""
        return TimeoutSettings(
            timeout=timeout if timeout is not None else self.timeout,
            interval=interval if interval is not None else self.interval,
            retry_count=retry_count if retry_count is not None else self.retry_count,
        )

    @property
    def attempts(self) -> int:
        """retry_count as a usable attempt/poll budget (at least one)."""
        return max(1, int(self.retry_count or 1))


class TimeConfig:
    """
    Timing configuration for a publication run.

    Deterministic precedence is applied per run via build/install APIs:
      base defaults -> preset -> CLI overrides
    """

    _default_instance: Optional[TimeConfig] = None
    _local = threading.local()
    _lock = threading.Lock()

    def __init__(self, preset: Optional[str] = None):
        try:
            values = build_preset_values(preset or "default")
        except ValueError as e:
            raise ConfigError(str(e)) from e
        self._apply_values(values)

    @classmethod
    def _timeout_fields(cls) -> Dict[str, Dict[str, Any]]:
        return TIMEOUT_FIELDS

    @classmethod
    def _pause_fields(cls) -> Dict[str, float]:
        return PAUSE_FIELDS

    def _apply_values(self, values: Dict[str, Any]) -> None:
        for name in self._timeout_fields():
            val = values.get(name)
            if isinstance(val, TimeoutSettings):
                setting = deepcopy(val)
            elif isinstance(val, dict):
                setting = TimeoutSettings(
                    timeout=float(val["timeout"]),
                    interval=float(val["interval"]),
                    retry_count=val.get("retry_count"),
                )
            else:
                raise ConfigError(f"Invalid timeout setting for {name}: {val}")
            setattr(self, name, setting)

        for name in self._pause_fields():
            if name not in values:
                raise ConfigError(f"Missing pause setting for {name}")
            setattr(self, name, float(values[name]))

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {}
        for name in self._timeout_fields():
            setting: TimeoutSettings = getattr(self, name)
            data[name] = {
                "timeout": setting.timeout,
                "interval": setting.interval,
                "retry_count": setting.retry_count,
            }
        for name in self._pause_fields():
            data[name] = getattr(self, name)
        return data

    def clone(self) -> TimeConfig:
        """Return a deep clone of this config."""
        clone = TimeConfig()
        clone._apply_values(self.to_dict())
        return clone

    def settings(self, name: str) -> TimeoutSettings:
        if name not in self._timeout_fields():
            raise ConfigError(f"Unknown TimeConfig field: {name}")
        return getattr(self, name)

    def minimum_step_timeout(self, name: str) -> float:
        """
        Worst case of the bounded waits and pauses a step makes across all of
        its attempts. Typing time is not included.

        @param name A step_* field
        @return Seconds the step deadline must at least allow
        @throws ConfigError if name is not a step budget
        """
        nav = self.navigation
        inner = {
            "step_launch": 0.0,
            "step_navigate_auth": (
                nav.attempts * (nav.timeout + self.ready_state.timeout) + (nav.attempts - 1) * nav.interval
            ),
            "step_submit_credentials": (
                2 * self.field_lookup.timeout + self.submit_lookup.timeout + self.login_navigation.timeout
            ),
            "step_confirm_auth": self.after_login_pause,
            "step_navigate_target": nav.timeout + self.home_link_lookup.timeout + self.feed_settle_pause,
            "step_open_composer": (
                self.composer_lookup.timeout + self.composer_fallback_lookup.timeout + self.composer_open_pause
            ),
            "step_inject_content": (
                self.editor_lookup.timeout + self.field_lookup.timeout
                + self.editor_focus_pause + self.after_type_pause
            ),
            "step_submit_content": (
                self.post_button_lookup.timeout + self.after_submit_pause + self.error_lookup.timeout
            ),
            "step_verify_submission": self.success_indicator.timeout,
        }
        if name not in inner:
            raise ConfigError(f"Not a step budget: {name}")
        step = self.settings(name)
        return step.attempts * inner[name] + (step.attempts - 1) * step.interval

    def fit_step_budgets(self) -> None:
        """Raise every step deadline that is shorter than the work it contains."""
        for name in STEP_FIELDS:
            floor = self.minimum_step_timeout(name) + STEP_SLACK
            step = self.settings(name)
            if step.timeout < floor:
                setattr(self, name, step.with_overrides(timeout=floor))

    @classmethod
    def build_from(
        cls,
        *,
        preset: str = "default",
        overrides: Optional[Dict[str, Any]] = None,
    ) -> TimeConfig:
        """Build a deterministic run-scope config snapshot."""
        cfg = cls(preset)
        if overrides:
            _apply_overrides(cfg, overrides)
            cfg.fit_step_budgets()
        return cfg

    @classmethod
    def default(cls) -> TimeConfig:
        """Get the process default configuration (singleton)."""
        if cls._default_instance is None:
            with cls._lock:
                if cls._default_instance is None:
                    cls._default_instance = cls("default")
        return cls._default_instance

    @classmethod
    def install_run_config(cls, config: TimeConfig) -> None:
        """Install per-thread run configuration snapshot."""
        cls._local.run_config = config

    @classmethod
    def clear_run_config(cls) -> None:
        """Clear per-thread run configuration snapshot."""
        cls._local.run_config = None

    @classmethod
    def current(cls) -> TimeConfig:
        """Get the current effective configuration."""
        override = getattr(cls._local, "override", None)
        if override is not None:
            return override

        run_cfg = getattr(cls._local, "run_config", None)
        if run_cfg is not None:
            return run_cfg

        return cls.default()

    @classmethod
    @contextmanager
    def override(cls, **kwargs: Any) -> Generator[TimeConfig, None, None]:
        """Context manager for temporary configuration overrides."""
        previous = getattr(cls._local, "override", None)
        new_config = cls.current().clone()
        _apply_overrides(new_config, kwargs)

        cls._local.override = new_config
        try:
            yield new_config
        finally:
            cls._local.override = previous

    @classmethod
    def reset_to_defaults(cls) -> None:
        """Reset default and clear all thread-local config state."""
        with cls._lock:
            cls._default_instance = cls("default")
        cls._local.override = None
        cls._local.run_config = None


def _apply_overrides(config: TimeConfig, overrides: Dict[str, Any]) -> None:
    for key, value in overrides.items():
        if key in config._timeout_fields():
            base_setting: TimeoutSettings = getattr(config, key)
            if isinstance(value, TimeoutSettings):
                setattr(config, key, deepcopy(value))
            elif isinstance(value, dict):
                new_setting = base_setting.with_overrides(
                    timeout=value.get("timeout"),
                    interval=value.get("interval"),
                    retry_count=value.get("retry_count"),
                )
                setattr(config, key, new_setting)
            else:
                raise ConfigError(f"Invalid override for {key}: {value}")
        elif key in config._pause_fields():
            setattr(config, key, float(value))
        else:
            raise ConfigError(f"Unknown TimeConfig field: {key}")


def timeout_overrides(timeout: float) -> Dict[str, Any]:
    """Scale the lookup and navigation deadlines from one base timeout."""
    return {
        "navigation": {"timeout": timeout},
        "login_navigation": {"timeout": timeout},
        "ready_state": {"timeout": max(timeout / 4, 1.0)},
        "field_lookup": {"timeout": max(timeout / 9, 1.0)},
        "composer_lookup": {"timeout": max(timeout / 3, 1.0)},
        "editor_lookup": {"timeout": max(timeout / 4, 1.0)},
        "post_button_lookup": {"timeout": max(timeout / 3, 1.0)},
    }


def available_presets() -> Dict[str, Dict[str, Any]]:
    return list_presets()
