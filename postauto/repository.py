# postauto/repository.py
"""
@file repository.py
@brief Loads the YAML object map: browser settings, site settings and logical targets.
"""

from __future__ import annotations

import json
import os
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple

import yaml
from jsonschema import Draft202012Validator

from .element import (DEFAULT_LABEL_TAGS, AttributeMatch, LabelMatch, Strategy,
                      StructuralMatch, TargetDescriptor)
from .exceptions import ConfigError

PACKAGE_DIR = os.path.dirname(os.path.abspath(__file__))
DEFAULT_OBJECT_MAP = os.path.join(PACKAGE_DIR, "maps", "linkedin.yaml")
DEFAULT_SCHEMA = os.path.join(PACKAGE_DIR, "schemas", "objectmap.schema.json")

REQUIRED_TARGETS = (
    "username_field",
    "password_field",
    "login_submit",
    "home_link",
    "composer_trigger",
    "composer_trigger_fallback",
    "editor",
    "editor_fallback",
    "post_submit",
    "submit_error",
    "success_indicator",
)

DEFAULT_USER_AGENT = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36"
)

DEFAULT_LAUNCH_ARGS: Tuple[str, ...] = (
    "--no-sandbox",
    "--disable-setuid-sandbox",
    "--disable-blink-features=AutomationControlled",
    "--start-maximized",
)


@dataclass(frozen=True)
class BrowserConfig:
    """Fixed launch configuration of the single browser session."""
    headless: bool = False
    slow_mo_ms: float = 50.0
    navigation_timeout: float = 60.0
    default_timeout: float = 60.0
    viewport: Optional[Tuple[int, int]] = None
    user_agent: str = DEFAULT_USER_AGENT
    extra_headers: Dict[str, str] = field(default_factory=lambda: {"Accept-Language": "en-US,en;q=0.9"})
    args: Tuple[str, ...] = DEFAULT_LAUNCH_ARGS
    artifacts_dir: str = "artifacts"


@dataclass(frozen=True)
class SiteConfig:
    """Where the workflow goes and which markers it trusts."""
    login_url: str
    feed_url: str
    auth_surface_markers: Tuple[str, ...] = ("/login",)
    challenge_markers: Tuple[str, ...] = ("/challenge", "/checkpoint")
    composer_hints: Tuple[str, ...] = ("start", "post", "share")
    submit_labels: Tuple[str, ...] = ("post",)
    submit_exclude: Tuple[str, ...] = ("repost",)
    confirmation_texts: Tuple[str, ...] = ("post",)
    select_all_keys: str = "Control+A"
    delete_key: str = "Backspace"
    editor_type_delay_ms: int = 50
    credential_type_delay_ms: int = 100
    scroll_offset: int = 300


def _parse_browser(d: Dict[str, Any]) -> BrowserConfig:
    viewport = d.get("viewport")
    defaults = BrowserConfig()
    return BrowserConfig(
        headless=bool(d.get("headless", defaults.headless)),
        slow_mo_ms=float(d.get("slow_mo_ms", defaults.slow_mo_ms)),
        navigation_timeout=float(d.get("navigation_timeout", defaults.navigation_timeout)),
        default_timeout=float(d.get("default_timeout", defaults.default_timeout)),
        viewport=(int(viewport["width"]), int(viewport["height"])) if viewport else None,
        user_agent=str(d.get("user_agent", defaults.user_agent)),
        extra_headers=dict(d.get("extra_headers", defaults.extra_headers)),
        args=tuple(d.get("args", defaults.args)),
        artifacts_dir=str(d.get("artifacts_dir", defaults.artifacts_dir)),
    )


def _parse_site(d: Dict[str, Any]) -> SiteConfig:
    kwargs: Dict[str, Any] = {}
    for key, value in d.items():
        kwargs[key] = tuple(value) if isinstance(value, list) else value
    return SiteConfig(**kwargs)


def _parse_strategy(spec: Dict[str, Any]) -> Strategy:
    kind = spec["kind"]
    if kind == "attribute":
        return AttributeMatch(selector=spec["selector"])
    if kind == "label":
        return LabelMatch(
            labels=tuple(spec["labels"]),
            tags=tuple(spec.get("tags", DEFAULT_LABEL_TAGS)),
        )
    if kind == "structural":
        return StructuralMatch(selector=spec["selector"], hints=tuple(spec.get("hints", ())))
    raise ConfigError(f"Unknown strategy kind: {kind}")


class Repository:
    """
    Loads an object map YAML. Provides browser config, site config and targets.
    """

    def __init__(self, path: Optional[str] = None, schema_path: Optional[str] = None):
        self.path = os.path.abspath(path or DEFAULT_OBJECT_MAP)
        self.schema_path = os.path.abspath(schema_path or DEFAULT_SCHEMA)
        self._raw: Dict[str, Any] = self._load_yaml(self.path)
        self._validate(self._raw)

        self._browser = _parse_browser(self._raw.get("browser") or {})
        self._site = _parse_site(self._raw["site"])
        self._targets: Dict[str, TargetDescriptor] = {
            name: TargetDescriptor(name, tuple(_parse_strategy(s) for s in specs))
            for name, specs in self._raw["targets"].items()
        }

        missing = [name for name in REQUIRED_TARGETS if name not in self._targets]
        if missing:
            raise ConfigError(f"Object map is missing required targets: {missing}")

    @staticmethod
    def _load_yaml(path: str) -> Dict[str, Any]:
        if not os.path.exists(path):
            raise ConfigError(f"Object map YAML not found: {path}")
        try:
            with open(path, "r", encoding="utf-8") as f:
                data = yaml.safe_load(f)
        except yaml.YAMLError as e:
            raise ConfigError(f"Invalid YAML: {e}") from e
        if not isinstance(data, dict):
            raise ConfigError("Object map YAML must be a mapping at root.")
        return data

    def _validate(self, data: Dict[str, Any]) -> None:
        try:
            with open(self.schema_path, "r", encoding="utf-8") as f:
                schema = json.load(f)
        except (OSError, ValueError) as e:
            raise ConfigError(f"Cannot load object map schema {self.schema_path}: {e}") from e

        validator = Draft202012Validator(schema)
        errors = sorted(validator.iter_errors(data), key=lambda e: [str(p) for p in e.path])
        if errors:
            lines = ["Object map schema validation failed:"]
            for e in errors:
                lines.append(f"- {list(e.path)}: {e.message}")
            raise ConfigError("\n".join(lines))

    @property
    def browser(self) -> BrowserConfig:
        return self._browser

    @property
    def site(self) -> SiteConfig:
        return self._site

    def target(self, name: str) -> TargetDescriptor:
        if name not in self._targets:
            raise ConfigError(f"Unknown target: {name}")
        return self._targets[name]

    def list_targets(self) -> List[str]:
        return sorted(self._targets.keys())
