# postauto/timings.py
"""
@file timings.py
@brief Time configuration presets and defaults for the publication workflow.
"""

from __future__ import annotations
from copy import deepcopy
from typing import Any, Dict


# retry_count means "attempts" for navigation and step budgets,
# and "poll cycles" for element lookups.
TIMEOUT_FIELDS: Dict[str, Dict[str, Any]] = {
    "navigation": {"timeout": 45.0, "interval": 3.0, "retry_count": 3},
    "ready_state": {"timeout": 10.0, "interval": 0.2},
    "login_navigation": {"timeout": 45.0, "interval": 0.5},
    "field_lookup": {"timeout": 5.0, "interval": 0.25},
    "submit_lookup": {"timeout": 2.0, "interval": 0.25},
    "home_link_lookup": {"timeout": 5.0, "interval": 0.5},
    "composer_lookup": {"timeout": 15.0, "interval": 2.0, "retry_count": 3},
    "composer_fallback_lookup": {"timeout": 1.0, "interval": 0.25, "retry_count": 1},
    "editor_lookup": {"timeout": 12.0, "interval": 1.0, "retry_count": 10},
    "post_button_lookup": {"timeout": 18.0, "interval": 1.0, "retry_count": 15},
    "error_lookup": {"timeout": 0.5, "interval": 0.25, "retry_count": 1},
    "success_indicator": {"timeout": 5.0, "interval": 0.5},
    "step_launch": {"timeout": 30.0, "interval": 1.0, "retry_count": 1},
    "step_navigate_auth": {"timeout": 200.0, "interval": 0.0, "retry_count": 1},
    "step_submit_credentials": {"timeout": 90.0, "interval": 2.0, "retry_count": 1},
    "step_confirm_auth": {"timeout": 20.0, "interval": 0.0, "retry_count": 1},
    "step_navigate_target": {"timeout": 120.0, "interval": 3.0, "retry_count": 2},
    "step_open_composer": {"timeout": 60.0, "interval": 2.0, "retry_count": 2},
    "step_inject_content": {"timeout": 300.0, "interval": 2.0, "retry_count": 2},
    "step_submit_content": {"timeout": 60.0, "interval": 0.0, "retry_count": 1},
    "step_verify_submission": {"timeout": 30.0, "interval": 0.0, "retry_count": 1},
    "session_close": {"timeout": 10.0, "interval": 0.2},
}

PAUSE_FIELDS: Dict[str, float] = {
    "after_login_pause": 3.0,
    "feed_settle_pause": 5.0,
    "composer_open_pause": 2.0,
    "editor_focus_pause": 1.0,
    "after_type_pause": 2.0,
    "after_submit_pause": 5.0,
}

PRESET_OVERRIDES: Dict[str, Dict[str, Any]] = {
    "fast": {
        "navigation": {"timeout": 30.0, "interval": 2.0, "retry_count": 2},
        "ready_state": {"timeout": 6.0, "interval": 0.1},
        "field_lookup": {"timeout": 3.0, "interval": 0.1},
        "composer_lookup": {"timeout": 8.0, "interval": 1.0, "retry_count": 3},
        "editor_lookup": {"timeout": 6.0, "interval": 0.5, "retry_count": 10},
        "post_button_lookup": {"timeout": 9.0, "interval": 0.5, "retry_count": 15},
        "success_indicator": {"timeout": 3.0, "interval": 0.25},
        "after_login_pause": 1.5,
        "feed_settle_pause": 2.5,
        "composer_open_pause": 1.0,
        "editor_focus_pause": 0.5,
        "after_type_pause": 1.0,
        "after_submit_pause": 2.5,
    },
    "slow": {
        "navigation": {"timeout": 90.0, "interval": 5.0, "retry_count": 4},
        "ready_state": {"timeout": 20.0, "interval": 0.3},
        "login_navigation": {"timeout": 90.0, "interval": 0.5},
        "field_lookup": {"timeout": 10.0, "interval": 0.3},
        "composer_lookup": {"timeout": 30.0, "interval": 3.0, "retry_count": 4},
        "editor_lookup": {"timeout": 25.0, "interval": 1.5, "retry_count": 15},
        "post_button_lookup": {"timeout": 30.0, "interval": 1.5, "retry_count": 20},
        "success_indicator": {"timeout": 10.0, "interval": 0.5},
        "step_navigate_auth": {"timeout": 500.0},
        "step_submit_credentials": {"timeout": 150.0},
        "step_navigate_target": {"timeout": 240.0},
        "step_open_composer": {"timeout": 90.0},
        "after_login_pause": 5.0,
        "feed_settle_pause": 8.0,
        "composer_open_pause": 3.0,
        "editor_focus_pause": 1.5,
        "after_type_pause": 3.0,
        "after_submit_pause": 8.0,
    },
    "ci": {
        "navigation": {"timeout": 60.0, "interval": 3.0, "retry_count": 4},
        "ready_state": {"timeout": 20.0, "interval": 0.3},
        "field_lookup": {"timeout": 10.0, "interval": 0.3},
        "composer_lookup": {"timeout": 20.0, "interval": 2.0, "retry_count": 4},
        "editor_lookup": {"timeout": 20.0, "interval": 1.0, "retry_count": 15},
        "post_button_lookup": {"timeout": 25.0, "interval": 1.0, "retry_count": 20},
        "step_navigate_auth": {"timeout": 360.0},
        "step_navigate_target": {"timeout": 180.0},
        "after_login_pause": 4.0,
        "feed_settle_pause": 6.0,
    },
}


def list_presets() -> Dict[str, Dict[str, Any]]:
    return {"default": {}, **PRESET_OVERRIDES}


def build_preset_values(preset: str) -> Dict[str, Any]:
    preset_key = (preset or "default").lower()
    values: Dict[str, Any] = {}
    values.update(deepcopy(TIMEOUT_FIELDS))
    values.update(deepcopy(PAUSE_FIELDS))

    if preset_key == "default":
        return values

    overrides = PRESET_OVERRIDES.get(preset_key)
    if overrides is None:
        raise ValueError(f"Unknown timing preset: {preset}")

    for key, value in overrides.items():
        if key in TIMEOUT_FIELDS:
            base = deepcopy(values[key])
            base.update(value)
            values[key] = base
        else:
            values[key] = value

    return values
