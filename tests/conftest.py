# tests/conftest.py
"""
Shared fixtures: fast timings, a clean action logger and the bundled object map.
"""

import pytest

from postauto.actionlogger import ACTION_LOGGER
from postauto.config import TimeConfig
from postauto.repository import Repository
from postauto.timings import PAUSE_FIELDS

STEP_BUDGET = {"timeout": 5.0, "interval": 0.0}

FAST_TIMINGS = {
    "navigation": {"timeout": 1.0, "interval": 0.01, "retry_count": 3},
    "ready_state": {"timeout": 0.5, "interval": 0.01},
    "login_navigation": {"timeout": 0.5, "interval": 0.01},
    "field_lookup": {"timeout": 0.3, "interval": 0.01},
    "submit_lookup": {"timeout": 0.3, "interval": 0.01},
    "home_link_lookup": {"timeout": 0.3, "interval": 0.01},
    "composer_lookup": {"timeout": 1.0, "interval": 0.01, "retry_count": 3},
    "composer_fallback_lookup": {"timeout": 0.1, "interval": 0.01, "retry_count": 1},
    "editor_lookup": {"timeout": 0.3, "interval": 0.01, "retry_count": 10},
    "post_button_lookup": {"timeout": 0.3, "interval": 0.01, "retry_count": 15},
    "error_lookup": {"timeout": 0.05, "interval": 0.01, "retry_count": 1},
    "success_indicator": {"timeout": 0.1, "interval": 0.01},
    "step_launch": STEP_BUDGET,
    "step_navigate_auth": STEP_BUDGET,
    "step_submit_credentials": STEP_BUDGET,
    "step_confirm_auth": STEP_BUDGET,
    "step_navigate_target": STEP_BUDGET,
    "step_open_composer": STEP_BUDGET,
    "step_inject_content": STEP_BUDGET,
    "step_submit_content": STEP_BUDGET,
    "step_verify_submission": STEP_BUDGET,
    **{name: 0.0 for name in PAUSE_FIELDS},
}


@pytest.fixture(autouse=True)
def clean_state():
    """Each test starts from default timings and a disabled action logger."""
    TimeConfig.reset_to_defaults()
    ACTION_LOGGER.disable()
    yield
    TimeConfig.reset_to_defaults()
    ACTION_LOGGER.disable()


@pytest.fixture
def fast_timings():
    with TimeConfig.override(**FAST_TIMINGS) as cfg:
        yield cfg


@pytest.fixture
def repo():
    return Repository()
