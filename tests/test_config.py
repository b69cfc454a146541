# tests/test_config.py
"""
Tests for timing presets and run-scope configuration.
"""

import pytest

from postauto.config import (STEP_FIELDS, STEP_SLACK, TimeConfig, TimeoutSettings, available_presets,
                             timeout_overrides)
from postauto.exceptions import ConfigError


class TestTimeConfig:

    def test_defaults_follow_the_poster(self):
        cfg = TimeConfig()
        assert cfg.navigation.timeout == 45.0
        assert cfg.navigation.attempts == 3
        assert cfg.navigation.interval == 3.0
        assert cfg.composer_lookup.attempts == 3
        assert cfg.editor_lookup.attempts == 10
        assert cfg.post_button_lookup.attempts == 15
        assert cfg.after_submit_pause == 5.0

    @pytest.mark.parametrize("preset", sorted(available_presets()))
    def test_every_preset_builds(self, preset):
        cfg = TimeConfig.build_from(preset=preset)
        assert cfg.settings("step_inject_content").timeout > 0

    def test_unknown_preset(self):
        with pytest.raises(ConfigError):
            TimeConfig.build_from(preset="ludicrous")

    def test_overrides_keep_other_fields(self):
        cfg = TimeConfig.build_from(preset="default", overrides={"editor_lookup": {"timeout": 30}})
        assert cfg.editor_lookup.timeout == 30
        assert cfg.editor_lookup.interval == 1.0
        assert cfg.editor_lookup.retry_count == 10

    def test_unknown_override(self):
        with pytest.raises(ConfigError):
            TimeConfig.build_from(overrides={"warp_speed": 1})

    def test_precedence_override_then_run_then_default(self):
        run_cfg = TimeConfig.build_from(preset="slow")
        TimeConfig.install_run_config(run_cfg)
        try:
            assert TimeConfig.current() is run_cfg
            with TimeConfig.override(after_login_pause=0) as cfg:
                assert TimeConfig.current() is cfg
                assert cfg.after_login_pause == 0.0
                assert cfg.feed_settle_pause == run_cfg.feed_settle_pause
            assert TimeConfig.current() is run_cfg
        finally:
            TimeConfig.clear_run_config()
        assert TimeConfig.current() is TimeConfig.default()

    @pytest.mark.parametrize("preset", sorted(available_presets()))
    def test_preset_step_budgets_cover_their_inner_waits(self, preset):
        cfg = TimeConfig(preset)
        for name in STEP_FIELDS:
            assert cfg.settings(name).timeout >= cfg.minimum_step_timeout(name), (preset, name)

    def test_sign_in_budget_covers_every_navigation_attempt(self):
        cfg = TimeConfig()
        nav = cfg.navigation
        needed = 3 * (nav.timeout + cfg.ready_state.timeout) + 2 * nav.interval
        assert cfg.minimum_step_timeout("step_navigate_auth") == needed
        assert cfg.step_navigate_auth.timeout >= needed

    @pytest.mark.parametrize("preset", sorted(available_presets()))
    def test_timeout_flag_raises_step_budgets(self, preset):
        cfg = TimeConfig.build_from(preset=preset, overrides=timeout_overrides(200.0))
        assert cfg.navigation.timeout == 200.0
        for name in STEP_FIELDS:
            assert cfg.settings(name).timeout >= cfg.minimum_step_timeout(name), name
        floor = cfg.minimum_step_timeout("step_navigate_auth")
        assert cfg.step_navigate_auth.timeout == floor + STEP_SLACK

    def test_explicit_step_override_is_kept_when_large_enough(self):
        cfg = TimeConfig.build_from(overrides={"step_verify_submission": {"timeout": 120}})
        assert cfg.step_verify_submission.timeout == 120.0

    def test_unknown_step_budget(self):
        with pytest.raises(ConfigError):
            TimeConfig().minimum_step_timeout("navigation")

    def test_clone_is_independent(self):
        cfg = TimeConfig()
        clone = cfg.clone()
        clone.navigation = clone.navigation.with_overrides(timeout=1)
        assert cfg.navigation.timeout == 45.0


class TestTimeoutSettings:

    def test_attempts_at_least_one(self):
        assert TimeoutSettings(timeout=1, interval=0.1).attempts == 1
        assert TimeoutSettings(timeout=1, interval=0.1, retry_count=0).attempts == 1
        assert TimeoutSettings(timeout=1, interval=0.1, retry_count=4).attempts == 4

    def test_timeout_overrides_scale_lookups(self):
        overrides = timeout_overrides(3.0)
        assert overrides["navigation"] == {"timeout": 3.0}
        assert overrides["field_lookup"] == {"timeout": 1.0}
