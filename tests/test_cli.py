# tests/test_cli.py
"""
Tests for CLI commands and exit codes.
"""

import pytest

from postauto import cli
from postauto.workflow import Outcome


class FakeRunner:
    """Stands in for Runner so no browser is launched."""

    outcome = None
    calls = []

    def __init__(self, repo, browser_config=None, **kwargs):
        self.repo = repo
        self.browser_config = browser_config
        self.last_report = {"status": "unknown", "duration_sec": 0.0, "steps": []}

    async def publish_with_retry(self, content, credentials, **kwargs):
        FakeRunner.calls.append({
            "content": content,
            "credentials": credentials,
            "headless": self.browser_config.headless,
            **kwargs,
        })
        return FakeRunner.outcome


@pytest.fixture
def fake_runner(monkeypatch):
    FakeRunner.calls = []
    FakeRunner.outcome = Outcome.succeeded([], [])
    monkeypatch.setattr(cli, "Runner", FakeRunner)
    monkeypatch.setenv("LINKEDIN_EMAIL", "me@example.com")
    monkeypatch.setenv("LINKEDIN_PASSWORD", "hunter2")
    return FakeRunner


class TestPublishCommand:

    def test_success_exit_zero(self, fake_runner):
        assert cli.main(["publish", "--content", "Hello", "--headless", "--fast"]) == 0
        call = fake_runner.calls[0]
        assert call["content"] == "Hello"
        assert call["headless"] is True
        assert call["timing_preset"] == "fast"
        assert call["credentials"].identity == "me@example.com"

    def test_failed_outcome_exit_two_with_stage_on_stderr(self, fake_runner, capsys):
        from postauto.exceptions import AuthenticationIncompleteError

        fake_runner.outcome = Outcome.failed(
            "ConfirmAuthenticated",
            AuthenticationIncompleteError("challenge", "https://www.linkedin.com/checkpoint/x"),
            [],
            [],
        )
        assert cli.main(["publish", "--content", "Hello"]) == 2
        err = capsys.readouterr().err
        assert "Failed at ConfirmAuthenticated: AuthenticationIncompleteError" in err

    def test_content_file(self, fake_runner, tmp_path):
        path = tmp_path / "post.txt"
        path.write_text("From file\nwith two lines", encoding="utf-8")
        assert cli.main(["publish", "--content-file", str(path)]) == 0
        assert fake_runner.calls[0]["content"] == "From file\nwith two lines"

    def test_timeout_override(self, fake_runner):
        assert cli.main(["publish", "--content", "x", "--timeout", "90"]) == 0
        overrides = fake_runner.calls[0]["timing_overrides"]
        assert overrides["navigation"] == {"timeout": 90.0}
        assert overrides["composer_lookup"] == {"timeout": 30.0}

    def test_missing_credentials_exit_one(self, fake_runner, monkeypatch, capsys):
        monkeypatch.delenv("LINKEDIN_PASSWORD")
        assert cli.main(["publish", "--content", "Hello"]) == 1
        assert "LINKEDIN_PASSWORD" in capsys.readouterr().err
        assert fake_runner.calls == []

    def test_custom_credential_env_names(self, fake_runner, monkeypatch):
        monkeypatch.setenv("BOT_USER", "bot@example.com")
        monkeypatch.setenv("BOT_PASS", "s3cret")
        assert cli.main(["publish", "-c", "Hi", "--identity-env", "BOT_USER", "--secret-env", "BOT_PASS"]) == 0
        assert fake_runner.calls[0]["credentials"].identity == "bot@example.com"

    def test_bad_object_map_exit_one(self, fake_runner, tmp_path):
        assert cli.main(["publish", "-c", "Hi", "--elements", str(tmp_path / "missing.yaml")]) == 1

    def test_usage_error(self, fake_runner):
        with pytest.raises(SystemExit) as exc_info:
            cli.main(["publish", "--content", "a", "--content-file", "b"])
        assert exc_info.value.code != 0


class TestOtherCommands:

    def test_validate_bundled_map(self, capsys):
        assert cli.main(["validate"]) == 0
        assert "Object map is valid" in capsys.readouterr().out

    def test_validate_invalid_map(self, tmp_path):
        path = tmp_path / "bad.yaml"
        path.write_text("site: {}\n", encoding="utf-8")
        assert cli.main(["validate", "--elements", str(path)]) == 2

    def test_list_targets(self, capsys):
        assert cli.main(["list-targets"]) == 0
        out = capsys.readouterr().out
        assert "composer_trigger_fallback" in out
        assert "0. attribute:" in out


class TestActionLoggerEnv:

    def test_disabled_by_default(self, monkeypatch):
        from postauto.actionlogger import ACTION_LOGGER

        monkeypatch.delenv("POSTAUTO_ACTION_LOGGING", raising=False)
        cli._configure_action_logger_from_env()
        assert not ACTION_LOGGER.is_enabled()

    def test_enabled_from_env(self, monkeypatch, tmp_path):
        from postauto.actionlogger import ACTION_LOGGER

        monkeypatch.setenv("POSTAUTO_ACTION_LOGGING", "1")
        monkeypatch.setenv("POSTAUTO_ACTION_LOG_FILE", str(tmp_path / "actions.log"))
        monkeypatch.setenv("POSTAUTO_ACTION_LOG_FORMAT", "jsonl")
        cli._configure_action_logger_from_env()
        assert ACTION_LOGGER.is_enabled()
