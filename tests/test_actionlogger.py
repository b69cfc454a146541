# tests/test_actionlogger.py
"""
Tests for the structured action logger.
"""

import json

import pytest

from postauto.actionlogger import ActionLogger


@pytest.fixture
def jsonl_logger(tmp_path):
    logger = ActionLogger()
    path = tmp_path / "actions.jsonl"
    logger.configure(console=False, file_path=str(path), format="jsonl", run_id="run-1")
    logger.enable()
    return logger, path


def read_events(path):
    return [json.loads(line) for line in path.read_text(encoding="utf-8").splitlines()]


class TestActionLogger:

    def test_disabled_logger_writes_nothing(self, tmp_path):
        logger = ActionLogger()
        path = tmp_path / "actions.jsonl"
        logger.configure(console=False, file_path=str(path))
        logger.log(action="step", event="step_attempt")
        assert not path.exists()

    def test_secrets_redacted_and_text_masked(self, jsonl_logger):
        logger, path = jsonl_logger
        logger.log(
            action="type",
            target="password_field",
            metadata={"password": "hunter2", "identity": "me@example.com", "text": "A long post body that goes on"},
        )
        event = read_events(path)[0]
        assert event["metadata"]["password"] == "***"
        assert event["metadata"]["identity"] == "***"
        assert event["metadata"]["text"] == "A long pos..."
        assert "hunter2" not in path.read_text(encoding="utf-8")

    def test_run_id_and_event_fields(self, jsonl_logger):
        logger, path = jsonl_logger
        logger.set_run_id("run-2")
        logger.log(action="step", event="step_finish", stage="OpenComposer", status="success", attempt=2)
        event = read_events(path)[0]
        assert event["run_id"] == "run-2"
        assert event["event"] == "step_finish"
        assert event["stage"] == "OpenComposer"
        assert event["attempt"] == 2

    def test_exception_details(self, jsonl_logger):
        logger, path = jsonl_logger
        try:
            raise RuntimeError("boom")
        except RuntimeError as e:
            logger.log(action="step", status="error", exception=e)
        exc = read_events(path)[0]["exception"]
        assert exc["type"] == "RuntimeError"
        assert exc["message"] == "boom"
        assert "Traceback" in exc["traceback"]

    def test_line_format(self, tmp_path, capsys):
        logger = ActionLogger()
        logger.configure(console=True, format="line")
        logger.enable()
        logger.log(action="locate", event="locate", target="editor", stage="InjectContent")
        out = capsys.readouterr().out
        assert "locate" in out
        assert "target='editor'" in out
        assert "stage=InjectContent" in out

    def test_invalid_format(self):
        with pytest.raises(ValueError):
            ActionLogger().configure(format="xml")
