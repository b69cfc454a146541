# tests/test_steps.py
"""
Tests for the step executor.
"""

import asyncio
import time

from postauto.config import TimeoutSettings
from postauto.exceptions import AuthenticationIncompleteError, TerminalFailureError, TimeoutError
from postauto.steps import Step, StepExecutor


def run(coro):
    return asyncio.run(coro)


class TestStepExecutor:
    """Tests for StepExecutor.run."""

    def test_success_passes_context(self):
        seen = []

        async def action(ctx):
            seen.append(ctx)

        outcome = run(StepExecutor().run(Step("Launch", action), "ctx"))
        assert outcome.ok
        assert outcome.attempts == 1
        assert seen == ["ctx"]

    def test_retries_inside_the_step(self):
        calls = {"n": 0}

        async def action(ctx):
            calls["n"] += 1
            if calls["n"] < 2:
                raise RuntimeError("not yet")

        outcome = run(StepExecutor().run(Step("OpenComposer", action, max_attempts=2), None))
        assert outcome.ok
        assert outcome.attempts == 2

    def test_exhausted_attempts_fail_with_terminal_failure(self):
        async def action(ctx):
            raise RuntimeError("boom")

        outcome = run(StepExecutor().run(Step("InjectContent", action, max_attempts=2), None))
        assert not outcome.ok
        assert outcome.attempts == 2
        assert isinstance(outcome.error, TerminalFailureError)
        assert isinstance(outcome.error.last_error, RuntimeError)

    def test_non_retryable_error_ends_step_on_first_attempt(self):
        async def action(ctx):
            raise AuthenticationIncompleteError(AuthenticationIncompleteError.AUTH_SURFACE, "https://x/login")

        outcome = run(StepExecutor().run(Step("ConfirmAuthenticated", action, max_attempts=3), None))
        assert outcome.attempts == 1
        assert isinstance(outcome.error, AuthenticationIncompleteError)

    def test_timeout_abandons_step_mid_attempt(self):
        finished = []

        async def action(ctx):
            await asyncio.sleep(5)
            finished.append(True)

        start = time.time()
        outcome = run(StepExecutor().run(Step("NavigateToAuthSurface", action, timeout=0.1, max_attempts=3), None))

        assert time.time() - start < 1.0
        assert not outcome.ok
        assert finished == []
        assert isinstance(outcome.error, TimeoutError)
        assert outcome.error.stage == "NavigateToAuthSurface"
        assert outcome.error.timeout == 0.1

    def test_timeout_covers_all_attempts_together(self):
        calls = {"n": 0}

        async def action(ctx):
            calls["n"] += 1
            await asyncio.sleep(0.06)
            raise RuntimeError("slow failure")

        outcome = run(StepExecutor().run(Step("SubmitContent", action, timeout=0.1, max_attempts=5), None))
        assert isinstance(outcome.error, TimeoutError)
        assert calls["n"] == 2

    def test_events_before_each_attempt_and_one_finish(self):
        events = []
        calls = {"n": 0}

        async def action(ctx):
            calls["n"] += 1
            if calls["n"] < 3:
                raise RuntimeError("retry me")

        executor = StepExecutor([events.append])
        run(executor.run(Step("OpenComposer", action, max_attempts=3), None))

        assert [(e.kind, e.attempt) for e in events] == [
            ("attempt", 1), ("attempt", 2), ("attempt", 3), ("finish", 3),
        ]
        assert events[-1].status == "passed"

    def test_listener_errors_do_not_change_outcome(self):
        def broken(event):
            raise RuntimeError("listener bug")

        async def action(ctx):
            return None

        outcome = run(StepExecutor([broken]).run(Step("Launch", action), None))
        assert outcome.ok

    def test_from_settings(self):
        async def action(ctx):
            return None

        step = Step.from_settings("OpenComposer", action, TimeoutSettings(timeout=60.0, interval=2.0, retry_count=2))
        assert step.timeout == 60.0
        assert step.max_attempts == 2
        assert step.delay(1) == 2.0

    def test_outcome_to_dict(self):
        async def action(ctx):
            raise RuntimeError("boom")

        outcome = run(StepExecutor().run(Step("Launch", action), None))
        data = outcome.to_dict()
        assert data["name"] == "Launch"
        assert data["status"] == "failed"
        assert "TerminalFailureError" in data["error"]
