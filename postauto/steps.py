# postauto/steps.py
"""
@file steps.py
@brief Step definitions and the executor that runs one step under its deadline and retry budget.
"""

from __future__ import annotations

import asyncio
import logging
import time
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, List, Optional, Union

from .actionlogger import ACTION_LOGGER
from .config import TimeoutSettings
from .exceptions import TimeoutError
from .retry import DelayFunction, RetryPolicy, fixed_delay

log = logging.getLogger("postauto.steps")

StepAction = Callable[[Any], Awaitable[None]]


@dataclass(frozen=True)
class Step:
    """
    A named unit of work of the publication workflow.

    ``timeout`` bounds all attempts together; None means no step deadline.
    """
    name: str
    action: StepAction
    timeout: Optional[float] = None
    max_attempts: int = 1
    delay: Union[float, DelayFunction] = 0.0

    @classmethod
    def from_settings(cls, name: str, action: StepAction, settings: TimeoutSettings) -> Step:
        """Build a step from a TimeConfig entry: timeout, interval as retry delay, retry_count as attempts."""
        return cls(
            name=name,
            action=action,
            timeout=settings.timeout,
            max_attempts=settings.attempts,
            delay=fixed_delay(settings.interval),
        )


@dataclass(frozen=True)
class StepEvent:
    """Progress notification. Carries no control-flow meaning."""
    kind: str  # "attempt" | "finish"
    step: str
    attempt: int
    status: str
    duration: Optional[float] = None
    error: Optional[BaseException] = None


@dataclass
class StepOutcome:
    name: str
    status: str  # "passed" | "failed"
    attempts: int
    duration: float
    error: Optional[BaseException] = None

    @property
    def ok(self) -> bool:
        return self.status == "passed"

    def to_dict(self) -> dict:
        data = {
            "name": self.name,
            "status": self.status,
            "attempts": self.attempts,
            "duration_sec": round(self.duration, 3),
        }
        if self.error is not None:
            data["error"] = f"{type(self.error).__name__}: {self.error}"
        return data


StepListener = Callable[[StepEvent], None]


class StepExecutor:
    """
    Runs a step's action through a RetryPolicy, abandoning it (even
    mid-attempt) once the step deadline passes. Never retries a step
    after it has failed; that is the end of the step.
    """

    def __init__(self, listeners: Optional[List[StepListener]] = None):
        self.listeners: List[StepListener] = list(listeners or [])

    def _emit(self, event: StepEvent) -> None:
        for listener in self.listeners:
            try:
                listener(event)
            except Exception:
                log.exception("Step listener failed for %s/%s", event.step, event.kind)

    async def run(self, step: Step, context: Any) -> StepOutcome:
        """
        @param step The step to run
        @param context Passed unchanged to step.action
        @return StepOutcome; failures are returned, not raised
        """
        policy = RetryPolicy(max_attempts=step.max_attempts, delay=step.delay)
        attempts = 0
        start = time.monotonic()

        def _on_attempt(attempt: int) -> None:
            nonlocal attempts
            attempts = attempt
            ACTION_LOGGER.log(
                action="step",
                event="step_attempt",
                stage=step.name,
                status="info",
                attempt=attempt,
                metadata={"max_attempts": step.max_attempts, "timeout_s": step.timeout},
            )
            self._emit(StepEvent(kind="attempt", step=step.name, attempt=attempt, status="running"))

        async def _body() -> None:
            await step.action(context)

        error: Optional[BaseException] = None
        try:
            execution = policy.execute(_body, description=f"step '{step.name}'", stage=step.name, on_attempt=_on_attempt)
            if step.timeout is None:
                await execution
            else:
                await asyncio.wait_for(execution, timeout=step.timeout)
        except asyncio.TimeoutError as e:
            error = TimeoutError(f"Step '{step.name}' exceeded its {step.timeout}s budget")
            error.description = f"step '{step.name}'"
            error.timeout = step.timeout
            error.attempt_count = attempts
            error.elapsed_time = time.monotonic() - start
            error.stage = step.name
            error.__cause__ = e
        except Exception as e:
            error = e

        duration = time.monotonic() - start
        status = "passed" if error is None else "failed"
        ACTION_LOGGER.log(
            action="step",
            event="step_finish",
            stage=step.name,
            status="success" if error is None else "error",
            attempt=attempts,
            duration_ms=duration * 1000,
            exception=error,
        )
        self._emit(StepEvent(
            kind="finish",
            step=step.name,
            attempt=attempts,
            status=status,
            duration=duration,
            error=error,
        ))
        return StepOutcome(name=step.name, status=status, attempts=attempts, duration=duration, error=error)
