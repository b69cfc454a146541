# postauto/retry.py
"""
@file retry.py
@brief Bounded retry policy with a pluggable delay between attempts.
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass
from typing import Awaitable, Callable, Optional, Tuple, TypeVar, Union

from .actionlogger import ACTION_LOGGER
from .exceptions import TerminalFailureError

T = TypeVar("T")

# Receives the number of the attempt that just failed (1-based).
DelayFunction = Callable[[int], float]


def fixed_delay(seconds: float) -> DelayFunction:
    """Same pause after every failed attempt."""
    return lambda attempt: seconds


def incremental_delay(initial: float, step: float, maximum: Optional[float] = None) -> DelayFunction:
    """initial, initial + step, initial + 2*step, ... capped at maximum."""
    def _delay(attempt: int) -> float:
        value = initial + step * (attempt - 1)
        if maximum is not None:
            value = min(value, maximum)
        return value
    return _delay


@dataclass(frozen=True)
class RetryPolicy:
    """
    Runs an async action up to max_attempts times, strictly one after another.

    A success returns immediately. Errors whose ``retryable`` attribute is
    False, and errors outside ``exceptions``, propagate at once. When the
    last attempt fails a single TerminalFailureError is raised carrying the
    last underlying error.
    """

    max_attempts: int = 3
    delay: Union[float, DelayFunction] = 0.0
    exceptions: Tuple[type, ...] = (Exception,)

    def __post_init__(self) -> None:
        if self.max_attempts < 1:
            raise ValueError(f"max_attempts must be >= 1, got {self.max_attempts}")

    def delay_for(self, attempt: int) -> float:
        if callable(self.delay):
            return max(0.0, float(self.delay(attempt)))
        return max(0.0, float(self.delay))

    async def execute(
        self,
        action: Callable[[], Awaitable[T]],
        *,
        description: str = "operation",
        stage: Optional[str] = None,
        on_attempt: Optional[Callable[[int], None]] = None,
    ) -> T:
        last_error: Optional[BaseException] = None

        for attempt in range(1, self.max_attempts + 1):
            if on_attempt is not None:
                on_attempt(attempt)
            ACTION_LOGGER.log(
                action="retry",
                event="retry_attempt",
                stage=stage,
                status="info",
                attempt=attempt,
                metadata={"description": description, "max_attempts": self.max_attempts},
            )
            try:
                return await action()
            except self.exceptions as e:
                if getattr(e, "retryable", True) is False:
                    raise
                last_error = e
                if attempt == self.max_attempts:
                    raise TerminalFailureError(description, self.max_attempts, e) from e

                pause = self.delay_for(attempt)
                ACTION_LOGGER.log(
                    action="retry",
                    event="retry_wait",
                    stage=stage,
                    status="warning",
                    attempt=attempt,
                    metadata={"description": description, "sleep_s": round(pause, 3)},
                    exception=e,
                )
                if pause > 0:
                    await asyncio.sleep(pause)

        # Unreachable: the loop either returns or raises on the last attempt.
        raise TerminalFailureError(description, self.max_attempts, last_error or RuntimeError("no attempts"))
