# postauto/waits.py
"""
@file waits.py
@brief The single "poll until predicate or deadline" primitive and the waits built on it.

Every wait in the engine suspends through asyncio.sleep, so the event loop is
never blocked between polls.
"""

from __future__ import annotations

import asyncio
import time
from dataclasses import dataclass
from typing import Awaitable, Callable, Generic, Optional, TypeVar

from .actionlogger import ACTION_LOGGER
from .exceptions import TimeoutError

T = TypeVar("T")


def _now() -> float:
    """Monotonic time source for deterministic timeout calculations."""
    return time.monotonic()


@dataclass
class PollResult(Generic[T]):
    """Result of a bounded poll. value is None when the deadline was reached."""
    value: Optional[T]
    polls: int
    elapsed: float
    last_exception: Optional[BaseException] = None

    @property
    def found(self) -> bool:
        return self.value is not None


def _set_timeout_metadata(
    error: TimeoutError,
    *,
    description: str,
    timeout: float,
    attempt_count: int,
    elapsed: float,
    stage: Optional[str],
) -> None:
    error.description = description
    error.timeout = timeout
    error.attempt_count = attempt_count
    error.elapsed_time = elapsed
    error.stage = stage


async def settle(seconds: float) -> None:
    """Fixed settle delay after a UI action."""
    if seconds > 0:
        await asyncio.sleep(seconds)


async def poll_until(
    predicate: Callable[[], Awaitable[Optional[T]]],
    timeout: float,
    interval: float = 0.2,
    *,
    max_polls: Optional[int] = None,
    between: Optional[Callable[[int], Awaitable[None]]] = None,
    description: str = "condition",
    stage: Optional[str] = None,
) -> PollResult[T]:
    """
    Run predicate until it returns a truthy value, the deadline passes or
    max_polls is used up. Always polls at least once.

    Exceptions from predicate count as a miss and are kept on the result.
    between(poll_number) runs after each miss, before the interval sleep.
    """
    start_time = _now()
    last_exception: Optional[BaseException] = None
    polls = 0

    ACTION_LOGGER.log(
        action="wait",
        event="wait_start",
        stage=stage,
        status="info",
        metadata={"description": description, "timeout_s": timeout, "interval_s": interval},
    )

    while True:
        polls += 1
        try:
            value = await predicate()
            if value:
                elapsed = _now() - start_time
                ACTION_LOGGER.log(
                    action="wait",
                    event="wait_success",
                    stage=stage,
                    status="success",
                    attempt=polls,
                    metadata={"description": description, "elapsed_s": round(elapsed, 3)},
                )
                return PollResult(value=value, polls=polls, elapsed=elapsed)
        except Exception as e:
            last_exception = e

        if max_polls is not None and polls >= max_polls:
            break
        time_left = timeout - (_now() - start_time)
        if time_left <= 0:
            break

        if between is not None:
            await between(polls)
            time_left = timeout - (_now() - start_time)
            if time_left <= 0:
                break
        await asyncio.sleep(min(interval, time_left))

    elapsed = _now() - start_time
    ACTION_LOGGER.log(
        action="wait",
        event="wait_timeout",
        stage=stage,
        status="error",
        attempt=polls,
        metadata={"description": description, "timeout_s": timeout, "elapsed_s": round(elapsed, 3)},
    )
    return PollResult(value=None, polls=polls, elapsed=elapsed, last_exception=last_exception)


async def wait_until(
    predicate: Callable[[], Awaitable[Optional[T]]],
    timeout: float,
    interval: float = 0.2,
    *,
    max_polls: Optional[int] = None,
    description: str = "condition",
    stage: Optional[str] = None,
) -> T:
    """
    Like poll_until, but raises TimeoutError instead of returning an empty result.
    """
    result = await poll_until(
        predicate,
        timeout,
        interval,
        max_polls=max_polls,
        description=description,
        stage=stage,
    )
    if result.found:
        return result.value

    last_exception = result.last_exception
    if last_exception is not None:
        error = TimeoutError(
            f"Timed out waiting for {description} after {timeout}s: "
            f"{type(last_exception).__name__}: {last_exception}"
        )
    else:
        error = TimeoutError(
            f"Timed out waiting for {description} after {timeout}s "
            f"(condition kept returning falsy)"
        )
    error.original_exception = last_exception
    _set_timeout_metadata(
        error,
        description=description,
        timeout=timeout,
        attempt_count=result.polls,
        elapsed=result.elapsed,
        stage=stage,
    )
    raise error
