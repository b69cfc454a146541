# postauto/exceptions.py
"""
@file exceptions.py
@brief Exception hierarchy for the publication engine.
"""

from __future__ import annotations

import traceback
from dataclasses import dataclass
from typing import Any, Dict, List, Optional


class PostAutoError(Exception):
    """Base exception for the engine."""

    # Errors that a blind retry cannot fix set this to False.
    retryable: bool = True


class ConfigError(PostAutoError):
    """Raised when the YAML object map or timing configuration is invalid."""

    retryable = False


class TimeoutError(PostAutoError):
    """
    Raised when a wait or a step runs out of time.

    Preserves the last exception seen before the deadline so the failure
    report points at the real cause.

    Attributes:
        original_exception: The last exception raised before the deadline
        description: What was being waited for
        timeout: The timeout value in seconds
        attempt_count: Number of polls or attempts made
        elapsed_time: Actual elapsed time in seconds
        stage: Workflow stage the wait belonged to
    """

    def __init__(self, message: str):
        super().__init__(message)
        self.original_exception: Optional[BaseException] = None
        self.description: Optional[str] = None
        self.timeout: Optional[float] = None
        self.attempt_count: Optional[int] = None
        self.elapsed_time: Optional[float] = None
        self.stage: Optional[str] = None

    def __str__(self) -> str:
        base_msg = super().__str__()

        details = []
        if self.original_exception is not None:
            details.append(f"Original exception: {type(self.original_exception).__name__}")
        if self.attempt_count is not None:
            details.append(f"Attempts: {self.attempt_count}")
        if self.elapsed_time is not None:
            details.append(f"Elapsed: {self.elapsed_time:.2f}s")
        if self.stage is not None:
            details.append(f"Stage: {self.stage}")

        if details:
            return f"{base_msg} [{', '.join(details)}]"
        return base_msg

    def get_root_cause(self) -> Optional[BaseException]:
        """
        Get the root cause exception by traversing the chain.

        @return The deepest original_exception in the chain, or None
        """
        current = self.original_exception
        while current is not None:
            nested = getattr(current, "original_exception", None)
            if nested is None:
                nested = getattr(current, "last_error", None)
            if nested is None:
                return current
            current = nested
        return None

    def get_traceback_str(self) -> str:
        """Formatted traceback of the original exception, or empty string."""
        if self.original_exception is None:
            return ""
        return "".join(traceback.format_exception(
            type(self.original_exception),
            self.original_exception,
            self.original_exception.__traceback__,
        ))


@dataclass
class LocatorAttempt:
    """Records a single strategy attempt for debugging."""
    kind: str
    locator: Dict[str, Any]
    error: Optional[str] = None


class ElementNotFoundError(PostAutoError):
    """
    Raised by a step when a logical target could not be resolved before
    its deadline. The locator itself never raises this; it returns None.
    """

    def __init__(
        self,
        target_name: str,
        attempts: List[LocatorAttempt],
        timeout: float,
        polls: int = 0,
    ):
        self.target_name = target_name
        self.attempts = attempts
        self.timeout = timeout
        self.polls = polls
        super().__init__(self.__str__())

    def __str__(self) -> str:
        lines = [
            f"ElementNotFoundError: target='{self.target_name}' "
            f"timeout={self.timeout}s polls={self.polls}",
        ]
        if self.attempts:
            lines.append("Attempts:")
            for i, a in enumerate(self.attempts, start=1):
                lines.append(f"  {i}. {a.kind}: {a.locator} err={a.error}")
        return "\n".join(lines)


class NavigationError(PostAutoError):
    """Raised when a page transition did not reach the expected surface."""

    def __init__(self, url: str, surface: str, details: Optional[str] = None):
        self.url = url
        self.surface = surface
        self.details = details
        msg = f"NavigationError: surface='{surface}' url='{url}'"
        if details:
            msg += f" details='{details}'"
        super().__init__(msg)


class AuthenticationIncompleteError(PostAutoError):
    """
    Raised when credentials were submitted but the site is still showing
    the sign-in form or asks for extra verification. Resubmitting the same
    credentials will not resolve either case.
    """

    retryable = False

    AUTH_SURFACE = "auth_surface"
    CHALLENGE = "challenge"

    def __init__(self, reason: str, url: str):
        self.reason = reason
        self.url = url
        if reason == self.CHALLENGE:
            text = "additional verification required"
        else:
            text = "still on the sign-in surface"
        super().__init__(f"AuthenticationIncomplete: {text} (url='{url}')")


class ActionError(PostAutoError):
    """
    Raised when a UI action fails.

    Contains information about the action, target element,
    and the underlying cause.
    """

    def __init__(
        self,
        action: str,
        target_name: Optional[str] = None,
        details: Optional[str] = None,
        cause: Optional[BaseException] = None,
    ):
        self.action = action
        self.target_name = target_name
        self.details = details
        self.cause = cause
        super().__init__(self.__str__())

    def __str__(self) -> str:
        base = f"ActionError: action='{self.action}'"
        if self.target_name:
            base += f" target='{self.target_name}'"
        if self.details:
            base += f" details='{self.details}'"
        if self.cause:
            base += f" cause='{type(self.cause).__name__}: {self.cause}'"
        return base


class TerminalFailureError(PostAutoError):
    """
    Raised once a retry policy has used up all of its attempts.

    Carries the last underlying error; there is no silent fallback.
    """

    retryable = False

    def __init__(self, description: str, attempts: int, last_error: BaseException):
        self.description = description
        self.attempts = attempts
        self.last_error = last_error
        super().__init__(
            f"Failed {description} after {attempts} attempts. "
            f"Last error: {type(last_error).__name__}: {last_error}"
        )

    def get_root_cause(self) -> BaseException:
        """Unwrap nested terminal failures down to the first real error."""
        current: BaseException = self.last_error
        while isinstance(current, TerminalFailureError):
            current = current.last_error
        return current
