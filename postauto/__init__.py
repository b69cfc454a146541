# postauto/__init__.py
"""
postauto - resilient browser automation for publishing a text post.

This package provides:
- Repository: YAML object map loading and validation
- ElementLocator: ordered-strategy element resolution with bounded polling
- RetryPolicy / poll_until: the retry and wait primitives
- PublishWorkflow / StepExecutor: the linear publication state machine
- Runner / publish: one run end to end with a scoped browser session
"""

from postauto.exceptions import (
    PostAutoError,
    ConfigError,
    TimeoutError,
    ElementNotFoundError,
    NavigationError,
    AuthenticationIncompleteError,
    ActionError,
    TerminalFailureError,
    LocatorAttempt,
)
from postauto.config import TimeConfig
from postauto.element import AttributeMatch, LabelMatch, StructuralMatch, TargetDescriptor, TextFilter
from postauto.locator import ElementLocator
from postauto.repository import Repository, BrowserConfig, SiteConfig
from postauto.retry import RetryPolicy, fixed_delay
from postauto.waits import poll_until, wait_until
from postauto.steps import Step, StepExecutor, StepOutcome
from postauto.workflow import Credentials, Outcome, PublishWorkflow
from postauto.runner import Runner, publish

__version__ = "1.0.0"

__all__ = [
    "PostAutoError",
    "ConfigError",
    "TimeoutError",
    "ElementNotFoundError",
    "NavigationError",
    "AuthenticationIncompleteError",
    "ActionError",
    "TerminalFailureError",
    "LocatorAttempt",
    "TimeConfig",
    "AttributeMatch",
    "LabelMatch",
    "StructuralMatch",
    "TargetDescriptor",
    "TextFilter",
    "ElementLocator",
    "Repository",
    "BrowserConfig",
    "SiteConfig",
    "RetryPolicy",
    "fixed_delay",
    "poll_until",
    "wait_until",
    "Step",
    "StepExecutor",
    "StepOutcome",
    "Credentials",
    "Outcome",
    "PublishWorkflow",
    "Runner",
    "publish",
]
