# postauto/workflow.py
"""
@file workflow.py
@brief The linear publication workflow: sign in, open the composer, inject and submit content.

Steps run strictly in declaration order. The first failed step moves the
workflow to its terminal Failed state; nothing after it is invoked and
nothing is rolled back.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from .config import TimeConfig, TimeoutSettings
from .element import ResolvedElement, TargetDescriptor, TextFilter
from .exceptions import (ActionError, AuthenticationIncompleteError, NavigationError,
                         TerminalFailureError, TimeoutError)
from .interfaces import IPage, ISession
from .locator import ElementLocator
from .repository import Repository, SiteConfig
from .retry import RetryPolicy, fixed_delay
from .steps import Step, StepExecutor, StepOutcome
from .waits import settle, wait_until

log = logging.getLogger("postauto.workflow")

LAUNCH = "Launch"
NAVIGATE_TO_AUTH_SURFACE = "NavigateToAuthSurface"
SUBMIT_CREDENTIALS = "SubmitCredentials"
CONFIRM_AUTHENTICATED = "ConfirmAuthenticated"
NAVIGATE_TO_TARGET_SURFACE = "NavigateToTargetSurface"
OPEN_COMPOSER = "OpenComposer"
INJECT_CONTENT = "InjectContent"
SUBMIT_CONTENT = "SubmitContent"
VERIFY_SUBMISSION = "VerifySubmission"

STEP_ORDER = (
    LAUNCH,
    NAVIGATE_TO_AUTH_SURFACE,
    SUBMIT_CREDENTIALS,
    CONFIRM_AUTHENTICATED,
    NAVIGATE_TO_TARGET_SURFACE,
    OPEN_COMPOSER,
    INJECT_CONTENT,
    SUBMIT_CONTENT,
    VERIFY_SUBMISSION,
)

# Step name -> TimeConfig entry holding its deadline and attempt budget.
STEP_SETTINGS = {
    LAUNCH: "step_launch",
    NAVIGATE_TO_AUTH_SURFACE: "step_navigate_auth",
    SUBMIT_CREDENTIALS: "step_submit_credentials",
    CONFIRM_AUTHENTICATED: "step_confirm_auth",
    NAVIGATE_TO_TARGET_SURFACE: "step_navigate_target",
    OPEN_COMPOSER: "step_open_composer",
    INJECT_CONTENT: "step_inject_content",
    SUBMIT_CONTENT: "step_submit_content",
    VERIFY_SUBMISSION: "step_verify_submission",
}

SUCCEEDED = "Succeeded"
FAILED = "Failed"


@dataclass(frozen=True)
class Credentials:
    identity: str
    secret: str

    def __repr__(self) -> str:
        return f"Credentials(identity={self.identity!r}, secret='***')"


@dataclass
class WorkflowContext:
    """
    Mutable state threaded through the steps. Only the workflow touches it,
    and only between steps.
    """
    session: ISession
    content: str
    credentials: Credentials
    page: Optional[IPage] = None
    locator: Optional[ElementLocator] = None
    notes: List[str] = field(default_factory=list)

    def note(self, message: str) -> None:
        self.notes.append(message)

    def require_page(self) -> IPage:
        if self.page is None:
            raise ActionError("use_page", details="no page; Launch has not run")
        return self.page

    def require_locator(self) -> ElementLocator:
        if self.locator is None:
            raise ActionError("use_locator", details="no locator; Launch has not run")
        return self.locator


def root_cause(error: BaseException) -> BaseException:
    """The underlying error behind retry and timeout wrappers."""
    current = error
    while True:
        if isinstance(current, TerminalFailureError):
            current = current.last_error
        elif isinstance(current, TimeoutError) and current.original_exception is not None:
            current = current.original_exception
        else:
            return current


@dataclass
class Outcome:
    """
    Terminal result of one run: Succeeded, or Failed(stage, reason).
    """
    status: str
    stage: Optional[str] = None
    reason: Optional[str] = None
    error: Optional[BaseException] = None
    notes: List[str] = field(default_factory=list)
    steps: List[StepOutcome] = field(default_factory=list)
    artifacts: Dict[str, Any] = field(default_factory=dict)
    resolutions: List[Dict[str, Any]] = field(default_factory=list)

    @classmethod
    def succeeded(cls, notes: List[str], steps: List[StepOutcome]) -> Outcome:
        return cls(status=SUCCEEDED, notes=list(notes), steps=list(steps))

    @classmethod
    def failed(cls, stage: str, error: BaseException, notes: List[str], steps: List[StepOutcome]) -> Outcome:
        cause = root_cause(error)
        return cls(
            status=FAILED,
            stage=stage,
            reason=f"{type(cause).__name__}: {cause}",
            error=error,
            notes=list(notes),
            steps=list(steps),
        )

    @property
    def ok(self) -> bool:
        return self.status == SUCCEEDED

    @property
    def error_type(self) -> Optional[str]:
        if self.error is None:
            return None
        return type(root_cause(self.error)).__name__

    def __str__(self) -> str:
        if self.ok:
            return SUCCEEDED
        return f"Failed at {self.stage}: {self.reason}"


def _normalise(text: str) -> str:
    lines = text.replace("\r\n", "\n").replace("\r", "\n").split("\n")
    return "\n".join(line.rstrip() for line in lines).strip()


class PublishWorkflow:
    """
    Publication state machine over an object map.

    Targets and markers come from the Repository; every deadline and pause
    is read from TimeConfig.current() when the step runs.
    """

    def __init__(self, repo: Repository, executor: Optional[StepExecutor] = None):
        self.site: SiteConfig = repo.site
        self.targets: Dict[str, TargetDescriptor] = {name: repo.target(name) for name in repo.list_targets()}
        self.executor = executor or StepExecutor()

    def steps(self) -> List[Step]:
        cfg = TimeConfig.current()
        actions = {
            LAUNCH: self._launch,
            NAVIGATE_TO_AUTH_SURFACE: self._navigate_to_auth_surface,
            SUBMIT_CREDENTIALS: self._submit_credentials,
            CONFIRM_AUTHENTICATED: self._confirm_authenticated,
            NAVIGATE_TO_TARGET_SURFACE: self._navigate_to_target_surface,
            OPEN_COMPOSER: self._open_composer,
            INJECT_CONTENT: self._inject_content,
            SUBMIT_CONTENT: self._submit_content,
            VERIFY_SUBMISSION: self._verify_submission,
        }
        return [Step.from_settings(name, actions[name], cfg.settings(STEP_SETTINGS[name])) for name in STEP_ORDER]

    async def run(self, ctx: WorkflowContext) -> Outcome:
        """
        Run every step in order and stop at the first failure.

        @return Outcome; step failures never escape as exceptions
        """
        outcomes: List[StepOutcome] = []
        for step in self.steps():
            log.info("Step %s", step.name)
            step_outcome = await self.executor.run(step, ctx)
            outcomes.append(step_outcome)
            if not step_outcome.ok:
                log.error("Step %s failed: %s", step.name, step_outcome.error)
                outcome = Outcome.failed(step.name, step_outcome.error, ctx.notes, outcomes)
                break
        else:
            outcome = Outcome.succeeded(ctx.notes, outcomes)

        if ctx.locator is not None:
            outcome.resolutions = [meta.to_dict() for meta in ctx.locator.history]
        return outcome

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    async def _require(
        self,
        ctx: WorkflowContext,
        target: str,
        settings: TimeoutSettings,
        stage: str,
        **kwargs: Any,
    ) -> ResolvedElement:
        return await ctx.require_locator().require(
            self.targets[target],
            timeout=settings.timeout,
            interval=settings.interval,
            stage=stage,
            **kwargs,
        )

    async def _find(
        self,
        ctx: WorkflowContext,
        target: str,
        settings: TimeoutSettings,
        stage: str,
        **kwargs: Any,
    ) -> Optional[ResolvedElement]:
        return await ctx.require_locator().locate_with_poll(
            self.targets[target],
            timeout=settings.timeout,
            interval=settings.interval,
            stage=stage,
            **kwargs,
        )

    async def _load(self, page: IPage, url: str, surface: str) -> None:
        cfg = TimeConfig.current()
        try:
            await page.goto(url, cfg.navigation.timeout)
            await page.wait_ready(cfg.ready_state.timeout)
        except Exception as e:
            raise NavigationError(url, surface, details=f"{type(e).__name__}: {e}") from e

    # ------------------------------------------------------------------
    # Steps
    # ------------------------------------------------------------------

    async def _launch(self, ctx: WorkflowContext) -> None:
        ctx.page = await ctx.session.new_page()
        ctx.locator = ElementLocator(ctx.page)

    async def _navigate_to_auth_surface(self, ctx: WorkflowContext) -> None:
        page = ctx.require_page()
        nav = TimeConfig.current().navigation
        policy = RetryPolicy(max_attempts=nav.attempts, delay=fixed_delay(nav.interval))
        await policy.execute(
            lambda: self._load(page, self.site.login_url, "auth"),
            description="load sign-in page",
            stage=NAVIGATE_TO_AUTH_SURFACE,
        )

    async def _submit_credentials(self, ctx: WorkflowContext) -> None:
        cfg = TimeConfig.current()
        page = ctx.require_page()
        delay = self.site.credential_type_delay_ms

        username = await self._require(ctx, "username_field", cfg.field_lookup, SUBMIT_CREDENTIALS)
        await username.click()
        await username.type(ctx.credentials.identity, delay_ms=delay)

        password = await self._require(ctx, "password_field", cfg.field_lookup, SUBMIT_CREDENTIALS)
        await password.click()
        await password.type(ctx.credentials.secret, delay_ms=delay)

        submit = await self._require(ctx, "login_submit", cfg.submit_lookup, SUBMIT_CREDENTIALS)
        navigated = await page.click_expecting_navigation(submit.element, cfg.login_navigation.timeout)
        if not navigated:
            # ConfirmAuthenticated decides where we ended up.
            log.warning("No navigation after sign-in submit within %ss", cfg.login_navigation.timeout)
            ctx.note("login_navigation_timeout")

    async def _confirm_authenticated(self, ctx: WorkflowContext) -> None:
        cfg = TimeConfig.current()
        page = ctx.require_page()

        async def _left_sign_in() -> Optional[str]:
            url = page.url
            if any(marker in url for marker in self.site.challenge_markers):
                return url
            if any(marker in url for marker in self.site.auth_surface_markers):
                return None
            return url

        try:
            url = await wait_until(
                _left_sign_in,
                cfg.after_login_pause,
                cfg.ready_state.interval,
                description="leaving the sign-in surface",
                stage=CONFIRM_AUTHENTICATED,
            )
        except TimeoutError as e:
            raise AuthenticationIncompleteError(AuthenticationIncompleteError.AUTH_SURFACE, page.url) from e
        if any(marker in url for marker in self.site.challenge_markers):
            raise AuthenticationIncompleteError(AuthenticationIncompleteError.CHALLENGE, url)
        log.info("Signed in (url=%s)", url)

    async def _navigate_to_target_surface(self, ctx: WorkflowContext) -> None:
        cfg = TimeConfig.current()
        page = ctx.require_page()
        try:
            await page.goto(self.site.feed_url, cfg.navigation.timeout)
        except Exception as e:
            log.warning("Feed navigation failed (%s); trying the home link", e)
            home = await self._find(ctx, "home_link", cfg.home_link_lookup, NAVIGATE_TO_TARGET_SURFACE)
            if home is None:
                raise NavigationError(self.site.feed_url, "target", details=f"{type(e).__name__}: {e}") from e
            await home.click()
            ctx.note("target_surface_via_home_link")

        await settle(cfg.feed_settle_pause)
        url = page.url
        if any(marker in url for marker in self.site.auth_surface_markers + self.site.challenge_markers):
            raise NavigationError(url, "target", details="redirected back to sign-in")

    async def _open_composer(self, ctx: WorkflowContext) -> None:
        cfg = TimeConfig.current()
        page = ctx.require_page()
        lookup = cfg.composer_lookup

        async def _scroll(poll: int) -> None:
            await page.scroll_to(self.site.scroll_offset)

        trigger = await self._find(
            ctx,
            "composer_trigger",
            lookup,
            OPEN_COMPOSER,
            max_polls=lookup.attempts,
            text_filter=TextFilter.any_of(*self.site.composer_hints),
            between=_scroll,
        )
        if trigger is None:
            fallback = cfg.composer_fallback_lookup
            trigger = await self._require(
                ctx,
                "composer_trigger_fallback",
                fallback,
                OPEN_COMPOSER,
                max_polls=fallback.attempts,
            )

        ctx.note(f"composer:{trigger.name}:{trigger.meta.strategy.kind}#{trigger.meta.strategy_index}")
        await trigger.click()
        await settle(cfg.composer_open_pause)

    async def _inject_content(self, ctx: WorkflowContext) -> None:
        cfg = TimeConfig.current()
        page = ctx.require_page()
        lookup = cfg.editor_lookup

        editor = await self._find(ctx, "editor", lookup, INJECT_CONTENT, max_polls=lookup.attempts)
        if editor is None:
            editor = await self._require(ctx, "editor_fallback", cfg.field_lookup, INJECT_CONTENT, max_polls=1)
            ctx.note("editor:fallback")

        await editor.click()
        await settle(cfg.editor_focus_pause)
        await page.press(self.site.select_all_keys)
        await page.press(self.site.delete_key)
        await editor.type(ctx.content, delay_ms=self.site.editor_type_delay_ms)
        await settle(cfg.after_type_pause)

        actual = await editor.read_text()
        if _normalise(actual) != _normalise(ctx.content):
            raise ActionError(
                "inject_content",
                target_name=editor.name,
                details=f"editor holds {len(actual)} chars, expected {len(ctx.content)}",
            )

    async def _submit_content(self, ctx: WorkflowContext) -> None:
        cfg = TimeConfig.current()
        lookup = cfg.post_button_lookup

        submit = await self._require(
            ctx,
            "post_submit",
            lookup,
            SUBMIT_CONTENT,
            max_polls=lookup.attempts,
            require_enabled=True,
            text_filter=TextFilter(include=self.site.submit_labels, exclude=self.site.submit_exclude),
        )
        await submit.click()
        await settle(cfg.after_submit_pause)

        err = cfg.error_lookup
        error_banner = await self._find(ctx, "submit_error", err, SUBMIT_CONTENT, max_polls=err.attempts)
        if error_banner is not None:
            message = ""
            try:
                message = await error_banner.read_text()
            except Exception as e:
                log.debug("Could not read submit error text: %s", e)
            raise ActionError("submit_content", target_name="post_submit", details=message or "error state shown")

    async def _verify_submission(self, ctx: WorkflowContext) -> None:
        cfg = TimeConfig.current()
        indicator = await self._find(
            ctx,
            "success_indicator",
            cfg.success_indicator,
            VERIFY_SUBMISSION,
            text_filter=TextFilter.any_of(*self.site.confirmation_texts),
        )
        if indicator is None:
            # Submission already happened; a missing toast is not a failure.
            log.warning("No confirmation indicator seen; treating submission as done")
            ctx.note("submission:unconfirmed")
        else:
            ctx.note("submission:confirmed")
