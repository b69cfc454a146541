# postauto/runner.py
"""
@file runner.py
@brief Runs one publication end to end: session, workflow, diagnostics and JSON report.
"""

from __future__ import annotations

import asyncio
import json
import logging
import os
import time
from typing import Any, Dict, List, Optional
from uuid import uuid4

from .actionlogger import ACTION_LOGGER
from .artifacts import DiagnosticsReporter
from .config import TimeConfig
from .repository import BrowserConfig, Repository
from .session import BrowserSession, SessionFactory, session_scope
from .steps import StepExecutor, StepListener
from .workflow import Credentials, Outcome, PublishWorkflow, WorkflowContext

log = logging.getLogger("postauto.runner")


class Runner:
    """
    Publishes content through a fresh browser session per call and emits a
    report dict (optionally written as JSON).
    """

    def __init__(
        self,
        repo: Repository,
        browser_config: Optional[BrowserConfig] = None,
        session_factory: SessionFactory = BrowserSession,
        reporter: Optional[DiagnosticsReporter] = None,
        listeners: Optional[List[StepListener]] = None,
    ):
        """
        @param repo Repository with site config and targets
        @param browser_config Overrides repo.browser (e.g. CLI --headless)
        @param session_factory Builds the ISession for a run
        @param reporter Failure diagnostics; defaults to the configured artifacts dir
        @param listeners StepEvent callbacks
        """
        self.repo = repo
        self.browser_config = browser_config or repo.browser
        self.session_factory = session_factory
        self.reporter = reporter or DiagnosticsReporter(self.browser_config.artifacts_dir)
        self.listeners = list(listeners or [])
        self.last_report: Optional[Dict[str, Any]] = None

    async def publish(
        self,
        content: str,
        credentials: Credentials,
        *,
        report_path: Optional[str] = None,
        timing_preset: str = "default",
        timing_overrides: Optional[Dict[str, Any]] = None,
    ) -> Outcome:
        """
        Publish content once.

        @return Succeeded or Failed(stage, reason); step failures are not raised
        @throws ConfigError for an unknown preset or override
        """
        run_time_config = TimeConfig.build_from(preset=timing_preset, overrides=timing_overrides)
        TimeConfig.install_run_config(run_time_config)

        start_ts = time.time()
        run_id = str(uuid4())
        ACTION_LOGGER.set_run_id(run_id)
        report: Dict[str, Any] = {
            "run_id": run_id,
            "started_at": time.strftime("%Y-%m-%d %H:%M:%S"),
            "status": "unknown",
            "steps": [],
            "notes": [],
            "artifacts": {},
            "resolutions": [],
            "errors": [],
        }

        outcome: Optional[Outcome] = None
        try:
            workflow = PublishWorkflow(self.repo, StepExecutor(self.listeners))
            async with session_scope(self.browser_config, self.session_factory) as session:
                ctx = WorkflowContext(session=session, content=content, credentials=credentials)
                outcome = await workflow.run(ctx)
                if not outcome.ok:
                    # Capture before the session is torn down.
                    capture = await self.reporter.capture_on_failure(session, outcome.stage)
                    outcome.artifacts = capture.to_dict()
            return outcome
        except Exception as e:
            # Session open failed before any step could run.
            log.error("Could not open browser session: %s", e)
            outcome = Outcome.failed("Launch", e, [], [])
            capture = await self.reporter.capture_on_failure(None, outcome.stage)
            outcome.artifacts = capture.to_dict()
            return outcome
        finally:
            TimeConfig.clear_run_config()
            report["duration_sec"] = round(time.time() - start_ts, 3)
            if outcome is not None:
                report["status"] = "passed" if outcome.ok else "failed"
                report["steps"] = [
                    dict(index=i, **s.to_dict()) for i, s in enumerate(outcome.steps, start=1)
                ]
                report["notes"] = list(outcome.notes)
                report["artifacts"] = dict(outcome.artifacts)
                report["resolutions"] = list(outcome.resolutions)
                if not outcome.ok:
                    report["stage"] = outcome.stage
                    report["errors"].append(outcome.reason)
            self.last_report = report

            if report_path:
                os.makedirs(os.path.dirname(os.path.abspath(report_path)) or ".", exist_ok=True)
                with open(report_path, "w", encoding="utf-8") as f:
                    json.dump(report, f, indent=2)

    async def publish_with_retry(
        self,
        content: str,
        credentials: Credentials,
        *,
        max_runs: int = 2,
        delay: float = 5.0,
        **kwargs: Any,
    ) -> Outcome:
        """
        Re-run publish() with a brand new session after a Failed outcome.

        A failed run is never resumed; every run starts from Launch.
        """
        if max_runs < 1:
            raise ValueError(f"max_runs must be >= 1, got {max_runs}")

        outcome: Optional[Outcome] = None
        for run in range(1, max_runs + 1):
            outcome = await self.publish(content, credentials, **kwargs)
            if outcome.ok:
                return outcome
            log.warning("Run %d/%d failed: %s", run, max_runs, outcome)
            if run < max_runs and delay > 0:
                await asyncio.sleep(delay)
        return outcome


async def publish(
    content: str,
    credentials: Credentials,
    *,
    elements: Optional[str] = None,
    report_path: Optional[str] = None,
) -> Outcome:
    """Publish content with the bundled (or given) object map."""
    runner = Runner(Repository(elements))
    return await runner.publish(content, credentials, report_path=report_path)
