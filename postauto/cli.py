# postauto/cli.py
"""
@file cli.py
@brief Command-line interface for postauto.
"""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import os
import sys
from dataclasses import replace
from typing import Any, Dict, List, Optional, Tuple

from .actionlogger import ACTION_LOGGER
from .config import timeout_overrides
from .exceptions import ConfigError
from .repository import Repository
from .runner import Runner
from .workflow import Credentials


def _resolve_timing_options(args: argparse.Namespace) -> Tuple[str, Dict[str, Any]]:
    """Resolve timing preset and CLI overrides without mutating global state."""
    preset = "default"
    if getattr(args, "ci", False):
        preset = "ci"
    elif getattr(args, "fast", False):
        preset = "fast"
    elif getattr(args, "slow", False):
        preset = "slow"

    overrides: Dict[str, Any] = {}
    timeout = getattr(args, "timeout", None)
    if timeout is not None:
        overrides = timeout_overrides(timeout)
    return preset, overrides


def _configure_action_logger_from_env() -> None:
    """Configure action logging from environment variables."""
    enabled = os.getenv("POSTAUTO_ACTION_LOGGING", "").lower() in {"1", "true", "yes", "on"}
    if not enabled:
        ACTION_LOGGER.disable()
        return

    log_file = os.getenv("POSTAUTO_ACTION_LOG_FILE")
    level = os.getenv("POSTAUTO_ACTION_LOG_LEVEL", "INFO")
    fmt = os.getenv("POSTAUTO_ACTION_LOG_FORMAT", "line")
    ACTION_LOGGER.configure(console=True, file_path=log_file, level=level, format=fmt)
    ACTION_LOGGER.enable()


def _read_content(args: argparse.Namespace) -> str:
    if args.content is not None:
        return args.content
    if args.content_file:
        with open(args.content_file, "r", encoding="utf-8") as f:
            return f.read()
    return sys.stdin.read()


def _read_credentials(args: argparse.Namespace) -> Credentials:
    identity = os.getenv(args.identity_env)
    secret = os.getenv(args.secret_env)
    missing = [name for name, value in ((args.identity_env, identity), (args.secret_env, secret)) if not value]
    if missing:
        raise ConfigError(f"Missing credentials in environment: {', '.join(missing)}")
    return Credentials(identity=identity, secret=secret)


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point for the CLI."""
    argv = argv if argv is not None else sys.argv[1:]
    _configure_action_logger_from_env()
    logging.basicConfig(
        level=os.getenv("POSTAUTO_LOG_LEVEL", "INFO").upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    p = argparse.ArgumentParser(
        prog="postauto",
        description="postauto - resilient browser automation for publishing text posts",
    )
    sub = p.add_subparsers(dest="cmd", required=True)

    # -------------------------
    # publish
    # -------------------------
    pubp = sub.add_parser("publish", help="Sign in and publish one text post")
    src = pubp.add_mutually_exclusive_group()
    src.add_argument("--content", "-c", default=None, help="Post text")
    src.add_argument("--content-file", "-f", default=None, help="Read post text from a file (default: stdin)")
    pubp.add_argument("--elements", "-e", default=None, help="Path to object map YAML (default: bundled map)")
    pubp.add_argument("--identity-env", default="LINKEDIN_EMAIL", help="Env var holding the sign-in identity")
    pubp.add_argument("--secret-env", default="LINKEDIN_PASSWORD", help="Env var holding the sign-in secret")
    pubp.add_argument("--headless", action="store_true", help="Run the browser headless")
    pubp.add_argument("--artifacts-dir", default=None, help="Where failure screenshots are written")
    pubp.add_argument("--report", "-r", default=None, help="Report output path (JSON)")
    pubp.add_argument("--retries", type=int, default=1, help="Full runs with a fresh session (default: 1)")
    pubp.add_argument("--timeout", "-t", type=float, default=None, help="Override base timeouts in seconds (intervals stay from preset)")
    pubp.add_argument("--ci", action="store_true", help="Use CI-optimized timeout settings")
    pubp.add_argument("--fast", action="store_true", help="Use fast timeout settings")
    pubp.add_argument("--slow", action="store_true", help="Use slow timeout settings for unstable environments")
    pubp.add_argument("--verbose", action="store_true", help="Print the full report")

    # -------------------------
    # validate
    # -------------------------
    valp = sub.add_parser("validate", help="Validate an object map")
    valp.add_argument("--elements", "-e", default=None, help="Path to object map YAML (default: bundled map)")

    # -------------------------
    # list-targets
    # -------------------------
    listp = sub.add_parser("list-targets", help="List logical targets and their strategies")
    listp.add_argument("--elements", "-e", default=None, help="Path to object map YAML (default: bundled map)")

    args = p.parse_args(argv)

    # -------------------------
    # Execute commands
    # -------------------------

    if args.cmd == "publish":
        try:
            repo = Repository(args.elements)
            credentials = _read_credentials(args)
            content = _read_content(args)
        except (ConfigError, OSError) as e:
            print(f"Error: {e}", file=sys.stderr)
            return 1
        if not content:
            print("Error: no content to publish", file=sys.stderr)
            return 1

        browser_config = repo.browser
        if args.headless:
            browser_config = replace(browser_config, headless=True)
        if args.artifacts_dir:
            browser_config = replace(browser_config, artifacts_dir=args.artifacts_dir)

        timing_preset, timing_overrides = _resolve_timing_options(args)
        runner = Runner(repo, browser_config=browser_config)
        try:
            outcome = asyncio.run(runner.publish_with_retry(
                content,
                credentials,
                max_runs=max(1, args.retries),
                report_path=args.report,
                timing_preset=timing_preset,
                timing_overrides=timing_overrides,
            ))
        except ConfigError as e:
            print(f"Error: {e}", file=sys.stderr)
            return 1

        report = runner.last_report or {}
        print("\n" + "=" * 60)
        print(f"Status:   {str(report.get('status', 'unknown')).upper()}")
        print(f"Duration: {report.get('duration_sec', 0):.2f}s")
        for step in report.get("steps", []):
            status_icon = "+" if step["status"] == "passed" else "X"
            print(f"  {status_icon} [{step['index']}] {step['name']}: {step['status']} ({step.get('duration_sec', 0):.2f}s)")
        print("=" * 60)
        if args.verbose:
            print(json.dumps(report, indent=2, ensure_ascii=False))

        if outcome.ok:
            return 0
        print(f"Failed at {outcome.stage}: {outcome.reason}", file=sys.stderr)
        screenshot = outcome.artifacts.get("screenshot")
        if screenshot:
            print(f"Screenshot: {screenshot}", file=sys.stderr)
        elif outcome.artifacts.get("errors"):
            print(f"Screenshot not captured: {'; '.join(outcome.artifacts['errors'])}", file=sys.stderr)
        return 2

    if args.cmd == "validate":
        try:
            repo = Repository(args.elements)
        except ConfigError as e:
            print(f"X Object map is invalid: {e}", file=sys.stderr)
            return 2
        print(f"+ Object map is valid: {repo.path}")
        print(f"  - Targets: {len(repo.list_targets())}")
        return 0

    if args.cmd == "list-targets":
        try:
            repo = Repository(args.elements)
        except ConfigError as e:
            print(f"Error loading object map: {e}", file=sys.stderr)
            return 1

        targets = repo.list_targets()
        print(f"Targets ({len(targets)}):")
        for name in targets:
            descriptor = repo.target(name)
            print(f"  - {name}")
            for index, strategy in enumerate(descriptor.strategies):
                print(f"      {index}. {strategy.kind}: {strategy.describe()}")
        return 0

    return 1


if __name__ == "__main__":
    sys.exit(main())
