"""
Action entry point.

Reads the action inputs, runs the review workflow and reports the outcome
through the runner protocol. Every failure path, including uncaught
exceptions and exceptions raised in orphaned asyncio tasks, ends in the
same place: an ::error:: annotation and a non-zero exit status.
"""

import asyncio
import os
import platform
import sys
from typing import Any, Dict, List, Optional

from src.core.config import Settings, get_settings
from src.models.schemas.review import ReviewRunRequest, RunOutcome
from src.utils import actions
from src.utils.logging import get_logger
from src.workflows.review_workflow import ReviewWorkflow

logger = get_logger(__name__)


class FailureBoundary:
    """Collects failures that escape the workflow's own error handling."""

    def __init__(self):
        self.errors: List[str] = []

    def loop_exception_handler(self, loop: asyncio.AbstractEventLoop, context: Dict[str, Any]) -> None:
        exc = context.get("exception")
        reason = exc if exc is not None else context.get("message", "unknown error")
        logger.error(f"Unhandled rejection: {reason}")
        self.errors.append(f"Unhandled rejection: {reason}")

    def excepthook(self, exc_type, exc, tb) -> None:
        logger.error("Uncaught exception", exc_info=(exc_type, exc, tb))
        actions.error(f"Uncaught exception: {exc}")

    def apply(self, outcome: RunOutcome) -> RunOutcome:
        """Downgrade a successful outcome when an error is still pending."""
        if not self.errors or not outcome.succeeded:
            return outcome
        return RunOutcome(
            status="failed",
            diff_size_bytes=outcome.diff_size_bytes,
            duration_seconds=outcome.duration_seconds,
            error_message=self.errors[0],
            error_stage="unhandled",
        )


def build_request(settings: Settings) -> ReviewRunRequest:
    return ReviewRunRequest(
        github_token=settings.github_token,
        anthropic_key=settings.anthropic_key,
        pr_number=settings.resolve_pr_number() or None,
        repository=settings.github_repository,
    )


async def run_action(settings: Settings, workflow: Optional[ReviewWorkflow] = None) -> RunOutcome:
    logger.info("Starting Claude Code Review Action")
    logger.info(f"Python version: {platform.python_version()}")
    logger.info(f"Platform: {sys.platform}")
    logger.info(f"Event: {settings.github_event_name or 'unknown'}")

    # Mask before anything can log them
    actions.add_mask(settings.github_token)
    actions.add_mask(settings.anthropic_key)

    if settings.skip_auto_review:
        logger.info("skip-auto-review is set; automatic triggering is decided by the calling workflow")

    workflow = workflow or ReviewWorkflow()
    return await workflow.run(build_request(settings))


async def _run_with_boundary(settings: Settings, boundary: FailureBoundary) -> RunOutcome:
    asyncio.get_running_loop().set_exception_handler(boundary.loop_exception_handler)
    return await run_action(settings)


def report_outcome(outcome: RunOutcome, output_path: str) -> int:
    actions.set_outputs(outcome.outputs(), output_path)
    if not outcome.succeeded:
        actions.error(outcome.error_message or "Action failed")
    return outcome.exit_code


def main() -> int:
    boundary = FailureBoundary()
    sys.excepthook = boundary.excepthook
    output_path = os.getenv("GITHUB_OUTPUT", "")

    try:
        settings = get_settings()
        output_path = settings.github_output or output_path
        outcome = asyncio.run(_run_with_boundary(settings, boundary))
    except Exception as e:
        logger.error(f"Uncaught exception: {e}", exc_info=True)
        outcome = RunOutcome(
            status="failed",
            error_message=f"Uncaught exception: {e}",
            error_stage="startup",
        )

    return report_outcome(boundary.apply(outcome), output_path)


if __name__ == "__main__":
    sys.exit(main())
