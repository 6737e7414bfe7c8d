"""Tests for the action entry point and failure boundary."""

import asyncio
import sys
from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from src import main as action_main
from src.core.config import Settings
from src.main import FailureBoundary, build_request, report_outcome, run_action
from src.models.schemas.review import RunOutcome
from src.utils.logging import json_logger
from src.workflows.review_workflow import ReviewWorkflow


@pytest.fixture(autouse=True)
def clear_secrets():
    json_logger._REGISTERED_SECRETS.clear()
    yield
    json_logger._REGISTERED_SECRETS.clear()


@pytest.fixture
def settings() -> Settings:
    return Settings(
        github_token="ghp_secret",
        anthropic_key="sk-ant-secret",
        pr_number="12",
        github_repository="octo/widgets",
        github_event_name="workflow_dispatch",
    )


def completed() -> RunOutcome:
    return RunOutcome(status="completed", diff_size_bytes=10, review_text="fine")


def test_report_outcome_writes_outputs(tmp_path, capsys):
    output_file = tmp_path / "out"

    exit_code = report_outcome(completed(), str(output_file))

    assert exit_code == 0
    content = output_file.read_text(encoding="utf-8")
    assert "diff_size<<" in content
    assert "\n10\n" in content
    assert "\nfine\n" in content
    assert "::error::" not in capsys.readouterr().out


def test_report_failed_outcome_emits_error(tmp_path, capsys):
    outcome = RunOutcome(status="failed", error_message="Failed to post review: 403", error_stage="publish")

    exit_code = report_outcome(outcome, str(tmp_path / "out"))

    assert exit_code == 1
    assert "::error::Failed to post review: 403" in capsys.readouterr().out


def test_build_request_uses_inputs(settings):
    request = build_request(settings)

    assert request.pr_number == "12"
    assert request.repository == "octo/widgets"
    assert request.anthropic_key == "sk-ant-secret"


@pytest.mark.asyncio
async def test_run_action_masks_secrets_before_running(settings, capsys):
    workflow = MagicMock(spec=ReviewWorkflow)
    workflow.run = AsyncMock(return_value=completed())

    outcome = await run_action(settings, workflow=workflow)

    assert outcome.status == "completed"
    out = capsys.readouterr().out
    assert "::add-mask::ghp_secret" in out
    assert "::add-mask::sk-ant-secret" in out
    assert json_logger.mask_secrets("ghp_secret and sk-ant-secret") == "*** and ***"
    workflow.run.assert_awaited_once()


def test_boundary_downgrades_success_with_pending_error():
    boundary = FailureBoundary()
    boundary.loop_exception_handler(None, {"exception": RuntimeError("orphan task failed")})

    outcome = boundary.apply(completed())

    assert outcome.status == "failed"
    assert outcome.error_message == "Unhandled rejection: orphan task failed"
    assert outcome.exit_code == 1


def test_boundary_keeps_clean_outcome():
    outcome = completed()

    assert FailureBoundary().apply(outcome) is outcome


def test_boundary_records_message_without_exception():
    boundary = FailureBoundary()
    boundary.loop_exception_handler(None, {"message": "Task was destroyed but it is pending!"})

    assert boundary.errors == ["Unhandled rejection: Task was destroyed but it is pending!"]


def test_excepthook_emits_error_annotation(capsys):
    error = ValueError("boom")

    FailureBoundary().excepthook(ValueError, error, None)

    assert "::error::Uncaught exception: boom" in capsys.readouterr().out


@pytest.mark.parametrize("outcome,expected_code", [
    (RunOutcome(status="completed", diff_size_bytes=3, review_text="ok"), 0),
    (RunOutcome(status="skipped", diff_size_bytes=0), 0),
    (RunOutcome(status="failed", error_message="Invalid PR number: x. Must be a positive integer."), 1),
])
def test_main_exit_code(outcome, expected_code, monkeypatch, tmp_path):
    monkeypatch.setattr(sys, "excepthook", sys.excepthook)
    monkeypatch.setenv("GITHUB_OUTPUT", str(tmp_path / "out"))

    with patch.object(action_main, "run_action", new=AsyncMock(return_value=outcome)):
        assert action_main.main() == expected_code


def test_main_reports_uncaught_exception(monkeypatch, tmp_path, capsys):
    monkeypatch.setattr(sys, "excepthook", sys.excepthook)
    monkeypatch.setenv("GITHUB_OUTPUT", str(tmp_path / "out"))

    with patch.object(action_main, "run_action", new=AsyncMock(side_effect=RuntimeError("kaboom"))):
        assert action_main.main() == 1

    assert "::error::Uncaught exception: kaboom" in capsys.readouterr().out


def test_main_fails_on_orphaned_task_error(monkeypatch, tmp_path):
    monkeypatch.setattr(sys, "excepthook", sys.excepthook)
    monkeypatch.setenv("GITHUB_OUTPUT", str(tmp_path / "out"))

    async def run_with_orphan(settings):
        loop = asyncio.get_running_loop()
        loop.call_exception_handler({"message": "background task failed", "exception": OSError("pipe closed")})
        return completed()

    with patch.object(action_main, "run_action", new=run_with_orphan):
        assert action_main.main() == 1
