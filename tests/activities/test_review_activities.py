"""Tests for the pipeline stage functions."""

from unittest.mock import AsyncMock, MagicMock

import pytest

from src.activities.review_activities import (
    bound_diff_activity,
    fetch_pr_activity,
    format_review_comment,
    publish_review_activity,
    validate_inputs,
)
from src.exceptions.review_exceptions import InvalidInputException
from src.models.schemas.review import PRRevision, PullRequestInfo, ReviewResult
from src.services.github.pr_api_client import PRApiClient

VALID = dict(github_token="ghp_token", anthropic_key="sk-ant-key", pr_number="42", repository="octo/widgets")


def closed_pr() -> PullRequestInfo:
    return PullRequestInfo(
        number=42,
        title="Old change",
        state="closed",
        base=PRRevision(sha="a" * 40, ref="main"),
        head=PRRevision(sha="b" * 40, ref="old"),
    )


@pytest.mark.unit
def test_validate_inputs_returns_pr_number():
    assert validate_inputs(**VALID) == 42
    assert validate_inputs(**{**VALID, "pr_number": 7}) == 7


@pytest.mark.unit
@pytest.mark.parametrize("override,message", [
    ({"github_token": ""}, "github-token is required and cannot be empty"),
    ({"github_token": "   "}, "github-token is required and cannot be empty"),
    ({"anthropic_key": ""}, "anthropic-key is required and cannot be empty"),
    ({"pr_number": None}, "Invalid PR number: None. Must be a positive integer."),
    ({"pr_number": "0"}, "Invalid PR number: 0. Must be a positive integer."),
    ({"pr_number": "-3"}, "Invalid PR number: -3. Must be a positive integer."),
    ({"pr_number": "abc"}, "Invalid PR number: abc. Must be a positive integer."),
    ({"pr_number": "12abc"}, "Invalid PR number: 12abc. Must be a positive integer."),
])
def test_validate_inputs_rejects(override, message):
    with pytest.raises(InvalidInputException) as exc_info:
        validate_inputs(**{**VALID, **override})

    assert str(exc_info.value) == message
    assert exc_info.value.status_code == 400


@pytest.mark.unit
@pytest.mark.parametrize("repository", ["", "widgets", "octo/", "/widgets", "octo/widgets/extra"])
def test_validate_inputs_rejects_malformed_repository(repository):
    with pytest.raises(InvalidInputException):
        validate_inputs(**{**VALID, "repository": repository})


@pytest.mark.unit
def test_unexpected_key_prefix_only_warns():
    assert validate_inputs(**{**VALID, "anthropic_key": "not-an-anthropic-key"}) == 42


@pytest.mark.unit
def test_github_token_checked_before_anthropic_key():
    with pytest.raises(InvalidInputException, match="github-token"):
        validate_inputs(github_token="", anthropic_key="", pr_number="x", repository="")


@pytest.mark.unit
def test_format_review_comment():
    assert format_review_comment("Looks good.", heading="# Review") == "# Review\n\nLooks good."
    assert format_review_comment("Looks good.") == "# 🤖 Claude Code Review\n\nLooks good."


@pytest.mark.unit
def test_bound_diff_activity_applies_budget():
    payload = bound_diff_activity("x" * 2000, 1000)

    assert payload.was_truncated
    assert payload.original_size == 2000


@pytest.mark.asyncio
async def test_fetch_closed_pr_is_returned():
    pr_client = MagicMock(spec=PRApiClient)
    pr_client.get_pr_details = AsyncMock(return_value=closed_pr())

    pr = await fetch_pr_activity(pr_client, "octo/widgets", 42)

    assert pr.is_closed
    pr_client.get_pr_details.assert_awaited_once_with("octo/widgets", 42)


@pytest.mark.asyncio
async def test_publish_posts_formatted_comment():
    pr_client = MagicMock(spec=PRApiClient)
    pr_client.create_issue_comment = AsyncMock(return_value={"id": 1})

    await publish_review_activity(
        pr_client, "octo/widgets", 42, ReviewResult.from_text("Nice work."), heading="# Review"
    )

    pr_client.create_issue_comment.assert_awaited_once_with("octo/widgets", 42, "# Review\n\nNice work.")
