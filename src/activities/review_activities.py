"""
Review Action Stage Activities

One function per pipeline stage. Each stage logs inside its own runner
group and raises a typed exception on failure; sequencing and failure
attribution belong to the workflow.
"""

from typing import Any, Dict, Optional, Union

from src.core.review_config import review_action_settings
from src.exceptions.review_exceptions import InvalidInputException
from src.models.schemas.review import DiffPayload, PullRequestInfo, ReviewResult
from src.services.diff.diff_bounder import bound_diff
from src.services.git.git_service import GitService
from src.services.github.pr_api_client import PRApiClient
from src.services.review.review_client import ReviewClient
from src.utils import actions
from src.utils.logging import get_logger

logger = get_logger(__name__)


# ============================================================================
# PRE-FLIGHT
# ============================================================================

def validate_inputs(
    github_token: str,
    anthropic_key: str,
    pr_number: Optional[Union[int, str]],
    repository: str,
    key_prefix: Optional[str] = None,
) -> int:
    """
    Syntactic checks on the action inputs. No I/O.

    Returns:
        The PR number as a positive int

    Raises:
        InvalidInputException: Naming the input that failed
    """
    if key_prefix is None:
        key_prefix = review_action_settings.inference.api_key_prefix

    if not github_token or not github_token.strip():
        raise InvalidInputException("github-token is required and cannot be empty")

    if not anthropic_key or not anthropic_key.strip():
        raise InvalidInputException("anthropic-key is required and cannot be empty")

    if not anthropic_key.startswith(key_prefix):
        logger.warning(f"anthropic-key does not match expected format (should start with {key_prefix})")

    try:
        pr_num = int(str(pr_number).strip()) if pr_number is not None else 0
    except ValueError:
        pr_num = 0
    if pr_num <= 0:
        raise InvalidInputException(f"Invalid PR number: {pr_number}. Must be a positive integer.")

    owner, _, repo = (repository or "").partition("/")
    if not owner or not repo or "/" in repo:
        raise InvalidInputException(f"Invalid repository: {repository!r}. Must be in owner/repo format.")

    logger.info("Input validation passed")
    return pr_num


# ============================================================================
# DATA COLLECTION
# ============================================================================

async def setup_git_activity(git_service: GitService) -> None:
    with actions.group("Setting up Git configuration"):
        await git_service.setup_git_config()


async def fetch_pr_activity(pr_client: PRApiClient, repository: str, pr_number: int) -> PullRequestInfo:
    """Fetch PR metadata. A closed PR is reviewed all the same."""
    with actions.group("Fetching PR details"):
        pr = await pr_client.get_pr_details(repository, pr_number)

    if pr.is_closed:
        logger.warning(f"PR #{pr.number} is closed. Review will still be posted.")
    return pr


async def compute_diff_activity(git_service: GitService, pr: PullRequestInfo) -> str:
    with actions.group("Generating diff"):
        return await git_service.diff(pr.base.sha, pr.head.sha)


def bound_diff_activity(diff_text: str, max_bytes: Optional[int] = None) -> DiffPayload:
    payload = bound_diff(diff_text, max_bytes)
    if payload.was_truncated:
        logger.info(
            f"Diff bounded from {payload.original_size} to {payload.effective_size} bytes"
        )
    return payload


# ============================================================================
# REVIEW AND PUBLISHING
# ============================================================================

async def generate_review_activity(
    review_client: ReviewClient,
    payload: DiffPayload,
    anthropic_key: str,
) -> Optional[ReviewResult]:
    with actions.group("Analyzing with Claude AI"):
        return await review_client.review(payload, anthropic_key)


def format_review_comment(review_text: str, heading: Optional[str] = None) -> str:
    if heading is None:
        heading = review_action_settings.publish.comment_heading
    return f"{heading}\n\n{review_text}"


async def publish_review_activity(
    pr_client: PRApiClient,
    repository: str,
    pr_number: int,
    review: ReviewResult,
    heading: Optional[str] = None,
) -> Dict[str, Any]:
    """
    Post the review as a single PR comment.

    Raises:
        PublishFailureException: If posting failed
    """
    with actions.group("Posting review comment"):
        return await pr_client.create_issue_comment(
            repository, pr_number, format_review_comment(review.text, heading)
        )
