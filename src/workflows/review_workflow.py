"""
PR Review Action Workflow

Linear pipeline for one review run:
validate inputs -> (git setup) -> fetch PR -> compute diff -> bound diff
-> review -> publish. Any failure ends the run in the failed state,
attributed to the stage that raised it.
"""

import time
from enum import Enum
from typing import Optional

from src.core.review_config import ReviewActionSettings, review_action_settings
from src.models.schemas.review import ReviewRunRequest, RunOutcome
from src.services.git.git_service import GitService
from src.services.github.pr_api_client import PRApiClient
from src.services.review.review_client import ReviewClient
from src.utils.logging import get_logger

from src.activities.review_activities import (
    bound_diff_activity,
    compute_diff_activity,
    fetch_pr_activity,
    generate_review_activity,
    publish_review_activity,
    setup_git_activity,
    validate_inputs,
)

logger = get_logger(__name__)


class ReviewStage(str, Enum):
    """Pipeline stages, in execution order."""
    VALIDATE_INPUTS = "validate_inputs"
    SETUP_GIT = "setup_git"
    FETCH_PR = "fetch_pr"
    COMPUTE_DIFF = "compute_diff"
    BOUND_DIFF = "bound_diff"
    REVIEW = "review"
    PUBLISH = "publish"


class ReviewWorkflow:
    """
    Orchestrates one review run.

    Guarantees:
    - Inputs are validated before any network or process call
    - An empty diff never reaches the inference API
    - At most one comment is posted, and only with the full review in hand
    - run() never raises; failures are returned as a failed RunOutcome
    """

    def __init__(
        self,
        config: Optional[ReviewActionSettings] = None,
        git_service: Optional[GitService] = None,
        review_client: Optional[ReviewClient] = None,
        pr_client: Optional[PRApiClient] = None,
    ):
        self.config = config or review_action_settings
        self.git_service = git_service or GitService(config=self.config)
        self.review_client = review_client or ReviewClient(config=self.config)
        self._pr_client = pr_client
        self.stage = ReviewStage.VALIDATE_INPUTS

    def _pr_client_for(self, token: str) -> PRApiClient:
        return self._pr_client or PRApiClient(token=token, config=self.config)

    async def run(self, request: ReviewRunRequest) -> RunOutcome:
        """
        Run the pipeline.

        Args:
            request: Raw action inputs

        Returns:
            RunOutcome: completed, skipped or failed
        """
        start_time = time.monotonic()
        diff_size: Optional[int] = None
        self.stage = ReviewStage.VALIDATE_INPUTS

        def elapsed() -> float:
            return round(time.monotonic() - start_time, 2)

        try:
            pr_number = validate_inputs(
                request.github_token,
                request.anthropic_key,
                request.pr_number,
                request.repository,
                key_prefix=self.config.inference.api_key_prefix,
            )
            pr_client = self._pr_client_for(request.github_token)
            logger.info(f"Repository: {request.repository}")

            if request.setup_git:
                self.stage = ReviewStage.SETUP_GIT
                await setup_git_activity(self.git_service)

            self.stage = ReviewStage.FETCH_PR
            pr = await fetch_pr_activity(pr_client, request.repository, pr_number)

            self.stage = ReviewStage.COMPUTE_DIFF
            diff_text = await compute_diff_activity(self.git_service, pr)

            if not diff_text.strip():
                logger.warning("No changes found in diff")
                logger.info("Action completed (no changes to review)")
                return RunOutcome(status="skipped", diff_size_bytes=0, duration_seconds=elapsed())

            self.stage = ReviewStage.BOUND_DIFF
            payload = bound_diff_activity(diff_text, self.config.diff.max_diff_bytes)
            diff_size = payload.effective_size

            self.stage = ReviewStage.REVIEW
            review = await generate_review_activity(self.review_client, payload, request.anthropic_key)

            if review is None:
                logger.warning("No review generated by Claude")
                logger.info("Action completed (no review generated)")
                return RunOutcome(status="skipped", diff_size_bytes=diff_size, duration_seconds=elapsed())

            self.stage = ReviewStage.PUBLISH
            await publish_review_activity(
                pr_client,
                request.repository,
                pr.number,
                review,
                heading=self.config.publish.comment_heading,
            )

            duration = elapsed()
            logger.info(f"Claude Code Review completed successfully in {duration:.2f}s")
            return RunOutcome(
                status="completed",
                diff_size_bytes=diff_size,
                review_text=review.text,
                duration_seconds=duration,
            )

        except Exception as e:
            duration = elapsed()
            error_stage = getattr(e, "stage", None) or self.stage.value
            logger.error(f"Action failed after {duration:.2f}s in stage {error_stage}: {e}", exc_info=True)
            return RunOutcome(
                status="failed",
                diff_size_bytes=diff_size,
                duration_seconds=duration,
                error_message=str(e) or type(e).__name__,
                error_stage=error_stage,
            )
