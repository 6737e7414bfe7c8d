"""
GitHub API Client for Pull Request Operations

Client for the two GitHub calls the review action makes: reading PR
metadata and posting the review comment. Both go through the shared
backoff policy with typed, status-classified exceptions.
"""

import time
from dataclasses import dataclass
from typing import Any, Dict, Optional

import httpx

from src.core.review_config import ReviewActionSettings, review_action_settings
from src.exceptions.review_exceptions import (
    PRFetchException,
    PublishFailureException,
    api_status_error,
)
from src.models.schemas.review import PullRequestInfo
from src.utils.logging import get_logger
from src.utils.requests import parse_retry_after_ms
from src.utils.retry import retry_with_backoff

logger = get_logger(__name__)


@dataclass
class GitHubAPIRateLimit:
    """Rate limit information from GitHub API headers."""
    limit: int
    remaining: int
    reset_time: int
    used: int

    @classmethod
    def from_headers(cls, headers: httpx.Headers) -> Optional['GitHubAPIRateLimit']:
        """Create rate limit info from response headers."""
        if "x-ratelimit-limit" not in headers:
            return None
        try:
            return cls(
                limit=int(headers.get('x-ratelimit-limit', 0)),
                remaining=int(headers.get('x-ratelimit-remaining', 0)),
                reset_time=int(headers.get('x-ratelimit-reset', 0)),
                used=int(headers.get('x-ratelimit-used', 0))
            )
        except (ValueError, TypeError):
            return None

    @property
    def seconds_until_reset(self) -> int:
        """Seconds until rate limit resets."""
        return max(0, self.reset_time - int(time.time()))


class PRApiClient:
    """
    GitHub API client for the review action.

    Features:
    - Token authentication (the workflow's GITHUB_TOKEN)
    - Retry with exponential backoff; 400/401/403 fail immediately
    - retry-after driven waits on 429
    - Rate limit header tracking for diagnostics
    """

    def __init__(
        self,
        token: str,
        config: Optional[ReviewActionSettings] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.token = token
        self.config = config or review_action_settings
        self.base_url = self.config.github_api.api_base_url.rstrip("/")
        self._transport = transport
        self._rate_limit_info: Optional[GitHubAPIRateLimit] = None

    async def get_pr_details(self, repo_name: str, pr_number: int) -> PullRequestInfo:
        """
        Get pull request details from GitHub API.

        Args:
            repo_name: Repository name in format "owner/repo"
            pr_number: Pull request number

        Returns:
            PullRequestInfo with base/head revisions and state

        Raises:
            PRFetchException: If the PR cannot be retrieved
        """
        endpoint = f"/repos/{repo_name}/pulls/{pr_number}"

        logger.info(f"Getting details for PR #{pr_number}")

        try:
            response_data = await self._with_retry(
                "Get PR details",
                method="GET",
                endpoint=endpoint,
            )
            pr = PullRequestInfo.from_api(response_data)
        except Exception as e:
            logger.error(f"Failed to get PR details: {e}")
            raise PRFetchException(
                f"Failed to get PR details for #{pr_number}: {e}", cause=e
            ) from e

        logger.info(f"Retrieved PR #{pr.number}: \"{pr.title}\"")
        logger.info(f"  Base: {pr.base.ref} ({pr.base.short_sha})")
        logger.info(f"  Head: {pr.head.ref} ({pr.head.short_sha})")
        logger.debug(f"PR state: {pr.state}")
        return pr

    async def create_issue_comment(self, repo_name: str, pr_number: int, body: str) -> Dict[str, Any]:
        """
        Post a comment on the PR's conversation.

        Args:
            repo_name: Repository name in format "owner/repo"
            pr_number: Pull request number
            body: Markdown comment body

        Returns:
            Created comment object

        Raises:
            PublishFailureException: If the comment could not be created
        """
        endpoint = f"/repos/{repo_name}/issues/{pr_number}/comments"

        logger.info(f"Posting review to PR #{pr_number}...")
        logger.debug(f"Review length: {len(body)} characters")

        try:
            comment = await self._with_retry(
                "Post review comment",
                method="POST",
                endpoint=endpoint,
                json_data={"body": body},
            )
        except Exception as e:
            logger.error(f"Failed to post review comment: {e}")
            raise PublishFailureException(f"Failed to post review: {e}", cause=e) from e

        logger.info("Review posted successfully")
        logger.debug(f"Comment ID: {comment.get('id')}")
        logger.debug(f"Comment URL: {comment.get('html_url')}")
        return comment

    async def _with_retry(self, operation: str, **request_kwargs: Any) -> Any:
        retry = self.config.retry
        return await retry_with_backoff(
            self._make_api_request,
            operation=operation,
            max_retries=retry.max_retries,
            initial_delay_ms=retry.initial_delay_ms,
            **request_kwargs,
        )

    async def _make_api_request(
        self,
        method: str,
        endpoint: str,
        json_data: Optional[Dict[str, Any]] = None,
    ) -> Any:
        """
        Make one authenticated API request.

        Raises:
            APIStatusError subclass for non-success statuses
            httpx.TransportError for network failures
        """
        url = f"{self.base_url}{endpoint}"
        github_api = self.config.github_api

        headers = {
            "Authorization": f"Bearer {self.token}",
            "Accept": "application/vnd.github+json",
            "X-GitHub-Api-Version": github_api.api_version,
            "User-Agent": github_api.user_agent,
        }

        timeout = httpx.Timeout(github_api.request_timeout)

        async with httpx.AsyncClient(timeout=timeout, transport=self._transport) as client:
            response = await client.request(
                method=method,
                url=url,
                headers=headers,
                json=json_data,
            )

        self._rate_limit_info = GitHubAPIRateLimit.from_headers(response.headers) or self._rate_limit_info

        if response.is_success:
            return response.json()

        raise self._handle_http_error(response, f"{method} {endpoint}")

    def _handle_http_error(self, response: httpx.Response, operation: str):
        """
        Convert a non-success response to the matching typed exception.
        """
        status_code = response.status_code
        message = f"GitHub API error during {operation}: {status_code}"
        if response.text:
            message += f" - {response.text[:500]}"

        if status_code == 403 and self._rate_limit_info and self._rate_limit_info.remaining == 0:
            # Primary rate limit exhaustion is reported as 403 with remaining=0
            logger.warning(
                f"GitHub rate limit exhausted, resets in {self._rate_limit_info.seconds_until_reset}s"
            )

        return api_status_error(
            status_code=status_code,
            message=message,
            retry_after_ms=parse_retry_after_ms(response.headers),
        )

    def get_current_rate_limit(self) -> Optional[GitHubAPIRateLimit]:
        """Get current rate limit information."""
        return self._rate_limit_info
