"""
Git operations for the review action.

Prepares the checkout so PR heads are fetchable and produces the unified
diff between two revisions. Git runs as an async subprocess so the event
loop stays free while it works.
"""

import asyncio
from dataclasses import dataclass
from typing import List, Optional

from src.core.review_config import ReviewActionSettings, review_action_settings
from src.exceptions.review_exceptions import DiffGenerationException, ReviewActionException
from src.utils.logging import get_logger
from src.utils.retry import retry_with_backoff

logger = get_logger(__name__)

PR_REFSPEC = "+refs/pull/*/head:refs/remotes/origin/pr/*"


class GitCommandException(ReviewActionException):
    """Raised when a git command exits non-zero."""
    def __init__(self, args: List[str], returncode: int, stderr: str):
        message = f"git {' '.join(args)} exited with {returncode}"
        if stderr.strip():
            message += f": {stderr.strip()}"
        super().__init__(message=message)
        self.returncode = returncode
        self.stderr = stderr


@dataclass
class GitResult:
    stdout: str
    stderr: str
    returncode: int


class GitService:
    """Thin async wrapper around the git CLI."""

    def __init__(
        self,
        cwd: Optional[str] = None,
        config: Optional[ReviewActionSettings] = None,
    ):
        self.cwd = cwd
        self.config = config or review_action_settings

    async def run(self, *args: str, check: bool = True) -> GitResult:
        process = await asyncio.create_subprocess_exec(
            "git",
            *args,
            cwd=self.cwd,
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.PIPE,
        )
        stdout, stderr = await process.communicate()
        result = GitResult(
            stdout=stdout.decode("utf-8", errors="replace"),
            stderr=stderr.decode("utf-8", errors="replace"),
            returncode=process.returncode,
        )
        if check and result.returncode != 0:
            raise GitCommandException(list(args), result.returncode, result.stderr)
        return result

    async def setup_git_config(self) -> None:
        """
        Make PR heads fetchable and set the bot identity.

        The refspec change and the fetch are retried with the generic budget.
        """
        retry = self.config.retry

        logger.info("Configuring git to fetch PR refs...")
        await retry_with_backoff(
            self.run,
            "config", "--local", "--add", "remote.origin.fetch", PR_REFSPEC,
            operation="Git config fetch refs",
            max_retries=retry.max_retries,
            initial_delay_ms=retry.initial_delay_ms,
        )

        logger.info("Fetching from origin...")
        await retry_with_backoff(
            self.run,
            "fetch", "origin",
            operation="Git fetch origin",
            max_retries=retry.max_retries,
            initial_delay_ms=retry.initial_delay_ms,
        )

        logger.info("Setting git user identity...")
        await self.run("config", "--global", "user.name", self.config.publish.bot_name)
        await self.run("config", "--global", "user.email", self.config.publish.bot_email)

        logger.info("Git configuration completed")

    async def diff(self, base_sha: str, head_sha: str) -> str:
        """
        Unified diff between two revisions with the configured context lines.

        Raises:
            DiffGenerationException: If git diff fails
        """
        logger.info(f"Generating diff between {base_sha[:7]} and {head_sha[:7]}")

        try:
            result = await self.run(
                "diff", f"-U{self.config.diff.context_lines}", base_sha, head_sha
            )
        except (GitCommandException, OSError) as e:
            logger.error(f"Failed to generate diff: {e}")
            raise DiffGenerationException(f"Failed to generate diff: {e}", cause=e) from e

        if result.stderr:
            logger.debug(f"Git diff stderr: {result.stderr}")

        logger.info(f"Diff generated: {len(result.stdout.encode('utf-8'))} bytes")
        return result.stdout
