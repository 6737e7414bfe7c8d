"""
Run Request Schema

Raw action inputs for one review run, before validation.
"""

from typing import Optional, Union

from pydantic import BaseModel, Field


class ReviewRunRequest(BaseModel):
    """Input contract for the review workflow."""

    github_token: str = Field(default="", description="GitHub API token", repr=False)
    anthropic_key: str = Field(default="", description="Anthropic API key", repr=False)
    pr_number: Optional[Union[int, str]] = Field(None, description="Pull request number as given")
    repository: str = Field(default="", description="Repository in owner/repo format")
    setup_git: bool = Field(default=True, description="Configure PR refspec and fetch before diffing")
