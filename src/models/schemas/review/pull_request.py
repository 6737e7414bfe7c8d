"""
Pull Request Schemas

Subset of the GitHub pull request payload the review action needs.
"""

from typing import Any, Dict, Literal

from pydantic import BaseModel, Field


class PRRevision(BaseModel):
    """One side (base or head) of a pull request."""

    sha: str = Field(..., description="Commit SHA", min_length=7)
    ref: str = Field(..., description="Branch name")

    @property
    def short_sha(self) -> str:
        return self.sha[:7]


class PullRequestInfo(BaseModel):
    """Pull request metadata used to compute the diff."""

    number: int = Field(..., description="Pull request number", ge=1)
    title: str = Field(default="", description="Pull request title")
    state: Literal["open", "closed"] = Field(..., description="Pull request state")
    base: PRRevision
    head: PRRevision

    @property
    def is_closed(self) -> bool:
        return self.state == "closed"

    @classmethod
    def from_api(cls, data: Dict[str, Any]) -> "PullRequestInfo":
        """Build from a GET /repos/{repo}/pulls/{number} response body."""
        return cls(
            number=data["number"],
            title=data.get("title") or "",
            state=data["state"],
            base=PRRevision(sha=data["base"]["sha"], ref=data["base"]["ref"]),
            head=PRRevision(sha=data["head"]["sha"], ref=data["head"]["ref"]),
        )
