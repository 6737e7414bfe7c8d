"""
Run Outcome Schema

Terminal record of one review run and the action outputs derived from it.
"""

from typing import Dict, Literal, Optional

from pydantic import BaseModel, Field, model_validator

NO_CHANGES_MESSAGE = "No changes to review"


class RunOutcome(BaseModel):
    """
    Exactly one of: completed with a review, skipped (nothing to review or
    no review produced), or failed.
    """

    status: Literal["completed", "skipped", "failed"] = Field(..., description="Final run status")
    diff_size_bytes: Optional[int] = Field(None, description="Bytes of diff sent for review", ge=0)
    review_text: Optional[str] = Field(None, description="Review posted to the PR")
    duration_seconds: float = Field(0.0, description="Wall-clock duration of the run", ge=0)
    error_message: Optional[str] = Field(None, description="Failure description if the run failed")
    error_stage: Optional[str] = Field(None, description="Stage that produced the failure")

    @model_validator(mode="after")
    def check_single_terminal_state(self) -> "RunOutcome":
        if self.status == "completed" and not self.review_text:
            raise ValueError("completed runs must carry review text")
        if self.status == "failed" and not self.error_message:
            raise ValueError("failed runs must carry an error message")
        if self.status != "failed" and self.error_message is not None:
            raise ValueError("only failed runs may carry an error message")
        if self.status == "skipped" and self.review_text is not None:
            raise ValueError("skipped runs carry no review text")
        return self

    @property
    def succeeded(self) -> bool:
        return self.status != "failed"

    @property
    def exit_code(self) -> int:
        return 0 if self.succeeded else 1

    def outputs(self) -> Dict[str, str]:
        """Action outputs: diff_size and review."""
        outputs: Dict[str, str] = {}
        if self.diff_size_bytes is not None:
            outputs["diff_size"] = str(self.diff_size_bytes)
        if self.status == "completed":
            outputs["review"] = self.review_text
        elif self.status == "skipped":
            outputs["review"] = NO_CHANGES_MESSAGE if self.diff_size_bytes == 0 else ""
        return outputs
