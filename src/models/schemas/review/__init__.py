"""
Review Action Data Models

Pydantic schemas for the review action's pipeline stages.
"""

from .pull_request import PullRequestInfo, PRRevision
from .diff_payload import DiffPayload, TRUNCATION_MARKER, TRUNCATION_MARKER_BYTES, utf8_size
from .review import ReviewMessage, ReviewRequest, ReviewResult
from .run_outcome import RunOutcome, NO_CHANGES_MESSAGE
from .run_request import ReviewRunRequest

__all__ = [
    # PR metadata
    "PullRequestInfo",
    "PRRevision",

    # Diff payload
    "DiffPayload",
    "TRUNCATION_MARKER",
    "TRUNCATION_MARKER_BYTES",
    "utf8_size",

    # Inference models
    "ReviewMessage",
    "ReviewRequest",
    "ReviewResult",

    # Run request/outcome
    "ReviewRunRequest",
    "RunOutcome",
    "NO_CHANGES_MESSAGE",
]
