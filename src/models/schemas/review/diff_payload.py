"""
Diff Payload Schema

Size-bounded diff text as sent to the inference API.
"""

from pydantic import BaseModel, Field, model_validator

TRUNCATION_MARKER = "\n\n[... diff truncated due to size ...]"
TRUNCATION_MARKER_BYTES = len(TRUNCATION_MARKER.encode("utf-8"))


def utf8_size(text: str) -> int:
    return len(text.encode("utf-8"))


class DiffPayload(BaseModel):
    """Diff text plus its size metadata."""

    model_config = {"frozen": True}

    content: str = Field(default="", description="Diff text, possibly truncated")
    original_size: int = Field(default=0, description="UTF-8 bytes before bounding", ge=0)
    effective_size: int = Field(default=0, description="UTF-8 bytes of content", ge=0)
    was_truncated: bool = Field(default=False, description="Whether content was cut")
    max_bytes: int = Field(..., description="Byte budget the payload was bounded to", ge=1)

    @model_validator(mode="after")
    def check_size_invariants(self) -> "DiffPayload":
        if self.effective_size != utf8_size(self.content):
            raise ValueError("effective_size must equal the UTF-8 size of content")
        if self.was_truncated:
            if not self.content.endswith(TRUNCATION_MARKER):
                raise ValueError("truncated payload must end with the truncation marker")
            if self.effective_size > self.max_bytes + TRUNCATION_MARKER_BYTES:
                raise ValueError("truncated payload exceeds max_bytes plus marker")
        elif self.effective_size > self.max_bytes:
            raise ValueError("untruncated payload exceeds max_bytes")
        return self

    @classmethod
    def empty(cls, max_bytes: int, original_size: int = 0) -> "DiffPayload":
        """Explicit 'nothing to review' payload."""
        return cls(content="", original_size=original_size, effective_size=0, max_bytes=max_bytes)

    @property
    def is_empty(self) -> bool:
        return not self.content.strip()
