"""
Inference Request/Result Schemas
"""

from typing import Any, Dict, List, Literal

from pydantic import BaseModel, Field

from .diff_payload import utf8_size


class ReviewMessage(BaseModel):
    model_config = {"frozen": True}

    role: Literal["user"] = "user"
    content: str


class ReviewRequest(BaseModel):
    """Immutable Messages API request for one review."""

    model_config = {"frozen": True}

    model: str = Field(..., description="Model identifier")
    max_tokens: int = Field(..., description="Maximum tokens to generate", ge=1)
    temperature: float = Field(..., description="Sampling temperature", ge=0.0, le=1.0)
    messages: List[ReviewMessage] = Field(..., min_length=1, max_length=1)

    @classmethod
    def for_prompt(cls, prompt: str, model: str, max_tokens: int, temperature: float) -> "ReviewRequest":
        return cls(
            model=model,
            max_tokens=max_tokens,
            temperature=temperature,
            messages=[ReviewMessage(content=prompt)],
        )

    @property
    def prompt(self) -> str:
        return self.messages[0].content

    def to_request_body(self) -> Dict[str, Any]:
        return self.model_dump()


class ReviewResult(BaseModel):
    """Review text extracted from the first content segment."""

    text: str = Field(..., min_length=1)
    length: int = Field(..., description="UTF-8 bytes of text", ge=1)

    @classmethod
    def from_text(cls, text: str) -> "ReviewResult":
        return cls(text=text, length=utf8_size(text))
