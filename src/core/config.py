import json
from pathlib import Path
from typing import Any, Dict, Optional

from pydantic import AliasChoices, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Action inputs and runner environment.

    The runner exposes action inputs as INPUT_<NAME> with the input name
    upper-cased and its dashes preserved; plain names are accepted for
    local runs. Only the process environment is read: the working directory
    is the checked-out PR and its files are untrusted.
    """
    model_config = SettingsConfigDict(
        case_sensitive=False,
        populate_by_name=True,
        extra="ignore",
    )

    github_token: str = Field(
        default="",
        validation_alias=AliasChoices("INPUT_GITHUB-TOKEN", "GITHUB_TOKEN"),
    )
    anthropic_key: str = Field(
        default="",
        validation_alias=AliasChoices("INPUT_ANTHROPIC-KEY", "ANTHROPIC_API_KEY"),
    )
    pr_number: str = Field(
        default="",
        validation_alias=AliasChoices("INPUT_PR-NUMBER", "PR_NUMBER"),
    )
    skip_auto_review: bool = Field(
        default=False,
        validation_alias=AliasChoices("INPUT_SKIP-AUTO-REVIEW", "SKIP_AUTO_REVIEW"),
    )

    github_repository: str = Field(default="", validation_alias="GITHUB_REPOSITORY")
    github_event_name: str = Field(default="", validation_alias="GITHUB_EVENT_NAME")
    github_event_path: str = Field(default="", validation_alias="GITHUB_EVENT_PATH")
    github_output: str = Field(default="", validation_alias="GITHUB_OUTPUT")

    @field_validator("pr_number", mode="before")
    @classmethod
    def coerce_pr_number(cls, v: Any) -> str:
        return "" if v is None else str(v).strip()

    @field_validator("skip_auto_review", mode="before")
    @classmethod
    def coerce_empty_bool(cls, v: Any) -> Any:
        # Unset optional inputs arrive as empty strings
        if isinstance(v, str) and not v.strip():
            return False
        return v

    def load_event_payload(self) -> Dict[str, Any]:
        """Read the triggering event's JSON payload, or {} when unavailable."""
        if not self.github_event_path:
            return {}
        path = Path(self.github_event_path)
        if not path.is_file():
            return {}
        return json.loads(path.read_text(encoding="utf-8"))

    def resolve_pr_number(self) -> str:
        """
        PR number input, defaulting to the triggering PR for pull_request events.
        """
        if self.pr_number:
            return self.pr_number
        if self.github_event_name == "pull_request":
            number: Optional[int] = (self.load_event_payload().get("pull_request") or {}).get("number")
            if number is not None:
                return str(number)
        return ""


def get_settings() -> Settings:
    return Settings()
