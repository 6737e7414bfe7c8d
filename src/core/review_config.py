"""
Review Action Configuration Framework

Centralized configuration for the review action with hard limits, retry
budgets and the inference request shape. Every value can be overridden from
the environment with the REVIEW_ACTION_ prefix.
"""

from enum import Enum

from pydantic import BaseModel, Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class LogLevel(str, Enum):
    """Logging levels for the review action."""
    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"
    CRITICAL = "CRITICAL"


class RetryConfig(BaseModel):
    """Backoff budgets for remote operations."""

    max_retries: int = Field(
        default=4,
        description="Retries after the initial attempt for generic operations",
        ge=0,
        le=10
    )
    inference_max_retries: int = Field(
        default=3,
        description="Retries after the initial attempt for the inference call",
        ge=0,
        le=10
    )
    initial_delay_ms: int = Field(
        default=2000,
        description="Delay before the first retry, doubled for each later retry",
        ge=0,
        le=60_000
    )


class InferenceConfig(BaseModel):
    """Anthropic Messages API request configuration."""

    api_url: str = Field(
        default="https://api.anthropic.com/v1/messages",
        description="Messages endpoint"
    )
    api_version: str = Field(
        default="2023-06-01",
        description="anthropic-version header"
    )
    model: str = Field(
        default="claude-3-5-sonnet-20241022",
        description="Model identifier"
    )
    max_tokens: int = Field(
        default=4096,
        description="Maximum tokens to generate",
        ge=1,
        le=200_000
    )
    temperature: float = Field(
        default=0.7,
        description="Sampling temperature",
        ge=0.0,
        le=1.0
    )
    timeout_ms: int = Field(
        default=120_000,
        description="Hard wall-clock deadline for one inference call",
        ge=1000,
        le=600_000
    )
    api_key_prefix: str = Field(
        default="sk-ant-",
        description="Expected prefix of Anthropic API keys (soft check)"
    )


class DiffLimits(BaseModel):
    """Diff production and size limits."""

    max_diff_bytes: int = Field(
        default=100_000,
        description="Maximum UTF-8 bytes of diff sent for review",
        ge=1000,
        le=1_000_000
    )
    context_lines: int = Field(
        default=10,
        description="Lines of context passed to git diff -U",
        ge=0,
        le=100
    )


class GitHubAPIConfig(BaseModel):
    """GitHub API configuration."""

    api_base_url: str = Field(
        default="https://api.github.com",
        description="GitHub API base URL"
    )
    api_version: str = Field(
        default="2022-11-28",
        description="GitHub API version header"
    )
    user_agent: str = Field(
        default="Claude-Code-Review-Action/1.0",
        description="User agent for API requests"
    )
    request_timeout: int = Field(
        default=30,
        description="Individual request timeout in seconds",
        ge=5,
        le=120
    )


class PublishConfig(BaseModel):
    """Review comment configuration."""

    comment_heading: str = Field(
        default="# 🤖 Claude Code Review",
        description="Heading prepended to the posted review"
    )
    bot_name: str = Field(
        default="claude-code-review[bot]",
        description="git user.name used by the action"
    )
    bot_email: str = Field(
        default="claude-code-review[bot]@users.noreply.github.com",
        description="git user.email used by the action"
    )


class ReviewActionSettings(BaseSettings):
    """
    Main configuration settings for the review action.

    Read from the process environment only; no .env file is consulted.
    """

    model_config = SettingsConfigDict(
        case_sensitive=False,
        env_nested_delimiter="__",
        env_prefix="REVIEW_ACTION_",
        extra="ignore",
    )

    log_level: LogLevel = Field(
        default=LogLevel.INFO,
        description="Logging level"
    )

    retry: RetryConfig = Field(default_factory=RetryConfig)
    inference: InferenceConfig = Field(default_factory=InferenceConfig)
    diff: DiffLimits = Field(default_factory=DiffLimits)
    github_api: GitHubAPIConfig = Field(default_factory=GitHubAPIConfig)
    publish: PublishConfig = Field(default_factory=PublishConfig)


# ============================================================================
# CONFIGURATION FACTORY
# ============================================================================

def get_review_action_settings() -> ReviewActionSettings:
    """
    Get review action settings with environment-based overrides.

    Environment variables can override any setting using double underscore notation:
    - REVIEW_ACTION_RETRY__MAX_RETRIES=2
    - REVIEW_ACTION_INFERENCE__MODEL=claude-3-5-haiku-20241022
    - REVIEW_ACTION_DIFF__MAX_DIFF_BYTES=50000
    """
    return ReviewActionSettings()


# Initialize global settings - can be overridden by tests
review_action_settings = get_review_action_settings()
