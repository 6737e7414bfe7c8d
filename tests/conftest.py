"""Shared fixtures for the review action tests."""

from typing import List

import pytest

from src.core.review_config import InferenceConfig, ReviewActionSettings, RetryConfig


class RecordingSleep:
    """Stands in for asyncio.sleep and records the requested waits."""

    def __init__(self):
        self.calls: List[float] = []

    async def __call__(self, seconds: float) -> None:
        self.calls.append(seconds)


@pytest.fixture
def recording_sleep() -> RecordingSleep:
    return RecordingSleep()


@pytest.fixture
def fast_settings() -> ReviewActionSettings:
    """Default settings with backoff waits disabled."""
    return ReviewActionSettings(retry=RetryConfig(initial_delay_ms=0))


@pytest.fixture
def short_deadline_settings() -> ReviewActionSettings:
    """Settings whose inference deadline expires almost immediately."""
    inference = InferenceConfig().model_copy(update={"timeout_ms": 20})
    return ReviewActionSettings(inference=inference)
