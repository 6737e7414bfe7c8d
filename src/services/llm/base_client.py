"""Base interface for inference API clients."""
from abc import ABC, abstractmethod
from typing import Any, Dict

from src.models.schemas.review import ReviewRequest


class BaseLLMClient(ABC):
    """Sends one review request and returns the decoded response body."""

    def __init__(self, api_key: str, api_url: str):
        self.api_key = api_key
        self.api_url = api_url

    @abstractmethod
    async def send(self, request: ReviewRequest) -> Dict[str, Any]:
        """
        Send the request once, without retries or deadline.

        Raises:
            APIStatusError subclass for non-success statuses
            httpx.TransportError for network failures
        """
