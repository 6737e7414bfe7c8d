"""Anthropic Messages API client for PR review."""
import json
from typing import Any, Dict, Optional

import httpx

from src.core.review_config import InferenceConfig, review_action_settings
from src.exceptions.review_exceptions import MalformedResponseException, api_status_error
from src.models.schemas.review import ReviewRequest
from src.utils.logging import get_logger
from src.utils.requests import parse_retry_after_ms

from .base_client import BaseLLMClient

logger = get_logger(__name__)


def extract_error_message(response: httpx.Response) -> str:
    """Provider error message: error.message, then message, then the raw body."""
    error_text = response.text
    try:
        error_data = json.loads(error_text)
    except ValueError:
        return error_text
    if not isinstance(error_data, dict):
        return error_text
    error = error_data.get("error")
    if isinstance(error, dict) and error.get("message"):
        return str(error["message"])
    return str(error_data.get("message") or error_text)


class ClaudeClient(BaseLLMClient):
    """Raw HTTP client for the Anthropic Messages API."""

    def __init__(
        self,
        api_key: str,
        config: Optional[InferenceConfig] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.config = config or review_action_settings.inference
        super().__init__(api_key=api_key, api_url=self.config.api_url)
        self._transport = transport

    def _headers(self) -> Dict[str, str]:
        return {
            "Content-Type": "application/json",
            "x-api-key": self.api_key,
            "anthropic-version": self.config.api_version,
        }

    async def send(self, request: ReviewRequest) -> Dict[str, Any]:
        # The caller enforces the wall-clock deadline; httpx's own timeout is disabled
        async with httpx.AsyncClient(timeout=None, transport=self._transport) as client:
            response = await client.post(
                self.api_url,
                headers=self._headers(),
                json=request.to_request_body(),
            )

        if not response.is_success:
            retry_after_ms = None
            if response.status_code == 429:
                retry_after_ms = parse_retry_after_ms(response.headers)
                if retry_after_ms is not None:
                    logger.warning(f"Rate limited. Retry after {retry_after_ms // 1000} seconds")
            raise api_status_error(
                status_code=response.status_code,
                message=f"API returned {response.status_code}: {extract_error_message(response)}",
                retry_after_ms=retry_after_ms,
            )

        try:
            return response.json()
        except ValueError as e:
            raise MalformedResponseException(
                f"Invalid API response: body is not JSON. Response: {response.text[:200]}"
            ) from e
