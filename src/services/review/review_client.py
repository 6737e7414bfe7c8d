"""
Review client.

Builds the inference request for a bounded diff and sends it through the
deadline guard and the backoff policy, then validates the response shape.
"""

from typing import Any, Optional

from src.core.review_config import ReviewActionSettings, review_action_settings
from src.exceptions.review_exceptions import (
    InferenceException,
    InferenceTimeoutException,
    ResponseParseException,
)
from src.models.schemas.review import DiffPayload, ReviewRequest, ReviewResult
from src.services.llm.base_client import BaseLLMClient
from src.services.llm.claude_client import ClaudeClient
from src.services.review.prompt_builder import build_review_prompt
from src.utils.logging import get_logger
from src.utils.retry import SleepFunc, retry_with_backoff
from src.utils.timeout import call_with_deadline

logger = get_logger(__name__)

OPERATION_NAME = "Claude API request"


def extract_review_text(data: Any) -> str:
    """
    First text segment of a Messages API response.

    Raises:
        ResponseParseException: If content[0].text is missing or empty
    """
    content = data.get("content") if isinstance(data, dict) else None
    first = content[0] if isinstance(content, list) and content else None
    text = first.get("text") if isinstance(first, dict) else None
    if not isinstance(text, str) or not text:
        raise ResponseParseException(
            f"Invalid API response: missing content. Response: {str(data)[:200]}"
        )
    return text


class ReviewClient:
    """
    Obtains a review for a diff payload.

    The inference call uses its own, smaller retry budget; each attempt is
    bounded by the inference deadline independently.
    """

    def __init__(
        self,
        config: Optional[ReviewActionSettings] = None,
        llm_client: Optional[BaseLLMClient] = None,
        sleep: Optional[SleepFunc] = None,
    ):
        self.config = config or review_action_settings
        self._llm_client = llm_client
        self._sleep = sleep

    def _client_for(self, api_key: str) -> BaseLLMClient:
        if self._llm_client is not None:
            return self._llm_client
        return ClaudeClient(api_key=api_key, config=self.config.inference)

    def build_request(self, diff_payload: DiffPayload) -> ReviewRequest:
        inference = self.config.inference
        return ReviewRequest.for_prompt(
            build_review_prompt(diff_payload.content),
            model=inference.model,
            max_tokens=inference.max_tokens,
            temperature=inference.temperature,
        )

    async def review(self, diff_payload: DiffPayload, api_key: str) -> Optional[ReviewResult]:
        """
        Review the diff.

        Returns:
            ReviewResult, or None when the payload is empty (nothing to review)

        Raises:
            InferenceException: When no review could be obtained
        """
        if diff_payload.is_empty:
            logger.warning("Diff content is empty, skipping analysis")
            return None

        request = self.build_request(diff_payload)
        client = self._client_for(api_key)
        inference = self.config.inference

        logger.info("Sending request to Claude API...")
        logger.debug(f"Prompt length: {len(request.prompt)} characters")

        try:
            text = await retry_with_backoff(
                self._attempt,
                client,
                request,
                operation=OPERATION_NAME,
                max_retries=self.config.retry.inference_max_retries,
                initial_delay_ms=self.config.retry.initial_delay_ms,
                sleep=self._sleep,
            )
        except InferenceTimeoutException as e:
            raise InferenceException(
                f"{OPERATION_NAME} timed out after {inference.timeout_ms / 1000:g} seconds", cause=e
            ) from e
        except Exception as e:
            logger.error(f"Claude API error: {e}")
            raise InferenceException(f"Failed to analyze with Claude: {e}", cause=e) from e

        result = ReviewResult.from_text(text)
        logger.info(f"Received review from Claude: {result.length} bytes")
        return result

    async def _attempt(self, client: BaseLLMClient, request: ReviewRequest) -> str:
        data = await call_with_deadline(
            client.send,
            request,
            timeout_ms=self.config.inference.timeout_ms,
            operation=OPERATION_NAME,
        )
        return extract_review_text(data)
