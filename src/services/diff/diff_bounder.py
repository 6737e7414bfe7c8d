"""
Diff size bounding.

Keeps the diff sent for review within a fixed UTF-8 byte budget. Oversized
diffs are cut on a byte boundary and annotated with a truncation notice.
"""

from typing import Optional

from src.core.review_config import review_action_settings
from src.models.schemas.review import (
    DiffPayload,
    TRUNCATION_MARKER,
    utf8_size,
)
from src.utils.logging import get_logger

logger = get_logger(__name__)


def bound_diff(diff_text: str, max_bytes: Optional[int] = None) -> DiffPayload:
    """
    Bound diff text to max_bytes UTF-8 bytes.

    Args:
        diff_text: Raw diff produced by the diff producer
        max_bytes: Byte budget (default: configured max_diff_bytes)

    Returns:
        DiffPayload. Empty or whitespace-only input yields DiffPayload.empty().
    """
    if max_bytes is None:
        max_bytes = review_action_settings.diff.max_diff_bytes

    original_size = utf8_size(diff_text)

    if original_size == 0 or not diff_text.strip():
        logger.warning("Diff is empty - no changes found")
        return DiffPayload.empty(max_bytes=max_bytes, original_size=original_size)

    if original_size <= max_bytes:
        logger.info(f"Diff contains {diff_text.count(chr(10)) + 1} lines ({original_size} bytes)")
        return DiffPayload(
            content=diff_text,
            original_size=original_size,
            effective_size=original_size,
            max_bytes=max_bytes,
        )

    logger.warning(f"Diff size ({original_size} bytes) exceeds maximum ({max_bytes} bytes)")

    # A multi-byte character split by the cut is dropped rather than emitted invalid
    kept = diff_text.encode("utf-8")[:max_bytes].decode("utf-8", errors="ignore")
    content = kept + TRUNCATION_MARKER

    logger.warning(f"Diff truncated to {max_bytes} bytes (~{kept.count(chr(10)) + 1} lines)")

    return DiffPayload(
        content=content,
        original_size=original_size,
        effective_size=utf8_size(content),
        was_truncated=True,
        max_bytes=max_bytes,
    )


def bound_payload(payload: DiffPayload, max_bytes: Optional[int] = None) -> DiffPayload:
    """
    Re-apply bounding to an existing payload.

    A payload already bounded to the same budget is returned unchanged.
    """
    if max_bytes is None:
        max_bytes = review_action_settings.diff.max_diff_bytes

    if payload.max_bytes == max_bytes:
        return payload

    text = payload.content
    if payload.was_truncated:
        text = text[: -len(TRUNCATION_MARKER)]

    bounded = bound_diff(text, max_bytes)
    if payload.was_truncated and not bounded.was_truncated and not bounded.is_empty:
        content = bounded.content + TRUNCATION_MARKER
        bounded = DiffPayload(
            content=content,
            original_size=payload.original_size,
            effective_size=utf8_size(content),
            was_truncated=True,
            max_bytes=max_bytes,
        )
    return bounded.model_copy(update={"original_size": payload.original_size})
