"""
Review Action Exceptions

Typed exceptions for every stage of the review run, plus the classification
rules the retry layer uses to decide between aborting and backing off.
"""

from dataclasses import dataclass
from enum import Enum
from http import HTTPStatus
from typing import Optional

import httpx

from src.utils.exception import AppException


# Statuses that will not change on retry: the request or credential is wrong.
NON_RETRYABLE_STATUS_CODES = frozenset({
    HTTPStatus.BAD_REQUEST,
    HTTPStatus.UNAUTHORIZED,
    HTTPStatus.FORBIDDEN,
})


class ErrorKind(str, Enum):
    """Retry classification of a failure."""
    FATAL = "fatal"
    RETRYABLE = "retryable"
    RATE_LIMITED = "rate_limited"


@dataclass(frozen=True)
class ClassifiedError:
    """A failure tagged with its retry classification."""
    kind: ErrorKind
    error: BaseException
    retry_after_ms: Optional[int] = None

    def __post_init__(self):
        if self.kind == ErrorKind.FATAL and self.retry_after_ms is not None:
            raise ValueError("Fatal errors cannot carry a retry-after hint")

    @property
    def is_retryable(self) -> bool:
        return self.kind != ErrorKind.FATAL


# ============================================================================
# BASE EXCEPTION
# ============================================================================

class ReviewActionException(AppException):
    """Base exception for review action errors."""
    retryable: bool = True

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message=message, status_code=status_code)


# ============================================================================
# INPUT EXCEPTIONS
# ============================================================================

class InvalidInputException(ReviewActionException):
    """Raised when an action input fails pre-flight validation."""
    retryable = False

    def __init__(self, message: str):
        super().__init__(message=message, status_code=HTTPStatus.BAD_REQUEST)


# ============================================================================
# REMOTE API EXCEPTIONS
# ============================================================================

class APIStatusError(ReviewActionException):
    """A remote API answered with a non-success HTTP status."""
    def __init__(self, status_code: int, message: str, retry_after_ms: Optional[int] = None):
        super().__init__(message=message, status_code=status_code)
        self.retry_after_ms = retry_after_ms


class AuthFailureException(APIStatusError):
    """Raised for 400/401/403 responses; the request will not succeed on retry."""
    retryable = False

    def __init__(self, status_code: int, message: str):
        super().__init__(status_code=status_code, message=message)


class RateLimitException(APIStatusError):
    """Raised for 429 responses, optionally carrying the server's retry-after hint."""
    def __init__(self, message: str, retry_after_ms: Optional[int] = None):
        super().__init__(
            status_code=HTTPStatus.TOO_MANY_REQUESTS,
            message=message,
            retry_after_ms=retry_after_ms,
        )


class TransientAPIException(APIStatusError):
    """Raised for 5xx responses and other statuses expected to clear up."""


class MalformedResponseException(ReviewActionException):
    """A 2xx response whose body could not be decoded at all."""


class ResponseParseException(ReviewActionException):
    """A 2xx response whose body does not have the expected shape."""
    retryable = False


class InferenceTimeoutException(ReviewActionException):
    """Raised when a guarded call does not finish before its deadline."""
    def __init__(self, timeout_ms: int, operation: str = "Request"):
        self.timeout_ms = timeout_ms
        self.timeout_seconds = timeout_ms / 1000
        super().__init__(
            message=f"{operation} timed out after {self.timeout_seconds:g} seconds",
            status_code=HTTPStatus.GATEWAY_TIMEOUT,
        )


def api_status_error(status_code: int, message: str, retry_after_ms: Optional[int] = None) -> APIStatusError:
    """Build the exception subclass matching a non-success status."""
    if status_code in NON_RETRYABLE_STATUS_CODES:
        return AuthFailureException(status_code=status_code, message=message)
    if status_code == HTTPStatus.TOO_MANY_REQUESTS:
        return RateLimitException(message=message, retry_after_ms=retry_after_ms)
    return TransientAPIException(status_code=status_code, message=message)


# ============================================================================
# STAGE EXCEPTIONS
# ============================================================================

class StageException(ReviewActionException):
    """Wraps the failure of one pipeline stage, keeping the cause's status."""
    stage: str = "unknown"

    def __init__(self, message: str, cause: Optional[BaseException] = None):
        status_code = getattr(cause, "status_code", None) if cause is not None else None
        super().__init__(message=message, status_code=status_code)
        self.cause = cause


class PRFetchException(StageException):
    """Raised when PR metadata cannot be retrieved."""
    stage = "fetch_pr"


class DiffGenerationException(StageException):
    """Raised when the diff producer fails."""
    stage = "compute_diff"


class InferenceException(StageException):
    """Raised when the review could not be obtained from the inference API."""
    stage = "review"


class PublishFailureException(StageException):
    """Raised when a computed review could not be posted to the PR."""
    stage = "publish"


# ============================================================================
# UTILITY FUNCTIONS
# ============================================================================

def get_status_code(exception: BaseException) -> Optional[int]:
    """Extract an HTTP-like status from an exception, if it carries one."""
    if isinstance(exception, httpx.HTTPStatusError):
        return exception.response.status_code
    status_code = getattr(exception, "status_code", None)
    return int(status_code) if isinstance(status_code, int) else None


def get_retry_delay_ms(exception: BaseException) -> Optional[int]:
    """
    Get the server-requested delay for an exception.

    Returns the hint in milliseconds, or None when the server gave none.
    """
    retry_after_ms = getattr(exception, "retry_after_ms", None)
    if isinstance(retry_after_ms, int) and retry_after_ms >= 0:
        return retry_after_ms
    return None


def classify_error(exception: BaseException) -> ClassifiedError:
    """
    Classify a failure for the retry layer.

    400/401/403 statuses and exceptions marked non-retryable are fatal.
    429 is rate limited. Everything else (network errors, 5xx, timeouts)
    is retryable.
    """
    status_code = get_status_code(exception)

    if status_code in NON_RETRYABLE_STATUS_CODES:
        return ClassifiedError(kind=ErrorKind.FATAL, error=exception)

    if isinstance(exception, ReviewActionException) and not exception.retryable:
        return ClassifiedError(kind=ErrorKind.FATAL, error=exception)

    if status_code == HTTPStatus.TOO_MANY_REQUESTS:
        return ClassifiedError(
            kind=ErrorKind.RATE_LIMITED,
            error=exception,
            retry_after_ms=get_retry_delay_ms(exception),
        )

    return ClassifiedError(kind=ErrorKind.RETRYABLE, error=exception)


def is_retryable_error(exception: BaseException) -> bool:
    """Determine if a failure should be retried."""
    return classify_error(exception).is_retryable
