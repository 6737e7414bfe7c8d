import logging

from pythonjsonlogger.json import JsonFormatter

from src.core.review_config import review_action_settings

SERVICE_NAME: str = "pr-review-action"
SERVICE_VERSION: str = "1.0.0"

BASE_LOGGER_CACHE = {}

_REGISTERED_SECRETS: set[str] = set()
_MASK = "***"


def register_secret(secret: str) -> None:
    """
    Registers a value that must never appear in log output.
    """
    if secret and secret.strip():
        _REGISTERED_SECRETS.add(secret)


def mask_secrets(text: str) -> str:
    # Longest first so a secret containing another secret is fully masked
    for secret in sorted(_REGISTERED_SECRETS, key=len, reverse=True):
        text = text.replace(secret, _MASK)
    return text


class SecretMaskingFilter(logging.Filter):
    """Redacts registered secrets from the rendered message."""

    def filter(self, record: logging.LogRecord) -> bool:
        if _REGISTERED_SECRETS:
            record.msg = mask_secrets(record.getMessage())
            record.args = None
        return True


class MaskingJsonFormatter(JsonFormatter):
    """JSON formatter that also redacts secrets from tracebacks and stack info."""

    def formatException(self, ei) -> str:
        return mask_secrets(super().formatException(ei))

    def formatStack(self, stack_info: str) -> str:
        return mask_secrets(super().formatStack(stack_info))


def _resolve_level() -> int:
    return logging.getLevelName(review_action_settings.log_level.value)


def get_logger(name: str) -> logging.Logger:
    """
    Returns the logger with the given name is exists, else creates a new one.
    """
    if name in BASE_LOGGER_CACHE:
        return BASE_LOGGER_CACHE[name]

    # Initialize the base logger
    base_logger = logging.getLogger(name)
    base_logger.setLevel(_resolve_level())
    BASE_LOGGER_CACHE[name] = base_logger

    # Add stream handler with JSON formatting
    stream_handler = logging.StreamHandler()
    stream_handler.setFormatter(
        MaskingJsonFormatter(
            "%(asctime)s %(levelname)s %(name)s %(message)s",
            static_fields={"service": SERVICE_NAME, "version": SERVICE_VERSION},
        )
    )
    stream_handler.addFilter(SecretMaskingFilter())

    base_logger.addHandler(stream_handler)
    base_logger.debug(f"Logger '{name}' initialized successfully")

    return base_logger


logger = get_logger(SERVICE_NAME)
