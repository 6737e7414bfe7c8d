from src.utils.logging.json_logger import get_logger, mask_secrets, register_secret

__all__ = ["get_logger", "mask_secrets", "register_secret"]
