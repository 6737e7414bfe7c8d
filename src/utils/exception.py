from typing import Optional


class AppException(Exception):
    """Base application exception."""
    def __init__(self, message: str, status_code: Optional[int] = None):
        self.status_code = status_code
        self.message = message
        super().__init__(self.message)
