from typing import Optional

import httpx


def parse_retry_after_ms(headers: httpx.Headers) -> Optional[int]:
    """retry-after header (integer seconds) in milliseconds, if parseable."""
    retry_after = headers.get("retry-after")
    if retry_after is None:
        return None
    try:
        seconds = int(retry_after.strip())
    except ValueError:
        return None
    return seconds * 1000 if seconds >= 0 else None
