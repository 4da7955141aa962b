from __future__ import annotations

from datetime import datetime, timezone
from email.utils import parsedate_to_datetime

import httpx


def _parse_retry_after(response: httpx.Response) -> float | None:
    raw = (response.headers.get("retry-after") or "").strip()
    if not raw:
        return None

    try:
        return max(0.0, float(raw))
    except ValueError:
        pass

    try:
        when = parsedate_to_datetime(raw)
    except (TypeError, ValueError):
        return None
    if when.tzinfo is None:
        when = when.replace(tzinfo=timezone.utc)
    return max(0.0, (when - datetime.now(timezone.utc)).total_seconds())


def is_retryable_http_exception(exc: BaseException) -> tuple[bool, float | None, str | None]:
    """
    HTTP retry policy for platform and media requests:
    - transport errors (connect, read, timeouts, protocol)
    - HTTP 500+
    - HTTP 429, honoring Retry-After
    """
    if isinstance(exc, httpx.HTTPStatusError):
        code = exc.response.status_code
        if code == 429:
            return True, _parse_retry_after(exc.response), "http_429"
        if code >= 500:
            return True, _parse_retry_after(exc.response), f"http_{code}"
        return False, None, f"http_{code}"

    if isinstance(exc, httpx.TransportError):
        return True, None, "network_error"

    if isinstance(exc, (ConnectionError, TimeoutError)):
        return True, None, "network_error"

    return False, None, None
