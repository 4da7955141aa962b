from __future__ import annotations

import re
from typing import Any, Mapping
from urllib.parse import quote, urlencode

from .http_retry import is_retryable_http_exception
from .retry import AsyncSleepFn, OnRetryFn, RetryConfig, acall_with_retries
from .targets import ScrapeTarget
from .transport import DEFAULT_REFERER, HttpTransport

BOOTSTRAP_URL = "https://www.tiktok.com/discover"
USER_DETAIL_URL = "https://m.tiktok.com/node/share/user/@{username}"
HASHTAG_DETAIL_URL = "https://m.tiktok.com/node/share/tag/{tag}"
ITEM_LIST_URL = "https://m.tiktok.com/share/item/list"

_TAC_RE = re.compile(r"""tac\s*=\s*['"]([^'"]+)['"]""")


def extract_tac(html: str) -> str | None:
    m = _TAC_RE.search(html or "")
    if m is None:
        return None
    value = m.group(1).strip()
    return value or None


def build_item_list_url(target: ScrapeTarget, cursor: int) -> str:
    """Unsigned listing URL; parameter order is part of what gets signed."""
    query = urlencode(
        [
            ("secUid", target.sec_uid),
            ("id", target.id),
            ("type", int(target.type)),
            ("count", int(target.count)),
            ("minCursor", int(cursor)),
            ("maxCursor", 0),
            ("shareUid", ""),
            ("lang", target.lang),
        ]
    )
    return f"{ITEM_LIST_URL}?{query}"


def user_detail_url(username: str) -> str:
    return USER_DETAIL_URL.format(username=quote(username, safe=""))


def hashtag_detail_url(tag: str) -> str:
    return HASHTAG_DETAIL_URL.format(tag=quote(tag, safe=""))


def status_code(payload: Any) -> int | None:
    if not isinstance(payload, Mapping):
        return None
    raw = payload.get("statusCode")
    if isinstance(raw, bool):
        return None
    if isinstance(raw, int):
        return raw
    if isinstance(raw, str):
        try:
            return int(raw.strip())
        except ValueError:
            return None
    return None


def body_of(payload: Any) -> Mapping[str, Any] | None:
    if not isinstance(payload, Mapping):
        return None
    body = payload.get("body")
    return body if isinstance(body, Mapping) else None


class PlatformAPI:
    """
    Thin async wrapper around the platform's share endpoints.

    This module only issues requests (with retries) and returns raw payloads;
    interpretation belongs to the resolver and collector.
    """

    def __init__(
        self,
        transport: HttpTransport,
        *,
        user_agent: str,
        retry: RetryConfig | None = None,
        on_retry: OnRetryFn | None = None,
        sleep_fn: AsyncSleepFn | None = None,
    ) -> None:
        self._transport = transport
        self._user_agent = user_agent
        self._retry = retry or RetryConfig()
        self._on_retry = on_retry
        self._sleep_fn = sleep_fn

    @property
    def transport(self) -> HttpTransport:
        return self._transport

    def headers(self) -> dict[str, str]:
        return {"user-agent": self._user_agent, "referer": DEFAULT_REFERER}

    async def _get_json(self, url: str, *, operation: str) -> Any:
        async def _do() -> Any:
            return await self._transport.get_json(url, headers=self.headers())

        return await acall_with_retries(
            _do,
            cfg=self._retry,
            is_retryable=is_retryable_http_exception,
            operation=operation,
            on_retry=self._on_retry,
            sleep_fn=self._sleep_fn,
            context_url=url,
        )

    async def fetch_tac(self) -> str | None:
        async def _do() -> str:
            return await self._transport.get_text(BOOTSTRAP_URL, headers=self.headers())

        html = await acall_with_retries(
            _do,
            cfg=self._retry,
            is_retryable=is_retryable_http_exception,
            operation="platform.bootstrap",
            on_retry=self._on_retry,
            sleep_fn=self._sleep_fn,
            context_url=BOOTSTRAP_URL,
        )
        return extract_tac(html)

    async def fetch_user_detail(self, username: str) -> Any:
        return await self._get_json(user_detail_url(username), operation="platform.user_detail")

    async def fetch_hashtag_detail(self, tag: str) -> Any:
        return await self._get_json(hashtag_detail_url(tag), operation="platform.hashtag_detail")

    async def fetch_item_list(self, signed_url: str) -> Any:
        return await self._get_json(signed_url, operation="platform.item_list")

    async def fetch_media(self, url: str) -> bytes:
        async def _do() -> bytes:
            return await self._transport.get_bytes(url, headers=self.headers())

        return await acall_with_retries(
            _do,
            cfg=self._retry,
            is_retryable=is_retryable_http_exception,
            operation="media.download",
            on_retry=self._on_retry,
            sleep_fn=self._sleep_fn,
            context_url=url,
        )
