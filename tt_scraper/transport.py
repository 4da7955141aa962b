from __future__ import annotations

from typing import Any, Mapping, Protocol

import httpx

DEFAULT_REFERER = "https://www.tiktok.com/"


class HttpTransport(Protocol):
    """Minimal async HTTP surface the scraper needs from its network collaborator."""

    async def get_text(self, url: str, *, headers: Mapping[str, str] | None = None) -> str: ...

    async def get_json(self, url: str, *, headers: Mapping[str, str] | None = None) -> Any: ...

    async def get_bytes(self, url: str, *, headers: Mapping[str, str] | None = None) -> bytes: ...

    async def aclose(self) -> None: ...


class HttpxTransport:
    """
    httpx-backed transport.

    User agent, proxy, and cookies are forwarded verbatim to the underlying client.
    Non-2xx responses raise httpx.HTTPStatusError so retry policies can classify them.
    """

    def __init__(
        self,
        *,
        user_agent: str,
        proxy: str = "",
        cookies: Mapping[str, str] | None = None,
        timeout_seconds: float = 20.0,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        self._user_agent = user_agent
        if client is not None:
            self._client = client
            self._owns_client = False
        else:
            self._client = httpx.AsyncClient(
                headers={"user-agent": user_agent, "referer": DEFAULT_REFERER},
                cookies=dict(cookies or {}),
                proxy=(proxy or "").strip() or None,
                timeout=float(timeout_seconds),
                follow_redirects=True,
            )
            self._owns_client = True

    @property
    def user_agent(self) -> str:
        return self._user_agent

    async def _get(self, url: str, headers: Mapping[str, str] | None) -> httpx.Response:
        response = await self._client.get(url, headers=dict(headers or {}))
        response.raise_for_status()
        return response

    async def get_text(self, url: str, *, headers: Mapping[str, str] | None = None) -> str:
        response = await self._get(url, headers)
        return response.text

    async def get_json(self, url: str, *, headers: Mapping[str, str] | None = None) -> Any:
        response = await self._get(url, headers)
        return response.json()

    async def get_bytes(self, url: str, *, headers: Mapping[str, str] | None = None) -> bytes:
        response = await self._get(url, headers)
        return response.content

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()
