from __future__ import annotations

import base64
import hashlib
import hmac
from urllib.parse import urlsplit

from .api import PlatformAPI
from .errors import MissingInputError, SignatureError
from .run_log import RunLogger

SIGNATURE_LENGTH = 31


def compute_signature(url: str, secret: str) -> str:
    """
    Derive the `_signature` token for a fully-qualified request URL.

    Pure and deterministic for a fixed (url, secret). The derivation tracks an
    upstream scheme that changes without notice, so it lives only here.
    """
    u = (url or "").strip()
    if not u:
        raise MissingInputError("Url is missing")

    try:
        parts = urlsplit(u)
    except ValueError as e:
        raise SignatureError(f"Malformed url: {u}") from e
    if parts.scheme not in ("http", "https") or not parts.netloc:
        raise SignatureError(f"Url must be absolute: {u}")

    key = (secret or "").strip()
    if not key:
        raise SignatureError("Signing secret is empty")

    digest = hmac.new(key.encode("utf-8"), u.encode("utf-8"), hashlib.sha256).digest()
    token = base64.urlsafe_b64encode(digest).decode("ascii").rstrip("=")
    return token[:SIGNATURE_LENGTH]


def append_signature(url: str, signature: str) -> str:
    sep = "&" if "?" in url else "?"
    return f"{url}{sep}_signature={signature}"


class Signer:
    """
    Owns the session-bound signing secret ("tac value") for one engine.

    `initialize()` fetches it once. A failed bootstrap is remembered and every
    later `sign()` raises SignatureError instead of silently retrying.
    """

    def __init__(
        self,
        api: PlatformAPI,
        *,
        secret: str | None = None,
        logger: RunLogger | None = None,
    ) -> None:
        self._api = api
        self._logger = logger
        self._secret = (secret or "").strip() or None
        self._failure: str | None = None
        self._attempted = self._secret is not None

    @property
    def initialized(self) -> bool:
        return self._secret is not None

    @property
    def secret(self) -> str | None:
        return self._secret

    async def initialize(self) -> bool:
        """Run the bootstrap call once; return whether a secret is available."""
        if self._attempted:
            return self._secret is not None
        self._attempted = True

        try:
            tac = await self._api.fetch_tac()
        except Exception as e:
            self._failure = f"{type(e).__name__}: {e}"
            if self._logger is not None:
                self._logger.exception("signer_bootstrap_failed", exc=e)
            return False

        if not tac:
            self._failure = "bootstrap page did not contain a tac value"
            if self._logger is not None:
                self._logger.error("signer_bootstrap_failed", reason=self._failure)
            return False

        self._secret = tac
        if self._logger is not None:
            self._logger.info("signer_bootstrap_completed")
        return True

    def sign(self, url: str) -> str:
        if not (url or "").strip():
            raise MissingInputError("Url is missing")
        if self._secret is None:
            if self._failure:
                raise SignatureError(f"Signing secret unavailable: {self._failure}")
            raise SignatureError("Signer has not been initialized")
        return compute_signature(url, self._secret)

    def signed_url(self, url: str) -> str:
        return append_signature(url, self.sign(url))
