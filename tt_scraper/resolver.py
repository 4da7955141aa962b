from __future__ import annotations

from typing import Any, Mapping, Union

import httpx
from pydantic import ValidationError

from .api import PlatformAPI, body_of, status_code
from .errors import MissingInputError, NotFoundError, RequestError
from .info import HashtagInfo, ProfileInfo
from .run_log import RunLogger
from .signer import Signer
from .targets import (
    HASHTAG_PAGE_SIZE,
    USER_PAGE_SIZE,
    HashtagRequest,
    ScrapeRequest,
    ScrapeTarget,
    SignatureRequest,
    SingleHashtagRequest,
    SingleUserRequest,
    TargetType,
    UserRequest,
    normalize_hashtag,
    normalize_username,
)

Resolved = Union[ScrapeTarget, ProfileInfo, HashtagInfo, str]


def _require(value: str, message: str) -> str:
    v = (value or "").strip()
    if not v:
        raise MissingInputError(message)
    return v


class Resolver:
    """Maps a tagged scrape request onto platform identities."""

    def __init__(
        self,
        api: PlatformAPI,
        signer: Signer,
        *,
        logger: RunLogger | None = None,
    ) -> None:
        self._api = api
        self._signer = signer
        self._logger = logger

    async def resolve(self, request: ScrapeRequest) -> Resolved:
        if isinstance(request, UserRequest):
            return await self.user_target(request.username)
        if isinstance(request, HashtagRequest):
            return await self.hashtag_target(request.tag)
        if isinstance(request, SingleUserRequest):
            return await self.user_profile(request.username)
        if isinstance(request, SingleHashtagRequest):
            return await self.hashtag_info(request.tag)
        if isinstance(request, SignatureRequest):
            return await self.signature(request.url)
        raise TypeError(f"Unhandled scrape request: {request!r}")

    async def _fetch(self, fetch: Any, value: str, *, entity: str) -> Any:
        try:
            return await fetch(value)
        except httpx.HTTPStatusError as e:
            if e.response.status_code == 404:
                raise NotFoundError(entity, value) from e
            raise RequestError(f"Failed to look up {entity} {value}: {e}") from e
        except (httpx.HTTPError, ValueError) as e:
            raise RequestError(f"Failed to look up {entity} {value}: {e}") from e

    async def _user_data(self, username: str) -> Mapping[str, Any]:
        name = _require(normalize_username(username), "Username is missing")
        payload = await self._fetch(self._api.fetch_user_detail, name, entity="user")

        body = body_of(payload)
        user = body.get("userData") if body is not None else None
        if status_code(payload) != 0 or not isinstance(user, Mapping) or not user:
            raise NotFoundError("user", name)
        return user

    async def _challenge_data(self, tag: str) -> Mapping[str, Any]:
        name = _require(normalize_hashtag(tag), "Hashtag is missing")
        payload = await self._fetch(self._api.fetch_hashtag_detail, name, entity="hashtag")

        body = body_of(payload)
        challenge = body.get("challengeData") if body is not None else None
        if status_code(payload) != 0 or not isinstance(challenge, Mapping) or not challenge:
            raise NotFoundError("hashtag", name)
        return challenge

    async def user_profile(self, username: str) -> ProfileInfo:
        user = await self._user_data(username)
        try:
            info = ProfileInfo.model_validate(dict(user))
        except ValidationError as e:
            raise RequestError(f"Malformed user payload for {normalize_username(username)}: {e}") from e
        if not info.user_id:
            raise NotFoundError("user", normalize_username(username))
        self._log_resolved("user", info.unique_id, info.user_id)
        return info

    async def hashtag_info(self, tag: str) -> HashtagInfo:
        challenge = await self._challenge_data(tag)
        try:
            info = HashtagInfo.model_validate(dict(challenge))
        except ValidationError as e:
            raise RequestError(f"Malformed hashtag payload for {normalize_hashtag(tag)}: {e}") from e
        if not info.challenge_id:
            raise NotFoundError("hashtag", normalize_hashtag(tag))
        self._log_resolved("hashtag", info.challenge_name, info.challenge_id)
        return info

    async def user_target(self, username: str) -> ScrapeTarget:
        info = await self.user_profile(username)
        return ScrapeTarget(
            id=info.user_id,
            sec_uid=info.sec_uid,
            type=TargetType.USER,
            count=USER_PAGE_SIZE,
        )

    async def hashtag_target(self, tag: str) -> ScrapeTarget:
        info = await self.hashtag_info(tag)
        return ScrapeTarget(
            id=info.challenge_id,
            sec_uid="",
            type=TargetType.HASHTAG,
            count=HASHTAG_PAGE_SIZE,
        )

    async def signature(self, url: str) -> str:
        u = _require(url, "Url is missing")
        await self._signer.initialize()
        return self._signer.sign(u)

    def _log_resolved(self, kind: str, name: str, target_id: str) -> None:
        if self._logger is not None:
            self._logger.info("target_resolved", kind=kind, name=name, id=target_id)
