from __future__ import annotations

from typing import Any, Mapping
from urllib.parse import parse_qsl, unquote, urlsplit

import httpx

from .api import BOOTSTRAP_URL, HASHTAG_DETAIL_URL, ITEM_LIST_URL, USER_DETAIL_URL
from .signer import compute_signature

OFFLINE_TAC = "offline-tac-4a9f2c"
OFFLINE_MEDIA_BASE = "https://media.offline.invalid/video"

STATUS_OK = 0
STATUS_BAD_SIGNATURE = 10000
STATUS_USER_NOT_FOUND = 10202
STATUS_TAG_NOT_FOUND = 10205

_OFFLINE_USERS: dict[str, dict[str, Any]] = {
    "tiktok": {
        "secUid": "MS4wLjABAAAA-VASjiXTh7wDDyXvjk10VFhMWUAoxr8bgfO1kAL1-9s",
        "userId": "5831967",
        "isSecret": False,
        "uniqueId": "tiktok",
        "nickName": "Test User",
        "signature": "don’t worry i don’t get the hype either",
        "covers": [
            "https://p16.muscdn.com/img/musically-maliva-obj/1655662764778502~c5_100x100.jpeg"
        ],
        "coversMedium": [
            "https://p16.muscdn.com/img/musically-maliva-obj/1655662764778502~c5_720x720.jpeg"
        ],
        "following": 932,
        "fans": 40421477,
        "heart": "2425050211",
        "video": 1071,
        "verified": True,
        "digg": 3553,
    },
}

_OFFLINE_HASHTAGS: dict[str, dict[str, Any]] = {
    "summer": {
        "challengeId": "4100",
        "challengeName": "summer",
        "text": (
            "Beach, sun, fun!\nDo you have some cool summer videos? "
            "Upload them with the hashtag #summer."
        ),
        "covers": [],
        "coversMedium": [],
        "posts": 3088974,
        "views": "6226592362",
        "isCommerce": False,
        "splitTitle": "",
    },
}

# Listing size per target id.
_OFFLINE_LISTING_SIZES: dict[str, int] = {"5831967": 75, "4100": 100, "355503": 40}

_DISCOVER_HTML = (
    "<!DOCTYPE html><html><head><title>Discover</title></head><body>"
    f"<script>tac='{OFFLINE_TAC}'</script></body></html>"
)


def offline_post_id(target_id: str, index: int) -> str:
    return f"68{int(target_id) % 100000:05d}{index:06d}"


def offline_item(target_id: str, index: int) -> dict[str, Any]:
    """A listing entry shaped like `itemListData[n]`."""
    post_id = offline_post_id(target_id, index)
    return {
        "itemInfos": {
            "id": post_id,
            "text": f"offline post {index} #summer @tiktok",
            "createTime": str(1_600_000_000 - index * 3600),
            "authorId": "5831967",
            "musicId": "6700000000000000001",
            "covers": [f"https://p16.offline.invalid/cover/{post_id}.jpeg"],
            "video": {
                "urls": [f"{OFFLINE_MEDIA_BASE}/{post_id}.mp4"],
                "videoMeta": {"width": 576, "height": 1024, "duration": 15},
            },
            "diggCount": 1000 + index,
            "shareCount": 10 + index,
            "playCount": 50000 + index,
            "commentCount": 5 + index,
        },
        "authorInfos": {
            "secUid": _OFFLINE_USERS["tiktok"]["secUid"],
            "userId": "5831967",
            "uniqueId": "tiktok",
            "nickName": "Test User",
            "verified": True,
        },
        "musicInfos": {
            "musicId": "6700000000000000001",
            "musicName": "original sound",
            "authorName": "Test User",
            "original": True,
            "playUrl": ["https://sf16.offline.invalid/music/6700000000000000001.mp3"],
        },
        "challengeInfoList": [{"challengeId": "4100", "challengeName": "summer"}],
        "textExtra": [
            {"hashtagName": "summer", "userUniqueId": ""},
            {"hashtagName": "", "userUniqueId": "tiktok"},
        ],
    }


def _status_error(url: str, code: int) -> httpx.HTTPStatusError:
    request = httpx.Request("GET", url)
    response = httpx.Response(code, request=request)
    return httpx.HTTPStatusError(f"HTTP {code} for {url}", request=request, response=response)


def _route_prefix(template: str) -> str:
    return template.split("{", 1)[0]


class OfflineTransport:
    """
    Network-free HttpTransport serving deterministic platform fixtures.

    Listing requests are checked against the offline tac value, so an
    incorrectly signed URL is rejected the way the live endpoint rejects it.
    """

    def __init__(
        self,
        *,
        tac: str = OFFLINE_TAC,
        listing_sizes: Mapping[str, int] | None = None,
        broken_media: set[str] | None = None,
        bootstrap_available: bool = True,
    ) -> None:
        self._tac = tac
        self._sizes = dict(_OFFLINE_LISTING_SIZES)
        self._sizes.update(dict(listing_sizes or {}))
        self._broken_media = set(broken_media or set())
        self._bootstrap_available = bool(bootstrap_available)
        self.calls: list[str] = []
        self.closed = False

    async def get_text(self, url: str, *, headers: Mapping[str, str] | None = None) -> str:
        self.calls.append(url)
        if url.startswith(BOOTSTRAP_URL):
            if not self._bootstrap_available:
                raise _status_error(url, 503)
            return _DISCOVER_HTML
        raise _status_error(url, 404)

    async def get_json(self, url: str, *, headers: Mapping[str, str] | None = None) -> Any:
        self.calls.append(url)

        user_prefix = _route_prefix(USER_DETAIL_URL)
        tag_prefix = _route_prefix(HASHTAG_DETAIL_URL)

        if url.startswith(user_prefix):
            name = unquote(url[len(user_prefix):]).strip("/").casefold()
            user = _OFFLINE_USERS.get(name)
            if user is None:
                return {"statusCode": STATUS_USER_NOT_FOUND, "body": {}}
            return {"statusCode": STATUS_OK, "body": {"userData": dict(user)}}

        if url.startswith(tag_prefix):
            tag = unquote(url[len(tag_prefix):]).strip("/").casefold()
            challenge = _OFFLINE_HASHTAGS.get(tag)
            if challenge is None:
                return {"statusCode": STATUS_TAG_NOT_FOUND, "body": {}}
            return {"statusCode": STATUS_OK, "body": {"challengeData": dict(challenge)}}

        if url.startswith(ITEM_LIST_URL):
            return self._item_list(url)

        raise _status_error(url, 404)

    async def get_bytes(self, url: str, *, headers: Mapping[str, str] | None = None) -> bytes:
        self.calls.append(url)
        if not url.startswith(OFFLINE_MEDIA_BASE):
            raise _status_error(url, 404)
        name = url.rsplit("/", 1)[-1]
        post_id = name.split(".", 1)[0]
        if post_id in self._broken_media:
            raise _status_error(url, 404)
        return f"offline-media-{post_id}".encode("utf-8")

    async def aclose(self) -> None:
        self.closed = True

    def _item_list(self, url: str) -> dict[str, Any]:
        unsigned, sep, signature = url.partition("&_signature=")
        if not sep or compute_signature(unsigned, self._tac) != signature:
            return {"statusCode": STATUS_BAD_SIGNATURE, "body": {}}

        params = dict(parse_qsl(urlsplit(unsigned).query, keep_blank_values=True))
        target_id = params.get("id", "")
        total = int(self._sizes.get(target_id, 0))
        count = max(1, int(params.get("count", "30") or 30))
        cursor = max(0, int(params.get("minCursor", "0") or 0))

        end = min(total, cursor + count)
        items = [offline_item(target_id, i) for i in range(cursor, end)]
        has_more = end < total
        return {
            "statusCode": STATUS_OK,
            "body": {
                "itemListData": items,
                "hasMore": has_more,
                "maxCursor": str(end),
                "minCursor": str(cursor),
            },
        }
