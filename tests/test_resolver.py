from __future__ import annotations

import unittest
from typing import Any, Mapping

import httpx

from tt_scraper.api import PlatformAPI
from tt_scraper.errors import MissingInputError, NotFoundError, RequestError
from tt_scraper.info import HashtagInfo, ProfileInfo
from tt_scraper.offline import OFFLINE_TAC, OfflineTransport
from tt_scraper.resolver import Resolver
from tt_scraper.retry import RetryConfig
from tt_scraper.signer import Signer, compute_signature
from tt_scraper.targets import (
    HashtagRequest,
    SignatureRequest,
    SingleHashtagRequest,
    SingleUserRequest,
    TargetType,
    UserRequest,
)


def _resolver(transport: Any) -> Resolver:
    api = PlatformAPI(transport, user_agent="test-agent", retry=RetryConfig(max_attempts=1))
    return Resolver(api, Signer(api))


class _StatusTransport:
    """Answers every JSON request with a fixed HTTP status."""

    def __init__(self, code: int) -> None:
        self._code = code
        self.calls: list[str] = []

    async def get_json(self, url: str, *, headers: Mapping[str, str] | None = None) -> Any:
        self.calls.append(url)
        request = httpx.Request("GET", url)
        response = httpx.Response(self._code, request=request)
        raise httpx.HTTPStatusError("boom", request=request, response=response)

    async def get_text(self, url: str, *, headers: Mapping[str, str] | None = None) -> str:
        raise AssertionError("unexpected bootstrap")

    async def get_bytes(self, url: str, *, headers: Mapping[str, str] | None = None) -> bytes:
        raise AssertionError("unexpected media fetch")

    async def aclose(self) -> None:
        return None


class _PayloadTransport(_StatusTransport):
    """Answers every JSON request with a fixed payload."""

    def __init__(self, payload: Any) -> None:
        super().__init__(200)
        self._payload = payload

    async def get_json(self, url: str, *, headers: Mapping[str, str] | None = None) -> Any:
        self.calls.append(url)
        return self._payload


_EXPECTED_PROFILE = {
    "secUid": "MS4wLjABAAAA-VASjiXTh7wDDyXvjk10VFhMWUAoxr8bgfO1kAL1-9s",
    "userId": "5831967",
    "isSecret": False,
    "uniqueId": "tiktok",
    "nickName": "Test User",
    "signature": "don’t worry i don’t get the hype either",
    "covers": ["https://p16.muscdn.com/img/musically-maliva-obj/1655662764778502~c5_100x100.jpeg"],
    "coversMedium": ["https://p16.muscdn.com/img/musically-maliva-obj/1655662764778502~c5_720x720.jpeg"],
    "following": 932,
    "fans": 40421477,
    "heart": "2425050211",
    "video": 1071,
    "verified": True,
    "digg": 3553,
}

_EXPECTED_HASHTAG = {
    "challengeId": "4100",
    "challengeName": "summer",
    "text": "Beach, sun, fun!\nDo you have some cool summer videos? Upload them with the hashtag #summer.",
    "covers": [],
    "coversMedium": [],
    "posts": 3088974,
    "views": "6226592362",
    "isCommerce": False,
    "splitTitle": "",
}


class TestResolver(unittest.IsolatedAsyncioTestCase):
    async def test_user_target(self) -> None:
        target = await _resolver(OfflineTransport()).resolve(UserRequest(username="tiktok"))

        self.assertEqual(target.id, "5831967")
        self.assertEqual(target.type, TargetType.USER)
        self.assertEqual(target.count, 30)
        self.assertEqual(target.min_cursor, 0)
        self.assertTrue(target.sec_uid.startswith("MS4wLjABAAAA"))

    async def test_user_target_accepts_at_prefix(self) -> None:
        target = await _resolver(OfflineTransport()).user_target("@tiktok")
        self.assertEqual(target.id, "5831967")

    async def test_hashtag_target(self) -> None:
        target = await _resolver(OfflineTransport()).resolve(HashtagRequest(tag="summer"))

        self.assertEqual(target.id, "4100")
        self.assertEqual(target.type, TargetType.HASHTAG)
        self.assertEqual(target.count, 48)
        self.assertEqual(target.sec_uid, "")

    async def test_unknown_user_is_not_found(self) -> None:
        with self.assertRaises(NotFoundError) as ctx:
            await _resolver(OfflineTransport()).resolve(UserRequest(username="na"))
        self.assertEqual(str(ctx.exception), "Can't find user: na")

    async def test_unknown_hashtag_is_not_found(self) -> None:
        with self.assertRaises(NotFoundError) as ctx:
            await _resolver(OfflineTransport()).hashtag_target("#nothing_here")
        self.assertEqual(ctx.exception.entity, "hashtag")
        self.assertEqual(ctx.exception.identifier, "nothing_here")

    async def test_profile_info(self) -> None:
        info = await _resolver(OfflineTransport()).resolve(SingleUserRequest(username="tiktok"))

        self.assertIsInstance(info, ProfileInfo)
        self.assertEqual(info.user_id, "5831967")
        self.assertEqual(info.unique_id, "tiktok")
        self.assertEqual(info.heart, "2425050211")
        self.assertTrue(info.verified)

    async def test_hashtag_info(self) -> None:
        info = await _resolver(OfflineTransport()).resolve(SingleHashtagRequest(tag="summer"))

        self.assertIsInstance(info, HashtagInfo)
        self.assertEqual(info.challenge_id, "4100")
        self.assertEqual(info.challenge_name, "summer")
        self.assertEqual(info.views, "6226592362")
        self.assertEqual(info.covers, [])

    async def test_profile_record_matches_payload(self) -> None:
        info = await _resolver(OfflineTransport()).user_profile("tiktok")
        self.assertEqual(info.model_dump(by_alias=True), _EXPECTED_PROFILE)

    async def test_hashtag_record_matches_payload(self) -> None:
        info = await _resolver(OfflineTransport()).hashtag_info("summer")
        self.assertEqual(info.model_dump(by_alias=True), _EXPECTED_HASHTAG)

    async def test_unknown_profile_and_hashtag_info(self) -> None:
        resolver = _resolver(OfflineTransport())

        with self.assertRaises(NotFoundError) as ctx:
            await resolver.user_profile("na")
        self.assertEqual(str(ctx.exception), "Can't find user: na")

        with self.assertRaises(NotFoundError) as ctx:
            await resolver.hashtag_info("na")
        self.assertEqual(str(ctx.exception), "Can't find hashtag: na")

    async def test_malformed_user_payload_is_request_error(self) -> None:
        user = dict(_EXPECTED_PROFILE, following=None)
        transport = _PayloadTransport({"statusCode": 0, "body": {"userData": user}})

        with self.assertRaises(RequestError) as ctx:
            await _resolver(transport).user_profile("tiktok")
        self.assertNotIsInstance(ctx.exception, NotFoundError)
        self.assertIn("Malformed user payload for tiktok", str(ctx.exception))

    async def test_malformed_hashtag_payload_is_request_error(self) -> None:
        challenge = dict(_EXPECTED_HASHTAG, posts="many")
        transport = _PayloadTransport({"statusCode": 0, "body": {"challengeData": challenge}})

        with self.assertRaises(RequestError) as ctx:
            await _resolver(transport).hashtag_target("summer")
        self.assertNotIsInstance(ctx.exception, NotFoundError)

    async def test_signature_request_bootstraps_signer(self) -> None:
        transport = OfflineTransport()
        url = "https://m.tiktok.com/share/item/list?id=1"
        sig = await _resolver(transport).resolve(SignatureRequest(url=url))

        self.assertEqual(sig, compute_signature(url, OFFLINE_TAC))

    async def test_missing_inputs_make_no_calls(self) -> None:
        transport = OfflineTransport()
        resolver = _resolver(transport)

        cases = [
            (resolver.user_target, "Username is missing"),
            (resolver.hashtag_info, "Hashtag is missing"),
            (resolver.signature, "Url is missing"),
        ]
        for fn, message in cases:
            with self.subTest(message=message):
                with self.assertRaises(MissingInputError) as ctx:
                    await fn("")
                self.assertEqual(str(ctx.exception), message)

        self.assertEqual(transport.calls, [])

    async def test_http_404_maps_to_not_found(self) -> None:
        with self.assertRaises(NotFoundError):
            await _resolver(_StatusTransport(404)).user_target("ghost")

    async def test_http_500_maps_to_request_error(self) -> None:
        transport = _StatusTransport(500)
        with self.assertRaises(RequestError):
            await _resolver(transport).hashtag_target("summer")
        self.assertEqual(len(transport.calls), 1)


if __name__ == "__main__":
    unittest.main()
