from __future__ import annotations

import unittest

from tt_scraper.api import BOOTSTRAP_URL, PlatformAPI, build_item_list_url
from tt_scraper.errors import MissingInputError, SignatureError
from tt_scraper.offline import OFFLINE_TAC, OfflineTransport
from tt_scraper.retry import RetryConfig
from tt_scraper.run_log import RunLogger
from tt_scraper.signer import SIGNATURE_LENGTH, Signer, append_signature, compute_signature
from tt_scraper.targets import ScrapeTarget, TargetType

_LISTING_URL = (
    "https://m.tiktok.com/share/item/list?secUid=&id=355503&type=3&count=30"
    "&minCursor=0&maxCursor=0&shareUid=&lang="
)
_EXPECTED_SIGNATURE = "k87-KT6TIRSocJhGpOWgro4NhlGpl_E"


def _api(transport: OfflineTransport) -> PlatformAPI:
    return PlatformAPI(transport, user_agent="test-agent", retry=RetryConfig(max_attempts=1))


class TestComputeSignature(unittest.TestCase):
    def test_known_listing_url(self) -> None:
        self.assertEqual(compute_signature(_LISTING_URL, OFFLINE_TAC), _EXPECTED_SIGNATURE)

    def test_is_deterministic_and_fixed_length(self) -> None:
        a = compute_signature(_LISTING_URL, OFFLINE_TAC)
        b = compute_signature(_LISTING_URL, OFFLINE_TAC)
        self.assertEqual(a, b)
        self.assertEqual(len(a), SIGNATURE_LENGTH)
        self.assertNotEqual(a, compute_signature(_LISTING_URL, "other-secret"))

    def test_listing_url_builder_matches_signed_form(self) -> None:
        target = ScrapeTarget(id="355503", sec_uid="", type=TargetType.HASHTAG, count=30)
        self.assertEqual(build_item_list_url(target, 0), _LISTING_URL)

    def test_empty_url_is_missing_input(self) -> None:
        with self.assertRaises(MissingInputError) as ctx:
            compute_signature("", OFFLINE_TAC)
        self.assertEqual(str(ctx.exception), "Url is missing")

    def test_relative_url_rejected(self) -> None:
        with self.assertRaises(SignatureError):
            compute_signature("share/item/list?id=1", OFFLINE_TAC)

    def test_empty_secret_rejected(self) -> None:
        with self.assertRaises(SignatureError):
            compute_signature(_LISTING_URL, "")

    def test_append_signature(self) -> None:
        self.assertEqual(append_signature("https://a.b/c?x=1", "sig"), "https://a.b/c?x=1&_signature=sig")
        self.assertEqual(append_signature("https://a.b/c", "sig"), "https://a.b/c?_signature=sig")


class TestSigner(unittest.IsolatedAsyncioTestCase):
    async def test_initialize_fetches_tac_once(self) -> None:
        transport = OfflineTransport()
        signer = Signer(_api(transport))

        self.assertTrue(await signer.initialize())
        self.assertTrue(await signer.initialize())

        self.assertEqual(signer.secret, OFFLINE_TAC)
        self.assertEqual(transport.calls, [BOOTSTRAP_URL])
        self.assertEqual(signer.sign(_LISTING_URL), _EXPECTED_SIGNATURE)

    async def test_failed_bootstrap_makes_sign_raise(self) -> None:
        transport = OfflineTransport(bootstrap_available=False)
        log = RunLogger()
        signer = Signer(_api(transport), logger=log)

        self.assertFalse(await signer.initialize())
        self.assertFalse(await signer.initialize())
        self.assertEqual(len(transport.calls), 1)
        self.assertIn("signer_bootstrap_failed", log.events())

        with self.assertRaises(SignatureError):
            signer.sign(_LISTING_URL)

    async def test_sign_before_initialize_raises(self) -> None:
        signer = Signer(_api(OfflineTransport()))
        with self.assertRaises(SignatureError):
            signer.sign(_LISTING_URL)

    async def test_preset_secret_skips_bootstrap(self) -> None:
        transport = OfflineTransport()
        signer = Signer(_api(transport), secret=OFFLINE_TAC)

        self.assertTrue(await signer.initialize())
        self.assertEqual(transport.calls, [])
        self.assertTrue(signer.signed_url(_LISTING_URL).endswith(f"&_signature={_EXPECTED_SIGNATURE}"))

    async def test_sign_empty_url(self) -> None:
        signer = Signer(_api(OfflineTransport()), secret=OFFLINE_TAC)
        with self.assertRaises(MissingInputError):
            signer.sign("   ")


if __name__ == "__main__":
    unittest.main()
