from __future__ import annotations

import json
import tempfile
import unittest
from pathlib import Path

from tt_scraper.errors import NotFoundError
from tt_scraper.retry import RetryEvent
from tt_scraper.run_log import RunLogger


class TestRunLogger(unittest.TestCase):
    def test_in_memory_records(self) -> None:
        log = RunLogger(target="tiktok", session_id="s1")
        log.info("collector_page", page=1)

        self.assertEqual(log.events(), ["collector_page"])
        record = log.records[0]
        self.assertEqual(record["session_id"], "s1")
        self.assertEqual(record["target"], "tiktok")
        self.assertEqual(record["data"], {"page": 1})

    def test_exception_carries_kind(self) -> None:
        log = RunLogger()
        log.exception("scrape_command_failed", exc=NotFoundError("user", "na"))

        err = log.records[0]["error"]
        self.assertEqual(err["type"], "NotFoundError")
        self.assertEqual(err["kind"], "not_found")
        self.assertEqual(err["message"], "Can't find user: na")

    def test_on_retry_hook(self) -> None:
        log = RunLogger()
        log.on_retry(
            RetryEvent(
                operation="platform.item_list",
                failure_attempt=1,
                next_attempt=2,
                max_attempts=3,
                delay_seconds=0.5,
                retry_after_seconds=None,
                reason="http_503",
                error_type="HTTPStatusError",
                error_message="boom",
                context_url="https://m.tiktok.com/share/item/list",
            )
        )

        record = log.records[0]
        self.assertEqual(record["event"], "request_retry")
        self.assertEqual(record["level"], "WARN")
        self.assertEqual(record["url"], "https://m.tiktok.com/share/item/list")
        self.assertEqual(record["data"]["reason"], "http_503")

    def test_file_output_is_jsonl(self) -> None:
        with tempfile.TemporaryDirectory() as td:
            path = Path(td) / "run.log"
            with RunLogger.open(path) as log:
                log.info("scrape_started")
                log.warning("download_failed", post_id="1")

            lines = path.read_text(encoding="utf-8").splitlines()
            self.assertEqual([json.loads(ln)["event"] for ln in lines], ["scrape_started", "download_failed"])
            self.assertEqual(log.records, [])


if __name__ == "__main__":
    unittest.main()
