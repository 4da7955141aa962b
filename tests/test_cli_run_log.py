from __future__ import annotations

import json
import os
import subprocess
import sys
import tempfile
import unittest
from pathlib import Path


def _events(log_path: Path) -> list[str]:
    events: list[str] = []
    for ln in log_path.read_text(encoding="utf-8").splitlines():
        if not ln.strip():
            continue
        try:
            obj = json.loads(ln)
        except ValueError:
            continue
        ev = obj.get("event")
        if isinstance(ev, str):
            events.append(ev)
    return events


class TestScrapeCommandWritesLog(unittest.TestCase):
    def _run(self, td: str, args: list[str]) -> subprocess.CompletedProcess[str]:
        repo_root = Path(__file__).resolve().parents[1]

        env = dict(os.environ)
        existing_pp = env.get("PYTHONPATH", "")
        env["PYTHONPATH"] = (
            f"{repo_root}{os.pathsep}{existing_pp}" if existing_pp else str(repo_root)
        )

        return subprocess.run(
            [sys.executable, "-m", "tt_scraper", *args],
            cwd=td,
            env=env,
            capture_output=True,
            text=True,
        )

    def test_run_log_on_config_error(self) -> None:
        with tempfile.TemporaryDirectory() as td:
            log_path = Path(td) / "logs" / "run.log"
            missing_cfg = Path(td) / "missing_config.yaml"

            proc = self._run(
                td,
                ["user", "tiktok", "--config", str(missing_cfg), "--log", str(log_path), "--offline"],
            )

            self.assertEqual(proc.returncode, 2, msg=proc.stderr)
            self.assertTrue(log_path.exists())

            events = _events(log_path)
            self.assertIn("scrape_command_started", events)
            self.assertIn("scrape_command_failed", events)

    def test_run_log_on_success(self) -> None:
        with tempfile.TemporaryDirectory() as td:
            log_path = Path(td) / "run.log"
            cfg_path = Path(td) / "config.yaml"
            cfg_path.write_text("number: 3\nstore_history: true\nhistory_path: hist\n", encoding="utf-8")

            proc = self._run(
                td,
                ["hashtag", "summer", "--config", str(cfg_path), "--log", str(log_path), "--offline"],
            )

            self.assertEqual(proc.returncode, 0, msg=proc.stderr)
            self.assertIn(f"run_log={log_path}", proc.stdout)
            self.assertTrue((Path(td) / "hist" / "hashtag_summer.json").exists())

            events = _events(log_path)
            for expected in (
                "scrape_started",
                "signer_bootstrap_completed",
                "target_resolved",
                "collector_page",
                "history_written",
                "scrape_completed",
            ):
                self.assertIn(expected, events)


if __name__ == "__main__":
    unittest.main()
