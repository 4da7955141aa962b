from __future__ import annotations

import os
import re
import subprocess
import sys
import tempfile
import unittest
from pathlib import Path


def _run_cli(args: list[str], cwd: Path) -> subprocess.CompletedProcess[str]:
    repo_root = Path(__file__).resolve().parents[1]

    env = dict(os.environ)
    existing_pp = env.get("PYTHONPATH", "")
    env["PYTHONPATH"] = f"{repo_root}{os.pathsep}{existing_pp}" if existing_pp else str(repo_root)

    return subprocess.run(
        [sys.executable, "-m", "tt_scraper", *args],
        cwd=cwd,
        env=env,
        capture_output=True,
        text=True,
    )


class TestCLISmoke(unittest.TestCase):
    def test_offline_user_scrape_writes_artifacts(self) -> None:
        with tempfile.TemporaryDirectory() as td:
            out_dir = Path(td) / "out"
            proc = _run_cli(
                [
                    "user",
                    "tiktok",
                    "-n",
                    "5",
                    "-t",
                    "all",
                    "--filepath",
                    str(out_dir),
                    "--offline",
                ],
                cwd=Path(td),
            )

            self.assertEqual(proc.returncode, 0, msg=proc.stderr)
            self.assertIn("collected=5", proc.stdout)
            self.assertIn("target_id=5831967", proc.stdout)

            csv_name = re.search(r"^csv=(\S+)$", proc.stdout, re.MULTILINE)
            json_name = re.search(r"^json=(\S+)$", proc.stdout, re.MULTILINE)
            assert csv_name is not None and json_name is not None
            self.assertTrue((out_dir / csv_name.group(1)).exists())
            self.assertTrue((out_dir / json_name.group(1)).exists())

    def test_offline_single_hashtag(self) -> None:
        with tempfile.TemporaryDirectory() as td:
            proc = _run_cli(["single_hashtag", "summer", "--offline"], cwd=Path(td))

            self.assertEqual(proc.returncode, 0, msg=proc.stderr)
            self.assertIn("info=", proc.stdout)
            self.assertIn('"challengeId": "4100"', proc.stdout)

    def test_missing_input_exit_code(self) -> None:
        with tempfile.TemporaryDirectory() as td:
            proc = _run_cli(["user", "--offline"], cwd=Path(td))

            self.assertEqual(proc.returncode, 2)
            self.assertIn("Missing input", proc.stderr)

    def test_unsupported_type_exit_code(self) -> None:
        with tempfile.TemporaryDirectory() as td:
            proc = _run_cli(["playlist", "x", "--offline"], cwd=Path(td))

            self.assertEqual(proc.returncode, 2)
            self.assertIn("Scrape types:", proc.stderr)

    def test_not_found_exit_code(self) -> None:
        with tempfile.TemporaryDirectory() as td:
            proc = _run_cli(["user", "na", "--offline"], cwd=Path(td))

            self.assertEqual(proc.returncode, 3)
            self.assertIn("Can't find user: na", proc.stderr)


if __name__ == "__main__":
    unittest.main()
