from __future__ import annotations

import json
import tempfile
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

from .fs import FileSystem
from .run_log import RunLogger

HISTORY_DIRNAME = "tt_scraper_history"


def _utc_now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


def default_history_dir() -> str:
    return str(Path(tempfile.gettempdir()) / HISTORY_DIRNAME)


@dataclass(frozen=True)
class HistoryRecord:
    target_key: str
    cursor: int
    offset: int = 0
    updated_at: str | None = None


def _parse_record(key: str, raw: bytes) -> HistoryRecord:
    data: Any = json.loads(raw.decode("utf-8"))

    # Bare integers are accepted for files written by older releases.
    if isinstance(data, bool):
        raise ValueError("history cursor must be an integer")
    offset = 0
    if isinstance(data, int):
        cursor = data
        updated_at = None
    elif isinstance(data, dict):
        raw_cursor = data.get("cursor")
        if isinstance(raw_cursor, bool) or not isinstance(raw_cursor, (int, str)):
            raise ValueError("history cursor must be an integer")
        cursor = int(raw_cursor)
        raw_offset = data.get("offset", 0)
        if isinstance(raw_offset, bool) or not isinstance(raw_offset, (int, str)):
            raise ValueError("history offset must be an integer")
        offset = int(raw_offset)
        updated_at = data.get("updated_at") if isinstance(data.get("updated_at"), str) else None
    else:
        raise ValueError("history file must hold an integer or an object")

    if cursor < 0 or offset < 0:
        raise ValueError("history cursor and offset must be >= 0")
    return HistoryRecord(target_key=key, cursor=cursor, offset=offset, updated_at=updated_at)


class HistoryStore:
    """
    Last-seen pagination cursor per target, one small JSON file per key.

    History is an optimization: unreadable state yields cursor 0 and failed
    writes are logged, never raised.
    """

    def __init__(
        self,
        fs: FileSystem,
        directory: str | None = None,
        *,
        logger: RunLogger | None = None,
    ) -> None:
        self._fs = fs
        self._dir = (directory or "").strip() or default_history_dir()
        self._logger = logger

    @property
    def directory(self) -> str:
        return self._dir

    def history_path(self, key: str) -> str:
        return str(Path(self._dir) / f"{key}.json")

    async def read_record(self, key: str) -> HistoryRecord | None:
        path = self.history_path(key)
        try:
            raw = await self._fs.read_bytes(path)
        except FileNotFoundError:
            return None
        except OSError as e:
            self._warn("history_read_failed", path, e)
            return None

        try:
            return _parse_record(key, raw)
        except (UnicodeDecodeError, ValueError) as e:
            self._warn("history_read_failed", path, e)
            return None

    async def read_cursor(self, key: str) -> int:
        record = await self.read_record(key)
        return record.cursor if record is not None else 0

    async def write_cursor(self, key: str, cursor: int, offset: int = 0) -> bool:
        """
        Persist the cursor; return False (after logging) if the write failed.

        `offset` counts listing entries of the page at `cursor` already returned.
        """
        path = self.history_path(key)
        payload = json.dumps(
            {
                "target_key": key,
                "cursor": int(cursor),
                "offset": int(offset),
                "updated_at": _utc_now_iso(),
            },
            sort_keys=True,
            separators=(",", ":"),
        ).encode("utf-8")

        try:
            await self._fs.make_dirs(self._dir)
            await self._fs.write_bytes(path, payload)
        except OSError as e:
            self._warn("history_write_failed", path, e)
            return False

        if self._logger is not None:
            self._logger.info(
                "history_written",
                path=path,
                target_key=key,
                cursor=int(cursor),
                offset=int(offset),
            )
        return True

    def _warn(self, event: str, path: str, exc: BaseException) -> None:
        if self._logger is not None:
            self._logger.warning(
                event,
                path=path,
                error_type=type(exc).__name__,
                error_message=str(exc),
            )
