from __future__ import annotations

import json
import traceback
import uuid
from dataclasses import asdict
from datetime import datetime, timezone
from pathlib import Path
from threading import Lock
from typing import Any, TextIO

from .retry import RetryEvent


def _utc_now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


def _truncate(text: str, *, limit: int) -> str:
    s = str(text or "")
    if limit <= 0:
        return ""
    if len(s) <= limit:
        return s
    return s[: max(0, limit - 1)] + "…"


class RunLogger:
    """
    Tiny JSONL event logger for scrape runs.

    Each event is one JSON object. With a path, lines are appended to that file;
    without one, events are only kept in `records` (handy for tests and embedding).
    """

    def __init__(
        self,
        path: str | Path | None = None,
        *,
        overwrite: bool = True,
        target: str | None = None,
        session_id: str | None = None,
        keep_records: bool | None = None,
    ) -> None:
        self._path = Path(path) if path is not None else None
        self._overwrite = bool(overwrite)
        self._target = (target or "").strip() or None
        self._session_id = (session_id or "").strip() or uuid.uuid4().hex
        self._keep = self._path is None if keep_records is None else bool(keep_records)
        self._fp: TextIO | None = None
        self._lock = Lock()
        self._opened = False
        self.records: list[dict[str, Any]] = []

    @classmethod
    def open(
        cls,
        path: str | Path,
        *,
        overwrite: bool = True,
        target: str | None = None,
        session_id: str | None = None,
    ) -> "RunLogger":
        logger = cls(path, overwrite=overwrite, target=target, session_id=session_id)
        logger._ensure_open()
        return logger

    def close(self) -> None:
        with self._lock:
            if self._fp is not None:
                try:
                    self._fp.flush()
                finally:
                    self._fp.close()
                self._fp = None

    def __enter__(self) -> "RunLogger":
        self._ensure_open()
        return self

    def __exit__(self, exc_type: object, exc: object, tb: object) -> None:
        self.close()

    def set_target(self, target: str) -> None:
        t = (target or "").strip()
        if t:
            self._target = t

    def events(self) -> list[str]:
        return [str(r.get("event")) for r in self.records]

    def info(self, event: str, *, url: str | None = None, **data: Any) -> None:
        self.log("INFO", event, url=url, **data)

    def warning(self, event: str, *, url: str | None = None, **data: Any) -> None:
        self.log("WARN", event, url=url, **data)

    def error(self, event: str, *, url: str | None = None, **data: Any) -> None:
        self.log("ERROR", event, url=url, **data)

    def exception(
        self,
        event: str,
        *,
        exc: BaseException,
        url: str | None = None,
        **data: Any,
    ) -> None:
        err = {
            "type": type(exc).__name__,
            "kind": str(getattr(getattr(exc, "kind", None), "value", "") or "") or None,
            "message": _truncate(str(exc), limit=2000),
            "traceback": _truncate(
                "".join(traceback.format_exception(type(exc), exc, exc.__traceback__)),
                limit=12000,
            ),
        }
        self.log("ERROR", event, url=url, error=err, **data)

    def on_retry(self, event: RetryEvent) -> None:
        """Retry hook: pass as `on_retry=` to the retry helper."""
        payload = asdict(event)
        url = payload.pop("context_url", None)
        self.warning("request_retry", url=url, **payload)

    def log(self, level: str, event: str, *, url: str | None = None, **data: Any) -> None:
        lvl = (level or "").strip().upper() or "INFO"
        ev = (event or "").strip() or "event"

        record: dict[str, Any] = {
            "ts": _utc_now_iso(),
            "level": lvl,
            "event": ev,
            "session_id": self._session_id,
        }

        if self._target:
            record["target"] = self._target

        u = (url or "").strip()
        if u:
            record["url"] = u

        if data:
            record["data"] = data

        self._write(record)

    def _ensure_open(self) -> None:
        if self._path is None or self._fp is not None:
            return

        with self._lock:
            if self._fp is not None:
                return

            self._path.parent.mkdir(parents=True, exist_ok=True)
            mode = "w" if self._overwrite and not self._opened else "a"

            self._fp = self._path.open(mode, encoding="utf-8", newline="\n")
            self._opened = True

    def _write(self, record: dict[str, Any]) -> None:
        if self._keep:
            self.records.append(record)

        if self._path is None:
            return

        self._ensure_open()

        payload = json.dumps(
            record,
            ensure_ascii=False,
            sort_keys=True,
            separators=(",", ":"),
            default=str,
        )

        with self._lock:
            if self._fp is None:
                return
            self._fp.write(payload + "\n")
            self._fp.flush()
