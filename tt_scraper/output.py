from __future__ import annotations

import io
import json
import time
import zipfile
from dataclasses import dataclass, field, fields
from pathlib import Path
from typing import Callable, Iterable

import pandas as pd

from .fs import FileSystem
from .post import PostRecord
from .result import ScrapeResult
from .run_log import RunLogger
from .targets import sanitize_name

FORMATS = frozenset({"csv", "json", "zip"})
ROW_COLUMNS: list[str] = [f.name for f in fields(PostRecord)]

ClockFn = Callable[[], int]


def epoch_millis() -> int:
    return int(time.time() * 1000)


def artifact_name(target_name: str, ext: str, timestamp_ms: int) -> str:
    """`<sanitized target>_<13-digit epoch ms>.<ext>`"""
    return f"{sanitize_name(target_name)}_{int(timestamp_ms):013d}.{ext}"


def render_csv(records: Iterable[PostRecord]) -> bytes:
    df = pd.DataFrame([r.to_row() for r in records], columns=ROW_COLUMNS)
    return df.to_csv(index=False).encode("utf-8")


def render_json(records: Iterable[PostRecord]) -> bytes:
    payload = [r.to_dict() for r in records]
    return json.dumps(payload, ensure_ascii=False, indent=2, default=str).encode("utf-8")


@dataclass(frozen=True)
class WrittenArtifacts:
    csv: str | None = None
    json: str | None = None
    zip: str | None = None
    errors: dict[str, str] = field(default_factory=dict)

    def names(self) -> list[str]:
        return [n for n in (self.csv, self.json, self.zip) if n]


class OutputWriter:
    """
    Persists a result set as CSV/JSON files or as one ZIP bundle.

    CSV and JSON are written independently. A requested ZIP bundles them with
    downloaded media and replaces the loose files.
    """

    def __init__(
        self,
        fs: FileSystem,
        *,
        logger: RunLogger | None = None,
        clock: ClockFn | None = None,
    ) -> None:
        self._fs = fs
        self._logger = logger
        self._clock = clock or epoch_millis

    async def write(
        self,
        result: ScrapeResult,
        formats: Iterable[str],
        filepath: str,
        *,
        target_name: str,
    ) -> WrittenArtifacts:
        wanted = {str(f).strip().casefold() for f in formats if str(f).strip()}
        unknown = wanted - FORMATS
        if unknown:
            raise ValueError(f"Unsupported output formats: {', '.join(sorted(unknown))}")
        if not wanted:
            return WrittenArtifacts()

        stamp = int(self._clock())
        records = list(result.collector)
        names = {ext: artifact_name(target_name, ext, stamp) for ext in wanted}

        if filepath:
            try:
                await self._fs.make_dirs(filepath)
            except OSError as e:
                self._failed("output_dir", filepath, e)
                return WrittenArtifacts(errors={"output_dir": str(e)})

        if "zip" in wanted:
            return await self._write_zip(records, wanted, names, filepath)

        written: dict[str, str] = {}
        errors: dict[str, str] = {}
        for ext, render in (("csv", render_csv), ("json", render_json)):
            if ext not in wanted:
                continue
            path = self._path(filepath, names[ext])
            try:
                await self._fs.write_bytes(path, render(records))
            except (OSError, ValueError) as e:
                errors[ext] = str(e)
                self._failed(ext, path, e)
                continue
            written[ext] = names[ext]
            self._written(ext, path)

        return WrittenArtifacts(csv=written.get("csv"), json=written.get("json"), errors=errors)

    async def _write_zip(
        self,
        records: list[PostRecord],
        wanted: set[str],
        names: dict[str, str],
        filepath: str,
    ) -> WrittenArtifacts:
        buf = io.BytesIO()
        with zipfile.ZipFile(buf, "w", compression=zipfile.ZIP_DEFLATED) as zf:
            if "csv" in wanted:
                zf.writestr(names["csv"], render_csv(records))
            if "json" in wanted:
                zf.writestr(names["json"], render_json(records))
            for record in records:
                if not record.media_path:
                    continue
                try:
                    data = await self._fs.read_bytes(record.media_path)
                except OSError as e:
                    self._failed("zip_media", record.media_path, e)
                    continue
                zf.writestr(Path(record.media_path).name, data)

        path = self._path(filepath, names["zip"])
        try:
            await self._fs.write_bytes(path, buf.getvalue())
        except OSError as e:
            self._failed("zip", path, e)
            return WrittenArtifacts(errors={"zip": str(e)})

        self._written("zip", path)
        return WrittenArtifacts(zip=names["zip"])

    @staticmethod
    def _path(filepath: str, name: str) -> str:
        return str(Path(filepath) / name) if filepath else name

    def _written(self, kind: str, path: str) -> None:
        if self._logger is not None:
            self._logger.info("artifact_written", kind=kind, path=path)

    def _failed(self, kind: str, path: str, exc: BaseException) -> None:
        if self._logger is not None:
            self._logger.warning(
                "artifact_write_failed",
                kind=kind,
                path=path,
                error_type=type(exc).__name__,
                error_message=str(exc),
            )
