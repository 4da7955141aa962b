from __future__ import annotations

import asyncio
import dataclasses
from dataclasses import dataclass
from pathlib import Path
from typing import Sequence

import httpx

from .api import PlatformAPI
from .errors import DownloadFatalError
from .fs import FileSystem
from .post import PostRecord
from .run_log import RunLogger

MEDIA_EXTENSION = ".mp4"


@dataclass(frozen=True)
class DownloadTask:
    post_id: str
    media_url: str


@dataclass(frozen=True)
class DownloadOutcome:
    post_id: str
    path: str | None = None
    error: str | None = None

    @property
    def ok(self) -> bool:
        return self.path is not None


def _describe(exc: BaseException) -> str:
    if isinstance(exc, httpx.HTTPStatusError):
        return f"http_{exc.response.status_code}"
    msg = (str(exc) or "").strip()
    return f"{type(exc).__name__}: {msg}" if msg else type(exc).__name__


class Downloader:
    """
    Fetches post media with at most `concurrency` requests in flight.

    A failing media URL only marks its own record; it never aborts siblings.
    """

    def __init__(
        self,
        api: PlatformAPI,
        fs: FileSystem,
        *,
        logger: RunLogger | None = None,
    ) -> None:
        self._api = api
        self._fs = fs
        self._logger = logger

    async def download_all(
        self,
        records: Sequence[PostRecord],
        concurrency: int,
        dest_dir: str,
    ) -> list[PostRecord]:
        if int(concurrency) < 1:
            raise ValueError("concurrency must be >= 1")

        try:
            await self._fs.make_dirs(dest_dir)
        except OSError as e:
            raise DownloadFatalError(f"Cannot prepare download directory {dest_dir}: {e}") from e

        sem = asyncio.Semaphore(int(concurrency))

        async def _run(record: PostRecord) -> DownloadOutcome:
            if not record.video_url:
                return DownloadOutcome(post_id=record.id, error="no_media_url")
            task = DownloadTask(post_id=record.id, media_url=record.video_url)
            async with sem:
                return await self._download_one(task, dest_dir)

        outcomes = await asyncio.gather(*(_run(r) for r in records))

        annotated: list[PostRecord] = []
        failed = 0
        for record, outcome in zip(records, outcomes):
            if outcome.ok:
                annotated.append(
                    dataclasses.replace(
                        record,
                        downloaded=True,
                        media_path=outcome.path,
                        download_error=None,
                    )
                )
            else:
                failed += 1
                annotated.append(
                    dataclasses.replace(
                        record,
                        downloaded=False,
                        media_path=None,
                        download_error=outcome.error,
                    )
                )

        if self._logger is not None:
            self._logger.info(
                "download_completed",
                dest_dir=dest_dir,
                total=len(annotated),
                succeeded=len(annotated) - failed,
                failed=failed,
            )
        return annotated

    async def _download_one(self, task: DownloadTask, dest_dir: str) -> DownloadOutcome:
        path = str(Path(dest_dir) / f"{task.post_id}{MEDIA_EXTENSION}")
        try:
            data = await self._api.fetch_media(task.media_url)
            await self._fs.write_bytes(path, data)
        except Exception as e:
            reason = _describe(e)
            if self._logger is not None:
                self._logger.warning(
                    "download_failed",
                    url=task.media_url,
                    post_id=task.post_id,
                    reason=reason,
                )
            return DownloadOutcome(post_id=task.post_id, error=reason)

        return DownloadOutcome(post_id=task.post_id, path=path)
