from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Mapping

import httpx

from .api import PlatformAPI, body_of, build_item_list_url, status_code
from .dedupe import SeenKeys
from .errors import CollectionError
from .history import HistoryStore
from .normalize import post_record_from_item
from .post import PostRecord
from .run_log import RunLogger
from .signer import Signer
from .stagnation import StallGuard
from .targets import ScrapeTarget

STOP_EXHAUSTED = "exhausted"
STOP_COUNT = "count_reached"
STOP_STALLED = "stalled"
STOP_CURSOR = "cursor_not_advancing"


@dataclass(frozen=True)
class CollectionRun:
    posts: list[PostRecord] = field(default_factory=list)
    start_cursor: int = 0
    cursor: int = 0
    offset: int = 0
    pages: int = 0
    stop_reason: str = STOP_EXHAUSTED


def _parse_cursor(value: Any) -> int | None:
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, str):
        s = value.strip()
        if not s:
            return None
        try:
            return int(s)
        except ValueError:
            return None
    return None


class Collector:
    """
    Sequential cursor pagination over the listing endpoint.

    Each page depends on the previous page's cursor, so there is no parallelism
    here. Any page failure aborts the run: skipping a page would break the
    cursor that gets persisted for resume.
    """

    def __init__(
        self,
        api: PlatformAPI,
        signer: Signer,
        *,
        history: HistoryStore | None = None,
        history_key: str | None = None,
        stall_pages: int = 1,
        logger: RunLogger | None = None,
    ) -> None:
        if history is not None and not (history_key or "").strip():
            raise ValueError("history_key is required when history is enabled")
        self._api = api
        self._signer = signer
        self._history = history
        self._history_key = (history_key or "").strip()
        self._stall_pages = int(stall_pages)
        self._logger = logger

    async def collect(self, target: ScrapeTarget, desired_count: int, resume: bool) -> list[PostRecord]:
        run = await self.collect_run(target, desired_count, resume)
        return run.posts

    async def collect_run(
        self,
        target: ScrapeTarget,
        desired_count: int,
        resume: bool,
    ) -> CollectionRun:
        if desired_count < 0:
            raise ValueError("desired_count must be >= 0")

        start = int(target.min_cursor)
        skip = 0
        if resume and self._history is not None:
            record = await self._history.read_record(self._history_key)
            if record is not None:
                start = record.cursor
                skip = record.offset

        start_offset = skip
        cursor = start
        offset = 0
        posts: list[PostRecord] = []
        seen = SeenKeys()
        guard = StallGuard(window_pages=self._stall_pages)
        pages = 0

        while True:
            page_cursor = cursor
            unsigned = build_item_list_url(target, cursor)
            signed = self._signer.signed_url(unsigned)

            body = await self._fetch_page(signed)
            pages += 1

            items = body.get("itemListData")
            if items is None:
                items = []
            if not isinstance(items, list):
                raise CollectionError(f"Listing page {pages} has a malformed itemListData field")

            # Entries before `skip` were returned by an earlier run.
            skipped = min(skip, len(items))
            new_records = 0
            consumed = len(items)
            for index, item in enumerate(items):
                if index < skip:
                    continue
                if desired_count > 0 and len(posts) >= desired_count:
                    consumed = index
                    break
                if not isinstance(item, Mapping):
                    continue
                post = post_record_from_item(item)
                if post is None:
                    continue
                if not seen.add_post(post):
                    continue
                posts.append(post)
                new_records += 1
            skip = 0

            has_more = bool(body.get("hasMore"))
            next_cursor = _parse_cursor(body.get("maxCursor"))
            if has_more and next_cursor is None:
                raise CollectionError(f"Listing page {pages} reported more pages without a cursor")

            advanced = next_cursor is not None and next_cursor > cursor
            if consumed < len(items):
                # Stopped inside the page: resume from its unread entries.
                offset = consumed
            elif advanced:
                cursor = int(next_cursor)  # type: ignore[arg-type]

            if self._logger is not None:
                self._logger.info(
                    "collector_page",
                    page=pages,
                    new_records=new_records,
                    total=len(posts),
                    cursor=cursor,
                    offset=offset,
                    has_more=has_more,
                )

            if desired_count > 0 and len(posts) >= desired_count:
                reason = STOP_COUNT
                break
            if not has_more:
                reason = STOP_EXHAUSTED
                break
            # A page made entirely of already-returned entries is not a stall.
            if (skipped == 0 or len(items) > skipped) and guard.push(new_records):
                reason = STOP_STALLED
                break
            if not advanced:
                reason = STOP_CURSOR
                break

        if self._history is not None:
            await self._history.write_cursor(self._history_key, cursor, offset)

        if self._logger is not None:
            self._logger.info(
                "collector_stopped",
                reason=reason,
                pages=pages,
                collected=len(posts),
                start_cursor=start,
                start_offset=start_offset,
                cursor=cursor,
                offset=offset,
                last_page_cursor=page_cursor,
            )

        return CollectionRun(
            posts=posts,
            start_cursor=start,
            cursor=cursor,
            offset=offset,
            pages=pages,
            stop_reason=reason,
        )

    async def _fetch_page(self, signed_url: str) -> Mapping[str, Any]:
        try:
            payload = await self._api.fetch_item_list(signed_url)
        except (httpx.HTTPError, ValueError, OSError) as e:
            raise CollectionError(f"Failed to fetch listing page: {e}") from e

        code = status_code(payload)
        if code != 0:
            raise CollectionError(f"Listing request rejected with statusCode={code}")

        body = body_of(payload)
        if body is None:
            raise CollectionError("Listing response did not include a body")
        return body
