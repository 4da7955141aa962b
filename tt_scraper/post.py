from __future__ import annotations

from dataclasses import dataclass, fields
from typing import Any, Sequence


@dataclass(frozen=True)
class PostRecord:
    """One scraped video post, flattened from a listing page item."""

    id: str
    text: str = ""
    create_time: int | None = None

    author_id: str | None = None
    author_name: str | None = None
    author_nickname: str | None = None
    author_verified: bool | None = None
    author_sec_uid: str | None = None

    music_id: str | None = None
    music_name: str | None = None
    music_author: str | None = None
    music_original: bool | None = None
    music_url: str | None = None

    covers: Sequence[str] = ()
    video_url: str | None = None
    web_video_url: str | None = None
    video_width: int | None = None
    video_height: int | None = None
    video_duration: int | None = None

    digg_count: int = 0
    share_count: int = 0
    play_count: int = 0
    comment_count: int = 0

    hashtags: Sequence[str] = ()
    mentions: Sequence[str] = ()

    downloaded: bool = False
    media_path: str | None = None
    download_error: str | None = None

    def to_dict(self) -> dict[str, Any]:
        out: dict[str, Any] = {}
        for f in fields(self):
            value = getattr(self, f.name)
            if isinstance(value, tuple):
                value = list(value)
            out[f.name] = value
        return out

    def to_row(self) -> dict[str, Any]:
        """Flat row for tabular export; sequences are space-joined."""
        row = self.to_dict()
        row["covers"] = " ".join(self.covers)
        row["hashtags"] = " ".join(f"#{h}" for h in self.hashtags)
        row["mentions"] = " ".join(f"@{m}" for m in self.mentions)
        return row
