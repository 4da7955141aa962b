from __future__ import annotations

from dataclasses import dataclass, field
from typing import Union

from .info import HashtagInfo, ProfileInfo
from .post import PostRecord
from .targets import ScrapeTarget


@dataclass(frozen=True)
class ScrapeResult:
    """
    Terminal object handed to the caller.

    `csv`/`json`/`zip` hold generated filenames (not paths) when written.
    """

    collector: list[PostRecord] = field(default_factory=list)
    csv: str | None = None
    json: str | None = None
    zip: str | None = None
    target: ScrapeTarget | None = None
    info: Union[ProfileInfo, HashtagInfo, None] = None
    signature: str | None = None
    cursor: int | None = None
