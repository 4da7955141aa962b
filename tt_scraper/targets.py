from __future__ import annotations

import re
from dataclasses import dataclass
from enum import Enum, IntEnum
from typing import Union

from .errors import MissingInputError, UnsupportedTypeError

USER_PAGE_SIZE = 30
HASHTAG_PAGE_SIZE = 48

_NON_WORD_RE = re.compile(r"\W+")


class ScrapeType(str, Enum):
    USER = "user"
    HASHTAG = "hashtag"
    SINGLE_USER = "single_user"
    SINGLE_HASHTAG = "single_hashtag"
    SIGNATURE = "signature"


SCRAPE_TYPES: tuple[str, ...] = tuple(t.value for t in ScrapeType)


class TargetType(IntEnum):
    USER = 1
    HASHTAG = 3


@dataclass(frozen=True)
class ScrapeTarget:
    """Platform-internal identity a listing run paginates against."""

    id: str
    sec_uid: str
    type: TargetType
    count: int
    min_cursor: int = 0
    lang: str = ""

    def __post_init__(self) -> None:
        if not (self.id or "").strip():
            raise ValueError("ScrapeTarget.id must be non-empty")
        if self.count <= 0:
            raise ValueError("ScrapeTarget.count must be positive")
        if self.min_cursor < 0:
            raise ValueError("ScrapeTarget.min_cursor must be >= 0")


@dataclass(frozen=True)
class UserRequest:
    username: str


@dataclass(frozen=True)
class HashtagRequest:
    tag: str


@dataclass(frozen=True)
class SingleUserRequest:
    username: str


@dataclass(frozen=True)
class SingleHashtagRequest:
    tag: str


@dataclass(frozen=True)
class SignatureRequest:
    url: str


ScrapeRequest = Union[
    UserRequest,
    HashtagRequest,
    SingleUserRequest,
    SingleHashtagRequest,
    SignatureRequest,
]


def parse_scrape_type(value: object) -> ScrapeType:
    """
    Parse a raw scrape type string at the input boundary.

    Raises UnsupportedTypeError naming every recognized type.
    """
    if isinstance(value, ScrapeType):
        return value

    raw = str(value or "").strip().casefold()
    for t in ScrapeType:
        if t.value == raw:
            return t

    joined = ", ".join(SCRAPE_TYPES)
    raise UnsupportedTypeError(f"Missing scraping type. Scrape types: {joined}")


def normalize_username(value: str) -> str:
    name = (value or "").strip()
    if name.startswith("@"):
        name = name[1:].strip()
    return name


def normalize_hashtag(value: str) -> str:
    tag = (value or "").strip()
    if tag.startswith("#"):
        tag = tag[1:].strip()
    return tag


def sanitize_name(value: str, *, fallback: str = "scrape") -> str:
    """Collapse anything that is not a word character into single underscores."""
    cleaned = _NON_WORD_RE.sub("_", (value or "").strip()).strip("_")
    return cleaned or fallback


def build_request(scrape_type: ScrapeType, raw_input: str) -> ScrapeRequest:
    """
    Turn a validated type plus raw input into a tagged request.

    Raises MissingInputError before any network activity when the input is empty.
    """
    t = parse_scrape_type(scrape_type)

    if t in (ScrapeType.USER, ScrapeType.SINGLE_USER):
        value = normalize_username(raw_input)
    elif t in (ScrapeType.HASHTAG, ScrapeType.SINGLE_HASHTAG):
        value = normalize_hashtag(raw_input)
    else:
        value = (raw_input or "").strip()

    if not value:
        raise MissingInputError("Missing input")

    if t is ScrapeType.USER:
        return UserRequest(username=value)
    if t is ScrapeType.HASHTAG:
        return HashtagRequest(tag=value)
    if t is ScrapeType.SINGLE_USER:
        return SingleUserRequest(username=value)
    if t is ScrapeType.SINGLE_HASHTAG:
        return SingleHashtagRequest(tag=value)
    return SignatureRequest(url=value)


def history_key(request: ScrapeRequest) -> str:
    if isinstance(request, (UserRequest, SingleUserRequest)):
        kind = "user"
        value = request.username
    elif isinstance(request, (HashtagRequest, SingleHashtagRequest)):
        kind = "hashtag"
        value = request.tag
    else:
        kind = "signature"
        value = request.url
    return f"{kind}_{sanitize_name(value)}"


def request_label(request: ScrapeRequest) -> str:
    """Human-facing target name used for artifact filenames."""
    if isinstance(request, (UserRequest, SingleUserRequest)):
        return sanitize_name(request.username)
    if isinstance(request, (HashtagRequest, SingleHashtagRequest)):
        return sanitize_name(request.tag)
    return "signature"
