from __future__ import annotations

from typing import Any, Mapping

from .post import PostRecord


def _coerce_str(value: Any) -> str | None:
    if isinstance(value, str):
        s = value.strip()
        return s if s else None
    return None


def _coerce_id(value: Any) -> str | None:
    if isinstance(value, str):
        v = value.strip()
        return v if v else None
    if isinstance(value, int) and not isinstance(value, bool):
        return str(value)
    return None


def _coerce_bool(value: Any) -> bool | None:
    if isinstance(value, bool):
        return value
    return None


def _coerce_int(value: Any) -> int | None:
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        return int(value)
    if isinstance(value, str):
        try:
            return int(value.strip())
        except ValueError:
            return None
    return None


def _first_str(value: Any) -> str | None:
    if isinstance(value, list):
        for item in value:
            s = _coerce_str(item)
            if s:
                return s
        return None
    return _coerce_str(value)


def _str_list(value: Any) -> tuple[str, ...]:
    if not isinstance(value, list):
        return ()
    out: list[str] = []
    for item in value:
        s = _coerce_str(item)
        if s:
            out.append(s)
    return tuple(out)


def _dedupe_terms(values: list[str]) -> tuple[str, ...]:
    out: list[str] = []
    seen: set[str] = set()
    for item in values:
        term = (item or "").strip()
        if not term:
            continue
        key = term.casefold()
        if key in seen:
            continue
        seen.add(key)
        out.append(term)
    return tuple(out)


def _mapping(value: Any) -> Mapping[str, Any]:
    return value if isinstance(value, Mapping) else {}


def web_video_url(author_name: str | None, post_id: str) -> str | None:
    if not author_name:
        return None
    return f"https://www.tiktok.com/@{author_name}/video/{post_id}"


def post_record_from_item(item: Mapping[str, Any]) -> PostRecord | None:
    """
    Best-effort extraction of a PostRecord from one `itemListData` entry.

    Returns None when the entry carries no usable post id.
    """
    infos = _mapping(item.get("itemInfos"))
    author = _mapping(item.get("authorInfos"))
    music = _mapping(item.get("musicInfos"))

    post_id = _coerce_id(infos.get("id")) or _coerce_id(item.get("id"))
    if not post_id:
        return None

    video = _mapping(infos.get("video"))
    meta = _mapping(video.get("videoMeta"))

    hashtags: list[str] = []
    mentions: list[str] = []
    text_extra = item.get("textExtra")
    if isinstance(text_extra, list):
        for extra in text_extra:
            if not isinstance(extra, Mapping):
                continue
            tag = _coerce_str(extra.get("hashtagName"))
            if tag:
                hashtags.append(tag.lstrip("#"))
            user = _coerce_str(extra.get("userUniqueId"))
            if user:
                mentions.append(user.lstrip("@"))

    challenges = item.get("challengeInfoList")
    if isinstance(challenges, list):
        for ch in challenges:
            if isinstance(ch, Mapping):
                name = _coerce_str(ch.get("challengeName"))
                if name:
                    hashtags.append(name)

    author_name = _coerce_str(author.get("uniqueId"))

    return PostRecord(
        id=post_id,
        text=_coerce_str(infos.get("text")) or "",
        create_time=_coerce_int(infos.get("createTime")),
        author_id=_coerce_id(author.get("userId")) or _coerce_id(infos.get("authorId")),
        author_name=author_name,
        author_nickname=_coerce_str(author.get("nickName")),
        author_verified=_coerce_bool(author.get("verified")),
        author_sec_uid=_coerce_str(author.get("secUid")),
        music_id=_coerce_id(music.get("musicId")) or _coerce_id(infos.get("musicId")),
        music_name=_coerce_str(music.get("musicName")),
        music_author=_coerce_str(music.get("authorName")),
        music_original=_coerce_bool(music.get("original")),
        music_url=_first_str(music.get("playUrl")),
        covers=_str_list(infos.get("covers")),
        video_url=_first_str(video.get("urls")),
        web_video_url=web_video_url(author_name, post_id),
        video_width=_coerce_int(meta.get("width")),
        video_height=_coerce_int(meta.get("height")),
        video_duration=_coerce_int(meta.get("duration")),
        digg_count=_coerce_int(infos.get("diggCount")) or 0,
        share_count=_coerce_int(infos.get("shareCount")) or 0,
        play_count=_coerce_int(infos.get("playCount")) or 0,
        comment_count=_coerce_int(infos.get("commentCount")) or 0,
        hashtags=_dedupe_terms(hashtags),
        mentions=_dedupe_terms(mentions),
    )
