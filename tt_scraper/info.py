from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field, field_validator


class _InfoModel(BaseModel):
    # Platform payloads are camelCase; unknown keys are dropped.
    model_config = ConfigDict(extra="ignore", frozen=True, populate_by_name=True)


def _coerce_count_str(v: object) -> str:
    if v is None:
        return "0"
    if isinstance(v, bool):
        return str(int(v))
    return str(v).strip() or "0"


def _coerce_str_list(v: object) -> list[str]:
    if v is None:
        return []
    if isinstance(v, str):
        return [v] if v.strip() else []
    if isinstance(v, (list, tuple)):
        return [s for s in v if isinstance(s, str) and s.strip()]
    return []


class ProfileInfo(_InfoModel):
    """Full profile record returned for `single_user` requests."""

    sec_uid: str = Field(alias="secUid")
    user_id: str = Field(alias="userId")
    is_secret: bool = Field(False, alias="isSecret")
    unique_id: str = Field(alias="uniqueId")
    nick_name: str = Field("", alias="nickName")
    signature: str = ""
    covers: list[str] = Field(default_factory=list)
    covers_medium: list[str] = Field(default_factory=list, alias="coversMedium")
    following: int = 0
    fans: int = 0
    heart: str = "0"
    video: int = 0
    verified: bool = False
    digg: int = 0

    @field_validator("user_id", mode="before")
    @classmethod
    def _id_as_str(cls, v: object) -> str:
        return str(v or "").strip()

    @field_validator("heart", mode="before")
    @classmethod
    def _heart_as_str(cls, v: object) -> str:
        # Like totals overflow 32-bit ints upstream and arrive as strings.
        return _coerce_count_str(v)

    @field_validator("covers", "covers_medium", mode="before")
    @classmethod
    def _covers(cls, v: object) -> list[str]:
        return _coerce_str_list(v)


class HashtagInfo(_InfoModel):
    """Full challenge record returned for `single_hashtag` requests."""

    challenge_id: str = Field(alias="challengeId")
    challenge_name: str = Field(alias="challengeName")
    text: str = ""
    covers: list[str] = Field(default_factory=list)
    covers_medium: list[str] = Field(default_factory=list, alias="coversMedium")
    posts: int = 0
    views: str = "0"
    is_commerce: bool = Field(False, alias="isCommerce")
    split_title: str = Field("", alias="splitTitle")

    @field_validator("challenge_id", mode="before")
    @classmethod
    def _id_as_str(cls, v: object) -> str:
        return str(v or "").strip()

    @field_validator("views", mode="before")
    @classmethod
    def _views_as_str(cls, v: object) -> str:
        return _coerce_count_str(v)

    @field_validator("covers", "covers_medium", mode="before")
    @classmethod
    def _covers(cls, v: object) -> list[str]:
        return _coerce_str_list(v)
