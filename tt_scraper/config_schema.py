from __future__ import annotations

from typing import Annotated, Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from .targets import ScrapeType, parse_scrape_type

DEFAULT_USER_AGENT = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36"
)

PositiveInt = Annotated[int, Field(ge=1)]
NonNegativeInt = Annotated[int, Field(ge=0)]

FileType = Literal["", "csv", "json", "all"]


class NetworkConfig(BaseModel):
    model_config = ConfigDict(extra="forbid", frozen=True)

    timeout_seconds: float = Field(20.0, gt=0.0)
    max_attempts: PositiveInt = 3
    base_delay_seconds: float = Field(0.5, ge=0.0)
    max_delay_seconds: float = Field(10.0, ge=0.0)

    @model_validator(mode="after")
    def _max_delay_covers_base(self) -> "NetworkConfig":
        if self.max_delay_seconds < self.base_delay_seconds:
            raise ValueError("max_delay_seconds must be >= base_delay_seconds")
        return self


class ScraperConfig(BaseModel):
    model_config = ConfigDict(extra="forbid", frozen=True)

    input: str = ""
    type: ScrapeType = ScrapeType.USER
    number: NonNegativeInt = 20  # 0 disables the limit
    download: bool = False
    async_download: PositiveInt = 5
    filetype: FileType = ""
    filepath: str = ""
    user_agent: str = DEFAULT_USER_AGENT
    proxy: str = ""
    cookies: dict[str, str] = Field(default_factory=dict)
    store_history: bool = False
    history_path: str = ""
    stall_pages: PositiveInt = 1
    network: NetworkConfig = Field(default_factory=NetworkConfig)

    @field_validator("type", mode="before")
    @classmethod
    def _parse_type(cls, v: object) -> ScrapeType:
        # UnsupportedTypeError is not a ValueError, so it escapes validation untouched.
        return parse_scrape_type(v)

    @field_validator("input", "filepath", "proxy", "history_path")
    @classmethod
    def _strip(cls, v: str) -> str:
        return (v or "").strip()

    @field_validator("user_agent")
    @classmethod
    def _user_agent_default(cls, v: str) -> str:
        return (v or "").strip() or DEFAULT_USER_AGENT

    def output_formats(self) -> frozenset[str]:
        if self.filetype == "all":
            return frozenset({"csv", "json"})
        if self.filetype:
            return frozenset({self.filetype})
        return frozenset()
