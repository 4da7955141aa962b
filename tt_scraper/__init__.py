from __future__ import annotations

from .config import build_config, load_config
from .config_schema import ScraperConfig
from .engine import TikTokScraper, run_scrape
from .errors import (
    CollectionError,
    ConfigError,
    DownloadFatalError,
    ErrorKind,
    MissingInputError,
    NotFoundError,
    RequestError,
    ScraperError,
    SignatureError,
    UnsupportedTypeError,
)
from .info import HashtagInfo, ProfileInfo
from .post import PostRecord
from .result import ScrapeResult
from .targets import ScrapeTarget, ScrapeType

__all__ = [
    "CollectionError",
    "ConfigError",
    "DownloadFatalError",
    "ErrorKind",
    "HashtagInfo",
    "MissingInputError",
    "NotFoundError",
    "PostRecord",
    "ProfileInfo",
    "RequestError",
    "ScrapeResult",
    "ScrapeTarget",
    "ScrapeType",
    "ScraperConfig",
    "ScraperError",
    "SignatureError",
    "TikTokScraper",
    "UnsupportedTypeError",
    "build_config",
    "load_config",
    "run_scrape",
]
