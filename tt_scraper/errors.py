from __future__ import annotations

from enum import Enum


class ErrorKind(str, Enum):
    MISSING_INPUT = "missing_input"
    UNSUPPORTED_TYPE = "unsupported_type"
    SIGNATURE = "signature"
    NOT_FOUND = "not_found"
    COLLECTION = "collection"
    DOWNLOAD_FATAL = "download_fatal"
    REQUEST = "request"
    CONFIG = "config"


class ScraperError(RuntimeError):
    """
    Base class for every failure the scraper reports to its caller.

    `kind` discriminates the failure; `message` is the human-readable text.
    """

    kind: ErrorKind = ErrorKind.REQUEST

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class MissingInputError(ScraperError):
    """Raised when a target identifier or URL is empty."""

    kind = ErrorKind.MISSING_INPUT


class UnsupportedTypeError(ScraperError):
    """Raised when a scrape type string is not one of the recognized types."""

    kind = ErrorKind.UNSUPPORTED_TYPE


class SignatureError(ScraperError):
    """Raised when a request signature cannot be computed."""

    kind = ErrorKind.SIGNATURE


class NotFoundError(ScraperError):
    """Raised when the platform reports that a user or hashtag does not exist."""

    kind = ErrorKind.NOT_FOUND

    def __init__(self, entity: str, identifier: str) -> None:
        super().__init__(f"Can't find {entity}: {identifier}")
        self.entity = entity
        self.identifier = identifier


class CollectionError(ScraperError):
    """Raised when a listing page cannot be fetched or parsed mid-pagination."""

    kind = ErrorKind.COLLECTION


class DownloadFatalError(ScraperError):
    """Raised when the media destination directory cannot be prepared."""

    kind = ErrorKind.DOWNLOAD_FATAL


class RequestError(ScraperError):
    """Raised when a platform request fails outside of pagination."""

    kind = ErrorKind.REQUEST


class ConfigError(ScraperError):
    """Raised when configuration is missing or invalid."""

    kind = ErrorKind.CONFIG
