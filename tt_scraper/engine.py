from __future__ import annotations

import dataclasses
from pathlib import Path

from .api import PlatformAPI
from .collector import Collector
from .config_schema import ScraperConfig
from .downloader import Downloader
from .fs import FileSystem, LocalFileSystem
from .history import HistoryStore
from .info import HashtagInfo, ProfileInfo
from .output import ClockFn, OutputWriter
from .resolver import Resolver
from .result import ScrapeResult
from .retry import AsyncSleepFn, RetryConfig
from .run_log import RunLogger
from .signer import Signer
from .targets import (
    ScrapeRequest,
    ScrapeTarget,
    SignatureRequest,
    SingleHashtagRequest,
    SingleUserRequest,
    UserRequest,
    build_request,
    history_key,
    request_label,
)
from .transport import HttpTransport, HttpxTransport


class TikTokScraper:
    """
    Scrape orchestration for one configured target.

    Owns one signing secret, one transport, and the collaborators built on them.
    Use as `async with TikTokScraper(cfg) as scraper: result = await scraper.scrape()`.
    """

    def __init__(
        self,
        config: ScraperConfig,
        *,
        transport: HttpTransport | None = None,
        fs: FileSystem | None = None,
        logger: RunLogger | None = None,
        clock: ClockFn | None = None,
        sleep_fn: AsyncSleepFn | None = None,
    ) -> None:
        self._config = config
        self._logger = logger

        if transport is not None:
            self._transport = transport
            self._owns_transport = False
        else:
            self._transport = HttpxTransport(
                user_agent=config.user_agent,
                proxy=config.proxy,
                cookies=config.cookies,
                timeout_seconds=config.network.timeout_seconds,
            )
            self._owns_transport = True

        self._fs = fs or LocalFileSystem()

        self._api = PlatformAPI(
            self._transport,
            user_agent=config.user_agent,
            retry=RetryConfig.from_network(config.network),
            on_retry=logger.on_retry if logger is not None else None,
            sleep_fn=sleep_fn,
        )
        self._signer = Signer(self._api, logger=logger)
        self._resolver = Resolver(self._api, self._signer, logger=logger)
        self._downloader = Downloader(self._api, self._fs, logger=logger)
        self._writer = OutputWriter(self._fs, logger=logger, clock=clock)

    async def __aenter__(self) -> "TikTokScraper":
        return self

    async def __aexit__(self, exc_type: object, exc: object, tb: object) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        if self._owns_transport:
            await self._transport.aclose()

    @property
    def config(self) -> ScraperConfig:
        return self._config

    @property
    def input(self) -> str:
        return self._config.input

    @property
    def user_agent(self) -> str:
        return self._config.user_agent

    @property
    def tac_value(self) -> str | None:
        return self._signer.secret

    async def initialize(self) -> bool:
        """Fetch the signing secret once; return whether it is available."""
        return await self._signer.initialize()

    def _request(self) -> ScrapeRequest:
        return build_request(self._config.type, self._config.input)

    def _media_dir(self, label: str) -> str:
        if self._config.filepath:
            return str(Path(self._config.filepath) / label)
        return label

    async def scrape(self) -> ScrapeResult:
        # Input validation happens before any network activity.
        request = self._request()
        label = request_label(request)
        if self._logger is not None:
            self._logger.set_target(label)
            self._logger.info("scrape_started", type=self._config.type.value, number=self._config.number)

        if isinstance(request, SignatureRequest):
            signature = await self._resolver.signature(request.url)
            return ScrapeResult(signature=signature)

        if isinstance(request, SingleUserRequest):
            return ScrapeResult(info=await self._resolver.user_profile(request.username))

        if isinstance(request, SingleHashtagRequest):
            return ScrapeResult(info=await self._resolver.hashtag_info(request.tag))

        if isinstance(request, UserRequest):
            target = await self._resolver.user_target(request.username)
        else:
            target = await self._resolver.hashtag_target(request.tag)

        await self._signer.initialize()

        history = None
        if self._config.store_history:
            history = HistoryStore(self._fs, self._config.history_path, logger=self._logger)

        collector = Collector(
            self._api,
            self._signer,
            history=history,
            history_key=history_key(request),
            stall_pages=self._config.stall_pages,
            logger=self._logger,
        )
        run = await collector.collect_run(
            target,
            int(self._config.number),
            resume=self._config.store_history,
        )

        posts = run.posts
        formats = set(self._config.output_formats())
        if self._config.download:
            posts = await self._downloader.download_all(
                posts,
                int(self._config.async_download),
                self._media_dir(label),
            )
            formats.add("zip")

        result = ScrapeResult(collector=posts, target=target, cursor=run.cursor)

        if formats:
            written = await self._writer.write(
                result,
                formats,
                self._config.filepath,
                target_name=label,
            )
            result = dataclasses.replace(
                result,
                csv=written.csv,
                json=written.json,
                zip=written.zip,
            )

        if self._logger is not None:
            self._logger.info(
                "scrape_completed",
                collected=len(result.collector),
                cursor=result.cursor,
                csv=result.csv,
                json=result.json,
                zip=result.zip,
            )
        return result

    def _input_or(self, value: str | None) -> str:
        return self._config.input if value is None else value

    async def get_user_id(self, username: str | None = None) -> ScrapeTarget:
        return await self._resolver.user_target(self._input_or(username))

    async def get_hashtag_id(self, tag: str | None = None) -> ScrapeTarget:
        return await self._resolver.hashtag_target(self._input_or(tag))

    async def sign_url(self, url: str | None = None) -> str:
        return await self._resolver.signature(self._input_or(url))

    async def get_hashtag_info(self, tag: str | None = None) -> HashtagInfo:
        return await self._resolver.hashtag_info(self._input_or(tag))

    async def get_user_profile_info(self, username: str | None = None) -> ProfileInfo:
        return await self._resolver.user_profile(self._input_or(username))


async def run_scrape(
    config: ScraperConfig,
    *,
    transport: HttpTransport | None = None,
    fs: FileSystem | None = None,
    logger: RunLogger | None = None,
) -> ScrapeResult:
    async with TikTokScraper(config, transport=transport, fs=fs, logger=logger) as scraper:
        return await scraper.scrape()
