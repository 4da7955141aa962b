from __future__ import annotations

import argparse
import asyncio
import json
import sys
from typing import Any, Sequence

from .config import build_config, load_config_mapping
from .config_schema import ScraperConfig
from .engine import TikTokScraper
from .errors import (
    CollectionError,
    ConfigError,
    DownloadFatalError,
    MissingInputError,
    NotFoundError,
    RequestError,
    SignatureError,
    UnsupportedTypeError,
)
from .fs import LocalFileSystem
from .result import ScrapeResult
from .run_log import RunLogger
from .targets import SCRAPE_TYPES


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="tt_scraper",
        description="Collect posts for a user or hashtag from the mobile share endpoints.",
    )

    parser.add_argument(
        "type",
        help=f"Scrape type: {', '.join(SCRAPE_TYPES)}.",
    )
    parser.add_argument(
        "input",
        nargs="?",
        default=None,
        help="Username, hashtag, or URL to sign.",
    )
    parser.add_argument(
        "-n",
        "--number",
        type=int,
        default=None,
        help="Number of posts to collect (0 = no limit).",
    )
    parser.add_argument(
        "-d",
        "--download",
        action="store_true",
        default=None,
        help="Download post media and bundle everything into a ZIP.",
    )
    parser.add_argument(
        "--async-download",
        type=int,
        default=None,
        help="Maximum concurrent media downloads.",
    )
    parser.add_argument(
        "-t",
        "--filetype",
        choices=["csv", "json", "all"],
        default=None,
        help="Structured output format.",
    )
    parser.add_argument("--filepath", default=None, help="Output directory.")
    parser.add_argument("--user-agent", default=None, help="User agent sent with every request.")
    parser.add_argument("--proxy", default=None, help="Proxy URL for every request.")
    parser.add_argument(
        "--store-history",
        action="store_true",
        default=None,
        help="Resume from and persist the pagination cursor.",
    )
    parser.add_argument("--history-path", default=None, help="Directory for cursor history files.")
    parser.add_argument("--config", default=None, help="Path to YAML config file.")
    parser.add_argument("--log", default=None, help="Write a JSONL run log to this path.")
    parser.add_argument(
        "--offline",
        action="store_true",
        help="Run without network calls against built-in fixture data.",
    )
    return parser


def _eprint(message: str) -> None:
    print(message, file=sys.stderr)


def _config_from_args(args: argparse.Namespace) -> ScraperConfig:
    base: dict[str, Any] = {}
    source = "<command line>"
    if args.config:
        base = load_config_mapping(args.config)
        source = str(args.config)

    return build_config(
        base,
        source=source,
        type=args.type,
        input=args.input,
        number=args.number,
        download=args.download,
        async_download=args.async_download,
        filetype=args.filetype,
        filepath=args.filepath,
        user_agent=args.user_agent,
        proxy=args.proxy,
        store_history=args.store_history,
        history_path=args.history_path,
    )


def _print_result(cfg: ScraperConfig, result: ScrapeResult) -> None:
    print(f"type={cfg.type.value}")

    if result.signature is not None:
        print(f"signature={result.signature}")
        return

    if result.info is not None:
        print("info=")
        print(
            json.dumps(
                result.info.model_dump(by_alias=True),
                indent=2,
                ensure_ascii=False,
                sort_keys=True,
            )
        )
        return

    if result.target is not None:
        print(f"target_id={result.target.id}")
    print(f"collected={len(result.collector)}")
    print(f"downloaded={sum(1 for r in result.collector if r.downloaded)}")
    print(f"cursor={result.cursor}")
    print(f"csv={result.csv or ''}")
    print(f"json={result.json or ''}")
    print(f"zip={result.zip or ''}")


async def _run(cfg: ScraperConfig, *, offline: bool, log: RunLogger) -> ScrapeResult:
    transport = None
    if offline:
        from .offline import OfflineTransport

        transport = OfflineTransport()

    async with TikTokScraper(cfg, transport=transport, fs=LocalFileSystem(), logger=log) as scraper:
        return await scraper.scrape()


def _cmd_scrape(args: argparse.Namespace) -> int:
    log = RunLogger.open(args.log, overwrite=True) if args.log else RunLogger(keep_records=False)
    with log:
        log.info(
            "scrape_command_started",
            type=str(args.type),
            input=args.input,
            config_path=args.config,
            offline=bool(args.offline),
        )
        try:
            cfg = _config_from_args(args)
            result = asyncio.run(_run(cfg, offline=bool(args.offline), log=log))
        except Exception as e:
            log.exception("scrape_command_failed", exc=e)
            raise

    _print_result(cfg, result)
    if args.log:
        print(f"run_log={args.log}")
    return 0


def main(argv: Sequence[str] | None = None) -> int:
    parser = _build_parser()
    args = parser.parse_args(list(argv) if argv is not None else None)

    try:
        return int(_cmd_scrape(args))
    except (ConfigError, MissingInputError, UnsupportedTypeError) as e:
        _eprint(str(e))
        return 2
    except (NotFoundError, SignatureError, CollectionError, DownloadFatalError, RequestError) as e:
        _eprint(str(e))
        return 3
    except KeyboardInterrupt:
        _eprint("Interrupted")
        return 130
    except Exception as e:
        _eprint(f"Unexpected error: {e}")
        return 1
