"""
MIT License
Copyright (c) 2026 arpan404
See LICENSE file for full license text.

Command-line entrypoint for one resilient fetch.

Usage examples:
  resilient-http https://example.com/api/items --retries 5 --retry-on 500,503
  resilient-http https://example.com/api/items --cache sqlite:.data/cache.sqlite3 --cache-ttl 60
"""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import sys
from collections.abc import Sequence
from dataclasses import replace
from typing import Any

from .client import ResilientHttpClient
from .errors import ResilientHttpError
from .settings import FetchSettings

logger = logging.getLogger("resilient_http.cli")


def _parse_header(raw: str) -> tuple[str, str]:
    name, sep, value = raw.partition(":")
    if not sep or not name.strip():
        raise argparse.ArgumentTypeError(f"Header must look like 'Name: value', got {raw!r}")
    return name.strip(), value.strip()


def _parse_codes(raw: str) -> list[int]:
    try:
        return [int(part) for part in raw.split(",") if part.strip()]
    except ValueError as e:
        raise argparse.ArgumentTypeError(f"Invalid status list {raw!r}") from e


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="resilient-http",
        description="Fetch one URL with retries, backoff and optional caching.",
    )
    parser.add_argument("url")
    parser.add_argument("--method", "-X", default="GET")
    parser.add_argument("--header", "-H", action="append", type=_parse_header, default=[])
    parser.add_argument("--data", "-d", default=None, help="Request body")
    parser.add_argument("--retries", type=int, default=None)
    parser.add_argument("--backoff", type=float, default=None, help="Initial backoff in seconds")
    parser.add_argument("--max-backoff", type=float, default=None)
    parser.add_argument("--retry-on", type=_parse_codes, default=None)
    parser.add_argument("--response-type", choices=("json", "text", "auto"), default=None)
    parser.add_argument(
        "--cache",
        default=None,
        help="Cache backend: inmemory, none, sqlite:PATH or redis:URL",
    )
    parser.add_argument("--cache-ttl", type=float, default=None, help="Seconds")
    parser.add_argument("--timeout", type=float, default=None, help="Seconds")
    parser.add_argument("--log-level", default="WARNING")
    return parser


def _settings_for(args: argparse.Namespace) -> FetchSettings:
    settings = FetchSettings.from_env()
    if not args.cache:
        return settings
    backend, _, target = args.cache.partition(":")
    overrides = {"cache_backend": backend}
    if backend == "sqlite" and target:
        overrides["cache_path"] = target
    if backend == "redis" and target:
        overrides["redis_url"] = target
    return replace(settings, **overrides)


async def _fetch(
    settings: FetchSettings,
    url: str,
    options: dict[str, Any],
    overrides: dict[str, Any],
) -> Any:
    async with ResilientHttpClient(settings=settings) as client:
        return await client.fetch(url, options, **overrides)


def main(argv: Sequence[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    logging.basicConfig(
        level=args.log_level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    options = {
        "method": args.method,
        "headers": dict(args.header),
        "body": args.data,
    }
    if args.timeout is not None:
        options["timeout_s"] = args.timeout
    overrides = {
        "max_retries": args.retries,
        "initial_backoff_s": args.backoff,
        "max_backoff_s": args.max_backoff,
        "retry_on_errors": args.retry_on,
        "response_type": args.response_type,
        "with_cache": True if args.cache else None,
        "cache_ttl_s": args.cache_ttl,
    }

    try:
        result = asyncio.run(_fetch(_settings_for(args), args.url, options, overrides))
    except ResilientHttpError as e:
        logger.error("Request failed: %s", e)
        print(f"error: {e}", file=sys.stderr)
        return 1

    if isinstance(result, str):
        print(result)
    else:
        print(json.dumps(result, indent=2, ensure_ascii=False))
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
