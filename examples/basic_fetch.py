"""
basic_fetch.py: minimal resilient fetch example.

Fetches one JSON document with retries, then serves the second call from
the persistent cache.

Usage:
    python examples/basic_fetch.py https://httpbin.org/json
"""

import logging
import sys

from resilient_http import ResilientHttpClient, SQLiteKeyValueBackend


async def main(url: str) -> None:
    async with ResilientHttpClient(
        cache_backend=SQLiteKeyValueBackend(".data/example_cache.sqlite3"),
        defaults={"with_cache": True, "cache_ttl_s": 60, "max_retries": 4},
    ) as client:
        first = await client.fetch(url)
        second = await client.fetch(url)
        print(first)
        print("served from cache:", first == second)


if __name__ == "__main__":
    import asyncio

    logging.basicConfig(level=logging.INFO)
    asyncio.run(main(sys.argv[1] if len(sys.argv) > 1 else "https://httpbin.org/json"))
