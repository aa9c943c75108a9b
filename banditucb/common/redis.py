"""Async Redis helpers shared by the store service and snapshotting."""
from __future__ import annotations

import json
import os
from typing import Any, AsyncIterator, Callable, Dict, Mapping, Tuple

from redis.asyncio import Redis

DEFAULT_REDIS_URL = "redis://localhost:6379/0"


async def create_redis(url: str | None = None) -> Redis:
    """Connect with decoded responses; ``REDIS_URL`` wins over the default."""
    redis_url = url or os.environ.get("REDIS_URL", DEFAULT_REDIS_URL)
    client = Redis.from_url(redis_url, decode_responses=True)
    await client.ping()
    return client


async def close_redis(client: Redis) -> None:
    await client.aclose()


async def publish_json(client: Redis, stream: str, payload: Mapping[str, Any], *, maxlen: int = 1_000) -> str:
    data = json.dumps(payload, separators=(",", ":"))
    return await client.xadd(stream, {"data": data}, maxlen=maxlen, approximate=True)


async def iter_stream(
    client: Redis,
    stream: str,
    *,
    start: str = "0-0",
    block_ms: int = 1_000,
    batch_size: int = 100,
    stop: Callable[[], bool] | None = None,
) -> AsyncIterator[Tuple[str, Dict[str, Any]]]:
    """Yield ``(entry_id, payload)`` pairs in stream order until ``stop`` is true."""
    last_id = start
    while stop is None or not stop():
        response = await client.xread({stream: last_id}, count=batch_size, block=block_ms)
        if not response:
            continue
        for _, entries in response:
            for entry_id, fields in entries:
                last_id = entry_id
                yield entry_id, json.loads(fields.get("data", "{}"))

