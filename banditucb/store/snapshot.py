"""Persist keyspace snapshots into Redis hashes."""
from __future__ import annotations

import base64
import logging
from typing import Dict

from redis.asyncio import Redis

from ..common.streams import OFFSET_KEY, SNAPSHOT_PREFIX
from .keyspace import Keyspace, SnapshotRecord

log = logging.getLogger(__name__)


async def save_snapshot(
    client: Redis,
    keyspace: Keyspace,
    prefix: str = SNAPSHOT_PREFIX,
    *,
    offset: str | None = None,
    offset_key: str = OFFSET_KEY,
) -> int:
    """Write one hash per key (``type``, ``encver``, base64 ``data``).

    Snapshot keys under ``prefix`` that no longer exist in the keyspace are
    removed, and ``offset`` (the last command-stream entry reflected in the
    keyspace) is stored, in the same transaction.
    """
    records = keyspace.dump()
    stale = [name async for name in client.scan_iter(match=f"{prefix}*")]
    async with client.pipeline(transaction=True) as pipe:
        if stale:
            pipe.delete(*stale)
        for key, record in records.items():
            pipe.hset(
                f"{prefix}{key}",
                mapping={
                    "type": record.type_name,
                    "encver": record.encver,
                    "data": base64.b64encode(record.data).decode("ascii"),
                },
            )
        if offset is not None:
            pipe.set(offset_key, offset)
        await pipe.execute()
    log.info("saved %d keys under %s", len(records), prefix)
    return len(records)


async def load_snapshot(client: Redis, keyspace: Keyspace, prefix: str = SNAPSHOT_PREFIX) -> int:
    """Restore keys saved by ``save_snapshot``; an unknown encver aborts the load."""
    records: Dict[str, SnapshotRecord] = {}
    async for name in client.scan_iter(match=f"{prefix}*"):
        fields = await client.hgetall(name)
        key = name[len(prefix):]
        type_name = fields.get("type", "")
        if keyspace.type_of_name(type_name) is None:
            log.warning("skipping snapshot key %s with unknown type %r", name, type_name)
            continue
        records[key] = SnapshotRecord(
            type_name=type_name,
            encver=int(fields.get("encver", -1)),
            data=base64.b64decode(fields.get("data", "")),
        )
    loaded = keyspace.restore(records)
    log.info("loaded %d keys from %s", loaded, prefix)
    return loaded


async def load_offset(client: Redis, offset_key: str = OFFSET_KEY) -> str | None:
    """Command-stream entry id saved alongside the last snapshot, if any."""
    return await client.get(offset_key)
