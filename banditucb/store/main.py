"""Bandit store service entrypoint."""
from __future__ import annotations

import argparse
import asyncio
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Mapping, Optional, Sequence

from redis.asyncio import Redis

from ..common.config import DEFAULT_CONFIG_PATH, StoreConfig, load_store_config
from ..common.redis import close_redis, create_redis, iter_stream, publish_json
from ..core.errors import BanditError
from ..core.sampler import RejectionSampler
from ..core.selection import SelectionEngine
from .aof import AppendOnlyLog
from .commands import BanditCommands, format_error
from .keyspace import Keyspace
from .snapshot import load_offset, load_snapshot, save_snapshot

log = logging.getLogger(__name__)


@dataclass
class BanditService:
    """Executes commands and tracks the last command-stream entry applied.

    ``last_id`` is persisted with every AOF write (or as a marker line) and
    with each snapshot, so a restart resumes after it instead of re-applying
    entries that are already reflected in the restored keyspace.
    """

    commands: BanditCommands
    aof: AppendOnlyLog | None = None
    last_id: Optional[str] = None
    _entry_id: Optional[str] = field(default=None, init=False, repr=False)
    _logged: bool = field(default=False, init=False, repr=False)

    @classmethod
    def from_config(cls, config: StoreConfig) -> "BanditService":
        sampler = RejectionSampler(seed=config.seed)
        commands = BanditCommands(Keyspace(), SelectionEngine(sampler))
        aof = AppendOnlyLog(config.aof_path) if config.aof_path else None
        return cls(commands=commands, aof=aof)

    @property
    def keyspace(self) -> Keyspace:
        return self.commands.keyspace

    def _replicate(self, argv: Sequence[str]) -> None:
        self.aof.append(argv, offset=self._entry_id)
        self._logged = True

    def recover(self) -> int:
        """Replay the append-only log, then start appending new writes to it."""
        if self.aof is None:
            return 0
        self.commands.replicate = None
        replayed = self.aof.replay(self.commands.execute)
        if self.aof.offset is not None:
            self.last_id = self.aof.offset
        self.commands.replicate = self._replicate
        return replayed

    def compact(self) -> int:
        if self.aof is None:
            return 0
        return self.aof.rewrite(self.keyspace.rewrite_log(), offset=self.last_id)

    def handle(self, payload: Mapping[str, Any], entry_id: str | None = None) -> Dict[str, Any]:
        request_id = payload.get("id")
        argv = payload.get("argv") or []
        self._entry_id, self._logged = entry_id, False
        try:
            result = self.commands.execute(*argv)
        except BanditError as exc:
            log.debug("command %r failed: %s", argv[:1], exc)
            reply = {"id": request_id, "ok": False, "error": format_error(exc)}
        else:
            reply = {"id": request_id, "ok": True, "result": result}
        if entry_id is not None:
            self.last_id = entry_id
            if self.aof is not None and not self._logged:
                self.aof.mark(entry_id)
        self._entry_id = None
        return reply


async def run_command_stream(
    service: BanditService,
    redis: Redis,
    config: StoreConfig | None = None,
    stop_event: asyncio.Event | None = None,
) -> None:
    """Serve commands that arrived after ``service.last_id``, one at a time."""
    config = config or StoreConfig()

    def should_stop() -> bool:
        return stop_event.is_set() if stop_event else False

    async for entry_id, payload in iter_stream(
        redis,
        config.command_stream,
        start=service.last_id or "0-0",
        block_ms=config.block_ms,
        batch_size=config.batch_size,
        stop=should_stop,
    ):
        reply = service.handle(payload, entry_id)
        await publish_json(redis, config.reply_stream, reply)


async def restore_state(service: BanditService, redis: Redis, config: StoreConfig) -> int:
    # the log holds every write since the last compaction, so it supersedes the snapshot
    if service.aof is not None and service.aof.path.exists():
        return service.recover()
    restored = await load_snapshot(redis, service.keyspace, config.snapshot_prefix)
    service.last_id = await load_offset(redis, config.offset_key)
    if service.aof is not None:
        service.recover()
        service.compact()
    return restored


async def persist_state(service: BanditService, redis: Redis, config: StoreConfig) -> None:
    await save_snapshot(
        redis,
        service.keyspace,
        config.snapshot_prefix,
        offset=service.last_id,
        offset_key=config.offset_key,
    )
    service.compact()


async def main_async(config: StoreConfig) -> None:
    service = BanditService.from_config(config)
    redis = await create_redis(config.redis_url)
    try:
        restored = await restore_state(service, redis, config)
        log.info("restored %d entries; serving %s", restored, config.command_stream)
        try:
            await run_command_stream(service, redis, config)
        finally:
            await persist_state(service, redis, config)
    finally:
        await close_redis(redis)


def parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="UCB1 bandit store")
    parser.add_argument("--config", type=Path, default=DEFAULT_CONFIG_PATH, help="YAML config file")
    parser.add_argument("--log-level", default="INFO", help="Logging level")
    return parser.parse_args()


def main() -> None:
    args = parse_args()
    logging.basicConfig(
        level=getattr(logging, str(args.log_level).upper(), logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    asyncio.run(main_async(load_store_config(args.config)))


if __name__ == "__main__":
    main()
