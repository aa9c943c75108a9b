"""Store configuration: YAML file with environment overrides."""
from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Mapping, Optional

import yaml

from .redis import DEFAULT_REDIS_URL
from .streams import COMMAND_STREAM, OFFSET_KEY, REPLY_STREAM, SNAPSHOT_PREFIX

DEFAULT_CONFIG_PATH = Path("config/banditucb.yaml")


def _section(raw: Mapping[str, Any], name: str) -> Mapping[str, Any]:
    value = raw.get(name) or {}
    if not isinstance(value, Mapping):
        raise ValueError(f"config section '{name}' must be a mapping")
    return value


def _optional_int(value: Any) -> Optional[int]:
    if value is None or value == "":
        return None
    return int(value)


@dataclass(slots=True)
class StoreConfig:
    redis_url: str = DEFAULT_REDIS_URL
    command_stream: str = COMMAND_STREAM
    reply_stream: str = REPLY_STREAM
    block_ms: int = 1_000
    batch_size: int = 100
    snapshot_prefix: str = SNAPSHOT_PREFIX
    offset_key: str = OFFSET_KEY
    aof_path: Optional[Path] = None
    seed: Optional[int] = None

    @classmethod
    def from_mapping(cls, raw: Mapping[str, Any]) -> "StoreConfig":
        redis_cfg = _section(raw, "redis")
        streams = _section(raw, "streams")
        snapshot = _section(raw, "snapshot")
        aof = _section(raw, "aof")
        sampler = _section(raw, "sampler")
        aof_path = aof.get("path") or None
        return cls(
            redis_url=str(redis_cfg.get("url", DEFAULT_REDIS_URL)),
            command_stream=str(streams.get("commands", COMMAND_STREAM)),
            reply_stream=str(streams.get("replies", REPLY_STREAM)),
            block_ms=int(streams.get("block_ms", 1_000)),
            batch_size=int(streams.get("batch_size", 100)),
            snapshot_prefix=str(snapshot.get("prefix", SNAPSHOT_PREFIX)),
            offset_key=str(snapshot.get("offset_key", OFFSET_KEY)),
            aof_path=Path(aof_path) if aof_path else None,
            seed=_optional_int(sampler.get("seed")),
        )

    def apply_env(self, environ: Mapping[str, str] = os.environ) -> "StoreConfig":
        if environ.get("REDIS_URL"):
            self.redis_url = environ["REDIS_URL"]
        if environ.get("BANDITUCB_SNAPSHOT_PREFIX"):
            self.snapshot_prefix = environ["BANDITUCB_SNAPSHOT_PREFIX"]
        if "BANDITUCB_AOF_PATH" in environ:
            path = environ["BANDITUCB_AOF_PATH"].strip()
            self.aof_path = Path(path) if path else None
        if "BANDITUCB_SEED" in environ:
            self.seed = _optional_int(environ["BANDITUCB_SEED"].strip())
        return self


def load_store_config(path: Path | None = None, environ: Mapping[str, str] = os.environ) -> StoreConfig:
    config_path = path or DEFAULT_CONFIG_PATH
    raw: Mapping[str, Any] = {}
    if config_path.exists():
        raw = yaml.safe_load(config_path.read_text(encoding="utf-8")) or {}
    return StoreConfig.from_mapping(raw).apply_env(environ)
