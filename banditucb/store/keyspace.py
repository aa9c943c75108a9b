"""In-process keyspace hosting bandit values."""
from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable, Dict, Iterable, List, Mapping

from ..core import codec
from ..core.digest import DIGEST_SIZE, KeyDigest, digest_state, mix_digest, xor_digest
from ..core.errors import NotInitializedError, WrongTypeError
from ..core.replication import LogEntry, rewrite
from ..core.state import BanditState


@dataclass(frozen=True, slots=True)
class ModuleType:
    """Hooks the host calls for a registered value type."""

    name: str
    encver: int
    value_class: type
    save: Callable[[Any], bytes]
    load: Callable[[bytes, int], Any]
    rewrite: Callable[[Any, str], List[LogEntry]]
    mem_usage: Callable[[Any], int]
    free: Callable[[Any], None]
    digest: Callable[[Any, KeyDigest], None]


BANDIT_TYPE = ModuleType(
    name=codec.TYPE_NAME,
    encver=codec.ENCODING_VERSION,
    value_class=BanditState,
    save=codec.encode,
    load=codec.decode,
    rewrite=rewrite,
    mem_usage=codec.memory_footprint,
    free=BanditState.release,
    digest=digest_state,
)


@dataclass(frozen=True, slots=True)
class SnapshotRecord:
    type_name: str
    encver: int
    data: bytes


class Keyspace:
    """Maps keys to values; bandit values are managed through ``BANDIT_TYPE``.

    Any other Python object may be stored too and is treated as a foreign
    type by bandit commands.
    """

    def __init__(self, types: Iterable[ModuleType] = (BANDIT_TYPE,)) -> None:
        self._values: Dict[str, Any] = {}
        self._types: Dict[str, ModuleType] = {mt.name: mt for mt in types}

    def __contains__(self, key: str) -> bool:
        return key in self._values

    def __len__(self) -> int:
        return len(self._values)

    def keys(self) -> List[str]:
        return sorted(self._values)

    def get(self, key: str) -> Any:
        return self._values.get(key)

    def set_value(self, key: str, value: Any) -> None:
        if key in self._values:
            self.delete(key)
        self._values[key] = value

    def delete(self, key: str) -> bool:
        value = self._values.pop(key, None)
        if value is None:
            return False
        module_type = self.type_of(value)
        if module_type is not None:
            module_type.free(value)
        return True

    def flush(self) -> None:
        for key in list(self._values):
            self.delete(key)

    def type_of(self, value: Any) -> ModuleType | None:
        for module_type in self._types.values():
            if isinstance(value, module_type.value_class):
                return module_type
        return None

    def type_of_name(self, name: str) -> ModuleType | None:
        return self._types.get(name)

    def lookup_bandit(self, key: str) -> BanditState | None:
        value = self._values.get(key)
        if value is None:
            return None
        if not isinstance(value, BanditState):
            raise WrongTypeError()
        return value

    def require_bandit(self, key: str) -> BanditState:
        state = self.lookup_bandit(key)
        if state is None:
            raise NotInitializedError()
        return state

    def memory_usage(self, key: str) -> int | None:
        value = self._values.get(key)
        module_type = self.type_of(value) if value is not None else None
        if module_type is None:
            return None
        return module_type.mem_usage(value)

    def dump(self) -> Dict[str, SnapshotRecord]:
        records: Dict[str, SnapshotRecord] = {}
        for key, value in self._values.items():
            module_type = self.type_of(value)
            if module_type is None:
                continue
            records[key] = SnapshotRecord(module_type.name, module_type.encver, module_type.save(value))
        return records

    def restore(self, records: Mapping[str, SnapshotRecord]) -> int:
        """Load every record; decoding errors abort before anything is stored."""
        loaded: Dict[str, Any] = {}
        for key, record in records.items():
            module_type = self._types.get(record.type_name)
            if module_type is None:
                raise WrongTypeError(f"unknown value type '{record.type_name}' for key '{key}'")
            loaded[key] = module_type.load(record.data, record.encver)
        for key, value in loaded.items():
            self.set_value(key, value)
        return len(loaded)

    def rewrite_log(self) -> List[LogEntry]:
        entries: List[LogEntry] = []
        for key in self.keys():
            value = self._values[key]
            module_type = self.type_of(value)
            if module_type is not None:
                entries.extend(module_type.rewrite(value, key))
        return entries

    def digest(self) -> str:
        """Hex digest of the whole keyspace; all zeros when it is empty."""
        final = bytearray(DIGEST_SIZE)
        for key, value in self._values.items():
            module_type = self.type_of(value)
            if module_type is None:
                continue
            key_digest = bytearray(DIGEST_SIZE)
            mix_digest(key_digest, key.encode("utf-8"))
            md = KeyDigest(bytes(key_digest))
            module_type.digest(value, md)
            xor_digest(final, md.value)
        return final.hex()
