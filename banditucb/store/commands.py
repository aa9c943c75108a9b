"""BANDITUCB.* command surface over a keyspace."""
from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Sequence

from ..core.errors import BanditError, InvalidArgumentError, UnknownCommandError, WrongArityError
from ..core.recording import record_reward, set_arm_stats
from ..core.selection import SelectionEngine
from ..core.state import BanditState, validate_arm_count
from .keyspace import Keyspace

Replicator = Callable[[Sequence[str]], None]


def _well_formed(raw: str) -> bool:
    # Redis rejects padding and digit separators that Python accepts
    return bool(raw) and raw == raw.strip() and "_" not in raw


def parse_int(raw: str, message: str) -> int:
    if not _well_formed(raw) or raw.startswith("+"):
        raise InvalidArgumentError(message)
    try:
        return int(raw)
    except ValueError as exc:
        raise InvalidArgumentError(message) from exc


def parse_double(raw: str, message: str) -> float:
    if not _well_formed(raw):
        raise InvalidArgumentError(message)
    try:
        return float(raw)
    except ValueError as exc:
        raise InvalidArgumentError(message) from exc


def format_error(exc: BanditError) -> str:
    return f"{exc.prefix} {exc}"


@dataclass(frozen=True, slots=True)
class CommandSpec:
    name: str
    arity: int
    handler: Callable[[List[str]], Any]
    write: bool


class BanditCommands:
    """Parses, validates and dispatches bandit commands.

    Successful write commands are handed verbatim to ``replicate``; reads are
    never replicated since picking does not change state.
    """

    def __init__(
        self,
        keyspace: Keyspace | None = None,
        selector: SelectionEngine | None = None,
        replicate: Replicator | None = None,
    ) -> None:
        self.keyspace = keyspace if keyspace is not None else Keyspace()
        self.selector = selector or SelectionEngine()
        self.replicate = replicate
        self._commands: Dict[str, CommandSpec] = {}
        self._register("BANDITUCB.INIT", 4, self._init, write=True)
        self._register("BANDITUCB.ADD", 4, self._add, write=True)
        self._register("BANDITUCB.SET", 5, self._set, write=True)
        self._register("BANDITUCB.PICK", 2, self._pick)
        self._register("BANDITUCB.COUNTS", 2, self._counts)
        self._register("BANDITUCB.MEANS", 2, self._means)
        self._register("BANDITUCB.BOUNDS", 2, self._bounds)

    def _register(self, name: str, arity: int, handler: Callable[[List[str]], Any], write: bool = False) -> None:
        self._commands[name] = CommandSpec(name=name, arity=arity, handler=handler, write=write)

    @property
    def command_names(self) -> List[str]:
        return list(self._commands)

    def execute(self, *argv: Any) -> Any:
        if not argv:
            raise UnknownCommandError("")
        args = [arg.decode("utf-8") if isinstance(arg, bytes) else str(arg) for arg in argv]
        spec = self._commands.get(args[0].upper())
        if spec is None:
            raise UnknownCommandError(args[0])
        if len(args) != spec.arity:
            raise WrongArityError(spec.name)
        reply = spec.handler(args)
        if spec.write and self.replicate is not None:
            self.replicate(args)
        return reply

    def _init(self, args: List[str]) -> int:
        key = args[1]
        state = self.keyspace.lookup_bandit(key)
        arm_count = parse_int(args[2], "invalid value: narms must be a signed 64 bit integer")
        validate_arm_count(arm_count)
        exploration = parse_double(args[3], "invalid value: c must be a double")
        if not math.isfinite(exploration):
            raise InvalidArgumentError("invalid value: c must be a finite double")
        if state is None:
            state = BanditState.create(arm_count, exploration)
            self.keyspace.set_value(key, state)
        else:
            # an existing bandit keeps its arms and c; only the stats are cleared
            state.reset()
        return state.arm_count

    def _add(self, args: List[str]) -> List[Any]:
        key = args[1]
        self.keyspace.lookup_bandit(key)
        arm = parse_int(args[2], "invalid value: must be a signed 64 bit integer")
        reward = parse_double(args[3], "invalid value: must be a double")
        state = self.keyspace.require_bandit(key)
        count, mean = record_reward(state, arm, reward)
        return [count, mean]

    def _set(self, args: List[str]) -> List[Any]:
        key = args[1]
        self.keyspace.lookup_bandit(key)
        arm = parse_int(args[2], "invalid value: arm must be an unsigned 64 bit integer")
        count = parse_int(args[3], "invalid value: count must be an unsigned 64 bit integer")
        mean = parse_double(args[4], "invalid value: mean must be a double")
        state = self.keyspace.require_bandit(key)
        count, mean = set_arm_stats(state, arm, count, mean)
        return [count, mean]

    def _pick(self, args: List[str]) -> int:
        return self.selector.pick(self.keyspace.require_bandit(args[1]))

    def _counts(self, args: List[str]) -> List[int]:
        return self.keyspace.require_bandit(args[1]).count_list()

    def _means(self, args: List[str]) -> List[float]:
        return self.keyspace.require_bandit(args[1]).mean_list()

    def _bounds(self, args: List[str]) -> List[float]:
        return self.selector.bounds(self.keyspace.require_bandit(args[1]))
