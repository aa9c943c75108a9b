"""Log rewriting: the shortest command sequence that rebuilds a bandit."""
from __future__ import annotations

from dataclasses import dataclass
from typing import List, Sequence

from .state import BanditState

INIT_COMMAND = "BANDITUCB.INIT"
SET_COMMAND = "BANDITUCB.SET"


def format_arg(value: object) -> str:
    if isinstance(value, float):
        # repr round-trips to the identical double
        return repr(value)
    return str(value)


@dataclass(frozen=True, slots=True)
class LogEntry:
    command: str
    args: Sequence[object]

    def to_args(self) -> List[str]:
        return [self.command, *(format_arg(arg) for arg in self.args)]


def rewrite(state: BanditState, key: str) -> List[LogEntry]:
    """INIT followed by one SET per arm.

    Reproduces the aggregate state on an empty key, not the individual
    observations that led to it.
    """
    entries = [LogEntry(INIT_COMMAND, (key, state.arm_count, state.exploration))]
    for arm, (count, mean) in enumerate(zip(state.count_list(), state.mean_list())):
        entries.append(LogEntry(SET_COMMAND, (key, arm, count, mean)))
    return entries
