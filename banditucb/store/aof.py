"""Append-only command log (JSONL).

Each line is either an argv list, or an object ``{"argv": [...], "offset": id}``
tying a write to the command-stream entry that produced it, or a bare
``{"offset": id}`` marker for entries that changed nothing.
"""
from __future__ import annotations

import json
import logging
import os
from pathlib import Path
from typing import Callable, Iterable, Iterator, List, Optional, Sequence

from ..core.replication import LogEntry

log = logging.getLogger(__name__)


def _dumps(record: object) -> str:
    return json.dumps(record, separators=(",", ":"))


class AppendOnlyLog:
    """Records write commands and replays them on start-up.

    ``rewrite`` compacts the file to the entries produced by the keyspace's
    rewrite hooks; the swap is atomic so a crash leaves the old log intact.
    ``offset`` is the last stream entry id seen by ``entries``.
    """

    def __init__(self, path: str | Path) -> None:
        self.path = Path(path)
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self.offset: Optional[str] = None

    def _write_line(self, blob: str) -> None:
        with self.path.open("a", encoding="utf-8") as handle:
            handle.write(blob + "\n")

    def append(self, argv: Sequence[str], offset: str | None = None) -> None:
        if offset is None:
            self._write_line(_dumps(list(argv)))
        else:
            self._write_line(_dumps({"argv": list(argv), "offset": offset}))

    def mark(self, offset: str) -> None:
        self._write_line(_dumps({"offset": offset}))

    def entries(self) -> Iterator[List[str]]:
        if not self.path.exists():
            return
        with self.path.open("r", encoding="utf-8") as handle:
            for lineno, line in enumerate(handle, start=1):
                line = line.strip()
                if not line:
                    continue
                try:
                    record = json.loads(line)
                except json.JSONDecodeError as exc:
                    raise ValueError(f"Malformed entry in {self.path} at line {lineno}") from exc
                if isinstance(record, dict):
                    if record.get("offset") is not None:
                        self.offset = str(record["offset"])
                    argv = record.get("argv")
                    if argv is None:
                        continue
                else:
                    argv = record
                yield [str(arg) for arg in argv]

    def replay(self, execute: Callable[..., object]) -> int:
        replayed = 0
        for argv in self.entries():
            execute(*argv)
            replayed += 1
        log.info("replayed %d commands from %s (offset %s)", replayed, self.path, self.offset)
        return replayed

    def rewrite(self, entries: Iterable[LogEntry], offset: str | None = None) -> int:
        tmp_path = self.path.with_name(f"{self.path.name}.rewrite")
        written = 0
        with tmp_path.open("w", encoding="utf-8") as handle:
            for entry in entries:
                handle.write(_dumps(entry.to_args()) + "\n")
                written += 1
            if offset is not None:
                handle.write(_dumps({"offset": offset}) + "\n")
            handle.flush()
            os.fsync(handle.fileno())
        os.replace(tmp_path, self.path)
        log.info("rewrote %s with %d commands", self.path, written)
        return written
