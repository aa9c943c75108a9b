"""Unbiased integer draws for tie breaking."""
from __future__ import annotations

import logging
import random
import secrets

from .errors import InvalidArgumentError

log = logging.getLogger(__name__)

RAND_BITS = 31
RAND_RANGE = 1 << RAND_BITS


class RejectionSampler:
    """Draws uniformly from ``[0, n)`` by rejecting the top of a 31-bit range.

    The generator is seeded exactly once. Without an explicit seed one is taken
    from the OS entropy pool and kept on ``seed`` so a run can be replayed.
    """

    def __init__(self, seed: int | None = None, source: random.Random | None = None) -> None:
        if source is not None:
            self.seed = seed
            self._source = source
            return
        self.seed = secrets.randbits(64) if seed is None else int(seed)
        self._source = random.Random(self.seed)
        log.debug("tie-break sampler seeded with %d", self.seed)

    def raw(self) -> int:
        return self._source.getrandbits(RAND_BITS)

    def uniform(self, n: int) -> int:
        if n < 1:
            raise InvalidArgumentError("invalid value: n must be > 0")
        limit = (RAND_RANGE // n) * n
        while True:
            value = self.raw()
            if value < limit:
                return value % n
