"""UCB1 bandit state held under a single key."""
from __future__ import annotations

import math
from dataclasses import dataclass, field

import numpy as np

from .errors import InvalidArgumentError, InvalidArmError

MAX_ARMS = 64
COUNT_DTYPE = np.uint64
MEAN_DTYPE = np.float64


@dataclass(slots=True, eq=False)
class BanditState:
    """Per-arm pull counts and running mean rewards.

    ``counts`` and ``means`` always hold exactly ``arm_count`` elements. A mean
    is only meaningful once its count is positive and is 0.0 after a reset.
    """

    arm_count: int
    exploration: float
    counts: np.ndarray = field(repr=False)
    means: np.ndarray = field(repr=False)

    @classmethod
    def create(cls, arm_count: int, exploration: float) -> "BanditState":
        validate_arm_count(arm_count)
        exploration = float(exploration)
        if not math.isfinite(exploration):
            raise InvalidArgumentError("invalid value: c must be a finite double")
        return cls(
            arm_count=int(arm_count),
            exploration=exploration,
            counts=np.zeros(arm_count, dtype=COUNT_DTYPE),
            means=np.zeros(arm_count, dtype=MEAN_DTYPE),
        )

    def reset(self) -> None:
        self.counts.fill(0)
        self.means.fill(0.0)

    def release(self) -> None:
        self.arm_count = 0
        self.counts = np.zeros(0, dtype=COUNT_DTYPE)
        self.means = np.zeros(0, dtype=MEAN_DTYPE)

    def check_arm(self, arm: int) -> int:
        if arm < 0 or arm >= self.arm_count:
            raise InvalidArmError()
        return int(arm)

    def total_pulls(self) -> int:
        # python ints, so the sum cannot wrap like a uint64 reduction would
        return sum(self.counts.tolist())

    def count_list(self) -> list[int]:
        return [int(value) for value in self.counts.tolist()]

    def mean_list(self) -> list[float]:
        return [float(value) for value in self.means.tolist()]


def validate_arm_count(arm_count: int) -> None:
    if arm_count < 1:
        raise InvalidArgumentError("invalid value: narms must be > 0")
    if arm_count > MAX_ARMS:
        raise InvalidArgumentError("invalid value: too many arms")
