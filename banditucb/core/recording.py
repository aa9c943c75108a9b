"""Reward recording and direct arm overwrites."""
from __future__ import annotations

import math
from typing import Tuple

from .errors import InvalidArgumentError
from .state import BanditState

MAX_COUNT = 2**64 - 1


def record_reward(state: BanditState, arm: int, reward: float) -> Tuple[int, float]:
    """Add one observation to ``arm`` and return its updated (count, mean).

    The mean is updated incrementally (Welford) rather than from a running sum
    so long-lived arms do not accumulate rounding error.
    """
    arm = state.check_arm(arm)
    reward = float(reward)
    if not math.isfinite(reward):
        raise InvalidArgumentError("invalid value: reward must be a finite double")

    count = int(state.counts[arm]) + 1
    if count > MAX_COUNT:
        raise InvalidArgumentError("invalid value: count overflow")
    if count == 1:
        mean = reward
    else:
        old_mean = float(state.means[arm])
        mean = old_mean + (reward - old_mean) / count

    state.counts[arm] = count
    state.means[arm] = mean
    return count, mean


def set_arm_stats(state: BanditState, arm: int, count: int, mean: float) -> Tuple[int, float]:
    """Overwrite the stats of ``arm``; no consistency check against history."""
    arm = state.check_arm(arm)
    if count < 0 or count > MAX_COUNT:
        raise InvalidArgumentError("invalid value: count must be an unsigned 64 bit integer")
    mean = float(mean)
    if not math.isfinite(mean):
        raise InvalidArgumentError("invalid value: mean must be a finite double")

    state.counts[arm] = count
    state.means[arm] = mean
    return int(state.counts[arm]), float(state.means[arm])
