"""UCB1 arm selection."""
from __future__ import annotations

import math
from typing import List

import numpy as np

from .errors import NoChoicesError
from .sampler import RejectionSampler
from .state import BanditState


def compute_bounds(state: BanditState) -> np.ndarray:
    """UCB1 bound ``mean + c * sqrt(ln(T) / count)`` for every arm.

    Unpulled arms follow IEEE arithmetic (``inf`` or ``nan``); callers that
    pick arms must rule them out first.
    """
    total = float(state.total_pulls())
    with np.errstate(divide="ignore", invalid="ignore"):
        log_total = np.log(total) if total > 0 else -math.inf
        widths = state.exploration * np.sqrt(log_total / state.counts.astype(np.float64))
        return state.means + widths


def candidate_arms(state: BanditState) -> List[int]:
    """Arms eligible for the next pick, freshly computed on every call."""
    unpulled = np.flatnonzero(state.counts == 0)
    if unpulled.size:
        return [int(arm) for arm in unpulled]
    if state.arm_count == 0:
        return []

    bounds = compute_bounds(state)
    best = bounds.max()
    # exact equality: equal counts and rewards produce identical bounds
    return [int(arm) for arm in np.flatnonzero(bounds == best)]


class SelectionEngine:
    """Picks arms for a state without mutating it."""

    def __init__(self, sampler: RejectionSampler | None = None) -> None:
        self.sampler = sampler or RejectionSampler()

    def bounds(self, state: BanditState) -> List[float]:
        return [float(value) for value in compute_bounds(state).tolist()]

    def pick(self, state: BanditState) -> int:
        choices = candidate_arms(state)
        if not choices:
            raise NoChoicesError()
        if len(choices) == 1:
            return choices[0]
        return choices[self.sampler.uniform(len(choices))]
