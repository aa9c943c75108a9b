import math
import random

import numpy as np
import pytest

from banditucb.core.errors import NoChoicesError
from banditucb.core.recording import record_reward, set_arm_stats
from banditucb.core.sampler import RejectionSampler
from banditucb.core.selection import SelectionEngine, candidate_arms, compute_bounds
from banditucb.core.state import BanditState


class ExplodingSampler(RejectionSampler):
    def __init__(self):
        super().__init__(seed=0)

    def uniform(self, n):
        raise AssertionError("randomness consumed for a single candidate")


@pytest.fixture
def engine():
    return SelectionEngine(RejectionSampler(seed=1234))


def test_two_arm_scenario(engine):
    state = BanditState.create(2, 1.0)
    picks = {engine.pick(state) for _ in range(200)}
    assert picks == {0, 1}

    record_reward(state, 0, 5.0)
    assert {engine.pick(state) for _ in range(50)} == {1}

    record_reward(state, 1, 3.0)
    width = 1.0 * math.sqrt(math.log(2) / 1)
    assert engine.bounds(state) == pytest.approx([5.0 + width, 3.0 + width])
    assert engine.pick(state) == 0


def test_unpulled_arms_take_precedence_over_any_bound(engine):
    state = BanditState.create(4, 1.0)
    set_arm_stats(state, 0, 1, 1e12)
    set_arm_stats(state, 2, 1, 1e12)
    picks = {engine.pick(state) for _ in range(200)}
    assert picks == {1, 3}


def test_forced_exploration_on_random_states(engine):
    rng = random.Random(99)
    for _ in range(200):
        arm_count = rng.randint(2, 12)
        state = BanditState.create(arm_count, rng.uniform(0.0, 3.0))
        for arm in range(arm_count):
            if rng.random() < 0.6:
                set_arm_stats(state, arm, rng.randint(1, 50), rng.uniform(-10.0, 10.0))
        arm = engine.pick(state)
        if 0 in state.count_list():
            assert state.count_list()[arm] == 0


def test_pick_returns_an_arm_with_maximal_bound(engine):
    rng = random.Random(5)
    for _ in range(200):
        arm_count = rng.randint(1, 10)
        state = BanditState.create(arm_count, rng.uniform(0.0, 2.0))
        for arm in range(arm_count):
            set_arm_stats(state, arm, rng.randint(1, 20), float(rng.randint(0, 3)))
        bounds = compute_bounds(state)
        assert bounds[engine.pick(state)] == bounds.max()


def test_ties_are_shared_without_starvation(engine):
    state = BanditState.create(5, 1.0)
    for arm in range(5):
        set_arm_stats(state, arm, 4, 0.0)
    set_arm_stats(state, 0, 4, -1.0)
    assert candidate_arms(state) == [1, 2, 3, 4]
    picks = [engine.pick(state) for _ in range(400)]
    assert set(picks) == {1, 2, 3, 4}


def test_ties_use_exact_equality(engine):
    state = BanditState.create(3, 0.0)
    for arm in range(3):
        set_arm_stats(state, arm, 2, 1.0)
    set_arm_stats(state, 2, 2, float(np.nextafter(1.0, 2.0)))
    assert candidate_arms(state) == [2]


def test_single_candidate_consumes_no_randomness():
    engine = SelectionEngine(ExplodingSampler())
    state = BanditState.create(3, 1.0)
    record_reward(state, 0, 1.0)
    record_reward(state, 2, 1.0)
    assert engine.pick(state) == 1


def test_pick_does_not_mutate_state(engine):
    state = BanditState.create(3, 1.0)
    record_reward(state, 1, 2.0)
    before = (state.count_list(), state.mean_list())
    for _ in range(20):
        engine.pick(state)
    assert (state.count_list(), state.mean_list()) == before


def test_released_state_has_no_choices(engine):
    state = BanditState.create(2, 1.0)
    state.release()
    with pytest.raises(NoChoicesError):
        engine.pick(state)


def test_bounds_of_unpulled_arms_follow_ieee_arithmetic():
    state = BanditState.create(3, 1.0)
    assert all(math.isnan(value) for value in compute_bounds(state))

    record_reward(state, 0, 1.0)
    bounds = compute_bounds(state)
    assert bounds[0] == 1.0
    assert math.isnan(bounds[1]) and math.isnan(bounds[2])

    record_reward(state, 1, 1.0)
    assert math.isinf(compute_bounds(state)[2])
