from banditucb.core.recording import record_reward, set_arm_stats
from banditucb.core.replication import INIT_COMMAND, SET_COMMAND, LogEntry, rewrite
from banditucb.core.state import BanditState
from banditucb.store.commands import BanditCommands


def _trained_state():
    state = BanditState.create(3, 0.3)
    for reward in (0.1, 0.2, 0.7):
        record_reward(state, 0, reward)
    set_arm_stats(state, 2, 11, -2.0 / 3.0)
    return state


def test_rewrite_emits_init_then_one_set_per_arm():
    state = _trained_state()
    entries = rewrite(state, "bandit:home")
    assert [entry.command for entry in entries] == [INIT_COMMAND, SET_COMMAND, SET_COMMAND, SET_COMMAND]
    assert entries[0].to_args() == ["BANDITUCB.INIT", "bandit:home", "3", "0.3"]
    assert entries[2].to_args() == ["BANDITUCB.SET", "bandit:home", "1", "0", "0.0"]
    assert entries[3].to_args() == ["BANDITUCB.SET", "bandit:home", "2", "11", repr(-2.0 / 3.0)]


def test_replay_rebuilds_identical_state():
    state = _trained_state()
    commands = BanditCommands()
    for entry in rewrite(state, "k"):
        commands.execute(*entry.to_args())
    rebuilt = commands.keyspace.require_bandit("k")
    assert rebuilt.arm_count == state.arm_count
    assert rebuilt.exploration == state.exploration
    assert rebuilt.count_list() == state.count_list()
    assert rebuilt.mean_list() == state.mean_list()


def test_replay_is_idempotent():
    state = _trained_state()
    commands = BanditCommands()
    for _ in range(2):
        for entry in rewrite(state, "k"):
            commands.execute(*entry.to_args())
    assert commands.keyspace.require_bandit("k").count_list() == state.count_list()


def test_log_entry_formats_arguments():
    entry = LogEntry("BANDITUCB.SET", ("k", 0, 2**64 - 1, 1e-300))
    assert entry.to_args() == ["BANDITUCB.SET", "k", "0", "18446744073709551615", "1e-300"]
