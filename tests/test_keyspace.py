import pytest

from banditucb.core.codec import FIXED_OVERHEAD
from banditucb.core.errors import UnsupportedVersionError, WrongTypeError
from banditucb.store.commands import BanditCommands
from banditucb.store.keyspace import Keyspace, SnapshotRecord


def _populated():
    commands = BanditCommands()
    commands.execute("BANDITUCB.INIT", "a", "2", "1.0")
    commands.execute("BANDITUCB.ADD", "a", "1", "0.25")
    commands.execute("BANDITUCB.INIT", "b", "3", "2.0")
    commands.execute("BANDITUCB.SET", "b", "2", "40", "7.5")
    return commands.keyspace


def test_delete_releases_the_bandit():
    keyspace = _populated()
    state = keyspace.require_bandit("a")
    assert keyspace.delete("a")
    assert state.arm_count == 0
    assert "a" not in keyspace
    assert not keyspace.delete("a")


def test_memory_usage():
    keyspace = _populated()
    assert keyspace.memory_usage("a") == 2 * 16 + FIXED_OVERHEAD
    assert keyspace.memory_usage("nope") is None
    keyspace.set_value("text", "hello")
    assert keyspace.memory_usage("text") is None


def test_dump_and_restore_round_trip():
    source = _populated()
    source.set_value("text", "not a bandit")
    records = source.dump()
    assert sorted(records) == ["a", "b"]
    assert records["a"].type_name == "banditucb"

    target = Keyspace()
    assert target.restore(records) == 2
    assert target.require_bandit("b").count_list() == [0, 0, 40]
    assert target.digest() == _populated().digest()


def test_restore_with_unknown_version_loads_nothing():
    records = _populated().dump()
    records["c"] = SnapshotRecord("banditucb", 3, records["a"].data)
    target = Keyspace()
    with pytest.raises(UnsupportedVersionError):
        target.restore(records)
    assert len(target) == 0


def test_restore_with_unknown_type_is_rejected():
    target = Keyspace()
    with pytest.raises(WrongTypeError):
        target.restore({"x": SnapshotRecord("hyperloglog", 0, b"")})


def test_keyspace_digest():
    assert Keyspace().digest() == "0" * 40
    first, second = _populated(), _populated()
    assert first.digest() == second.digest()

    second.require_bandit("a").counts[0] = 1
    assert first.digest() != second.digest()


def test_digest_depends_on_key_names():
    left, right = BanditCommands(), BanditCommands()
    left.execute("BANDITUCB.INIT", "x", "2", "1.0")
    right.execute("BANDITUCB.INIT", "y", "2", "1.0")
    assert left.keyspace.digest() != right.keyspace.digest()


def test_rewrite_log_covers_every_bandit():
    entries = _populated().rewrite_log()
    assert [entry.to_args()[:2] for entry in entries if entry.command == "BANDITUCB.INIT"] == [
        ["BANDITUCB.INIT", "a"],
        ["BANDITUCB.INIT", "b"],
    ]
    assert len(entries) == 2 + 2 + 3
