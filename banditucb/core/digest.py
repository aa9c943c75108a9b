"""Order-sensitive dataset digests in the style of Redis ``DEBUG DIGEST``."""
from __future__ import annotations

import hashlib

from .state import BanditState

DIGEST_SIZE = 20


def xor_digest(digest: bytearray, data: bytes) -> None:
    """Fold the SHA-1 of ``data`` into ``digest``; order independent."""
    for index, byte in enumerate(hashlib.sha1(data).digest()):
        digest[index] ^= byte


def mix_digest(digest: bytearray, data: bytes) -> None:
    """Mix ``data`` into ``digest``; order dependent."""
    xor_digest(digest, data)
    digest[:] = hashlib.sha1(bytes(digest)).digest()


class KeyDigest:
    """Accumulator handed to a value's digest hook.

    Elements are mixed into the open sequence; ``end_sequence`` folds the
    sequence into the running value and starts a new one.
    """

    def __init__(self, initial: bytes | None = None) -> None:
        self._value = bytearray(initial or bytes(DIGEST_SIZE))
        self._sequence = bytearray(DIGEST_SIZE)

    def add_string_buffer(self, data: bytes) -> None:
        mix_digest(self._sequence, data)

    def add_long_long(self, value: int) -> None:
        mix_digest(self._sequence, str(int(value)).encode("ascii"))

    def end_sequence(self) -> None:
        xor_digest(self._value, bytes(self._sequence))
        self._sequence = bytearray(DIGEST_SIZE)

    @property
    def value(self) -> bytes:
        return bytes(self._value)

    def hexdigest(self) -> str:
        return self._value.hex()


def _as_long_long(value: int) -> int:
    # counts are unsigned 64 bit; the accumulator takes signed values
    return value - (1 << 64) if value >= 1 << 63 else value


def digest_state(state: BanditState, md: KeyDigest) -> None:
    """Feed a structural fingerprint of ``state`` into ``md``.

    Means are truncated toward zero before hashing, so states that differ only
    in the fractional part of a mean produce the same digest.
    """
    md.add_long_long(state.arm_count)
    for count in state.count_list():
        md.add_long_long(_as_long_long(count))
    for mean in state.mean_list():
        md.add_long_long(int(mean))
    md.end_sequence()
