"""Binary snapshot format for bandit values.

Layout (little-endian, encver 0)::

    uint64   arm_count
    float64  exploration
    uint64   counts[arm_count]
    float64  means[arm_count]

No checksum is stored. Non-finite floats are rejected, but other corruption
that keeps the length consistent decodes to nonsensical counts or means;
compare digests out of band to detect it.
"""
from __future__ import annotations

import math
import struct

import numpy as np

from .errors import CorruptSnapshotError, UnsupportedVersionError
from .state import COUNT_DTYPE, MAX_ARMS, MEAN_DTYPE, BanditState

TYPE_NAME = "banditucb"
ENCODING_VERSION = 0

_HEADER = struct.Struct("<Qd")
_COUNT_WIRE = np.dtype("<u8")
_MEAN_WIRE = np.dtype("<f8")

# fixed per-value header: arm count, c and the two array references
FIXED_OVERHEAD = 32


def encode(state: BanditState) -> bytes:
    return b"".join(
        (
            _HEADER.pack(state.arm_count, state.exploration),
            state.counts.astype(_COUNT_WIRE).tobytes(),
            state.means.astype(_MEAN_WIRE).tobytes(),
        )
    )


def decode(data: bytes, encver: int) -> BanditState:
    if encver != ENCODING_VERSION:
        raise UnsupportedVersionError(f"unsupported encoding version {encver}")
    if len(data) < _HEADER.size:
        raise CorruptSnapshotError("snapshot truncated before header")

    arm_count, exploration = _HEADER.unpack_from(data)
    if arm_count < 1 or arm_count > MAX_ARMS:
        raise CorruptSnapshotError(f"snapshot declares {arm_count} arms")
    expected = _HEADER.size + arm_count * (_COUNT_WIRE.itemsize + _MEAN_WIRE.itemsize)
    if len(data) != expected:
        raise CorruptSnapshotError(f"snapshot is {len(data)} bytes, expected {expected}")
    if not math.isfinite(exploration):
        raise CorruptSnapshotError("snapshot holds a non-finite exploration constant")

    offset = _HEADER.size
    counts = np.frombuffer(data, dtype=_COUNT_WIRE, count=arm_count, offset=offset).astype(COUNT_DTYPE)
    offset += arm_count * _COUNT_WIRE.itemsize
    means = np.frombuffer(data, dtype=_MEAN_WIRE, count=arm_count, offset=offset).astype(MEAN_DTYPE)
    if not np.isfinite(means).all():
        raise CorruptSnapshotError("snapshot holds a non-finite mean")

    state = BanditState.create(arm_count, exploration)
    state.counts = counts
    state.means = means
    return state


def memory_footprint(state: BanditState) -> int:
    """Advisory byte count for host memory accounting."""
    return state.arm_count * (np.dtype(COUNT_DTYPE).itemsize + np.dtype(MEAN_DTYPE).itemsize) + FIXED_OVERHEAD
