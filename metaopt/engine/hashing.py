"""Solution fingerprints for the tabu memories (64-bit FNV-1a)."""

import numpy as np
from numba import njit

FNV_OFFSET = 14695981039346656037
FNV_PRIME = 1099511628211
FLOAT_SCALE = 10000.0


@njit(cache=True)
def _fnv1a_bytes(data):
    h = np.uint64(14695981039346656037)
    prime = np.uint64(1099511628211)
    for i in range(data.shape[0]):
        h = (h ^ np.uint64(data[i])) * prime
    return h


@njit(cache=True)
def _fnv1a_values(values, start):
    # mixes whole values, starting at ``start`` and wrapping around
    h = np.uint64(14695981039346656037)
    prime = np.uint64(1099511628211)
    n = values.shape[0]
    for i in range(n):
        h = (h ^ np.uint64(values[(start + i) % n])) * prime
    return h


def hash_bytes(x):
    """Default tabu hash over the raw bytes of a buffer."""
    raw = np.ascontiguousarray(x).reshape(-1).view(np.uint8)
    return int(_fnv1a_bytes(raw))


def hash_int_array(x):
    return int(_fnv1a_values(np.asarray(x, dtype=np.int64), 0))


def hash_float_array(x):
    """Hash of ``x`` truncated to 1e-4 steps (nearby points collide)."""
    scaled = np.trunc(np.asarray(x, dtype=np.float64) * FLOAT_SCALE)
    return int(_fnv1a_values(scaled.astype(np.int64), 0))


def hash_tour(tour):
    """Rotation-invariant tour hash: the sequence is read starting at city 0."""
    values = np.asarray(tour, dtype=np.int64)
    if values.size == 0:
        return int(_fnv1a_values(values, 0))
    zero = np.flatnonzero(values == 0)
    start = int(zero[0]) if zero.size else 0
    return int(_fnv1a_values(values, start))
