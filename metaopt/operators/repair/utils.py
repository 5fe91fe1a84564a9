import numpy as np


def split_partial(partial):
    """Return ``(kept, missing)`` for a tour with removed positions set to -1.

    ``kept`` preserves the tour order; ``missing`` lists the absent cities in
    ascending order.
    """
    n = partial.shape[0]
    kept = partial[partial >= 0].astype(np.int64)
    present = np.zeros(n, dtype=bool)
    present[kept] = True
    missing = np.flatnonzero(~present).astype(np.int64)
    return kept, missing


def insert_at(tour, length, pos, city):
    """Insert ``city`` before ``tour[pos]`` in the first ``length`` slots."""
    if pos < length:
        tour[pos + 1:length + 1] = tour[pos:length].copy()
    tour[pos] = city
    return length + 1
