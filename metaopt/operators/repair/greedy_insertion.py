from numba import njit

from .utils import split_partial


@njit(cache=True)
def _cheapest_insertion(tour, length, missing, dist):
    for idx in range(missing.shape[0]):
        v = missing[idx]
        if length == 0:
            tour[0] = v
            length = 1
            continue
        best_delta = 1e300
        best_pos = length
        # slot ``pos`` sits between tour[pos - 1] and tour[pos], wrapping at the end
        for pos in range(1, length + 1):
            a = tour[pos - 1]
            b = tour[pos] if pos < length else tour[0]
            delta = dist[a, v] + dist[v, b] - dist[a, b]
            if delta < best_delta:
                best_delta = delta
                best_pos = pos
        for k in range(length, best_pos, -1):
            tour[k] = tour[k - 1]
        tour[best_pos] = v
        length += 1
    return length


def greedy_insertion(partial, out, rng, inst):
    """Reinsert missing cities (ascending) each at its cheapest cyclic position."""
    kept, missing = split_partial(partial)
    out[:kept.shape[0]] = kept
    _cheapest_insertion(out, kept.shape[0], missing, inst.dist)
