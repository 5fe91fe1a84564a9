import numpy as np
from numba import njit

from ._common import REMOVED, removal_count


@njit(cache=True)
def _detour_scores(tour, dist, scores):
    # saving from dropping each city: d(prev, v) + d(v, next) - d(prev, next)
    n = tour.shape[0]
    for i in range(n):
        prev = tour[i - 1] if i > 0 else tour[n - 1]
        v = tour[i]
        nxt = tour[i + 1] if i < n - 1 else tour[0]
        scores[i] = dist[prev, v] + dist[v, nxt] - dist[prev, nxt]


def worst_removal(current, out, degree, rng, inst):
    """Remove the cities with the largest detour on the current tour.

    Scores are computed once on the intact tour; a ``1e-9`` random jitter
    breaks ties so repeated calls do not always pick the same cities.
    """
    np.copyto(out, current)
    n = out.shape[0]
    if n < 2:
        return
    count = removal_count(degree, n)
    scores = np.empty(n, dtype=np.float64)
    _detour_scores(current, inst.dist, scores)
    if rng is not None:
        scores += rng.random(n) * 1e-9
    worst = np.argsort(-scores, kind="stable")[:count]
    out[worst] = REMOVED
