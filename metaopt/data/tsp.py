"""Symmetric Euclidean TSP benchmark: instances plus the search strategies over tours.

A tour is an ``int64`` permutation of ``0..n-1``; the cost is the closed
cycle length. Strategy signatures follow :mod:`metaopt.engine.problem`, with
the :class:`TSPInstance` as context.
"""

from dataclasses import dataclass
from typing import Optional

import numpy as np
from numba import njit

from ..engine.hashing import hash_tour
from ..engine.problem import Problem
from ..operators.destroy import random_removal
from ..operators.repair import greedy_insertion


@dataclass
class TSPInstance:
    coords: np.ndarray
    dist: np.ndarray
    known_optimum: Optional[float] = None
    name: str = "tsp"

    @property
    def n(self):
        return int(self.coords.shape[0])


def _euclid(a, b):
    dx = a[:, None, 0] - b[None, :, 0]
    dy = a[:, None, 1] - b[None, :, 1]
    return np.sqrt(dx * dx + dy * dy)


def from_coords(coords, known_optimum=None, name="tsp"):
    coords = np.asarray(coords, dtype=np.float64)
    if coords.ndim != 2 or coords.shape[1] != 2:
        raise ValueError("coords must have shape (n, 2)")
    if coords.shape[0] < 2:
        raise ValueError("a tour needs at least 2 cities")
    return TSPInstance(coords, _euclid(coords, coords), known_optimum, name)


def example_5():
    """Regular pentagon of radius 10; the optimum is its perimeter."""
    radius = 10.0
    angles = 2.0 * np.pi * np.arange(5) / 5.0
    coords = np.column_stack((radius * np.cos(angles), radius * np.sin(angles)))
    return from_coords(coords, 5.0 * 2.0 * radius * np.sin(np.pi / 5.0), "example_5")


def _ladder(cols):
    # two rows of ``cols`` points 10 apart, listed around the rectangle
    bottom = [(10.0 * i, 0.0) for i in range(cols)]
    top = [(10.0 * i, 10.0) for i in reversed(range(cols))]
    return np.array(bottom + top, dtype=np.float64)


def example_10():
    # 40 x 10 rectangle: the perimeter tour is optimal
    return from_coords(_ladder(5), 100.0, "example_10")


def example_20():
    return from_coords(_ladder(10), 200.0, "example_20")


def random_instance(n, seed=0):
    rng = np.random.default_rng(seed)
    return from_coords(rng.uniform(0.0, 100.0, size=(int(n), 2)), None, f"random_{n}")


INSTANCES = {
    "example_5": example_5,
    "example_10": example_10,
    "example_20": example_20,
}


@njit(cache=True)
def _cycle_length(tour, dist):
    n = tour.shape[0]
    cost = 0.0
    for i in range(n - 1):
        cost += dist[tour[i], tour[i + 1]]
    cost += dist[tour[n - 1], tour[0]]
    return cost


def tour_cost(tour, inst):
    if tour.shape[0] < 2:
        return 0.0
    return float(_cycle_length(tour, inst.dist))


def is_valid_tour(tour, n):
    tour = np.asarray(tour)
    if tour.shape != (n,):
        return False
    return bool(np.array_equal(np.sort(tour), np.arange(n)))


def neighbor_swap(current, out, rng, inst):
    """Exchange two distinct positions."""
    np.copyto(out, current)
    n = out.shape[0]
    if n < 2:
        return
    i = int(rng.integers(n))
    j = int(rng.integers(n - 1))
    if j >= i:
        j += 1
    out[i], out[j] = out[j], out[i]


def neighbor_2opt(current, out, rng, inst):
    """Reverse the segment ``out[i..j]`` for random ``i < j``."""
    np.copyto(out, current)
    n = out.shape[0]
    if n < 3:
        return
    i = int(rng.integers(0, n - 1))
    j = int(rng.integers(i + 1, n))
    out[i:j + 1] = out[i:j + 1][::-1].copy()


def _double_bridge(src, rng):
    n = src.shape[0]
    p1 = int(rng.integers(1, n // 4, endpoint=True))
    p2 = int(rng.integers(p1 + 1, n // 2, endpoint=True))
    p3 = int(rng.integers(p2 + 1, (3 * n) // 4, endpoint=True))
    return np.concatenate((src[:p1], src[p2:p3], src[p1:p2], src[p3:]))


def perturb_double_bridge(current, out, strength, rng, inst):
    """``strength`` double-bridge moves; tours under 8 cities fall back to swaps."""
    n = current.shape[0]
    if n < 8:
        np.copyto(out, current)
        for _ in range(max(int(strength), 1)):
            neighbor_swap(out.copy(), out, rng, inst)
        return
    tour = current
    for _ in range(max(int(strength), 1)):
        tour = _double_bridge(tour, rng)
    np.copyto(out, tour)


def generate_random(out, rng, inst):
    out[:] = rng.permutation(out.shape[0])


def shake_swaps(current, out, k, rng, inst):
    """``k`` random swaps, the VNS neighbourhood of index ``k``."""
    np.copyto(out, current)
    n = out.shape[0]
    if n < 2:
        return
    for _ in range(int(k)):
        i = int(rng.integers(n))
        j = int(rng.integers(n))
        out[i], out[j] = out[j], out[i]


def construct_nearest_neighbor(out, alpha, rng, inst):
    """Randomised nearest neighbour: the next city is drawn uniformly from the RCL
    ``{j : d(last, j) <= dmin + alpha * (dmax - dmin)}``."""
    n = out.shape[0]
    visited = np.zeros(n, dtype=bool)
    out[0] = int(rng.integers(n))
    visited[out[0]] = True
    for step in range(1, n):
        free = np.flatnonzero(~visited)
        d = inst.dist[out[step - 1], free]
        threshold = d.min() + alpha * (d.max() - d.min())
        rcl = free[d <= threshold + 1e-9]
        chosen = int(rcl[rng.integers(len(rcl))]) if len(rcl) else int(free[0])
        out[step] = chosen
        visited[chosen] = True


def heuristic_inverse_distance(inst):
    """ACO desirability ``1/d`` (``1e12`` for coincident cities)."""
    d = inst.dist
    eta = np.full(d.shape, 1e12)
    np.divide(1.0, d, out=eta, where=d > 1e-12)
    return eta


def _order_fill(keep, donor, child, a, b):
    n = keep.shape[0]
    child[a:b + 1] = keep[a:b + 1]
    taken = set(int(v) for v in keep[a:b + 1])
    pos = (b + 1) % n
    for k in range(n):
        v = int(donor[(b + 1 + k) % n])
        if v in taken:
            continue
        child[pos] = v
        taken.add(v)
        pos = (pos + 1) % n


def crossover_order(p1, p2, c1, c2, rng, inst):
    """Order crossover (OX): each child keeps a slice of one parent, the rest in the other's order."""
    n = p1.shape[0]
    a = int(rng.integers(n))
    b = int(rng.integers(n))
    if a > b:
        a, b = b, a
    _order_fill(p1, p2, c1, a, b)
    _order_fill(p2, p1, c2, a, b)


def mutate_swap(x, rate, rng, inst):
    n = x.shape[0]
    if n < 2:
        return
    for i in np.flatnonzero(rng.random(n) < rate):
        j = int(rng.integers(n))
        x[i], x[j] = x[j], x[i]


def tsp_problem(inst, destroy=None, repair=None, hash_fn=hash_tour):
    """Bundle ``inst`` with the tour strategies (2-opt neighbourhood)."""
    return Problem(
        size=inst.n,
        objective=tour_cost,
        dtype=np.int64,
        context=inst,
        neighbor=neighbor_2opt,
        generate=generate_random,
        perturb=perturb_double_bridge,
        shake=shake_swaps,
        construct=construct_nearest_neighbor,
        destroy=destroy or random_removal,
        repair=repair or greedy_insertion,
        crossover=crossover_order,
        mutate=mutate_swap,
        hash=hash_fn,
    )
