"""Ant Colony Optimisation for permutation (tour) problems.

Ant ``k`` moves from city ``i`` to an unvisited ``j`` with probability
proportional to ``tau[i, j]**alpha * eta[i, j]**beta``. After each iteration
every trail evaporates by ``(1 - rho)`` and tours deposit ``q / cost`` on
their (symmetric) edges:

- Ant System: every ant deposits.
- Elitist: every ant, plus ``elitist_weight * q / best_cost`` on the best tour.
- MAX-MIN: only the iteration best deposits, or the best-ever tour every
  ``mmas_global_period`` iterations; trails are clamped to
  ``[tau_min, tau_max]``.

The deposit rewards short tours, so the colony only minimises.
"""

import logging
import time

import numpy as np
from numba import njit

from ..config.config import ACO_DEFAULTS
from ..config.enums import ACO_ELITIST, ACO_MAX_MIN, MAXIMIZE
from .common import is_better, make_rng, read_direction, read_enum, read_float, read_int
from .errors import ConfigurationError
from .problem import Evaluator, allocate
from .result import finish, reported

logger = logging.getLogger(__name__)

MIN_COST = 1e-15


@njit(cache=True)
def _construct_tour(attract, start, draws, tour, visited):
    n = tour.shape[0]
    visited[:] = False
    tour[0] = start
    visited[start] = True
    for step in range(1, n):
        cur = tour[step - 1]
        total = 0.0
        for j in range(n):
            if not visited[j]:
                total += attract[cur, j]
        chosen = -1
        if total > 1e-15:
            r = draws[step] * total
            cum = 0.0
            for j in range(n):
                if not visited[j] and attract[cur, j] > 0.0:
                    cum += attract[cur, j]
                    if cum >= r:
                        chosen = j
                        break
        if chosen < 0:
            for j in range(n):
                if not visited[j]:
                    chosen = j
                    break
        tour[step] = chosen
        visited[chosen] = True


@njit(cache=True)
def _deposit(tau, tour, amount):
    n = tour.shape[0]
    for s in range(n):
        a = tour[s]
        b = tour[(s + 1) % n]
        tau[a, b] += amount
        tau[b, a] += amount


@reported("aco")
def run_aco(problem, heuristic, params=None, metrics=None):
    """``heuristic`` is the ``(size, size)`` desirability matrix ``eta``."""
    params = ACO_DEFAULTS if params is None else params
    problem.require()
    n = int(problem.size)
    if not np.issubdtype(np.dtype(problem.dtype), np.integer):
        raise ConfigurationError("aco needs an integer (tour) solution dtype")
    eta = np.asarray(heuristic, dtype=np.float64)
    if eta.shape != (n, n):
        raise ConfigurationError(f"heuristic must have shape ({n}, {n}), got {eta.shape}")

    direction = read_direction(params)
    iters = read_int(params, "iters", 500, minimum=1)
    n_ants = read_int(params, "n_ants", 20, minimum=1)
    alpha = read_float(params, "alpha", 1.0)
    beta = read_float(params, "beta", 3.0)
    rho = read_float(params, "rho", 0.1, low=0.0, high=1.0)
    q = read_float(params, "q", 1.0)
    tau0 = read_float(params, "tau0", 0.1, low=0.0)
    variant = read_enum(params, "aco_variant", "variant", 0)
    elite_w = read_float(params, "elitist_weight", 2.0)
    tau_min = read_float(params, "tau_min", 0.001)
    tau_max = read_float(params, "tau_max", 10.0)
    global_period = read_int(params, "mmas_global_period", 5, minimum=1)
    max_evals = read_int(params, "max_evaluations", 0)
    log_period = read_int(params, "log_period", 100, minimum=1)
    if direction == MAXIMIZE:
        raise ConfigurationError("aco deposits q / cost and only minimises tour cost")
    if 0 < max_evals < n_ants:
        raise ConfigurationError("max_evaluations must cover one colony iteration")

    tours, best = allocate(problem, n_ants, None)
    tau = np.full((n, n), tau0, dtype=np.float64)
    costs = np.empty(n_ants, dtype=np.float64)
    visited = np.zeros(n, dtype=np.bool_)
    tour = np.empty(n, dtype=np.int64)
    eta_beta = eta ** beta
    history = np.empty(iters, dtype=np.float64)

    started = time.perf_counter()
    rng = make_rng(params.get("seed", 42))
    evaluator = Evaluator(problem, max_evals)
    best_cost = None

    logger.info("aco: %d ants, %d iterations, variant %d", n_ants, iters, variant)

    done = 0
    for it in range(iters):
        if evaluator.exhausted(n_ants):
            break
        attract = (tau ** alpha) * eta_beta
        it_best = 0
        for k in range(n_ants):
            start = int(rng.integers(n))
            _construct_tour(attract, start, rng.random(n), tour, visited)
            tours[k] = tour
            costs[k] = evaluator(tours[k])
            if is_better(costs[k], costs[it_best], direction):
                it_best = k
        if best_cost is None or is_better(costs[it_best], best_cost, direction):
            best_cost = costs[it_best]
            np.copyto(best, tours[it_best])

        tau *= 1.0 - rho
        if variant == ACO_MAX_MIN:
            if it % global_period == 0:
                _deposit(tau, best, q / max(best_cost, MIN_COST))
            else:
                _deposit(tau, tours[it_best], q / max(costs[it_best], MIN_COST))
            np.clip(tau, tau_min, tau_max, out=tau)
        else:
            for k in range(n_ants):
                _deposit(tau, tours[k], q / max(costs[k], MIN_COST))
            if variant == ACO_ELITIST:
                _deposit(tau, best, elite_w * q / max(best_cost, MIN_COST))

        history[it] = best_cost
        done = it + 1

        if metrics is not None and (((it + 1) % log_period) == 0 or it == 0):
            metrics.append(
                it + 1,
                costs[it_best],
                best_cost,
                status="COLONY",
                tau_mean=float(tau.mean()),
            )

    return finish(best, best_cost, done, evaluator, history, started)
