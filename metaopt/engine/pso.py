"""Particle Swarm Optimisation over a box ``[lower_bound, upper_bound]^size``.

Velocity update per particle ``i`` and dimension ``d``::

    v = w * v + c1 * r1 * (pbest - x) + c2 * r2 * (gbest - x)

clamped to ``+-v_max_ratio * (upper - lower)``, then ``x += v`` clamped to
the box. ``w`` is constant, decreases linearly from ``w`` to ``w_min``, or is
the Clerc-Kennedy factor ``2 / |2 - phi - sqrt(phi^2 - 4 phi)|`` with
``phi = c1 + c2`` (1.0 when ``phi <= 4``).
"""

import logging
import math
import time

import numpy as np

from ..config.config import PSO_DEFAULTS
from ..config.enums import (
    PSO_INERTIA_CONSTRICTION,
    PSO_INERTIA_LINEAR_DECREASING,
)
from .common import is_better, make_rng, read_direction, read_enum, read_float, read_int
from .errors import ConfigurationError
from .problem import Evaluator, allocate
from .result import finish, reported

logger = logging.getLogger(__name__)


def constriction_factor(c1, c2):
    phi = c1 + c2
    if phi <= 4.0:
        return 1.0
    return 2.0 / abs(2.0 - phi - math.sqrt(phi * phi - 4.0 * phi))


def inertia_weight(schedule, it, iters, w, w_min, chi):
    """Inertia for 0-based iteration ``it``."""
    if schedule == PSO_INERTIA_LINEAR_DECREASING:
        return w - (w - w_min) * (it / iters)
    if schedule == PSO_INERTIA_CONSTRICTION:
        return chi
    return w


@reported("pso")
def run_pso(problem, params=None, metrics=None):
    params = PSO_DEFAULTS if params is None else params
    problem.require()
    if not np.issubdtype(np.dtype(problem.dtype), np.floating):
        raise ConfigurationError("pso needs a floating point solution dtype")

    direction = read_direction(params)
    iters = read_int(params, "iters", 500)
    n = read_int(params, "num_particles", 30, minimum=1)
    w = read_float(params, "w", 0.729)
    w_min = read_float(params, "w_min", 0.4)
    c1 = read_float(params, "c1", 1.49445)
    c2 = read_float(params, "c2", 1.49445)
    v_ratio = read_float(params, "v_max_ratio", 0.1, low=0.0)
    schedule = read_enum(params, "inertia", "inertia", PSO_INERTIA_LINEAR_DECREASING)
    lower = read_float(params, "lower_bound", -5.12)
    upper = read_float(params, "upper_bound", 5.12)
    max_evals = read_int(params, "max_evaluations", 0)
    log_period = read_int(params, "log_period", 100, minimum=1)
    if upper <= lower:
        raise ConfigurationError("upper_bound must exceed lower_bound")
    if 0 < max_evals < n:
        raise ConfigurationError("max_evaluations must cover the initial swarm")

    span = upper - lower
    v_max = v_ratio * span
    chi = constriction_factor(c1, c2)

    pos, vel, pbest, gbest = allocate(problem, n, n, n, None)
    pbest_cost = np.empty(n, dtype=np.float64)
    history = np.empty(iters, dtype=np.float64)

    started = time.perf_counter()
    rng = make_rng(params.get("seed", 42))
    evaluator = Evaluator(problem, max_evals)

    pos[:] = lower + rng.random(pos.shape) * span
    vel[:] = -v_max + rng.random(vel.shape) * 2.0 * v_max
    np.copyto(pbest, pos)
    gbest_cost = None
    for i in range(n):
        pbest_cost[i] = evaluator(pos[i])
        if gbest_cost is None or is_better(pbest_cost[i], gbest_cost, direction):
            gbest_cost = pbest_cost[i]
            np.copyto(gbest, pos[i])

    logger.info("pso: %d particles, %d iterations, inertia schedule %d", n, iters, schedule)

    done = 0
    for it in range(iters):
        if evaluator.exhausted(n):
            break
        wt = inertia_weight(schedule, it, iters, w, w_min, chi)
        r1 = rng.random(pos.shape)
        r2 = rng.random(pos.shape)
        vel *= wt
        vel += c1 * r1 * (pbest - pos) + c2 * r2 * (gbest - pos)
        np.clip(vel, -v_max, v_max, out=vel)
        pos += vel
        np.clip(pos, lower, upper, out=pos)

        for i in range(n):
            cost = evaluator(pos[i])
            if is_better(cost, pbest_cost[i], direction):
                pbest_cost[i] = cost
                np.copyto(pbest[i], pos[i])
                if is_better(cost, gbest_cost, direction):
                    gbest_cost = cost
                    np.copyto(gbest, pos[i])

        history[it] = gbest_cost
        done = it + 1

        if metrics is not None and (((it + 1) % log_period) == 0 or it == 0):
            metrics.append(
                it + 1,
                float(pbest_cost.mean()),
                gbest_cost,
                status="SWARM",
                inertia=wt,
            )

    return finish(gbest, gbest_cost, done, evaluator, history, started, {"constriction": chi})
