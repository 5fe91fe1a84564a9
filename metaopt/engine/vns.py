import logging
import time

import numpy as np

from ..config.config import VNS_DEFAULTS
from ..config.enums import VNS_GENERAL, VNS_REDUCED
from ..local_search.kernel import (
    LocalSearchScratch,
    local_search,
    variable_neighborhood_descent,
)
from .common import is_better, make_rng, read_direction, read_enum, read_int
from .problem import Evaluator, allocate
from .result import finish, reported

logger = logging.getLogger(__name__)


@reported("vns")
def run_vns(problem, params=None, metrics=None, initial=None):
    params = VNS_DEFAULTS if params is None else params
    variant = read_enum(params, "vns_variant", "variant", 0)
    required = ["shake"]
    if variant != VNS_REDUCED:
        required.append("neighbor")
    if initial is None:
        required.append("generate")
    problem.require(*required)

    direction = read_direction(params)
    iters = read_int(params, "iters", 1000)
    k_max = read_int(params, "k_max", 5, minimum=1)
    ls_iters = read_int(params, "ls_iters", 200)
    ls_neighbors = read_int(params, "ls_neighbors", 20)
    levels = read_int(params, "vnd_neighborhoods", 3, minimum=1)
    max_evals = read_int(params, "max_evaluations", 0)
    log_period = read_int(params, "log_period", 100, minimum=1)

    curr, best, shaken = allocate(problem, None, None, None)
    scratch = LocalSearchScratch(problem)
    history = np.empty(iters, dtype=np.float64)

    started = time.perf_counter()
    rng = make_rng(params.get("seed", 42))
    ctx = problem.context
    evaluator = Evaluator(problem, max_evals)

    def improve(x, cost):
        if variant == VNS_REDUCED:
            return cost
        if variant == VNS_GENERAL:
            return variable_neighborhood_descent(
                problem, evaluator, x, cost, rng, ls_iters, ls_neighbors, levels, direction, scratch
            )
        return local_search(
            problem, evaluator, x, cost, rng, ls_iters, ls_neighbors, direction, scratch
        )

    if initial is not None:
        np.copyto(curr, initial)
    else:
        problem.generate(curr, rng, ctx)
    curr_cost = improve(curr, evaluator(curr))
    np.copyto(best, curr)
    best_cost = curr_cost

    logger.info("vns: %d iterations, k_max %d, variant %d", iters, k_max, variant)

    done = 0
    for it in range(1, iters + 1):
        if evaluator.exhausted():
            break
        k = 1
        while k <= k_max and not evaluator.exhausted():
            problem.shake(curr, shaken, k, rng, ctx)
            shaken_cost = improve(shaken, evaluator(shaken))
            if is_better(shaken_cost, curr_cost, direction):
                np.copyto(curr, shaken)
                curr_cost = shaken_cost
                k = 1
                if is_better(curr_cost, best_cost, direction):
                    np.copyto(best, curr)
                    best_cost = curr_cost
            else:
                k += 1

        history[it - 1] = best_cost
        done = it

        if metrics is not None and ((it % log_period) == 0 or it == 1):
            metrics.append(it, curr_cost, best_cost, status="SWEEP")

    return finish(best, best_cost, done, evaluator, history, started)
