import logging
import time

import numpy as np

from ..config.config import ILS_DEFAULTS
from ..config.enums import (
    DECISION_ACCEPT,
    DECISION_RESTART,
    STATUS_ACCEPT,
    STATUS_BEST,
    STATUS_REJECT,
    STATUS_RESTART,
)
from ..local_search.kernel import LocalSearchScratch, local_search
from .acceptance import decide, init_acceptance
from .common import is_better, make_rng, read_direction, read_int
from .problem import Evaluator, allocate
from .result import finish, reported

logger = logging.getLogger(__name__)


def _kick(problem, current, out, strength, rng, tmp):
    """Perturbation step; ``strength`` chained neighbour moves without a perturb strategy."""
    ctx = problem.context
    if problem.perturb is not None:
        problem.perturb(current, out, strength, rng, ctx)
        return
    np.copyto(out, current)
    for _ in range(max(strength, 1)):
        problem.neighbor(out, tmp, rng, ctx)
        np.copyto(out, tmp)


@reported("iterated local search")
def run_ils(problem, params=None, metrics=None, initial=None):
    params = ILS_DEFAULTS if params is None else params
    required = ["neighbor"]
    if initial is None:
        required.append("generate")
    problem.require(*required)

    direction = read_direction(params)
    iters = read_int(params, "iters", 1000)
    ls_iters = read_int(params, "ls_iters", 200)
    ls_neighbors = read_int(params, "ls_neighbors", 20)
    strength = read_int(params, "perturbation_strength", 1, minimum=1)
    max_evals = read_int(params, "max_evaluations", 0)
    log_period = read_int(params, "log_period", 100, minimum=1)
    acceptance = init_acceptance(params, temp0=10.0, cooling=0.95)

    curr, best, cand, tmp = allocate(problem, None, None, None, None)
    scratch = LocalSearchScratch(problem)
    history = np.empty(iters, dtype=np.float64)

    started = time.perf_counter()
    rng = make_rng(params.get("seed", 42))
    evaluator = Evaluator(problem, max_evals)

    if initial is not None:
        np.copyto(curr, initial)
    else:
        problem.generate(curr, rng, problem.context)
    curr_cost = evaluator(curr)
    curr_cost = local_search(
        problem, evaluator, curr, curr_cost, rng, ls_iters, ls_neighbors, direction, scratch
    )
    np.copyto(best, curr)
    best_cost = curr_cost

    logger.info("ils: %d iterations, perturbation strength %d", iters, strength)

    done = 0
    for it in range(1, iters + 1):
        if evaluator.exhausted():
            break

        _kick(problem, curr, cand, strength, rng, tmp)
        cand_cost = evaluator(cand)
        cand_cost = local_search(
            problem, evaluator, cand, cand_cost, rng, ls_iters, ls_neighbors, direction, scratch
        )

        decision = decide(acceptance, curr_cost, cand_cost, rng, direction)
        status = STATUS_REJECT
        if is_better(cand_cost, best_cost, direction):
            np.copyto(best, cand)
            best_cost = cand_cost
            status = STATUS_BEST
        if decision == DECISION_ACCEPT:
            np.copyto(curr, cand)
            curr_cost = cand_cost
            if status != STATUS_BEST:
                status = STATUS_ACCEPT
        elif decision == DECISION_RESTART:
            np.copyto(curr, best)
            curr_cost = best_cost
            status = STATUS_RESTART

        history[it - 1] = best_cost
        done = it

        if metrics is not None and ((it % log_period) == 0 or it == 1):
            metrics.append(it, curr_cost, best_cost, acceptance.temperature, status=status)

    return finish(best, best_cost, done, evaluator, history, started)
