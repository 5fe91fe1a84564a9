import logging
import time

import numpy as np

from ..config.config import HC_DEFAULTS
from ..config.enums import (
    HC_FIRST_IMPROVEMENT,
    HC_RANDOM_RESTART,
    HC_STEEPEST,
    HC_STOCHASTIC,
    MINIMIZE,
)
from ..engine.common import (
    is_better,
    make_rng,
    read_direction,
    read_enum,
    read_float,
    read_int,
)
from ..engine.problem import Evaluator, allocate
from ..engine.result import finish, reported
from .kernel import LocalSearchScratch, sample_best_neighbor

logger = logging.getLogger(__name__)


def _climb(problem, variant, seed, iters, k, temp, direction, evaluator, current, best, scratch,
           history, metrics, offset, log_period=1):
    """One hill climb from a generated start into ``current``/``best``.

    Returns ``(best_cost, rounds)``; ``history[offset + i]`` receives the
    best-so-far after round ``i``.
    """
    rng = make_rng(seed)
    ctx = problem.context

    problem.generate(current, rng, ctx)
    curr_cost = evaluator(current)
    np.copyto(best, current)
    best_cost = curr_cost

    rounds = 0
    for it in range(1, iters + 1):
        if evaluator.exhausted():
            break
        stop = False
        if variant == HC_STOCHASTIC:
            problem.neighbor(current, scratch.candidate, rng, ctx)
            cand_cost = evaluator(scratch.candidate)
            accept = is_better(cand_cost, curr_cost, direction)
            if not accept and temp > 1e-15:
                accept = rng.random() < np.exp(-abs(cand_cost - curr_cost) / temp)
            if accept:
                np.copyto(current, scratch.candidate)
                curr_cost = cand_cost
        elif variant == HC_FIRST_IMPROVEMENT:
            stop = True
            for _ in range(k):
                if evaluator.exhausted():
                    break
                problem.neighbor(current, scratch.candidate, rng, ctx)
                cand_cost = evaluator(scratch.candidate)
                if is_better(cand_cost, curr_cost, direction):
                    np.copyto(current, scratch.candidate)
                    curr_cost = cand_cost
                    stop = False
                    break
        else:
            cand_cost = sample_best_neighbor(problem, evaluator, current, rng, k, direction, scratch)
            if cand_cost is not None and is_better(cand_cost, curr_cost, direction):
                np.copyto(current, scratch.best)
                curr_cost = cand_cost
            else:
                stop = True

        if is_better(curr_cost, best_cost, direction):
            np.copyto(best, current)
            best_cost = curr_cost
        history[offset + it - 1] = best_cost
        rounds = it

        if metrics is not None and ((it % log_period) == 0 or it == 1 or stop):
            metrics.append(offset + it, curr_cost, best_cost, temp, status="STOP" if stop else "CLIMB")
        if stop:
            break

    return best_cost, rounds


@reported("hill climbing")
def run_hill_climbing(problem, params=None, metrics=None):
    """Steepest, first-improvement, random-restart or stochastic hill climbing.

    Random restart runs ``num_restarts`` steepest climbs seeded ``seed + r``;
    their histories are concatenated and kept monotone against the best of
    the earlier climbs.
    """
    params = HC_DEFAULTS if params is None else params
    problem.require("neighbor", "generate")

    direction = read_direction(params)
    variant = read_enum(params, "hc_variant", "variant", HC_STEEPEST)
    iters = read_int(params, "iters", 1000)
    k = read_int(params, "neighbors_per_iter", 20, minimum=1)
    restarts = read_int(params, "num_restarts", 10, minimum=1)
    temp = read_float(params, "stochastic_temp", 1.0, low=0.0)
    seed = int(params.get("seed", 42))
    max_evals = read_int(params, "max_evaluations", 0)
    log_period = read_int(params, "log_period", 100, minimum=1)
    if variant != HC_RANDOM_RESTART:
        restarts = 1

    current, best, overall = allocate(problem, None, None, None)
    scratch = LocalSearchScratch(problem)
    history = np.empty(iters * restarts, dtype=np.float64)

    started = time.perf_counter()
    evaluator = Evaluator(problem, max_evals)
    logger.info("hill climbing: variant %d, %d iterations, %d neighbours", variant, iters, k)

    if variant != HC_RANDOM_RESTART:
        best_cost, rounds = _climb(
            problem, variant, seed, iters, k, temp, direction, evaluator, current, best, scratch,
            history, metrics, 0, log_period,
        )
        return finish(best, best_cost, rounds, evaluator, history, started)

    overall_cost = None
    done = 0
    climbs = 0
    for r in range(restarts):
        if evaluator.exhausted():
            break
        sub_cost, rounds = _climb(
            problem, HC_STEEPEST, seed + r, iters, k, temp, direction, evaluator, current, best,
            scratch, history, metrics, done, log_period,
        )
        if overall_cost is not None:
            seg = history[done:done + rounds]
            if direction == MINIMIZE:
                np.minimum(seg, overall_cost, out=seg)
            else:
                np.maximum(seg, overall_cost, out=seg)
        if overall_cost is None or is_better(sub_cost, overall_cost, direction):
            np.copyto(overall, best)
            overall_cost = sub_cost
        done += rounds
        climbs += 1
        logger.debug("restart %d: best %.6g after %d rounds", r, sub_cost, rounds)

    return finish(overall, overall_cost, done, evaluator, history, started, {"restarts": climbs})
