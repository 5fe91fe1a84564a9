"""Simulated annealing with geometric, linear, logarithmic or adaptive cooling.

The temperature is held for ``markov_chain_length`` moves, then cooled. A
chain whose acceptance rate falls below ``reheat_threshold`` while the
temperature is under half of ``T0`` reheats by ``reheat_factor`` (capped at
``T0``) instead of cooling, when reheating is on.
"""

import logging
import math
import time

import numpy as np

from ..config.config import SA_DEFAULTS
from ..config.enums import (
    SA_COOLING_ADAPTIVE,
    SA_COOLING_GEOMETRIC,
    SA_COOLING_LINEAR,
    SA_COOLING_LOGARITHMIC,
    STATUS_ACCEPT,
    STATUS_BEST,
    STATUS_REJECT,
)
from .acceptance import accept_solution
from .common import is_better, make_rng, read_direction, read_enum, read_float, read_int
from .errors import ConfigurationError
from .problem import Evaluator, allocate
from .result import finish, reported

logger = logging.getLogger(__name__)


def cool(schedule, temp, t0, t_min, alpha, step, levels, rate, low, high, factor):
    """Temperature after temperature level ``step`` (1-based)."""
    if schedule == SA_COOLING_LINEAR:
        return max(temp - (t0 - t_min) / levels, t_min)
    if schedule == SA_COOLING_LOGARITHMIC:
        return t0 / math.log(2.0 + step)
    if schedule == SA_COOLING_ADAPTIVE:
        if rate < low:
            return temp * factor
        if rate > high:
            return temp / factor
        return temp
    return temp * alpha


def calibrate_temperature(problem, evaluator, start, start_cost, rng, samples, target, scratch):
    """T0 such that the mean uphill move of ``start``'s neighbourhood is accepted with ``target``.

    Returns ``None`` when no sampled neighbour changed the cost.
    """
    total = 0.0
    count = 0
    for _ in range(samples):
        if evaluator.exhausted():
            break
        problem.neighbor(start, scratch, rng, problem.context)
        delta = abs(evaluator(scratch) - start_cost)
        if delta > 1e-15:
            total += delta
            count += 1
    if count == 0:
        return None
    return -(total / count) / math.log(target)


@reported("simulated annealing")
def run_simulated_annealing(problem, params=None, metrics=None, initial=None):
    params = SA_DEFAULTS if params is None else params
    required = ["neighbor"]
    if initial is None:
        required.append("generate")
    problem.require(*required)

    direction = read_direction(params)
    iters = read_int(params, "iters", 10000)
    temp = read_float(params, "sa_temp0", 100.0, low=0.0)
    t_min = read_float(params, "final_temp", 0.001, low=0.0)
    alpha = read_float(params, "sa_cooling", 0.95, low=0.0, high=1.0)
    schedule = read_enum(params, "sa_cooling", "cooling_schedule", SA_COOLING_GEOMETRIC)
    chain = read_int(params, "markov_chain_length", 50, minimum=1)
    reheating = bool(params.get("reheating", False))
    reheat_threshold = read_float(params, "reheat_threshold", 0.01, low=0.0, high=1.0)
    reheat_factor = read_float(params, "reheat_factor", 2.0, low=1.0)
    calibrate = bool(params.get("auto_calibrate", False))
    samples = read_int(params, "calibration_samples", 100, minimum=1)
    target = read_float(params, "target_acceptance", 0.8, low=0.0, high=1.0)
    low = read_float(params, "adaptive_target_low", 0.2, low=0.0, high=1.0)
    high = read_float(params, "adaptive_target_high", 0.5, low=0.0, high=1.0)
    factor = read_float(params, "adaptive_factor", 1.05, low=1.0)
    max_evals = read_int(params, "max_evaluations", 0)
    log_period = read_int(params, "log_period", 100, minimum=1)
    if calibrate and not 0.0 < target < 1.0:
        raise ConfigurationError("target_acceptance must lie strictly between 0 and 1")
    if low > high:
        raise ConfigurationError("adaptive_target_low must not exceed adaptive_target_high")

    current, best, cand = allocate(problem, None, None, None)
    history = np.empty(iters, dtype=np.float64)

    started = time.perf_counter()
    rng = make_rng(params.get("seed", 42))
    ctx = problem.context
    evaluator = Evaluator(problem, max_evals)

    if initial is not None:
        np.copyto(current, initial)
    else:
        problem.generate(current, rng, ctx)
    curr_cost = evaluator(current)
    np.copyto(best, current)
    best_cost = curr_cost

    if calibrate:
        t_cal = calibrate_temperature(problem, evaluator, current, curr_cost, rng, samples, target, cand)
        if t_cal is not None:
            temp = t_cal
        logger.info("simulated annealing: calibrated T0 = %.6g", temp)

    t0 = temp
    levels = max(iters // chain, 1)
    logger.info("simulated annealing: %d iterations, T0 %.6g, chain %d", iters, t0, chain)

    done = 0
    step = 0
    reheats = 0
    while temp > t_min and done < iters and not evaluator.exhausted():
        accepted = 0
        moves = 0
        while moves < chain and done < iters and not evaluator.exhausted():
            problem.neighbor(current, cand, rng, ctx)
            cand_cost = evaluator(cand)
            moves += 1
            done += 1

            status = STATUS_REJECT
            if accept_solution(curr_cost, cand_cost, temp, rng, direction):
                np.copyto(current, cand)
                curr_cost = cand_cost
                accepted += 1
                status = STATUS_ACCEPT
                if is_better(curr_cost, best_cost, direction):
                    np.copyto(best, current)
                    best_cost = curr_cost
                    status = STATUS_BEST
            history[done - 1] = best_cost

            if metrics is not None and ((done % log_period) == 0 or done == 1):
                metrics.append(done, curr_cost, best_cost, temp, status=status)

        rate = accepted / moves if moves else 0.0
        if reheating and rate < reheat_threshold and temp < 0.5 * t0:
            temp = min(temp * reheat_factor, t0)
            reheats += 1
            logger.debug("iteration %d: reheat to %.6g (acceptance %.3f)", done, temp, rate)
        else:
            step += 1
            temp = cool(schedule, temp, t0, t_min, alpha, step, levels, rate, low, high, factor)

    stats = {"initial_temperature": t0, "final_temperature": temp, "reheats": reheats}
    return finish(best, best_cost, done, evaluator, history, started, stats)


__all__ = [
    "calibrate_temperature",
    "cool",
    "run_simulated_annealing",
]
