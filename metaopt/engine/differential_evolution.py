"""Differential evolution over a box ``[lower_bound, upper_bound]^size``.

For every target ``x_i`` a donor is built with the configured strategy::

    rand/1:            x_r1 + F (x_r2 - x_r3)
    best/1:            x_best + F (x_r1 - x_r2)
    current-to-best/1: x_i + F (x_best - x_i) + F (x_r1 - x_r2)
    rand/2:            x_r1 + F (x_r2 - x_r3) + F (x_r4 - x_r5)
    best/2:            x_best + F (x_r1 - x_r2) + F (x_r3 - x_r4)

with ``r1..r5`` distinct and different from ``i``. The donor is clamped to
the box and binomially crossed with ``x_i`` (rate ``CR``, one coordinate
always from the donor). The trial replaces ``x_i`` when it is no worse.
Replacements take effect immediately, so later targets of the same
generation already see them.
"""

import logging
import time

import numpy as np

from ..config.config import DE_DEFAULTS
from ..config.enums import (
    DE_BEST_1,
    DE_BEST_2,
    DE_CURRENT_TO_BEST_1,
    DE_RAND_1,
    DE_RAND_2,
)
from .common import is_better, make_rng, read_direction, read_enum, read_float, read_int
from .errors import ConfigurationError
from .problem import Evaluator, allocate
from .result import finish, reported

logger = logging.getLogger(__name__)

# distinct partners each strategy draws besides the target
PARTNERS = {
    DE_RAND_1: 3,
    DE_BEST_1: 2,
    DE_CURRENT_TO_BEST_1: 2,
    DE_RAND_2: 5,
    DE_BEST_2: 4,
}


def pick_partners(count, pop_size, target, rng):
    """``count`` distinct indices in ``[0, pop_size)`` other than ``target``."""
    idx = rng.choice(pop_size - 1, size=count, replace=False)
    idx[idx >= target] += 1
    return idx


def build_donor(strategy, pop, best, i, r, f, out):
    if strategy == DE_BEST_1:
        out[:] = best + f * (pop[r[0]] - pop[r[1]])
    elif strategy == DE_CURRENT_TO_BEST_1:
        out[:] = pop[i] + f * (best - pop[i]) + f * (pop[r[0]] - pop[r[1]])
    elif strategy == DE_RAND_2:
        out[:] = pop[r[0]] + f * (pop[r[1]] - pop[r[2]]) + f * (pop[r[3]] - pop[r[4]])
    elif strategy == DE_BEST_2:
        out[:] = best + f * (pop[r[0]] - pop[r[1]]) + f * (pop[r[2]] - pop[r[3]])
    else:
        out[:] = pop[r[0]] + f * (pop[r[1]] - pop[r[2]])


def binomial_crossover(target, donor, cr, rng, out):
    mask = rng.random(target.shape[0]) < cr
    mask[int(rng.integers(target.shape[0]))] = True
    np.copyto(out, np.where(mask, donor, target))


@reported("differential evolution")
def run_differential_evolution(problem, params=None, metrics=None):
    params = DE_DEFAULTS if params is None else params
    problem.require()
    if not np.issubdtype(np.dtype(problem.dtype), np.floating):
        raise ConfigurationError("differential evolution needs a floating point solution dtype")

    direction = read_direction(params)
    generations = read_int(params, "iters", 1000)
    pop_size = read_int(params, "population_size", 50, minimum=1)
    f = read_float(params, "scale_factor", 0.8, low=0.0)
    cr = read_float(params, "crossover_rate", 0.9, low=0.0, high=1.0)
    strategy = read_enum(params, "de_strategy", "strategy", DE_RAND_1)
    lower = read_float(params, "lower_bound", -5.12)
    upper = read_float(params, "upper_bound", 5.12)
    max_evals = read_int(params, "max_evaluations", 0)
    log_period = read_int(params, "log_period", 100, minimum=1)
    if upper <= lower:
        raise ConfigurationError("upper_bound must exceed lower_bound")
    needed = PARTNERS[strategy] + 1
    if pop_size < needed:
        raise ConfigurationError(f"population_size must be >= {needed} for this strategy")
    if 0 < max_evals < pop_size:
        raise ConfigurationError("max_evaluations must cover the initial population")

    pop, = allocate(problem, pop_size)
    best, donor, trial = allocate(problem, None, None, None)
    fitness = np.empty(pop_size, dtype=np.float64)
    history = np.empty(generations, dtype=np.float64)

    started = time.perf_counter()
    rng = make_rng(params.get("seed", 42))
    evaluator = Evaluator(problem, max_evals)

    pop[:] = lower + rng.random(pop.shape) * (upper - lower)
    best_idx = 0
    for i in range(pop_size):
        fitness[i] = evaluator(pop[i])
        if is_better(fitness[i], fitness[best_idx], direction):
            best_idx = i
    np.copyto(best, pop[best_idx])
    best_cost = float(fitness[best_idx])

    logger.info("differential evolution: population %d, %d generations, strategy %d",
                pop_size, generations, strategy)

    done = 0
    for gen in range(1, generations + 1):
        if evaluator.exhausted(pop_size):
            break
        replaced = 0
        for i in range(pop_size):
            r = pick_partners(PARTNERS[strategy], pop_size, i, rng)
            build_donor(strategy, pop, best, i, r, f, donor)
            np.clip(donor, lower, upper, out=donor)
            binomial_crossover(pop[i], donor, cr, rng, trial)

            cost = evaluator(trial)
            if cost == fitness[i] or is_better(cost, fitness[i], direction):
                np.copyto(pop[i], trial)
                fitness[i] = cost
                replaced += 1
                if is_better(cost, best_cost, direction):
                    np.copyto(best, trial)
                    best_cost = cost

        history[gen - 1] = best_cost
        done = gen

        if metrics is not None and ((gen % log_period) == 0 or gen == 1):
            metrics.append(
                gen,
                float(fitness.mean()),
                best_cost,
                status="GENERATION",
                replaced=replaced,
            )

    return finish(best, best_cost, done, evaluator, history, started)


__all__ = [
    "binomial_crossover",
    "build_donor",
    "pick_partners",
    "run_differential_evolution",
]
