import logging
import time

import numpy as np

from ..config.config import GA_DEFAULTS
from ..config.enums import SELECT_TOURNAMENT
from .common import is_better, make_rng, read_direction, read_enum, read_float, read_int
from .errors import ConfigurationError
from .memetic import fill_survivors, rank_order, select_parent
from .problem import Evaluator, allocate
from .result import finish, reported

logger = logging.getLogger(__name__)


def adaptive_mutation_rate(fitness, best_index, low, high):
    """Mutation rate from population diversity.

    Diversity is ``sum |f_i - f_best| / n``. A collapsed population (below
    1e-6) mutates at ``high``; otherwise the rate falls from ``high`` towards
    ``low`` as diversity grows relative to ``|f_best|``.
    """
    best = fitness[best_index]
    diversity = float(np.abs(fitness - best).sum()) / len(fitness)
    if diversity < 1e-6:
        return high
    ratio = diversity / (abs(best) + 1e-15)
    return low + (high - low) / (1.0 + ratio)


@reported("genetic algorithm")
def run_genetic(problem, params=None, metrics=None):
    """Generational GA with elitism and tournament, roulette or rank selection."""
    params = GA_DEFAULTS if params is None else params
    problem.require("generate", "crossover", "mutate")

    direction = read_direction(params)
    generations = read_int(params, "iters", 500)
    pop_size = read_int(params, "population_size", 50, minimum=2)
    pc = read_float(params, "crossover_rate", 0.8, low=0.0, high=1.0)
    pm = read_float(params, "mutation_rate", 0.05, low=0.0, high=1.0)
    elite = read_int(params, "elitism_count", 2)
    selection = read_enum(params, "selection", "selection", SELECT_TOURNAMENT)
    t_size = read_int(params, "tournament_size", 3, minimum=1)
    adaptive = bool(params.get("adaptive_rates", False))
    pm_low = read_float(params, "adaptive_min_mutation", 0.01, low=0.0, high=1.0)
    pm_high = read_float(params, "adaptive_max_mutation", 0.3, low=0.0, high=1.0)
    max_evals = read_int(params, "max_evaluations", 0)
    log_period = read_int(params, "log_period", 100, minimum=1)
    if elite >= pop_size:
        raise ConfigurationError("elitism_count must be smaller than population_size")
    if 0 < max_evals < pop_size:
        raise ConfigurationError("max_evaluations must cover the initial population")
    if adaptive and pm_low > pm_high:
        raise ConfigurationError("adaptive_min_mutation must not exceed adaptive_max_mutation")

    pop, nxt = allocate(problem, pop_size, pop_size)
    best, child1, child2 = allocate(problem, None, None, None)
    fitness = np.empty(pop_size, dtype=np.float64)
    nxt_fitness = np.empty(pop_size, dtype=np.float64)
    history = np.empty(generations, dtype=np.float64)

    started = time.perf_counter()
    rng = make_rng(params.get("seed", 42))
    ctx = problem.context
    evaluator = Evaluator(problem, max_evals)

    for i in range(pop_size):
        problem.generate(pop[i], rng, ctx)
        fitness[i] = evaluator(pop[i])
    order = rank_order(fitness, direction)
    np.copyto(best, pop[order[0]])
    best_cost = float(fitness[order[0]])

    logger.info("genetic: %d generations, population %d", generations, pop_size)

    rate = pm
    done = 0
    for gen in range(1, generations + 1):
        if evaluator.exhausted():
            break
        order = rank_order(fitness, direction)
        for e in range(elite):
            np.copyto(nxt[e], pop[order[e]])
            nxt_fitness[e] = fitness[order[e]]

        filled = elite
        while filled < pop_size and not evaluator.exhausted():
            p1 = select_parent(selection, fitness, order, t_size, rng, direction)
            p2 = select_parent(selection, fitness, order, t_size, rng, direction)
            if rng.random() < pc:
                problem.crossover(pop[p1], pop[p2], child1, child2, rng, ctx)
            else:
                np.copyto(child1, pop[p1])
                np.copyto(child2, pop[p2])

            for child in (child1, child2):
                if filled >= pop_size or evaluator.exhausted():
                    break
                problem.mutate(child, rate, rng, ctx)
                cost = evaluator(child)
                np.copyto(nxt[filled], child)
                nxt_fitness[filled] = cost
                if is_better(cost, best_cost, direction):
                    np.copyto(best, child)
                    best_cost = cost
                filled += 1
        fill_survivors(pop, fitness, order, nxt, nxt_fitness, filled)

        pop, nxt = nxt, pop
        fitness, nxt_fitness = nxt_fitness, fitness
        gen_best = int(rank_order(fitness, direction)[0])
        if adaptive:
            rate = adaptive_mutation_rate(fitness, gen_best, pm_low, pm_high)

        history[gen - 1] = best_cost
        done = gen

        if metrics is not None and ((gen % log_period) == 0 or gen == 1):
            metrics.append(
                gen,
                float(fitness[gen_best]),
                best_cost,
                status="GENERATION",
                mean_fitness=float(fitness.mean()),
                mutation_rate=rate,
            )

    return finish(best, best_cost, done, evaluator, history, started, {"mutation_rate": rate})


__all__ = [
    "adaptive_mutation_rate",
    "run_genetic",
]
