import logging
import time

import numpy as np

from ..config.config import MEMETIC_DEFAULTS
from ..config.enums import (
    MA_BALDWINIAN,
    MA_LAMARCKIAN,
    MINIMIZE,
    SELECT_RANK,
    SELECT_ROULETTE,
    SELECT_TOURNAMENT,
)
from ..local_search.kernel import LocalSearchScratch, local_search
from .common import (
    is_better,
    make_rng,
    read_direction,
    read_enum,
    read_float,
    read_int,
)
from .errors import ConfigurationError
from .problem import Evaluator, allocate
from .result import finish, reported

logger = logging.getLogger(__name__)


def rank_order(fitness, direction):
    """Indices of ``fitness`` from best to worst (stable)."""
    keys = fitness if direction == MINIMIZE else -fitness
    return np.argsort(keys, kind="stable")


def tournament_select(fitness, size, rng, direction):
    best = int(rng.integers(len(fitness)))
    for _ in range(size - 1):
        idx = int(rng.integers(len(fitness)))
        if is_better(fitness[idx], fitness[best], direction):
            best = idx
    return best


def roulette_select(fitness, rng, direction):
    if direction == MINIMIZE:
        weights = (fitness.max() + 1.0) - fitness
    else:
        weights = np.clip(fitness, 0.0, None)
    total = float(weights.sum())
    if not total > 0.0:
        return int(rng.integers(len(fitness)))
    return int(rng.choice(len(fitness), p=weights / total))


def rank_select(order, rng):
    n = len(order)
    weights = np.arange(n, 0, -1, dtype=np.float64)
    return int(order[rng.choice(n, p=weights / weights.sum())])


def select_parent(selection, fitness, order, tournament_size, rng, direction):
    if selection == SELECT_ROULETTE:
        return roulette_select(fitness, rng, direction)
    if selection == SELECT_RANK:
        return rank_select(order, rng)
    return tournament_select(fitness, tournament_size, rng, direction)


def fill_survivors(pop, fitness, order, nxt, nxt_fitness, filled):
    """Complete ``nxt`` from ``filled`` on with old individuals in rank order.

    Used when the evaluation budget runs out before a generation is bred.
    """
    for slot in range(filled, len(nxt_fitness)):
        np.copyto(nxt[slot], pop[order[slot]])
        nxt_fitness[slot] = fitness[order[slot]]


@reported("memetic")
def run_memetic(problem, params=None, metrics=None):
    params = MEMETIC_DEFAULTS if params is None else params
    direction = read_direction(params)
    generations = read_int(params, "iters", 200)
    pop_size = read_int(params, "population_size", 50, minimum=2)
    pc = read_float(params, "crossover_rate", 0.8, low=0.0, high=1.0)
    pm = read_float(params, "mutation_rate", 0.05, low=0.0, high=1.0)
    elite = read_int(params, "elitism_count", 2)
    selection = read_enum(params, "selection", "selection", SELECT_TOURNAMENT)
    t_size = read_int(params, "tournament_size", 3, minimum=1)
    learning = read_enum(params, "learning", "learning", MA_LAMARCKIAN)
    ls_iters = read_int(params, "ls_iters", 50)
    ls_neighbors = read_int(params, "ls_neighbors", 10)
    ls_prob = read_float(params, "ls_probability", 1.0, low=0.0, high=1.0)
    ls_initial = bool(params.get("ls_on_initial", True))
    max_evals = read_int(params, "max_evaluations", 0)
    log_period = read_int(params, "log_period", 100, minimum=1)
    if elite >= pop_size:
        raise ConfigurationError("elitism_count must be smaller than population_size")
    if 0 < max_evals < pop_size:
        raise ConfigurationError("max_evaluations must cover the initial population")

    use_ls = ls_iters > 0 and ls_neighbors > 0 and ls_prob > 0.0
    required = ["generate", "crossover", "mutate"]
    if use_ls:
        required.append("neighbor")
    problem.require(*required)

    pop, nxt = allocate(problem, pop_size, pop_size)
    best, child1, child2, refined = allocate(problem, None, None, None, None)
    scratch = LocalSearchScratch(problem) if use_ls else None
    fitness = np.empty(pop_size, dtype=np.float64)
    nxt_fitness = np.empty(pop_size, dtype=np.float64)
    history = np.empty(generations, dtype=np.float64)

    started = time.perf_counter()
    rng = make_rng(params.get("seed", 42))
    ctx = problem.context
    evaluator = Evaluator(problem, max_evals)
    best_cost = None

    def keep_if_best(x, cost):
        nonlocal best_cost
        if best_cost is None or is_better(cost, best_cost, direction):
            np.copyto(best, x)
            best_cost = cost

    def refine(x, cost, force=False):
        """Local search per the learning mode; returns the fitness to store for ``x``."""
        keep_if_best(x, cost)
        if not use_ls or not (force or rng.random() < ls_prob):
            return cost
        if learning == MA_BALDWINIAN:
            np.copyto(refined, x)
            ls_cost = local_search(
                problem, evaluator, refined, cost, rng, ls_iters, ls_neighbors, direction, scratch
            )
            keep_if_best(refined, ls_cost)
            return ls_cost
        cost = local_search(
            problem, evaluator, x, cost, rng, ls_iters, ls_neighbors, direction, scratch
        )
        keep_if_best(x, cost)
        return cost

    # the whole population is evaluated before any local search spends budget
    for i in range(pop_size):
        problem.generate(pop[i], rng, ctx)
        fitness[i] = evaluator(pop[i])
        keep_if_best(pop[i], fitness[i])
    if ls_initial:
        for i in range(pop_size):
            fitness[i] = refine(pop[i], fitness[i], force=True)

    logger.info(
        "memetic: %d generations, population %d, %s learning",
        generations,
        pop_size,
        "baldwinian" if learning == MA_BALDWINIAN else "lamarckian",
    )

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
                problem.mutate(child, pm, rng, ctx)
                cost = evaluator(child)
                nxt_fitness[filled] = refine(child, cost)
                np.copyto(nxt[filled], child)
                filled += 1
        fill_survivors(pop, fitness, order, nxt, nxt_fitness, filled)

        pop, nxt = nxt, pop
        fitness, nxt_fitness = nxt_fitness, fitness
        history[gen - 1] = best_cost
        done = gen

        if metrics is not None and ((gen % log_period) == 0 or gen == 1):
            metrics.append(
                gen,
                float(fitness[rank_order(fitness, direction)[0]]),
                best_cost,
                status="GENERATION",
                mean_fitness=float(fitness.mean()),
            )

    return finish(best, best_cost, done, evaluator, history, started)
