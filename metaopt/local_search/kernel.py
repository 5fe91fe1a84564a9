import numpy as np

from ..config.enums import MINIMIZE
from ..engine.common import is_better
from ..engine.problem import allocate


class LocalSearchScratch:
    """Two reusable buffers: the candidate being sampled and the round's best."""

    __slots__ = ("candidate", "best")

    def __init__(self, problem):
        self.candidate, self.best = allocate(problem, None, None)


def sample_best_neighbor(problem, evaluator, solution, rng, k, direction, scratch):
    """Evaluate ``k`` neighbours of ``solution``; the best (first seen on ties) ends in ``scratch.best``.

    Sampling stops early once the evaluator's cap is reached; ``None`` means
    no neighbour was evaluated.
    """
    best_cost = None
    for _ in range(k):
        if evaluator.exhausted():
            break
        problem.neighbor(solution, scratch.candidate, rng, problem.context)
        cost = evaluator(scratch.candidate)
        if best_cost is None or is_better(cost, best_cost, direction):
            best_cost = cost
            np.copyto(scratch.best, scratch.candidate)
    return best_cost


def local_search(
    problem,
    evaluator,
    solution,
    cost,
    rng,
    max_iterations,
    neighbors_per_round,
    direction=MINIMIZE,
    scratch=None,
):
    """Steepest-descent hill climb of ``solution`` in place; returns its final cost.

    Every round costs exactly ``neighbors_per_round`` evaluations and the
    climb stops at the first round that does not strictly improve.
    """
    if max_iterations <= 0 or neighbors_per_round <= 0:
        return cost
    if scratch is None:
        scratch = LocalSearchScratch(problem)

    for _ in range(max_iterations):
        cand_cost = sample_best_neighbor(
            problem, evaluator, solution, rng, neighbors_per_round, direction, scratch
        )
        if cand_cost is None or not is_better(cand_cost, cost, direction):
            break
        np.copyto(solution, scratch.best)
        cost = cand_cost
    return cost


def variable_neighborhood_descent(
    problem,
    evaluator,
    solution,
    cost,
    rng,
    max_iterations,
    neighbors_per_round,
    levels,
    direction=MINIMIZE,
    scratch=None,
):
    """Descent over ``levels`` neighbourhoods; level ``l`` samples ``l * neighbors_per_round``.

    An improving level sends the descent back to level 1.
    """
    if max_iterations <= 0 or neighbors_per_round <= 0:
        return cost
    if scratch is None:
        scratch = LocalSearchScratch(problem)
    level = 1
    while level <= levels:
        improved = False
        for _ in range(max_iterations):
            cand_cost = sample_best_neighbor(
                problem, evaluator, solution, rng, level * neighbors_per_round, direction, scratch
            )
            if cand_cost is None or not is_better(cand_cost, cost, direction):
                break
            np.copyto(solution, scratch.best)
            cost = cand_cost
            improved = True
        level = 1 if improved else level + 1
    return cost
