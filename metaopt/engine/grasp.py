import logging
import time

import numpy as np

from ..config.config import GRASP_DEFAULTS
from ..local_search.kernel import LocalSearchScratch, local_search
from .common import (
    is_better,
    make_rng,
    oriented_delta,
    read_direction,
    read_float,
    read_int,
    worst_cost,
)
from .problem import Evaluator, allocate
from .result import finish, reported

logger = logging.getLogger(__name__)


class ReactiveAlpha:
    """Candidate RCL parameters ``(i+1)/(m+1)`` drawn with quality-proportional probability.

    The quality of an alpha is ``1 / (1 + g)`` where ``g`` is the relative gap
    between the average cost it produced in the last block and the best cost
    known; alphas not tried yet keep the top quality of 1.
    """

    def __init__(self, num_alphas):
        m = int(num_alphas)
        self.alphas = np.array([(i + 1) / (m + 1) for i in range(m)], dtype=np.float64)
        self.probs = np.full(m, 1.0 / m)
        self._sums = np.zeros(m)
        self._counts = np.zeros(m, dtype=np.int64)

    def draw(self, rng):
        return int(rng.choice(len(self.alphas), p=self.probs))

    def record(self, idx, cost):
        self._sums[idx] += cost
        self._counts[idx] += 1

    def recompute(self, best_cost, direction):
        quality = np.ones(len(self.alphas))
        scale = max(abs(best_cost), 1e-12)
        for i in range(len(self.alphas)):
            if self._counts[i] > 0:
                avg = self._sums[i] / self._counts[i]
                gap = max(oriented_delta(best_cost, avg, direction), 0.0)
                quality[i] = 1.0 / (1.0 + gap / scale)
        self.probs = quality / quality.sum()
        self._sums[:] = 0.0
        self._counts[:] = 0
        logger.debug("reactive alpha probabilities: %s", np.round(self.probs, 4).tolist())


@reported("grasp")
def run_grasp(problem, params=None, metrics=None):
    params = GRASP_DEFAULTS if params is None else params
    problem.require("construct", "neighbor")

    direction = read_direction(params)
    iters = read_int(params, "iters", 500, minimum=1)
    alpha = read_float(params, "alpha", 0.3, low=0.0, high=1.0)
    ls_iters = read_int(params, "ls_iters", 100)
    ls_neighbors = read_int(params, "ls_neighbors", 20)
    max_evals = read_int(params, "max_evaluations", 0)
    log_period = read_int(params, "log_period", 100, minimum=1)
    reactive = None
    if params.get("reactive", False):
        reactive = ReactiveAlpha(read_int(params, "reactive_num_alphas", 5, minimum=1))
        block = read_int(params, "reactive_block_size", 50, minimum=1)

    curr, best = allocate(problem, None, None)
    scratch = LocalSearchScratch(problem)
    history = np.empty(iters, dtype=np.float64)

    started = time.perf_counter()
    rng = make_rng(params.get("seed", 42))
    evaluator = Evaluator(problem, max_evals)
    best_cost = worst_cost(direction)

    logger.info("grasp: %d iterations, alpha %s", iters, "reactive" if reactive else alpha)

    done = 0
    for it in range(1, iters + 1):
        if evaluator.exhausted():
            break
        a_idx = -1
        a = alpha
        if reactive is not None:
            if it > 1 and (it - 1) % block == 0:
                reactive.recompute(best_cost, direction)
            a_idx = reactive.draw(rng)
            a = float(reactive.alphas[a_idx])

        problem.construct(curr, a, rng, problem.context)
        cost = evaluator(curr)
        cost = local_search(
            problem, evaluator, curr, cost, rng, ls_iters, ls_neighbors, direction, scratch
        )
        if reactive is not None:
            reactive.record(a_idx, cost)

        status = "REJECT"
        if is_better(cost, best_cost, direction):
            np.copyto(best, curr)
            best_cost = cost
            status = "BEST"

        history[it - 1] = best_cost
        done = it

        if metrics is not None and ((it % log_period) == 0 or it == 1):
            metrics.append(it, cost, best_cost, status=status, alpha=a)

    stats = {}
    if reactive is not None:
        stats["alphas"] = reactive.alphas.copy()
        stats["alpha_probabilities"] = reactive.probs.copy()
    return finish(best, best_cost, done, evaluator, history, started, stats)
