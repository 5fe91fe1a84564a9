"""Reactive dual-memory Tabu Search.

Short-term memory is a bounded FIFO of solution hashes, long-term memory a
visit-frequency table. Each iteration samples ``neighbors_per_iter``
candidates into a preallocated block, so a run costs exactly
``1 + iterations * neighbors_per_iter`` evaluations.
"""

import logging
import time
from collections import deque

import numpy as np

from ..config.config import TABU_DEFAULTS
from ..config.enums import MINIMIZE
from .common import (
    is_better,
    make_rng,
    read_direction,
    read_float,
    read_int,
)
from .errors import ConfigurationError
from .hashing import hash_bytes
from .problem import Evaluator, allocate
from .result import finish, reported

logger = logging.getLogger(__name__)


class TabuList:
    """FIFO of ``(hash, iteration)``; never longer than ``tenure``."""

    def __init__(self, tenure):
        self.tenure = int(tenure)
        self._entries = deque()
        self._latest = {}

    def __len__(self):
        return len(self._entries)

    def push(self, h, iteration):
        self._entries.append((h, iteration))
        self._latest[h] = iteration
        self._evict()

    def contains(self, h):
        return h in self._latest

    def entry_iteration(self, h):
        """Iteration of the most recent entry for ``h`` (``None`` if not tabu)."""
        return self._latest.get(h)

    def resize(self, tenure):
        self.tenure = int(tenure)
        self._evict()

    def _evict(self):
        while len(self._entries) > self.tenure:
            old_h, old_it = self._entries.popleft()
            if self._latest.get(old_h) == old_it:
                del self._latest[old_h]


class FrequencyMemory:
    def __init__(self):
        self._counts = {}

    def __len__(self):
        return len(self._counts)

    def increment(self, h):
        count = self._counts.get(h, 0) + 1
        self._counts[h] = count
        return count

    def get(self, h):
        return self._counts.get(h, 0)

    def reset(self):
        self._counts.clear()


class ReactiveTenure:
    """Grows the tenure when a chosen hash repeats inside the cycle window,
    shrinks it after ``stable_iters`` choices without a repeat."""

    def __init__(self, tenure, increase, decrease, min_tenure, max_tenure, window, stable_iters):
        self.min_tenure = int(min_tenure)
        self.max_tenure = int(max_tenure)
        self.tenure = min(max(int(tenure), self.min_tenure), self.max_tenure)
        self.increase = int(increase)
        self.decrease = int(decrease)
        self.stable_iters = int(stable_iters)
        self._window = deque(maxlen=int(window))
        self._counts = {}
        self._since_repeat = 0

    def observe(self, h):
        repeat = h in self._counts
        if len(self._window) == self._window.maxlen:
            old = self._window[0]
            self._counts[old] -= 1
            if self._counts[old] == 0:
                del self._counts[old]
        self._window.append(h)
        self._counts[h] = self._counts.get(h, 0) + 1

        if repeat:
            self.tenure = min(self.tenure + self.increase, self.max_tenure)
            self._since_repeat = 0
        else:
            self._since_repeat += 1
            if self._since_repeat >= self.stable_iters:
                self.tenure = max(self.tenure - self.decrease, self.min_tenure)
                self._since_repeat = 0
        return self.tenure


def _penalised(cost, freq, weight, direction):
    if direction == MINIMIZE:
        return cost + weight * freq
    return cost - weight * freq


@reported("tabu search")
def run_tabu_search(problem, params=None, metrics=None, initial=None):
    params = TABU_DEFAULTS if params is None else params
    required = ["neighbor"]
    if initial is None:
        required.append("generate")
    problem.require(*required)

    direction = read_direction(params)
    iters = read_int(params, "iters", 5000)
    k = read_int(params, "neighbors_per_iter", 20, minimum=1)
    tenure = read_int(params, "tabu_tenure", 15, minimum=1)
    aspiration = bool(params.get("aspiration", True))
    diversification = bool(params.get("diversification", False))
    div_weight = read_float(params, "diversification_weight", 0.1, low=0.0)
    div_trigger = read_int(params, "diversification_trigger", 100)
    intensification = bool(params.get("intensification", False))
    int_trigger = read_int(params, "intensification_trigger", 50, minimum=1)
    reactive_on = bool(params.get("reactive_tenure", False))
    max_evals = read_int(params, "max_evaluations", 0)
    log_period = read_int(params, "log_period", 100, minimum=1)

    reactive = None
    if reactive_on:
        min_tenure = read_int(params, "min_tenure", 5, minimum=1)
        max_tenure = read_int(params, "max_tenure", 50, minimum=1)
        if min_tenure > max_tenure:
            raise ConfigurationError("min_tenure must not exceed max_tenure")
        reactive = ReactiveTenure(
            tenure,
            read_int(params, "reactive_increase", 5),
            read_int(params, "reactive_decrease", 1),
            min_tenure,
            max_tenure,
            read_int(params, "cycle_window", 50, minimum=1),
            read_int(params, "reactive_stable_iters", 100, minimum=1),
        )
        tenure = reactive.tenure

    current, best, cands = allocate(problem, None, None, k)
    history = np.empty(iters, dtype=np.float64)
    costs = np.empty(k, dtype=np.float64)
    scores = np.empty(k, dtype=np.float64)
    hashes = [0] * k

    started = time.perf_counter()
    rng = make_rng(params.get("seed", 42))
    ctx = problem.context
    hash_fn = problem.hash or hash_bytes
    evaluator = Evaluator(problem, max_evals)

    if initial is not None:
        np.copyto(current, initial)
    else:
        problem.generate(current, rng, ctx)
    curr_cost = evaluator(current)
    np.copyto(best, current)
    best_cost = curr_cost

    tabu = TabuList(tenure)
    use_freq = diversification or intensification
    freq = FrequencyMemory()
    h0 = hash_fn(current)
    tabu.push(h0, 0)
    if use_freq:
        freq.increment(h0)

    logger.info("tabu search: %d iterations, %d candidates, tenure %d", iters, k, tenure)

    no_improve = 0
    done = 0
    for it in range(1, iters + 1):
        if evaluator.exhausted(k):
            break

        for c in range(k):
            problem.neighbor(current, cands[c], rng, ctx)
            costs[c] = evaluator(cands[c])
            hashes[c] = hash_fn(cands[c])

        penalise = diversification and no_improve >= div_trigger
        for c in range(k):
            if penalise:
                scores[c] = _penalised(costs[c], freq.get(hashes[c]), div_weight, direction)
            else:
                scores[c] = costs[c]

        chosen = -1
        for c in range(k):
            aspirates = aspiration and is_better(costs[c], best_cost, direction)
            if tabu.contains(hashes[c]) and not aspirates:
                continue
            if chosen < 0 or is_better(scores[c], scores[chosen], direction):
                chosen = c
            elif (
                intensification
                and scores[c] == scores[chosen]
                and freq.get(hashes[c]) < freq.get(hashes[chosen])
            ):
                chosen = c

        if chosen < 0:
            # every candidate is tabu: take the one whose entry is oldest
            chosen = min(range(k), key=lambda c: tabu.entry_iteration(hashes[c]))
            logger.debug("iteration %d: all %d candidates tabu, oldest entry taken", it, k)

        # best-ever is tracked over every evaluated candidate
        improved = False
        for c in range(k):
            if is_better(costs[c], best_cost, direction):
                best_cost = costs[c]
                np.copyto(best, cands[c])
                improved = True

        np.copyto(current, cands[chosen])
        curr_cost = costs[chosen]
        h = hashes[chosen]

        if reactive is not None:
            new_tenure = reactive.observe(h)
            if new_tenure != tabu.tenure:
                logger.debug("iteration %d: tenure %d -> %d", it, tabu.tenure, new_tenure)
                tabu.resize(new_tenure)
        tabu.push(h, it)
        if use_freq:
            freq.increment(h)

        status = "BEST" if improved else "MOVE"
        no_improve = 0 if improved else no_improve + 1
        if intensification and no_improve > 0 and no_improve % int_trigger == 0:
            np.copyto(current, best)
            curr_cost = best_cost
            status = "RESTART"
            logger.debug("iteration %d: intensification restart from best %.6g", it, best_cost)

        history[it - 1] = best_cost
        done = it

        if metrics is not None and ((it % log_period) == 0 or it == 1):
            metrics.append(
                it,
                curr_cost,
                best_cost,
                0.0,
                status=status,
                tenure=tabu.tenure,
                tabu_len=len(tabu),
            )

    stats = {
        "tenure": tabu.tenure,
        "tabu_len": len(tabu),
        "distinct_visited": len(freq) if use_freq else None,
    }
    return finish(best, best_cost, done, evaluator, history, started, stats)


__all__ = [
    "FrequencyMemory",
    "ReactiveTenure",
    "TabuList",
    "run_tabu_search",
]
