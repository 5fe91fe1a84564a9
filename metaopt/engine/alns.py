import logging
import time

import numpy as np

from ..config.config import LNS_DEFAULTS
from ..config.enums import (
    DECISION_ACCEPT,
    DECISION_RESTART,
    STATUS_ACCEPT,
    STATUS_BEST,
    STATUS_IMPROVE,
    STATUS_REJECT,
    STATUS_RESTART,
)
from .acceptance import decide, init_acceptance
from .common import is_better, make_rng, read_direction, read_float, read_int
from .errors import ConfigurationError
from .problem import Evaluator, allocate
from .result import finish, reported

logger = logging.getLogger(__name__)

WEIGHT_FLOOR = 0.01


def _normalise_weights(weights):
    total = float(weights.sum())
    if total <= 1e-12:
        logger.debug("operator weights sum to %.3g, selecting uniformly", total)
        return np.full(len(weights), 1.0 / len(weights))
    return weights / total


def _operator_items(operators):
    if operators is None:
        return []
    if isinstance(operators, dict):
        return list(operators.items())
    items = []
    for op in operators:
        if isinstance(op, tuple):
            items.append(op)
        else:
            items.append((getattr(op, "__name__", repr(op)), op))
    return items


class OperatorPool:
    """Destroy or repair operators with roulette selection and learned weights."""

    def __init__(self, operators, kind="operator"):
        items = _operator_items(operators)
        if not items:
            raise ConfigurationError(f"empty {kind} operator pool")
        for name, fn in items:
            if not callable(fn):
                raise ConfigurationError(f"{kind} operator '{name}' is not callable")
        self.kind = kind
        self.names = [name for name, _ in items]
        self.operators = [fn for _, fn in items]
        n = len(items)
        self.weights = np.ones(n, dtype=np.float64)
        self.scores = np.zeros(n, dtype=np.float64)
        self.usage = np.zeros(n, dtype=np.int64)
        self.total_usage = np.zeros(n, dtype=np.int64)

    def __len__(self):
        return len(self.operators)

    def select(self, rng):
        idx = int(rng.choice(len(self.operators), p=_normalise_weights(self.weights)))
        self.usage[idx] += 1
        self.total_usage[idx] += 1
        return idx

    def reward(self, idx, value):
        self.scores[idx] += value

    def update(self, decay):
        """Blend each used operator's average score into its weight, then reset the window."""
        used = self.usage > 0
        if used.any():
            avg = self.scores[used] / self.usage[used]
            blended = decay * self.weights[used] + (1.0 - decay) * avg
            self.weights[used] = np.maximum(blended, WEIGHT_FLOOR)
        self.scores[:] = 0.0
        self.usage[:] = 0
        logger.debug("%s weights: %s", self.kind, np.round(self.weights, 4).tolist())


def _run(problem, destroy_pool, repair_pool, params, metrics, initial, adaptive):
    direction = read_direction(params)
    iters = read_int(params, "iters", 1000)
    degree = read_float(params, "destroy_degree", 0.3, low=0.0, high=1.0)
    reward_best = read_float(params, "reward_best", 10.0)
    reward_better = read_float(params, "reward_better", 5.0)
    reward_accepted = read_float(params, "reward_accepted", 1.0)
    interval = read_int(params, "weight_update_interval", 50, minimum=1)
    decay = read_float(params, "weight_decay", 0.8, low=0.0, high=1.0)
    max_evals = read_int(params, "max_evaluations", 0)
    log_period = read_int(params, "log_period", 100, minimum=1)
    acceptance = init_acceptance(params)

    curr, best, partial, cand = allocate(problem, None, None, None, None)
    history = np.empty(iters, dtype=np.float64)

    started = time.perf_counter()
    rng = make_rng(params.get("seed", 42))
    ctx = problem.context
    evaluator = Evaluator(problem, max_evals)

    if initial is not None:
        np.copyto(curr, initial)
    else:
        problem.generate(curr, rng, ctx)
    curr_cost = evaluator(curr)
    np.copyto(best, curr)
    best_cost = curr_cost

    logger.info(
        "%s: %d iterations, %d destroy x %d repair operators",
        "alns" if adaptive else "lns",
        iters,
        len(destroy_pool),
        len(repair_pool),
    )

    done = 0
    for it in range(1, iters + 1):
        if evaluator.exhausted():
            break

        d_idx = destroy_pool.select(rng)
        r_idx = repair_pool.select(rng)
        destroy_pool.operators[d_idx](curr, partial, degree, rng, ctx)
        repair_pool.operators[r_idx](partial, cand, rng, ctx)
        new_cost = evaluator(cand)

        decision = decide(acceptance, curr_cost, new_cost, rng, direction)
        if is_better(new_cost, best_cost, direction):
            reward, status = reward_best, STATUS_BEST
        elif is_better(new_cost, curr_cost, direction):
            reward, status = reward_better, STATUS_IMPROVE
        elif decision == DECISION_ACCEPT:
            reward, status = reward_accepted, STATUS_ACCEPT
        else:
            reward, status = 0.0, STATUS_REJECT

        if adaptive:
            destroy_pool.reward(d_idx, reward)
            repair_pool.reward(r_idx, reward)

        if status == STATUS_BEST:
            np.copyto(best, cand)
            best_cost = new_cost

        if decision == DECISION_ACCEPT:
            np.copyto(curr, cand)
            curr_cost = new_cost
        elif decision == DECISION_RESTART:
            np.copyto(curr, best)
            curr_cost = best_cost
            status = STATUS_RESTART

        if adaptive and (it % interval) == 0:
            destroy_pool.update(decay)
            repair_pool.update(decay)

        history[it - 1] = best_cost
        done = it

        # logging
        if metrics is not None and ((it % log_period) == 0 or it == 1):
            metrics.append(
                it,
                curr_cost,
                best_cost,
                acceptance.temperature,
                d_op=destroy_pool.names[d_idx],
                r_op=repair_pool.names[r_idx],
                status=status,
                destroy_weights=destroy_pool.weights,
                repair_weights=repair_pool.weights,
            )

    stats = {
        "destroy_names": list(destroy_pool.names),
        "repair_names": list(repair_pool.names),
        "destroy_weights": destroy_pool.weights.copy(),
        "repair_weights": repair_pool.weights.copy(),
        "destroy_usage": destroy_pool.total_usage.copy(),
        "repair_usage": repair_pool.total_usage.copy(),
        "destroy_scores": destroy_pool.scores.copy(),
        "repair_scores": repair_pool.scores.copy(),
        "final_temperature": acceptance.temperature,
    }
    return finish(best, best_cost, done, evaluator, history, started, stats)


@reported("alns")
def run_alns(problem, destroy_ops, repair_ops, params=None, metrics=None, initial=None):
    """Adaptive LNS over the given operator pools (dicts name -> fn, or sequences)."""
    params = LNS_DEFAULTS if params is None else params
    if initial is None:
        problem.require("generate")
    else:
        problem.require()
    destroy_pool = OperatorPool(destroy_ops, "destroy")
    repair_pool = OperatorPool(repair_ops, "repair")
    return _run(problem, destroy_pool, repair_pool, params, metrics, initial, adaptive=True)


@reported("lns")
def run_lns(problem, params=None, metrics=None, destroy=None, repair=None, initial=None):
    """Plain LNS with one destroy and one repair operator (the problem's by default)."""
    params = LNS_DEFAULTS if params is None else params
    if initial is None:
        problem.require("generate")
    else:
        problem.require()
    destroy = destroy or problem.destroy
    repair = repair or problem.repair
    destroy_pool = OperatorPool([destroy] if destroy is not None else [], "destroy")
    repair_pool = OperatorPool([repair] if repair is not None else [], "repair")
    return _run(problem, destroy_pool, repair_pool, params, metrics, initial, adaptive=False)


__all__ = ["OperatorPool", "run_alns", "run_lns"]
