import itertools

import numpy as np
import pytest

from metaopt.config.config import TABU_DEFAULTS
from metaopt.data.tsp import example_5, example_10, is_valid_tour, tour_cost, tsp_problem
from metaopt.engine.problem import Problem
from metaopt.engine.tabu import FrequencyMemory, ReactiveTenure, TabuList, run_tabu_search
from metaopt.logging.metrics import Metrics


def _scripted_problem(values, hash_fn):
    """One-element integer problem whose neighbours cycle through ``values``."""
    seq = itertools.cycle(values)

    def neighbor(current, out, rng, ctx):
        out[0] = next(seq)

    return Problem(
        size=1,
        objective=lambda x, ctx: float(x[0]),
        dtype=np.int64,
        neighbor=neighbor,
        hash=hash_fn,
    )


def _parity(x):
    return int(x[0]) % 2


def _params(**overrides):
    params = dict(TABU_DEFAULTS)
    params.update(overrides)
    return params


def test_tabu_list_evicts_oldest_beyond_tenure():
    tabu = TabuList(3)
    for it, h in enumerate([11, 12, 13, 14]):
        tabu.push(h, it)
    assert len(tabu) == 3
    assert not tabu.contains(11)
    assert tabu.contains(14)


def test_tabu_list_keeps_latest_entry_of_repeated_hash():
    tabu = TabuList(3)
    tabu.push(5, 0)
    tabu.push(6, 1)
    tabu.push(5, 2)
    tabu.push(7, 3)
    # the first entry for 5 is gone but the newer one remains
    assert tabu.contains(5)
    assert tabu.entry_iteration(5) == 2
    tabu.resize(1)
    assert len(tabu) == 1
    assert not tabu.contains(5)
    assert tabu.contains(7)


def test_frequency_memory_counts():
    freq = FrequencyMemory()
    freq.increment(1)
    freq.increment(1)
    freq.increment(2)
    assert freq.get(1) == 2
    assert freq.get(3) == 0
    assert len(freq) == 2
    freq.reset()
    assert len(freq) == 0


def test_reactive_tenure_grows_on_repeat_and_shrinks_when_stable():
    reactive = ReactiveTenure(10, 5, 1, 5, 20, window=4, stable_iters=3)
    assert reactive.observe(1) == 10
    assert reactive.observe(1) == 15
    assert reactive.observe(1) == 20
    assert reactive.observe(1) == 20
    assert reactive.observe(2) == 20
    assert reactive.observe(3) == 20
    assert reactive.observe(4) == 19


def test_aspiration_overrides_tabu_status():
    initial = np.array([10], dtype=np.int64)
    params = _params(iters=1, neighbors_per_iter=2, tabu_tenure=5, log_period=1)

    metrics = Metrics()
    result = run_tabu_search(_scripted_problem([4, 7], _parity), params, metrics, initial=initial)
    assert metrics.rows[0][1] == 4.0
    assert result.best_cost == 4.0

    metrics = Metrics()
    params["aspiration"] = False
    result = run_tabu_search(_scripted_problem([4, 7], _parity), params, metrics, initial=initial)
    assert metrics.rows[0][1] == 7.0
    assert result.best_cost == 4.0


def test_all_tabu_falls_back_to_oldest_entry():
    initial = np.array([10], dtype=np.int64)
    params = _params(iters=3, neighbors_per_iter=2, aspiration=False, log_period=1)

    metrics = Metrics()
    result = run_tabu_search(_scripted_problem([3, 8], lambda x: 0), params, metrics, initial=initial)

    assert result.ok
    assert result.num_iterations == 3
    assert result.num_evaluations == 1 + 3 * 2
    assert metrics.column("curr_cost") == [3.0, 3.0, 3.0]


def test_evaluation_count_is_exact():
    params = _params(iters=50, neighbors_per_iter=7)
    result = run_tabu_search(tsp_problem(example_10()), params)
    assert result.num_iterations == 50
    assert result.num_evaluations == 1 + 50 * 7


def test_max_evaluations_stops_before_overrun():
    params = _params(iters=100, neighbors_per_iter=5, max_evaluations=1 + 3 * 5)
    result = run_tabu_search(tsp_problem(example_10()), params)
    assert result.num_iterations == 3
    assert result.num_evaluations == 16
    assert len(result.convergence) == 3


@pytest.mark.parametrize("reactive", [False, True])
def test_tabu_invariants_hold_every_iteration(reactive):
    params = _params(
        iters=150,
        neighbors_per_iter=8,
        tabu_tenure=6,
        log_period=1,
        reactive_tenure=reactive,
        min_tenure=3,
        max_tenure=12,
        cycle_window=10,
        reactive_stable_iters=5,
    )
    metrics = Metrics()
    result = run_tabu_search(tsp_problem(example_10()), params, metrics)

    assert result.ok
    assert len(metrics.rows) == 150
    for tenure, tabu_len in zip(metrics.column("tenure"), metrics.column("tabu_len")):
        assert tabu_len <= tenure
        if reactive:
            assert 3 <= tenure <= 12
        else:
            assert tenure == 6
    best = np.array(metrics.column("best_cost"))
    assert np.all(np.diff(best) <= 0)
    np.testing.assert_array_equal(result.convergence, best)


def test_diversification_and_intensification_run():
    params = _params(
        iters=120,
        neighbors_per_iter=6,
        diversification=True,
        diversification_trigger=5,
        intensification=True,
        intensification_trigger=10,
        log_period=1,
    )
    metrics = Metrics()
    result = run_tabu_search(tsp_problem(example_10()), params, metrics)

    assert result.ok
    assert result.stats["distinct_visited"] >= 1
    assert is_valid_tour(result.best, 10)


def _value(x):
    return int(x[0])


@pytest.mark.parametrize(
    "diversification, trigger, expected",
    [
        (False, 0, [20.0, 10.0]),
        (True, 0, [20.0, 25.0]),
        (True, 1, [20.0, 25.0]),
        (True, 2, [20.0, 10.0]),
    ],
)
def test_frequency_penalty_changes_chosen_candidate(diversification, trigger, expected):
    # iteration 2 offers 25 and the already visited start 10; a visit costs 20
    params = _params(iters=2, neighbors_per_iter=2, tabu_tenure=1, log_period=1,
                     diversification=diversification, diversification_trigger=trigger,
                     diversification_weight=20.0)
    metrics = Metrics()
    problem = _scripted_problem([20, 30, 25, 10], _value)

    run_tabu_search(problem, params, metrics, initial=np.array([10], dtype=np.int64))

    assert metrics.column("curr_cost") == expected


def test_intensification_restarts_from_best():
    params = _params(iters=6, neighbors_per_iter=2, tabu_tenure=1, log_period=1,
                     intensification=True, intensification_trigger=3)
    metrics = Metrics()
    problem = _scripted_problem([20, 30], _value)

    result = run_tabu_search(problem, params, metrics, initial=np.array([10], dtype=np.int64))

    assert metrics.column("status") == ["MOVE", "MOVE", "RESTART", "MOVE", "MOVE", "RESTART"]
    assert metrics.column("curr_cost") == [20.0, 30.0, 10.0, 30.0, 20.0, 10.0]
    for row in metrics.rows:
        if row[6] == "RESTART":
            assert row[1] == row[2] == result.best_cost


def test_same_seed_same_trajectory():
    params = _params(iters=80, neighbors_per_iter=6, seed=7)
    a = run_tabu_search(tsp_problem(example_10()), params)
    b = run_tabu_search(tsp_problem(example_10()), params)
    np.testing.assert_array_equal(a.best, b.best)
    np.testing.assert_array_equal(a.convergence, b.convergence)
    assert a.num_evaluations == b.num_evaluations


def test_pentagon_reaches_optimum():
    inst = example_5()
    params = _params(tabu_tenure=5, iters=200, neighbors_per_iter=10, seed=42)

    result = run_tabu_search(tsp_problem(inst), params)

    assert result.ok
    assert is_valid_tour(result.best, 5)
    assert result.best_cost >= inst.known_optimum - 1e-9
    assert result.best_cost <= 1.05 * inst.known_optimum
    assert result.best_cost == pytest.approx(tour_cost(result.best, inst))


def test_missing_neighbor_strategy_fails_without_evaluating():
    problem = tsp_problem(example_10())
    problem.neighbor = None

    result = run_tabu_search(problem, _params(iters=10))

    assert not result.ok
    assert result.best is None
    assert result.num_evaluations == 0
    assert result.convergence.size == 0
    assert "neighbor" in result.error


def test_zero_size_problem_is_rejected():
    problem = Problem(size=0, objective=lambda x, ctx: 0.0, neighbor=lambda *a: None,
                      generate=lambda *a: None)
    result = run_tabu_search(problem, _params(iters=5))
    assert not result.ok
