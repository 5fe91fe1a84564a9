import math

import numpy as np
import pytest

from metaopt.config.config import SA_DEFAULTS
from metaopt.config.enums import (
    SA_COOLING_ADAPTIVE,
    SA_COOLING_GEOMETRIC,
    SA_COOLING_LINEAR,
    SA_COOLING_LOGARITHMIC,
)
from metaopt.data.tsp import example_10, is_valid_tour, tour_cost, tsp_problem
from metaopt.engine.problem import Evaluator, Problem
from metaopt.engine.simulated_annealing import (
    calibrate_temperature,
    cool,
    run_simulated_annealing,
)
from metaopt.logging.metrics import Metrics


def _params(**overrides):
    params = dict(SA_DEFAULTS)
    params.update(overrides)
    return params


def _uphill(step):
    """One-element problem whose only neighbour is ``step`` worse."""

    def neighbor(current, out, rng, ctx):
        out[:] = current + step

    def generate(out, rng, ctx):
        out[:] = 0.0

    return Problem(size=1, objective=lambda x, ctx: float(x[0]), neighbor=neighbor, generate=generate)


def _cool(schedule, temp, step=1, rate=0.3):
    return cool(schedule, temp, 100.0, 1.0, 0.9, step, 10, rate, 0.2, 0.5, 1.05)


def test_cooling_schedules():
    assert _cool(SA_COOLING_GEOMETRIC, 10.0) == pytest.approx(9.0)
    assert _cool(SA_COOLING_LINEAR, 50.0) == pytest.approx(40.1)
    assert _cool(SA_COOLING_LINEAR, 5.0) == 1.0
    assert _cool(SA_COOLING_LOGARITHMIC, 7.0) == pytest.approx(100.0 / math.log(3.0))
    assert _cool(SA_COOLING_LOGARITHMIC, 7.0, step=8) == pytest.approx(100.0 / math.log(10.0))


@pytest.mark.parametrize("rate, expected", [(0.1, 10.5), (0.9, 10.0 / 1.05), (0.3, 10.0)])
def test_adaptive_cooling_follows_acceptance_rate(rate, expected):
    assert _cool(SA_COOLING_ADAPTIVE, 10.0, rate=rate) == pytest.approx(expected)


def test_annealing_tsp_run():
    inst = example_10()
    metrics = Metrics()
    result = run_simulated_annealing(tsp_problem(inst), _params(iters=2000, log_period=1), metrics)

    assert result.ok
    assert result.num_iterations == 2000
    assert result.num_evaluations == 2001
    assert is_valid_tour(result.best, inst.n)
    assert result.best_cost == pytest.approx(tour_cost(result.best, inst))
    assert np.all(np.diff(result.convergence) <= 0)
    assert len(metrics.rows) == 2000
    # the temperature is held for a whole chain
    temps = metrics.column("temp")
    assert temps[0] == temps[49] == 100.0
    assert temps[50] == pytest.approx(95.0)


@pytest.mark.parametrize("schedule", ["linear", "logarithmic", "adaptive"])
def test_annealing_schedules_run(schedule):
    result = run_simulated_annealing(
        tsp_problem(example_10()), _params(iters=500, cooling_schedule=schedule)
    )
    assert result.ok
    assert result.stats["initial_temperature"] == 100.0


def test_annealing_stops_at_final_temperature():
    params = _params(iters=1000, sa_temp0=1.0, final_temp=0.5, sa_cooling=0.5, markov_chain_length=10)
    result = run_simulated_annealing(tsp_problem(example_10()), params)
    assert result.ok
    assert result.num_iterations == 10
    assert result.stats["final_temperature"] == 0.5


def test_reheating_after_frozen_chains():
    params = _params(
        iters=40,
        sa_temp0=1.0,
        sa_cooling=0.4,
        markov_chain_length=10,
        reheating=True,
        reheat_factor=2.0,
    )
    result = run_simulated_annealing(_uphill(1000.0), params)

    assert result.ok
    # 1 -> 0.4 (cool), 0.4 -> 0.8 (reheat), 0.8 -> 0.32 (cool), 0.32 -> 0.64 (reheat)
    assert result.stats["reheats"] == 2
    assert result.stats["final_temperature"] == pytest.approx(0.64)
    assert result.best_cost == 0.0


def test_calibrated_temperature_accepts_mean_uphill_move_with_target():
    problem = _uphill(2.0)
    evaluator = Evaluator(problem)
    start = np.zeros(1)
    rng = np.random.default_rng(0)

    t0 = calibrate_temperature(problem, evaluator, start, 0.0, rng, 25, 0.8, np.zeros(1))

    assert t0 == pytest.approx(-2.0 / math.log(0.8))
    assert math.exp(-2.0 / t0) == pytest.approx(0.8)
    assert evaluator.count == 25


def test_calibration_without_cost_changes_keeps_configured_temperature():
    problem = _uphill(0.0)
    rng = np.random.default_rng(0)
    assert calibrate_temperature(problem, Evaluator(problem), np.zeros(1), 0.0, rng, 5, 0.8, np.zeros(1)) is None

    params = _params(iters=20, auto_calibrate=True, calibration_samples=5, sa_temp0=7.0)
    result = run_simulated_annealing(problem, params)
    assert result.ok
    assert result.stats["initial_temperature"] == 7.0
    assert result.num_evaluations == 1 + 5 + 20


def test_calibration_rejects_certain_acceptance():
    params = _params(iters=20, auto_calibrate=True, target_acceptance=1.0)
    result = run_simulated_annealing(tsp_problem(example_10()), params)
    assert not result.ok
    assert result.num_evaluations == 0


def test_annealing_maximises():
    result = run_simulated_annealing(tsp_problem(example_10()), _params(iters=1000, direction="maximize"))
    assert result.ok
    assert np.all(np.diff(result.convergence) >= 0)
    assert result.best_cost >= result.convergence[0]


def test_annealing_from_initial_needs_no_generator():
    problem = _uphill(1.0)
    problem.generate = None
    initial = np.array([5.0])

    result = run_simulated_annealing(problem, _params(iters=10), initial=initial)

    assert result.ok
    assert result.best_cost == 5.0
    assert not run_simulated_annealing(problem, _params(iters=10)).ok


def test_annealing_respects_evaluation_budget():
    result = run_simulated_annealing(tsp_problem(example_10()), _params(iters=1000, max_evaluations=100))
    assert result.ok
    assert result.num_evaluations == 100
    assert result.num_iterations == 99
