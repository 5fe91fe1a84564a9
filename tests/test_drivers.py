import dataclasses

import numpy as np
import pytest

from metaopt.config.config import (
    ACO_DEFAULTS,
    DE_DEFAULTS,
    GA_DEFAULTS,
    GRASP_DEFAULTS,
    HC_DEFAULTS,
    ILS_DEFAULTS,
    LNS_DEFAULTS,
    MEMETIC_DEFAULTS,
    PSO_DEFAULTS,
    SA_DEFAULTS,
    TABU_DEFAULTS,
    VNS_DEFAULTS,
)
from metaopt.config.enums import (
    MAXIMIZE,
    MINIMIZE,
    PSO_INERTIA_CONSTANT,
    PSO_INERTIA_LINEAR_DECREASING,
)
from metaopt.data.continuous import continuous_problem, make_instance
from metaopt.data.tsp import (
    example_10,
    heuristic_inverse_distance,
    is_valid_tour,
    tour_cost,
    tsp_problem,
)
from metaopt.engine.aco import run_aco
from metaopt.engine.alns import run_alns, run_lns
from metaopt.engine.differential_evolution import run_differential_evolution
from metaopt.engine.genetic import run_genetic
from metaopt.engine.grasp import ReactiveAlpha, run_grasp
from metaopt.engine.ils import run_ils
from metaopt.engine.memetic import (
    rank_order,
    roulette_select,
    run_memetic,
    tournament_select,
)
from metaopt.engine.pso import constriction_factor, inertia_weight, run_pso
from metaopt.engine.simulated_annealing import run_simulated_annealing
from metaopt.engine.tabu import run_tabu_search
from metaopt.engine.vns import run_vns
from metaopt.local_search.hill_climbing import run_hill_climbing
from metaopt.logging.metrics import Metrics
from metaopt.operators.destroy import random_removal, worst_removal
from metaopt.operators.repair import greedy_insertion


def _with(defaults, **overrides):
    params = dict(defaults)
    params.update(overrides)
    return params


def _sphere(dim=5):
    return continuous_problem(make_instance("sphere", dim, sigma=0.1))


def _monotone(conv, direction=MINIMIZE):
    steps = np.diff(conv)
    return np.all(steps <= 0) if direction == MINIMIZE else np.all(steps >= 0)


# iterated local search

def test_ils_improves_tour_and_tracks_best():
    inst = example_10()
    metrics = Metrics()
    params = _with(ILS_DEFAULTS, iters=40, ls_iters=30, ls_neighbors=10, log_period=1)

    result = run_ils(tsp_problem(inst), params, metrics)

    assert result.ok
    assert is_valid_tour(result.best, inst.n)
    assert result.best_cost == pytest.approx(tour_cost(result.best, inst))
    assert len(result.convergence) == 40
    assert _monotone(result.convergence)
    assert len(metrics.rows) == 40


def test_ils_without_perturb_chains_neighbour_moves():
    problem = dataclasses.replace(tsp_problem(example_10()), perturb=None)
    result = run_ils(problem, _with(ILS_DEFAULTS, iters=10, perturbation_strength=3))
    assert result.ok
    assert is_valid_tour(result.best, 10)


def test_ils_respects_evaluation_budget():
    params = _with(ILS_DEFAULTS, iters=1000, ls_iters=5, ls_neighbors=4, max_evaluations=200)
    result = run_ils(tsp_problem(example_10()), params)
    assert result.ok
    assert result.num_iterations < 1000
    assert result.num_evaluations == 200


def test_ils_sa_acceptance():
    params = _with(ILS_DEFAULTS, iters=30, acceptance="sa_like", ls_iters=10, ls_neighbors=5)
    result = run_ils(tsp_problem(example_10()), params)
    assert result.ok


# variable neighbourhood search

@pytest.mark.parametrize("variant", ["basic", "reduced", "general"])
def test_vns_variants_descend(variant):
    problem = _sphere()
    params = _with(VNS_DEFAULTS, iters=20, k_max=3, ls_iters=20, ls_neighbors=5, variant=variant)

    result = run_vns(problem, params)

    assert result.ok
    assert len(result.convergence) == 20
    assert _monotone(result.convergence)
    assert np.all(np.abs(result.best) <= 5.12)


def test_reduced_vns_does_not_need_neighbor():
    problem = dataclasses.replace(_sphere(), neighbor=None)
    assert run_vns(problem, _with(VNS_DEFAULTS, iters=5, variant="reduced")).ok
    assert not run_vns(problem, _with(VNS_DEFAULTS, iters=5, variant="basic")).ok


# GRASP

def test_reactive_alpha_candidates_and_probabilities():
    reactive = ReactiveAlpha(4)
    np.testing.assert_allclose(reactive.alphas, [0.2, 0.4, 0.6, 0.8])
    np.testing.assert_allclose(reactive.probs, 0.25)

    reactive.record(0, 10.0)
    reactive.record(1, 20.0)
    reactive.recompute(10.0, MINIMIZE)

    assert reactive.probs.sum() == pytest.approx(1.0)
    # alpha 0 matched the best, alphas 2 and 3 were never tried
    assert reactive.probs[0] == pytest.approx(reactive.probs[2])
    assert reactive.probs[1] < reactive.probs[0]


def test_grasp_builds_valid_tours():
    inst = example_10()
    params = _with(GRASP_DEFAULTS, iters=30, ls_iters=20, ls_neighbors=10)
    result = run_grasp(tsp_problem(inst), params)
    assert result.ok
    assert is_valid_tour(result.best, inst.n)
    assert _monotone(result.convergence)


def test_reactive_grasp_reports_alpha_distribution():
    params = _with(GRASP_DEFAULTS, iters=40, reactive=True, reactive_num_alphas=5,
                   reactive_block_size=10, ls_iters=5, ls_neighbors=5)
    result = run_grasp(tsp_problem(example_10()), params)
    assert result.ok
    assert len(result.stats["alphas"]) == 5
    assert result.stats["alpha_probabilities"].sum() == pytest.approx(1.0)


def test_grasp_needs_at_least_one_iteration():
    result = run_grasp(tsp_problem(example_10()), _with(GRASP_DEFAULTS, iters=0))
    assert not result.ok


# memetic

def test_selection_helpers():
    fitness = np.array([5.0, 1.0, 3.0])
    np.testing.assert_array_equal(rank_order(fitness, MINIMIZE), [1, 2, 0])
    np.testing.assert_array_equal(rank_order(fitness, MAXIMIZE), [0, 2, 1])

    rng = np.random.default_rng(0)
    # ten draws from three individuals almost always include the best
    picks = [tournament_select(fitness, 10, rng, MINIMIZE) for _ in range(20)]
    assert picks.count(1) >= 15

    counts = np.bincount([roulette_select(fitness, rng, MINIMIZE) for _ in range(2000)], minlength=3)
    assert counts[1] > counts[0]


@pytest.mark.parametrize("selection", ["tournament", "roulette", "rank"])
@pytest.mark.parametrize("learning", ["lamarckian", "baldwinian"])
def test_memetic_runs(selection, learning):
    inst = example_10()
    params = _with(MEMETIC_DEFAULTS, iters=10, population_size=12, ls_iters=5, ls_neighbors=5,
                   selection=selection, learning=learning)

    result = run_memetic(tsp_problem(inst), params)

    assert result.ok
    assert is_valid_tour(result.best, inst.n)
    assert result.best_cost == pytest.approx(tour_cost(result.best, inst))
    assert _monotone(result.convergence)


def test_memetic_rejects_elitism_filling_population():
    params = _with(MEMETIC_DEFAULTS, iters=5, population_size=4, elitism_count=4)
    result = run_memetic(tsp_problem(example_10()), params)
    assert not result.ok
    assert "elitism" in result.error


# particle swarm

def test_constriction_factor():
    assert constriction_factor(1.49445, 1.49445) == 1.0
    assert constriction_factor(2.05, 2.05) == pytest.approx(0.7298, abs=1e-4)


def test_linear_inertia_schedule():
    assert inertia_weight(PSO_INERTIA_LINEAR_DECREASING, 0, 100, 0.9, 0.4, 1.0) == 0.9
    assert inertia_weight(PSO_INERTIA_LINEAR_DECREASING, 50, 100, 0.9, 0.4, 1.0) == pytest.approx(0.65)
    assert inertia_weight(PSO_INERTIA_CONSTANT, 50, 100, 0.9, 0.4, 1.0) == 0.9


@pytest.mark.parametrize("inertia", ["constant", "linear_decreasing", "constriction"])
def test_pso_minimises_sphere(inertia):
    params = _with(PSO_DEFAULTS, iters=200, inertia=inertia)
    result = run_pso(_sphere(), params)
    assert result.ok
    assert result.num_evaluations == 30 + 200 * 30
    assert np.all(result.best >= -5.12) and np.all(result.best <= 5.12)
    assert _monotone(result.convergence)
    assert result.best_cost < result.convergence[0] or result.best_cost < 1e-6


def test_pso_converges_on_sphere():
    result = run_pso(_sphere(), _with(PSO_DEFAULTS, iters=300))
    assert result.best_cost < 1.0


def test_pso_rejects_integer_solutions():
    result = run_pso(tsp_problem(example_10()), PSO_DEFAULTS)
    assert not result.ok


# ant colony

@pytest.mark.parametrize("variant", ["ant_system", "elitist", "max_min"])
def test_aco_variants(variant):
    inst = example_10()
    params = _with(ACO_DEFAULTS, iters=60, n_ants=10, variant=variant)

    result = run_aco(tsp_problem(inst), heuristic_inverse_distance(inst), params)

    assert result.ok
    assert is_valid_tour(result.best, inst.n)
    assert result.num_evaluations == 60 * 10
    assert result.best_cost == pytest.approx(tour_cost(result.best, inst))
    assert result.best_cost <= 1.1 * inst.known_optimum
    assert _monotone(result.convergence)


def test_aco_checks_heuristic_shape():
    result = run_aco(tsp_problem(example_10()), np.ones((3, 3)), ACO_DEFAULTS)
    assert not result.ok
    assert result.num_evaluations == 0


# shared behaviour

def _runners(**common):
    inst = example_10()
    eta = heuristic_inverse_distance(inst)

    def tsp():
        return tsp_problem(inst)

    return {
        "tabu": lambda: run_tabu_search(tsp(), _with(TABU_DEFAULTS, iters=10, **common)),
        "alns": lambda: run_alns(tsp(), {"random": random_removal, "worst": worst_removal},
                                 {"greedy": greedy_insertion}, _with(LNS_DEFAULTS, iters=50, **common)),
        "lns": lambda: run_lns(tsp(), _with(LNS_DEFAULTS, iters=50, **common)),
        "ils": lambda: run_ils(tsp(), _with(ILS_DEFAULTS, iters=10, ls_iters=5, **common)),
        "vns": lambda: run_vns(tsp(), _with(VNS_DEFAULTS, iters=5, ls_iters=5, **common)),
        "grasp": lambda: run_grasp(tsp(), _with(GRASP_DEFAULTS, iters=10, ls_iters=5, **common)),
        "memetic": lambda: run_memetic(tsp(), _with(MEMETIC_DEFAULTS, iters=5, population_size=8,
                                                    ls_iters=3, **common)),
        "hill_climbing": lambda: run_hill_climbing(tsp(), _with(HC_DEFAULTS, iters=20,
                                                                variant="random_restart",
                                                                num_restarts=3, **common)),
        "simulated_annealing": lambda: run_simulated_annealing(
            tsp(), _with(SA_DEFAULTS, iters=200, **common)),
        "genetic": lambda: run_genetic(tsp(), _with(GA_DEFAULTS, iters=10, population_size=10,
                                                    **common)),
        "pso": lambda: run_pso(_sphere(), _with(PSO_DEFAULTS, iters=20, **common)),
        "differential_evolution": lambda: run_differential_evolution(
            _sphere(), _with(DE_DEFAULTS, iters=20, population_size=10, **common)),
        "aco": lambda: run_aco(tsp(), eta, _with(ACO_DEFAULTS, iters=10, n_ants=5, **common)),
    }


DRIVERS = sorted(_runners())


@pytest.mark.parametrize("name", DRIVERS)
def test_same_seed_reproduces_run(name):
    run = _runners()[name]
    a, b = run(), run()
    np.testing.assert_array_equal(a.best, b.best)
    np.testing.assert_array_equal(a.convergence, b.convergence)
    assert a.num_evaluations == b.num_evaluations


@pytest.mark.parametrize("name", DRIVERS)
def test_max_evaluations_caps_every_driver(name):
    unbounded = _runners()[name]()
    assert unbounded.num_evaluations > 30

    result = _runners(max_evaluations=30)[name]()

    assert result.ok
    assert result.num_evaluations <= 30
    assert len(result.convergence) == result.num_iterations
    assert result.num_iterations <= unbounded.num_iterations


def test_population_drivers_need_budget_for_the_first_population():
    params = _with(PSO_DEFAULTS, iters=5, max_evaluations=10)
    assert "initial swarm" in run_pso(_sphere(), params).error
    inst = example_10()
    params = _with(ACO_DEFAULTS, iters=5, n_ants=20, max_evaluations=10)
    assert not run_aco(tsp_problem(inst), heuristic_inverse_distance(inst), params).ok


def test_aco_rejects_maximisation():
    inst = example_10()
    params = _with(ACO_DEFAULTS, iters=5, direction="maximize")
    result = run_aco(tsp_problem(inst), heuristic_inverse_distance(inst), params)
    assert not result.ok
    assert result.num_evaluations == 0


def test_maximisation_flips_comparisons():
    params = _with(PSO_DEFAULTS, iters=50, direction="maximize")
    result = run_pso(_sphere(3), params)
    assert result.ok
    assert _monotone(result.convergence, MAXIMIZE)
    # the sphere peaks in the corners of the box
    assert result.best_cost > 3 * 4.0 ** 2
