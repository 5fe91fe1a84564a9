# Per-algorithm parameter defaults (copy and override freely)
from .enums import (
    ACCEPT_BETTER,
    ACO_ANT_SYSTEM,
    DE_RAND_1,
    HC_STEEPEST,
    MA_LAMARCKIAN,
    MINIMIZE,
    PSO_INERTIA_LINEAR_DECREASING,
    SA_COOLING_GEOMETRIC,
    SELECT_TOURNAMENT,
    VNS_BASIC,
)

COMMON_DEFAULTS = {
    "direction": MINIMIZE,
    "seed": 42,
    "log_period": 100,
    "max_evaluations": 0,       # 0 = unbounded, iterations are the only budget
}

TABU_DEFAULTS = {
    **COMMON_DEFAULTS,
    "iters": 5000,
    "neighbors_per_iter": 20,
    "tabu_tenure": 15,
    "aspiration": True,
    "diversification": False,
    "diversification_weight": 0.1,
    "diversification_trigger": 100,  # non-improving iterations before frequency penalty
    "intensification": False,
    "intensification_trigger": 50,   # non-improving iterations before restarting from best
    "reactive_tenure": False,
    "reactive_increase": 5,
    "reactive_decrease": 1,
    "min_tenure": 5,
    "max_tenure": 50,
    "cycle_window": 50,              # recent chosen hashes checked for repeats
    "reactive_stable_iters": 100,    # iterations without a repeat before shrinking tenure
}

LNS_DEFAULTS = {
    **COMMON_DEFAULTS,
    "iters": 1000,
    "destroy_degree": 0.3,
    "acceptance": ACCEPT_BETTER,
    "sa_temp0": 100.0,
    "sa_cooling": 0.99,
    "restart_threshold": 50,
    "reward_best": 10.0,
    "reward_better": 5.0,
    "reward_accepted": 1.0,
    "weight_update_interval": 50,
    "weight_decay": 0.8,
}

ILS_DEFAULTS = {
    **COMMON_DEFAULTS,
    "iters": 1000,
    "ls_iters": 200,
    "ls_neighbors": 20,
    "perturbation_strength": 1,
    "acceptance": ACCEPT_BETTER,
    "sa_temp0": 10.0,
    "sa_cooling": 0.95,
    "restart_threshold": 50,
}

VNS_DEFAULTS = {
    **COMMON_DEFAULTS,
    "iters": 1000,
    "k_max": 5,
    "ls_iters": 200,
    "ls_neighbors": 20,
    "variant": VNS_BASIC,
    "vnd_neighborhoods": 3,
}

GRASP_DEFAULTS = {
    **COMMON_DEFAULTS,
    "iters": 500,
    "alpha": 0.3,
    "ls_iters": 100,
    "ls_neighbors": 20,
    "reactive": False,
    "reactive_num_alphas": 5,
    "reactive_block_size": 50,
}

MEMETIC_DEFAULTS = {
    **COMMON_DEFAULTS,
    "iters": 200,                # generations
    "population_size": 50,
    "crossover_rate": 0.8,
    "mutation_rate": 0.05,
    "elitism_count": 2,
    "selection": SELECT_TOURNAMENT,
    "tournament_size": 3,
    "learning": MA_LAMARCKIAN,
    "ls_iters": 50,
    "ls_neighbors": 10,
    "ls_probability": 1.0,
    "ls_on_initial": True,
}

PSO_DEFAULTS = {
    **COMMON_DEFAULTS,
    "iters": 500,
    "num_particles": 30,
    "w": 0.729,                  # constant inertia, or w_max for the linear schedule
    "w_min": 0.4,
    "c1": 1.49445,
    "c2": 1.49445,
    "v_max_ratio": 0.1,          # velocity clamp as a fraction of the domain range
    "inertia": PSO_INERTIA_LINEAR_DECREASING,
    "lower_bound": -5.12,
    "upper_bound": 5.12,
}

ACO_DEFAULTS = {
    **COMMON_DEFAULTS,
    "iters": 500,
    "n_ants": 20,
    "alpha": 1.0,
    "beta": 3.0,
    "rho": 0.1,
    "q": 1.0,
    "tau0": 0.1,
    "variant": ACO_ANT_SYSTEM,
    "elitist_weight": 2.0,
    "tau_min": 0.001,
    "tau_max": 10.0,
    "mmas_global_period": 5,     # MAX-MIN: best-ever deposits every N iterations
}

SA_DEFAULTS = {
    **COMMON_DEFAULTS,
    "iters": 10000,             # neighbour evaluations after the start
    "sa_temp0": 100.0,
    "final_temp": 0.001,
    "sa_cooling": 0.95,          # geometric factor alpha
    "cooling_schedule": SA_COOLING_GEOMETRIC,
    "markov_chain_length": 50,   # moves per temperature level
    "reheating": False,
    "reheat_threshold": 0.01,    # chain acceptance rate that triggers a reheat
    "reheat_factor": 2.0,
    "auto_calibrate": False,     # pick T0 so the mean uphill move is accepted at target_acceptance
    "calibration_samples": 100,
    "target_acceptance": 0.8,
    "adaptive_target_low": 0.2,
    "adaptive_target_high": 0.5,
    "adaptive_factor": 1.05,
}

GA_DEFAULTS = {
    **COMMON_DEFAULTS,
    "iters": 500,                # generations
    "population_size": 50,
    "crossover_rate": 0.8,
    "mutation_rate": 0.05,
    "elitism_count": 2,
    "selection": SELECT_TOURNAMENT,
    "tournament_size": 3,
    "adaptive_rates": False,     # mutation rate follows population diversity
    "adaptive_min_mutation": 0.01,
    "adaptive_max_mutation": 0.3,
}

DE_DEFAULTS = {
    **COMMON_DEFAULTS,
    "iters": 1000,               # generations
    "population_size": 50,
    "scale_factor": 0.8,         # F
    "crossover_rate": 0.9,       # CR
    "strategy": DE_RAND_1,
    "lower_bound": -5.12,
    "upper_bound": 5.12,
}

HC_DEFAULTS = {
    **COMMON_DEFAULTS,
    "iters": 1000,
    "neighbors_per_iter": 20,
    "variant": HC_STEEPEST,
    "num_restarts": 10,
    "stochastic_temp": 1.0,
}

ALGORITHM_DEFAULTS = {
    "tabu": TABU_DEFAULTS,
    "lns": LNS_DEFAULTS,
    "alns": LNS_DEFAULTS,
    "ils": ILS_DEFAULTS,
    "vns": VNS_DEFAULTS,
    "grasp": GRASP_DEFAULTS,
    "memetic": MEMETIC_DEFAULTS,
    "pso": PSO_DEFAULTS,
    "aco": ACO_DEFAULTS,
    "hill_climbing": HC_DEFAULTS,
    "simulated_annealing": SA_DEFAULTS,
    "genetic": GA_DEFAULTS,
    "differential_evolution": DE_DEFAULTS,
}
