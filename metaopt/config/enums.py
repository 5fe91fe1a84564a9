# Indices / enums used across modules (keep ints for JIT friendliness)

# optimisation direction
MINIMIZE = 0
MAXIMIZE = 1

# acceptance criteria (ILS, LNS, ALNS)
ACCEPT_BETTER  = 0
ACCEPT_ALWAYS  = 1
ACCEPT_SA_LIKE = 2
ACCEPT_RESTART = 3

# acceptance decisions
DECISION_REJECT  = 0
DECISION_ACCEPT  = 1
DECISION_RESTART = 2 # reset incumbent to the best-known solution

# hill climbing variants
HC_STEEPEST          = 0
HC_FIRST_IMPROVEMENT = 1
HC_RANDOM_RESTART    = 2
HC_STOCHASTIC        = 3

# VNS variants
VNS_BASIC   = 0 # shake + local search
VNS_REDUCED = 1 # shake only
VNS_GENERAL = 2 # shake + VND

# memetic learning / parent selection
MA_LAMARCKIAN = 0 # genome overwritten by the local search result
MA_BALDWINIAN = 1 # only fitness updated
SELECT_TOURNAMENT = 0
SELECT_ROULETTE   = 1
SELECT_RANK       = 2

# PSO inertia schedules
PSO_INERTIA_CONSTANT          = 0
PSO_INERTIA_LINEAR_DECREASING = 1
PSO_INERTIA_CONSTRICTION      = 2

# ACO variants
ACO_ANT_SYSTEM = 0
ACO_ELITIST    = 1
ACO_MAX_MIN    = 2

# simulated annealing cooling schedules
SA_COOLING_GEOMETRIC   = 0 # T <- alpha * T
SA_COOLING_LINEAR      = 1 # T <- T - (T0 - T_min) / levels
SA_COOLING_LOGARITHMIC = 2 # T = T0 / ln(2 + step)
SA_COOLING_ADAPTIVE    = 3 # follows the acceptance rate of the last chain

# differential evolution mutation strategies (DE/base/differences)
DE_RAND_1            = 0
DE_BEST_1            = 1
DE_CURRENT_TO_BEST_1 = 2
DE_RAND_2            = 3
DE_BEST_2            = 4

# per-iteration status codes written to the metrics log
STATUS_BEST    = "BEST"
STATUS_IMPROVE = "IMPROVE"
STATUS_ACCEPT  = "ACCEPT"
STATUS_REJECT  = "REJECT"
STATUS_RESTART = "RESTART"


_NAMES = {
    "direction": {"minimize": MINIMIZE, "maximize": MAXIMIZE},
    "acceptance": {
        "better": ACCEPT_BETTER,
        "always": ACCEPT_ALWAYS,
        "sa_like": ACCEPT_SA_LIKE,
        "restart": ACCEPT_RESTART,
    },
    "hc_variant": {
        "steepest": HC_STEEPEST,
        "first_improvement": HC_FIRST_IMPROVEMENT,
        "random_restart": HC_RANDOM_RESTART,
        "stochastic": HC_STOCHASTIC,
    },
    "vns_variant": {"basic": VNS_BASIC, "reduced": VNS_REDUCED, "general": VNS_GENERAL},
    "learning": {"lamarckian": MA_LAMARCKIAN, "baldwinian": MA_BALDWINIAN},
    "selection": {
        "tournament": SELECT_TOURNAMENT,
        "roulette": SELECT_ROULETTE,
        "rank": SELECT_RANK,
    },
    "inertia": {
        "constant": PSO_INERTIA_CONSTANT,
        "linear_decreasing": PSO_INERTIA_LINEAR_DECREASING,
        "constriction": PSO_INERTIA_CONSTRICTION,
    },
    "aco_variant": {"ant_system": ACO_ANT_SYSTEM, "elitist": ACO_ELITIST, "max_min": ACO_MAX_MIN},
    "sa_cooling": {
        "geometric": SA_COOLING_GEOMETRIC,
        "linear": SA_COOLING_LINEAR,
        "logarithmic": SA_COOLING_LOGARITHMIC,
        "adaptive": SA_COOLING_ADAPTIVE,
    },
    "de_strategy": {
        "rand_1": DE_RAND_1,
        "best_1": DE_BEST_1,
        "current_to_best_1": DE_CURRENT_TO_BEST_1,
        "rand_2": DE_RAND_2,
        "best_2": DE_BEST_2,
    },
}


def parse_enum(kind, value):
    """Map a configuration string (or an int code) onto its constant."""
    table = _NAMES[kind]
    if isinstance(value, str):
        key = value.strip().lower().replace("-", "_")
        if key not in table:
            raise ValueError(f"unknown {kind} '{value}', expected one of {sorted(table)}")
        return table[key]
    code = int(value)
    if code not in table.values():
        raise ValueError(f"unknown {kind} code {value}")
    return code
