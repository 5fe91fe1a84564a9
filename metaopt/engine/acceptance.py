from dataclasses import dataclass

import numpy as np

from ..config.enums import (
    ACCEPT_ALWAYS,
    ACCEPT_BETTER,
    ACCEPT_RESTART,
    ACCEPT_SA_LIKE,
    DECISION_ACCEPT,
    DECISION_REJECT,
    DECISION_RESTART,
    MINIMIZE,
)
from .common import is_better, oriented_delta, read_enum, read_float, read_int


def accept_solution(curr_cost, new_cost, temp, rng, direction=MINIMIZE):
    if is_better(new_cost, curr_cost, direction):
        return True
    if temp <= 0.0:
        return False
    delta = oriented_delta(curr_cost, new_cost, direction)
    p = np.exp(-delta / temp)
    return rng.random() < p


@dataclass
class AcceptanceState:
    criterion: int = ACCEPT_BETTER
    temperature: float = 0.0
    cooling: float = 1.0
    restart_threshold: int = 0
    no_improve: int = 0


def init_acceptance(params, temp0=100.0, cooling=0.99):
    return AcceptanceState(
        criterion=read_enum(params, "acceptance", "acceptance", ACCEPT_BETTER),
        temperature=read_float(params, "sa_temp0", temp0),
        cooling=read_float(params, "sa_cooling", cooling, low=0.0),
        restart_threshold=read_int(params, "restart_threshold", 50),
    )


def decide(state, current_cost, new_cost, rng, direction=MINIMIZE):
    """Acceptance decision for one outer iteration.

    SA cools after every call whatever the outcome; RESTART reports
    ``DECISION_RESTART`` once ``restart_threshold`` consecutive candidates
    failed to improve on the incumbent, and the caller resets to the best.
    """
    if state.criterion == ACCEPT_ALWAYS:
        return DECISION_ACCEPT

    if state.criterion == ACCEPT_SA_LIKE:
        accepted = accept_solution(current_cost, new_cost, state.temperature, rng, direction)
        state.temperature *= state.cooling
        return DECISION_ACCEPT if accepted else DECISION_REJECT

    better = is_better(new_cost, current_cost, direction)
    if state.criterion == ACCEPT_RESTART:
        if better:
            state.no_improve = 0
            return DECISION_ACCEPT
        state.no_improve += 1
        if state.restart_threshold > 0 and state.no_improve >= state.restart_threshold:
            state.no_improve = 0
            return DECISION_RESTART
        return DECISION_REJECT

    return DECISION_ACCEPT if better else DECISION_REJECT
