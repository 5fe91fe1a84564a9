"""Direction predicate, RNG construction and parameter helpers shared by all drivers."""

from __future__ import annotations

import math

import numpy as np

from ..config.enums import MAXIMIZE, MINIMIZE, parse_enum
from .errors import ConfigurationError


def is_better(a, b, direction):
    """Strict comparison of two costs under the run's direction.

    Every driver compares costs through this function only, so flipping the
    direction flag is enough to turn a minimiser into a maximiser.
    """
    if direction == MAXIMIZE:
        return a > b
    return a < b


def worst_cost(direction):
    return -math.inf if direction == MAXIMIZE else math.inf


def oriented_delta(current_cost, new_cost, direction):
    """Deterioration of ``new_cost`` w.r.t. ``current_cost`` (<= 0 means no worse)."""
    if direction == MAXIMIZE:
        return current_cost - new_cost
    return new_cost - current_cost


def make_rng(seed):
    """Seeded generator threaded through every strategy call of one run."""
    return np.random.default_rng(None if seed is None else int(seed))


def read_enum(params, kind, key, default):
    try:
        return parse_enum(kind, params.get(key, default))
    except (TypeError, ValueError) as exc:
        raise ConfigurationError(str(exc)) from exc


def read_direction(params):
    return read_enum(params, "direction", "direction", MINIMIZE)


def read_int(params, key, default, minimum=0):
    try:
        value = int(params.get(key, default))
    except (TypeError, ValueError) as exc:
        raise ConfigurationError(f"{key} must be an integer") from exc
    if value < minimum:
        raise ConfigurationError(f"{key} must be >= {minimum}, got {value}")
    return value


def read_float(params, key, default, low=None, high=None):
    try:
        value = float(params.get(key, default))
    except (TypeError, ValueError) as exc:
        raise ConfigurationError(f"{key} must be a number") from exc
    if not math.isfinite(value):
        raise ConfigurationError(f"{key} must be finite")
    if low is not None and value < low:
        raise ConfigurationError(f"{key} must be >= {low}, got {value}")
    if high is not None and value > high:
        raise ConfigurationError(f"{key} must be <= {high}, got {value}")
    return value
