"""Continuous benchmark functions over a box, all with a known optimum of 0."""

from dataclasses import dataclass

import numpy as np
from numba import njit

from ..engine.hashing import hash_float_array
from ..engine.problem import Problem


@njit(cache=True)
def sphere(x):
    acc = 0.0
    for i in range(x.shape[0]):
        acc += x[i] * x[i]
    return acc


@njit(cache=True)
def rastrigin(x):
    acc = 10.0 * x.shape[0]
    for i in range(x.shape[0]):
        acc += x[i] * x[i] - 10.0 * np.cos(2.0 * np.pi * x[i])
    return acc


@njit(cache=True)
def rosenbrock(x):
    acc = 0.0
    for i in range(x.shape[0] - 1):
        a = x[i + 1] - x[i] * x[i]
        b = 1.0 - x[i]
        acc += 100.0 * a * a + b * b
    return acc


@njit(cache=True)
def ackley(x):
    d = x.shape[0]
    sq = 0.0
    cs = 0.0
    for i in range(d):
        sq += x[i] * x[i]
        cs += np.cos(2.0 * np.pi * x[i])
    return -20.0 * np.exp(-0.2 * np.sqrt(sq / d)) - np.exp(cs / d) + 20.0 + np.e


@njit(cache=True)
def schwefel(x):
    acc = 418.9829 * x.shape[0]
    for i in range(x.shape[0]):
        acc -= x[i] * np.sin(np.sqrt(abs(x[i])))
    return acc


# name -> (function, default lower, default upper)
FUNCTIONS = {
    "sphere": (sphere, -5.12, 5.12),
    "rastrigin": (rastrigin, -5.12, 5.12),
    "rosenbrock": (rosenbrock, -5.0, 10.0),
    "ackley": (ackley, -32.768, 32.768),
    "schwefel": (schwefel, -500.0, 500.0),
}


@dataclass
class ContinuousInstance:
    name: str
    function: object
    dim: int
    lower: float
    upper: float
    sigma: float = 0.1
    known_optimum: float = 0.0


def make_instance(name, dim, lower=None, upper=None, sigma=None):
    if name not in FUNCTIONS:
        raise ValueError(f"unknown benchmark function {name!r}; choose from {sorted(FUNCTIONS)}")
    if int(dim) <= 0:
        raise ValueError("dim must be positive")
    fn, lo, hi = FUNCTIONS[name]
    lo = lo if lower is None else float(lower)
    hi = hi if upper is None else float(upper)
    if hi <= lo:
        raise ValueError("upper bound must exceed lower bound")
    if sigma is None:
        sigma = 0.01 * (hi - lo)
    return ContinuousInstance(name, fn, int(dim), lo, hi, float(sigma))


def evaluate(x, inst):
    return float(inst.function(x))


def _clamp(x, inst):
    np.clip(x, inst.lower, inst.upper, out=x)


def neighbor_gaussian(current, out, rng, inst):
    """Gaussian step of scale ``sigma`` on every coordinate, clamped to the box."""
    out[:] = current + rng.normal(0.0, inst.sigma, size=current.shape[0])
    _clamp(out, inst)


def generate_random(out, rng, inst):
    out[:] = rng.uniform(inst.lower, inst.upper, size=out.shape[0])


def perturb_gaussian(current, out, strength, rng, inst):
    out[:] = current + rng.normal(0.0, 10.0 * inst.sigma * max(strength, 1), size=current.shape[0])
    _clamp(out, inst)


def shake_gaussian(current, out, k, rng, inst):
    """Neighbourhood ``k`` is a Gaussian jump of scale ``0.5 * k``."""
    out[:] = current + rng.normal(0.0, 0.5 * k, size=current.shape[0])
    _clamp(out, inst)


def construct_blend(out, alpha, rng, inst):
    # alpha = 0 gives the box centre, alpha = 1 a uniform point
    center = 0.5 * (inst.lower + inst.upper)
    rand = rng.uniform(inst.lower, inst.upper, size=out.shape[0])
    out[:] = center + alpha * (rand - center)


def crossover_blend(p1, p2, c1, c2, rng, inst):
    """Arithmetic crossover with one random weight per coordinate."""
    w = rng.random(p1.shape[0])
    c1[:] = w * p1 + (1.0 - w) * p2
    c2[:] = (1.0 - w) * p1 + w * p2


def mutate_gaussian(x, rate, rng, inst):
    mask = rng.random(x.shape[0]) < rate
    if mask.any():
        x[mask] += rng.normal(0.0, 0.1 * (inst.upper - inst.lower), size=int(mask.sum()))
        _clamp(x, inst)


def continuous_problem(inst):
    return Problem(
        size=inst.dim,
        objective=evaluate,
        dtype=np.float64,
        context=inst,
        neighbor=neighbor_gaussian,
        generate=generate_random,
        perturb=perturb_gaussian,
        shake=shake_gaussian,
        construct=construct_blend,
        crossover=crossover_blend,
        mutate=mutate_gaussian,
        hash=hash_float_array,
    )
