"""Strategy bundle describing one optimisation problem to the drivers.

The engine treats solutions as opaque fixed-length NumPy buffers: it copies
them, hashes their bytes and hands them to the strategies below, but never
looks at individual elements. Strategy signatures::

    objective(x, context) -> float
    neighbor(current, out, rng, context)
    generate(out, rng, context)
    perturb(current, out, strength, rng, context)
    shake(current, out, k, rng, context)
    construct(out, alpha, rng, context)
    destroy(current, out, degree, rng, context)
    repair(partial, out, rng, context)
    crossover(parent1, parent2, child1, child2, rng, context)
    mutate(x, rate, rng, context)
    hash(x) -> int

``objective`` must be a pure function of ``x`` and ``context``: evaluation
counts reported by the drivers are the number of objective calls.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable, Optional

import numpy as np

from .errors import AllocationFailure, ConfigurationError


@dataclass
class Problem:
    size: int
    objective: Callable[..., float]
    dtype: Any = np.float64
    context: Any = None
    neighbor: Optional[Callable[..., None]] = None
    generate: Optional[Callable[..., None]] = None
    perturb: Optional[Callable[..., None]] = None
    shake: Optional[Callable[..., None]] = None
    construct: Optional[Callable[..., None]] = None
    destroy: Optional[Callable[..., None]] = None
    repair: Optional[Callable[..., None]] = None
    crossover: Optional[Callable[..., None]] = None
    mutate: Optional[Callable[..., None]] = None
    hash: Optional[Callable[..., int]] = None

    def require(self, *names):
        """Raise :class:`ConfigurationError` unless the problem is usable."""
        if int(self.size) <= 0:
            raise ConfigurationError("solution size must be positive")
        if np.dtype(self.dtype).itemsize == 0:
            raise ConfigurationError("solution element size must be positive")
        if not callable(self.objective):
            raise ConfigurationError("objective strategy is required")
        missing = [n for n in names if not callable(getattr(self, n))]
        if missing:
            raise ConfigurationError(f"missing strategies: {', '.join(missing)}")

    def buffer(self):
        return np.zeros(int(self.size), dtype=self.dtype)

    def block(self, rows):
        """Contiguous ``(rows, size)`` scratch block."""
        return np.zeros((int(rows), int(self.size)), dtype=self.dtype)


def allocate(problem, *rows):
    """Allocate engine scratch: a buffer per ``None``, a block per integer.

    Any ``MemoryError`` is re-raised as :class:`AllocationFailure` after the
    buffers obtained so far are released.
    """
    out = []
    try:
        for r in rows:
            out.append(problem.buffer() if r is None else problem.block(r))
    except MemoryError as exc:
        out.clear()
        raise AllocationFailure(f"could not allocate scratch buffers: {exc}") from exc
    return out


class Evaluator:
    """Counts every objective call made on behalf of a run.

    ``limit`` is the run's ``max_evaluations`` (0 = no cap); drivers and the
    local search kernel ask :meth:`exhausted` before evaluating.
    """

    __slots__ = ("objective", "context", "count", "limit")

    def __init__(self, problem, limit=0):
        self.objective = problem.objective
        self.context = problem.context
        self.count = 0
        self.limit = int(limit)

    def exhausted(self, upcoming=1):
        """True when ``upcoming`` more evaluations would overrun the cap."""
        return self.limit > 0 and self.count + upcoming > self.limit

    def __call__(self, x):
        self.count += 1
        return float(self.objective(x, self.context))
