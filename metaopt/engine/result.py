"""Run outcome shared by every driver."""

from __future__ import annotations

import functools
import logging
import math
import time
from dataclasses import dataclass, field
from typing import Any, Dict, Optional

import numpy as np

from .errors import AllocationFailure, ConfigurationError

logger = logging.getLogger(__name__)


@dataclass
class OptResult:
    best: Optional[np.ndarray] = None
    best_cost: float = math.nan
    num_iterations: int = 0
    num_evaluations: int = 0
    convergence: np.ndarray = field(default_factory=lambda: np.empty(0, dtype=np.float64))
    elapsed_ms: float = 0.0
    stats: Dict[str, Any] = field(default_factory=dict)
    error: Optional[str] = None

    @property
    def ok(self):
        return self.error is None and self.best is not None

    @classmethod
    def failed(cls, message, elapsed_ms=0.0):
        return cls(error=str(message), elapsed_ms=float(elapsed_ms))

    def summary(self):
        return {
            "best_cost": None if self.best is None else float(self.best_cost),
            "iterations": int(self.num_iterations),
            "evaluations": int(self.num_evaluations),
            "elapsed_ms": round(float(self.elapsed_ms), 3),
            "error": self.error,
        }


def finish(best, best_cost, iterations, evaluator, history, started, stats=None):
    """Package the owned best copy and the first ``iterations`` history entries."""
    result = OptResult(
        best=best.copy(),
        best_cost=float(best_cost),
        num_iterations=int(iterations),
        num_evaluations=int(evaluator.count),
        convergence=np.array(history[:iterations], dtype=np.float64),
        elapsed_ms=(time.perf_counter() - started) * 1000.0,
        stats=dict(stats or {}),
    )
    logger.info(
        "finished: best=%.6g iterations=%d evaluations=%d (%.1f ms)",
        result.best_cost,
        result.num_iterations,
        result.num_evaluations,
        result.elapsed_ms,
    )
    return result


def reported(name):
    """Turn configuration and allocation failures of a driver into failed results.

    Drivers allocate their scratch before the first evaluation, so a failure
    here never discards an evaluated solution.
    """

    def wrap(run):
        @functools.wraps(run)
        def driver(*args, **kwargs):
            started = time.perf_counter()
            try:
                return run(*args, **kwargs)
            except (ConfigurationError, AllocationFailure) as exc:
                logger.error("%s aborted: %s", name, exc)
                return OptResult.failed(exc, (time.perf_counter() - started) * 1000.0)

        return driver

    return wrap
