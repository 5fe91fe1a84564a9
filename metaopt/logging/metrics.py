import csv
import json
import numpy as np

BASE_COLUMNS = ["iter", "curr_cost", "best_cost", "temp", "destroy_op", "repair_op", "status"]


def _plain(value):
    if isinstance(value, np.ndarray):
        return [float(v) for v in value]
    if isinstance(value, np.generic):
        return value.item()
    return value


def _cell(value):
    if isinstance(value, (list, tuple)):
        return ";".join(f"{float(v):.6g}" for v in value)
    return value


class Metrics:
    """Sampled per-iteration trace of a run.

    ``extra`` carries algorithm fields (tabu tenure and list length, operator
    weights, ...); they become additional CSV columns.
    """

    def __init__(self):
        self.rows = []

    def append(self, it, curr, best, temp=0.0, d_op="-", r_op="-", status="", **extra):
        self.rows.append(
            (
                int(it),
                float(curr),
                float(best),
                float(temp),
                d_op,
                r_op,
                status,
                {k: _plain(v) for k, v in extra.items()},
            )
        )

    def column(self, name):
        """Values of a base or extra column across rows (``None`` where missing)."""
        if name in BASE_COLUMNS:
            idx = BASE_COLUMNS.index(name)
            return [row[idx] for row in self.rows]
        return [row[-1].get(name) for row in self.rows]

    def extra_columns(self):
        keys = []
        for row in self.rows:
            for k in row[-1]:
                if k not in keys:
                    keys.append(k)
        return keys

    def save_csv(self, path):
        extra_keys = self.extra_columns()
        with open(path, "w", newline="", encoding="utf-8") as f:
            w = csv.writer(f)
            w.writerow(BASE_COLUMNS + extra_keys)
            for row in self.rows:
                *base, extra = row
                w.writerow(list(base) + [_cell(extra.get(k, "")) for k in extra_keys])


def save_metrics_json(path, metrics, result, params, *, extra=None):
    data = {
        "final_best_cost": None if result.best is None else float(result.best_cost),
        "num_iterations": int(result.num_iterations),
        "num_evaluations": int(result.num_evaluations),
        "elapsed_ms": float(result.elapsed_ms),
        "error": result.error,
        "iters_logged": len(metrics.rows),
        "stats": {k: _plain(v) for k, v in result.stats.items()},
        "params": {k: _plain(v) for k, v in params.items()},
    }
    if extra:
        data.update(extra)
    with open(path, "w", encoding="utf-8") as f:
        json.dump(data, f, indent=2)


def save_convergence_csv(path, convergence):
    with open(path, "w", newline="", encoding="utf-8") as f:
        w = csv.writer(f)
        w.writerow(["iter", "best_cost"])
        for i, value in enumerate(convergence, start=1):
            w.writerow([i, float(value)])


def save_solution_csv(path, solution):
    with open(path, "w", newline="", encoding="utf-8") as f:
        w = csv.writer(f)
        w.writerow(["pos", "value"])
        if solution is None:
            return
        for i, value in enumerate(np.asarray(solution).reshape(-1)):
            w.writerow([i, value.item()])
