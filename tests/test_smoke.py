import pytest

from metaopt.config.config import ALGORITHM_DEFAULTS
from metaopt.glue.pipeline import run_pipeline

TSP = {"type": "tsp", "instance": "example_10"}
SPHERE = {"type": "continuous", "function": "sphere", "dim": 4}
CONTINUOUS_ONLY = ("pso", "differential_evolution")


@pytest.mark.parametrize("algorithm", sorted(ALGORITHM_DEFAULTS))
def test_every_algorithm_runs_end_to_end(algorithm, tmp_path):
    cfg = {
        "algorithm": algorithm,
        "iters": 15,
        "seed": 1,
        "problem": SPHERE if algorithm in CONTINUOUS_ONLY else TSP,
    }
    out = run_pipeline(cfg, base_dir=tmp_path, outdir=tmp_path / algorithm)
    result = out["result"]
    assert result.ok
    assert len(result.convergence) == result.num_iterations
    assert result.num_evaluations > 0
