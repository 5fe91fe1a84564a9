import numpy as np

from ._common import REMOVED, removal_count


def random_removal(current, out, degree, rng, inst):
    """Mark ``degree * n`` uniformly chosen positions as removed (-1)."""
    np.copyto(out, current)
    n = out.shape[0]
    if n < 2:
        return
    count = removal_count(degree, n)
    idxs = rng.choice(n, size=count, replace=False)
    out[idxs] = REMOVED
