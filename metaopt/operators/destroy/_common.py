REMOVED = -1


def removal_count(degree, n):
    """Cities to remove for ``degree`` in ``[0, 1]``, clamped to ``[1, n - 1]``."""
    k = int(degree * n)
    return min(max(k, 1), max(n - 1, 1))
