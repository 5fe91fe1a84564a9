from .utils import insert_at, split_partial


def random_insertion(partial, out, rng, inst):
    """Reinsert missing cities in random order at uniformly drawn positions."""
    kept, missing = split_partial(partial)
    length = kept.shape[0]
    out[:length] = kept
    for city in rng.permutation(missing):
        pos = int(rng.integers(0, length + 1))
        length = insert_at(out, length, pos, int(city))
