import numpy as np

from metaopt.engine.hashing import (
    FNV_OFFSET,
    hash_bytes,
    hash_float_array,
    hash_int_array,
    hash_tour,
)


def test_hash_bytes_is_deterministic():
    x = np.array([3, 1, 2], dtype=np.int64)
    assert hash_bytes(x) == hash_bytes(x.copy())
    assert hash_bytes(x) != hash_bytes(np.array([3, 2, 1], dtype=np.int64))


def test_empty_buffer_hashes_to_offset_basis():
    assert hash_bytes(np.empty(0, dtype=np.float64)) == FNV_OFFSET
    assert hash_tour(np.empty(0, dtype=np.int64)) == FNV_OFFSET


def test_tour_hash_ignores_rotation():
    tour = np.array([0, 4, 2, 1, 3], dtype=np.int64)
    for shift in range(1, 5):
        assert hash_tour(np.roll(tour, shift)) == hash_tour(tour)


def test_tour_hash_distinguishes_orientation():
    tour = np.array([0, 1, 2, 3, 4], dtype=np.int64)
    assert hash_tour(tour) != hash_tour(np.array([0, 4, 3, 2, 1], dtype=np.int64))


def test_tour_hash_matches_int_hash_from_city_zero():
    tour = np.array([0, 2, 3, 1], dtype=np.int64)
    assert hash_tour(tour) == hash_int_array(tour)


def test_float_hash_truncates_to_four_decimals():
    a = np.array([0.12341, -1.5])
    b = np.array([0.12349, -1.5])
    c = np.array([0.12351, -1.5])
    assert hash_float_array(a) == hash_float_array(b)
    assert hash_float_array(a) != hash_float_array(c)
