import pytest

from vidscramble import permutation
from vidscramble.permutation import INT64_MAX, INT64_MIN, Lcg48


def _is_permutation(perm, n):
    return len(perm) == n and sorted(perm) == list(range(n))


def _signed32(value):
    return value - (1 << 32) if value >= (1 << 31) else value


def test_first_draws_match_reference_stream():
    assert _signed32(Lcg48(0).next_bits(32)) == -1155484576
    assert _signed32(Lcg48(42).next_bits(32)) == -1170105035


def test_next_int_stays_in_bounds():
    rng = Lcg48(7)
    for bound in (1, 2, 3, 10, 64, 1000, (1 << 31) - 1):
        for _ in range(50):
            assert 0 <= rng.next_int(bound) < bound


def test_next_int_rejects_non_positive_bound():
    with pytest.raises(ValueError):
        Lcg48(1).next_int(0)


@pytest.mark.parametrize("key", [0, 1, -1, 42, 12345, INT64_MIN, INT64_MAX])
@pytest.mark.parametrize("n", [2, 3, 48, 480, 1081])
def test_generate_is_a_bijection(key, n):
    perm = permutation.generate(key, n)
    assert _is_permutation(perm, n)


def test_generate_is_deterministic():
    first = permutation.generate(42, 720)
    for _ in range(3):
        assert permutation.generate(42, 720) == first


def test_different_keys_give_different_permutations():
    assert permutation.generate(1, 100) != permutation.generate(2, 100)


def test_small_row_counts():
    assert permutation.generate(42, 0) == []
    assert permutation.generate(42, 1) == [0]
    assert permutation.generate(0, 2) == [0, 1]


def test_generate_rejects_bad_arguments():
    with pytest.raises(ValueError):
        permutation.generate(INT64_MAX + 1, 10)
    with pytest.raises(ValueError):
        permutation.generate(INT64_MIN - 1, 10)
    with pytest.raises(ValueError):
        permutation.generate(1, -1)


def test_bounded_draws_reject_the_incomplete_bucket():
    # bound 2**30 + 1 leaves nearly half the 31-bit range unusable
    rng = Lcg48(7)
    draws = [rng.next_int((1 << 30) + 1) for _ in range(6)]
    assert draws == [20678044, 747989380, 1053566254, 755731200, 259278708, 542588911]


@pytest.mark.parametrize("key, n, expected", [
    (12345, 10, [3, 2, 0, 5, 8, 9, 6, 7, 4, 1]),
    (42, 10, [4, 6, 2, 1, 7, 9, 8, 5, 3, 0]),
    (-1, 12, [0, 2, 1, 6, 10, 3, 4, 11, 8, 9, 7, 5]),
])
def test_generate_matches_reference_shuffles(key, n, expected):
    assert permutation.generate(key, n) == expected
