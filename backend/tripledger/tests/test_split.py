"""
Tests for the split calculator.
"""
import random
import pytest
from tripledger.core.exceptions import ValidationError
from tripledger.models.expense import SplitKind
from tripledger.services.split_service import compute_split

rng = random.Random(20240607)
RANDOM_CASES = [
    (rng.randint(1, 10_000_000), rng.randint(1, 25))
    for _ in range(200)
]


@pytest.mark.parametrize("amount_cents,count", RANDOM_CASES + [(1, 1), (1, 7), (7, 7), (100, 3)])
def test_equal_split_sums_to_amount(amount_cents, count):
    participants = list(range(100, 100 + count))
    shares = compute_split(amount_cents, SplitKind.EQUAL, participants)

    assert sum(shares.values()) == amount_cents
    assert list(shares) == participants
    assert max(shares.values()) - min(shares.values()) <= 1


def test_equal_split_even_halves():
    assert compute_split(10000, "equal", [1, 2]) == {1: 5000, 2: 5000}


def test_equal_split_leftover_goes_to_first_participants_in_input_order():
    assert compute_split(10000, "equal", [3, 1, 2]) == {3: 3334, 1: 3333, 2: 3333}
    assert compute_split(10001, "equal", [3, 1, 2]) == {3: 3334, 1: 3334, 2: 3333}


def test_equal_split_is_deterministic():
    first = compute_split(9999, SplitKind.EQUAL, [5, 9, 2, 7])
    second = compute_split(9999, SplitKind.EQUAL, [5, 9, 2, 7])
    assert first == second


def test_unequal_split_accepts_exact_sum():
    shares = compute_split(10000, SplitKind.UNEQUAL, [1, 2, 3], {1: 2000, 2: 8000})
    assert shares == {1: 2000, 2: 8000, 3: 0}


@pytest.mark.parametrize("shares", [
    {1: 5000, 2: 4999},
    {1: 5000, 2: 5001},
    {1: 10001},
    {1: 1},
])
def test_unequal_split_rejects_mismatched_sum(shares):
    with pytest.raises(ValidationError):
        compute_split(10000, SplitKind.UNEQUAL, [1, 2], shares)


@pytest.mark.parametrize("amount_cents,count", RANDOM_CASES[:50])
def test_unequal_split_round_trip_of_random_partitions(amount_cents, count):
    participants = list(range(1, count + 1))
    cuts = sorted(rng.randint(0, amount_cents) for _ in range(count - 1))
    bounds = [0] + cuts + [amount_cents]
    shares = {uid: bounds[i + 1] - bounds[i] for i, uid in enumerate(participants)}

    assert compute_split(amount_cents, SplitKind.UNEQUAL, participants, shares) == shares

    broken = dict(shares)
    broken[participants[0]] += 1
    with pytest.raises(ValidationError):
        compute_split(amount_cents, SplitKind.UNEQUAL, participants, broken)


def test_unequal_split_rejects_unknown_participant():
    with pytest.raises(ValidationError) as exc:
        compute_split(10000, SplitKind.UNEQUAL, [1, 2], {1: 5000, 9: 5000})
    assert exc.value.details == [9]


def test_unequal_split_requires_shares():
    with pytest.raises(ValidationError):
        compute_split(10000, SplitKind.UNEQUAL, [1, 2], {})
    with pytest.raises(ValidationError):
        compute_split(10000, SplitKind.UNEQUAL, [1, 2], None)


def test_unequal_split_rejects_negative_share():
    with pytest.raises(ValidationError):
        compute_split(10000, SplitKind.UNEQUAL, [1, 2], {1: 10500, 2: -500})


@pytest.mark.parametrize("amount_cents", [0, -1, -10000])
def test_rejects_non_positive_amount(amount_cents):
    with pytest.raises(ValidationError):
        compute_split(amount_cents, SplitKind.EQUAL, [1, 2])


def test_rejects_empty_participants():
    with pytest.raises(ValidationError):
        compute_split(10000, SplitKind.EQUAL, [])


def test_rejects_duplicate_participants():
    with pytest.raises(ValidationError):
        compute_split(10000, SplitKind.EQUAL, [1, 2, 1])


def test_rejects_unknown_split_kind():
    with pytest.raises(ValidationError):
        compute_split(10000, "percentage", [1, 2])
