import pytest

from ecoquiz.utils.scoring import (
    compute_score,
    count_yes,
    mean_score,
    percentage,
    round_half_up,
    score_range,
)


def test_round_half_up_differs_from_bankers_rounding():
    assert round_half_up(12.5) == 13
    assert round_half_up(0.5) == 1
    assert round_half_up(12.49) == 12


@pytest.mark.parametrize("yes", range(0, 11))
def test_score_is_rounded_share_of_yes(yes):
    score = compute_score(yes, 10)
    assert score == yes * 10
    assert 0 <= score <= 100


def test_score_rounding_for_odd_totals():
    assert compute_score(1, 3) == 33
    assert compute_score(2, 3) == 67
    assert compute_score(1, 8) == 13


def test_percentage_of_empty_total_is_zero():
    assert percentage(0, 0) == 0
    assert compute_score(0, 0) == 0


def test_count_yes():
    assert count_yes(["yes", "no", "yes"]) == 2


def test_score_range_boundaries():
    assert score_range(3, 10) == "0-30%"
    assert score_range(4, 10) == "31-60%"
    assert score_range(6, 10) == "31-60%"
    assert score_range(8, 10) == "61-80%"
    assert score_range(9, 10) == "81-100%"
    # 30.77% is already above 30
    assert score_range(4, 13) == "31-60%"


def test_mean_score():
    assert mean_score([]) == 0
    assert mean_score([70, 75]) == 73
