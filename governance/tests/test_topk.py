from __future__ import annotations

import pytest

from governance.govtypes.winner import BASIS_POINTS
from governance.selection.topk import normalize_shares, rank_top_k


def test_rank_orders_by_score_descending():
    cands = [(0, 10), (1, 50), (2, 30), (3, 40)]
    assert rank_top_k(cands, 3) == [(1, 50), (3, 40), (2, 30)]


def test_ties_keep_lower_index_first():
    cands = [(0, 5), (1, 5), (2, 5)]
    assert rank_top_k(cands, 2) == [(0, 5), (1, 5)]


def test_later_tie_does_not_displace_earlier():
    cands = [(0, 1), (1, 9), (2, 9)]
    assert rank_top_k(cands, 1) == [(1, 9)]


def test_zero_score_candidates_fill_open_slots():
    cands = [(0, 0), (1, 0)]
    assert rank_top_k(cands, 3) == [(0, 0), (1, 0)]


def test_k_zero_returns_nothing():
    assert rank_top_k([(0, 1)], 0) == []


def test_normalize_two_winners():
    assert normalize_shares([6000, 3000]) == [6667, 3333]


def test_normalize_zero_total_splits_evenly_with_remainder_on_first():
    assert normalize_shares([0, 0]) == [5000, 5000]
    assert normalize_shares([0, 0, 0]) == [3334, 3333, 3333]


def test_normalize_single_winner_takes_all():
    assert normalize_shares([1]) == [BASIS_POINTS]
    assert normalize_shares([0]) == [BASIS_POINTS]


@pytest.mark.parametrize(
    "raw",
    [
        [1, 1, 1],
        [7, 3, 1, 1, 1],
        [10**18, 1, 1],
        [123456789, 987654321, 555],
        [1, 0, 0],
    ],
)
def test_normalized_shares_always_sum_to_basis_points(raw):
    shares = normalize_shares(raw)
    assert sum(shares) == BASIS_POINTS
    assert all(0 <= s <= BASIS_POINTS for s in shares)
    total = sum(raw)
    # every share but the first is the plain floor
    for r, s in zip(raw[1:], shares[1:]):
        assert s == r * BASIS_POINTS // total


def test_normalize_rejects_empty_and_negative():
    with pytest.raises(ValueError):
        normalize_shares([])
    with pytest.raises(ValueError):
        normalize_shares([5, -1])
