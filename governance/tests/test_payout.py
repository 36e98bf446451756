from __future__ import annotations

import pytest

from governance.adapters.payout import (PayoutNotifier, RecordingPayout,
                                        split_amount, validate_split)
from governance.errors import PayoutError


def test_recording_payout_is_a_notifier():
    assert isinstance(RecordingPayout(), PayoutNotifier)


def test_initialize_once():
    p = RecordingPayout()
    p.initialize(["a", "b"], [7000, 3000])
    assert p.initialized
    assert p.history == [(("a", "b"), (7000, 3000))]
    with pytest.raises(PayoutError):
        p.initialize(["a"], [10_000])
    assert p.calls == 2


@pytest.mark.parametrize(
    "payees, shares",
    [
        ([], []),
        (["a"], [5000, 5000]),
        (["a", "a"], [5000, 5000]),
        (["a", "b"], [5000, 4999]),
        (["a", "b"], [10_001, -1]),
    ],
)
def test_validate_split_rejects(payees, shares):
    with pytest.raises(PayoutError):
        validate_split(payees, shares)


def test_split_amount_remainder_goes_to_first():
    out = split_amount(100, ["a", "b", "c"], [3334, 3333, 3333])
    assert out == {"a": 34, "b": 33, "c": 33}
    assert sum(split_amount(10**9 + 7, ["a", "b"], [6667, 3333]).values()) == 10**9 + 7
