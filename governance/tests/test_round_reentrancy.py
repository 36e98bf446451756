from __future__ import annotations

import logging
import threading
from typing import Sequence

import pytest

from governance.errors import PayoutHandoffFailed, ReentrantCall, WrongPhase
from governance.govtypes.phase import Phase
from governance.round import GovernanceRound

from .conftest import ADMIN, T_VOTE_END, make_round, open_voting


class _ReenteringPayout:
    """Payout collaborator that tries to vote from inside the handoff."""

    def __init__(self) -> None:
        self.round: GovernanceRound | None = None
        self.seen: Exception | None = None

    def initialize(self, payees: Sequence[str], shares: Sequence[int]) -> None:
        assert self.round is not None
        try:
            self.round.cast_vote("late", [0], [1_000_000])
        except ReentrantCall as e:
            self.seen = e
            raise


def test_payout_callback_cannot_reenter(clock):
    payout = _ReenteringPayout()
    rnd = make_round(clock=clock, payout=payout)
    payout.round = rnd
    open_voting(rnd, clock, [("alice", 0), ("bob", 1)])
    rnd.cast_vote("v1", [1], [5])

    clock.set(T_VOTE_END + 1)
    with pytest.raises(PayoutHandoffFailed) as ei:
        rnd.finalize_results()

    assert isinstance(ei.value.__cause__, ReentrantCall)
    assert payout.seen.details == {"operation": "cast_vote", "active": "finalize_results"}
    assert not rnd.has_voted("late")
    assert rnd.get_aggregated_score(0) == 0
    assert rnd.phase is Phase.FINALIZED


def test_event_subscriber_cannot_reenter(rnd, caplog):
    rnd.start_application_phase(ADMIN)
    calls = []

    def sneaky(ev):
        calls.append(ev.etype)
        rnd.submit_application("sneaky", 99, "ipfs://sneaky")

    rnd.events.subscribe(sneaky)
    with caplog.at_level(logging.ERROR, logger="governance.events"):
        rnd.submit_application("alice", 0, "ipfs://alice")

    assert len(calls) == 1
    assert rnd.application_count == 1
    assert not rnd.is_registered("sneaky")
    assert "event subscriber failed" in caplog.text


def test_lock_released_after_rejection(rnd):
    with pytest.raises(WrongPhase):
        rnd.start_voting_phase(ADMIN)
    # a failed call must not leave the critical section held
    rnd.start_application_phase(ADMIN)
    assert rnd.phase is Phase.APPLICATION


def test_concurrent_votes_are_all_counted(rnd, clock):
    open_voting(rnd, clock, [("alice", 0), ("bob", 1)])
    n = 32
    barrier = threading.Barrier(n)
    errors = []

    def vote(i: int) -> None:
        barrier.wait()
        try:
            rnd.cast_vote(f"v{i}", [i % 2], [i + 1])
        except Exception as e:  # pragma: no cover - surfaced by the assert below
            errors.append(e)

    threads = [threading.Thread(target=vote, args=(i,)) for i in range(n)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    assert errors == []
    assert rnd.summary()["voters"] == n
    assert rnd.get_aggregated_score(0) + rnd.get_aggregated_score(1) == sum(range(1, n + 1))
    seqs = [e.seq for e in rnd.events_since(0)]
    assert seqs == list(range(1, len(seqs) + 1))


def test_concurrent_duplicate_index_has_single_winner(rnd):
    rnd.start_application_phase(ADMIN)
    n = 16
    barrier = threading.Barrier(n)
    outcomes = []

    def submit(i: int) -> None:
        barrier.wait()
        try:
            rnd.submit_application(f"app{i}", 7, f"ipfs://{i}")
            outcomes.append("ok")
        except Exception as e:
            outcomes.append(type(e).__name__)

    threads = [threading.Thread(target=submit, args=(i,)) for i in range(n)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    assert outcomes.count("ok") == 1
    assert outcomes.count("IndexOccupied") == n - 1
    assert rnd.application_count == 1
