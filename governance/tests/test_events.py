from __future__ import annotations

from governance.events import (ApplicationSubmitted, EventLog, EventType,
                               PhaseUpdated, VoteCast, decode_event)
from governance.govtypes.phase import Phase


def test_sequence_numbers_are_contiguous():
    log = EventLog()
    a = log.append(ApplicationSubmitted, ts=1, applicant="a", index=0, uri="u")
    b = log.append(VoteCast, ts=2, voter="v", indices=(0,), shares=(1,))
    assert (a.seq, b.seq) == (1, 2)
    assert log.last_seq == 2
    assert [e.seq for e in log.since(1)] == [2]
    assert log.last().etype is EventType.VOTE_CAST
    assert log.last(EventType.APPLICATION_SUBMITTED) is a


def test_subscribers_and_unsubscribe():
    log = EventLog()
    seen = []
    unsubscribe = log.subscribe(seen.append)
    log.append(PhaseUpdated, ts=5, previous=Phase.IDLE, current=Phase.APPLICATION)
    unsubscribe()
    log.append(PhaseUpdated, ts=6, previous=Phase.APPLICATION, current=Phase.VOTING)
    assert len(seen) == 1
    assert seen[0].current is Phase.APPLICATION


def test_failing_subscriber_does_not_block_others():
    log = EventLog()
    seen = []

    def boom(ev):
        raise RuntimeError("subscriber bug")

    log.subscribe(boom)
    log.subscribe(seen.append)
    ev = log.append(ApplicationSubmitted, ts=1, applicant="a", index=0, uri="u")
    assert seen == [ev]
    assert len(log) == 1


def test_log_serialization_restores_typed_events():
    log = EventLog()
    log.append(ApplicationSubmitted, ts=1, applicant="a", index=3, uri="ipfs://a")
    log.append(PhaseUpdated, ts=2, previous=Phase.APPLICATION, current=Phase.VOTING)

    items = log.to_list()
    assert items[1] == {"etype": "PhaseUpdated", "seq": 2, "ts": 2, "previous": "APPLICATION", "current": "VOTING"}

    again = EventLog.from_list(items)
    assert again.since(0) == log.since(0)
    assert decode_event(items[0]).index == 3
