from __future__ import annotations

import pytest

from governance.access import Roles
from governance.config import RoundSchedule
from governance.errors import (ApplicationDeadlinePassed, ApplicationPeriodOngoing,
                               Unauthorized, VotingOngoing, WrongPhase)
from governance.events import EventLog, EventType
from governance.govtypes.phase import Phase
from governance.lifecycle.phase import ManualClock, PhaseController

ADMIN = "admin"


def _mk(clock: ManualClock, **schedule) -> PhaseController:
    sched = RoundSchedule(**schedule) if schedule else RoundSchedule(
        application_start_deadline=100, application_end=200, voting_end=300
    )
    return PhaseController(sched, roles=Roles([ADMIN]), events=EventLog(), clock=clock)


def test_phase_enum_order_and_parse():
    assert [p.value for p in Phase] == [0, 1, 2, 3]
    assert Phase.IDLE.next() is Phase.APPLICATION
    assert Phase.FINALIZED.next() is None
    assert Phase.VOTING.can_advance_to(Phase.FINALIZED)
    assert not Phase.IDLE.can_advance_to(Phase.VOTING)
    assert Phase.parse("voting") is Phase.VOTING
    assert Phase.parse(1) is Phase.APPLICATION


def test_full_forward_walk_emits_phase_events():
    clock = ManualClock(50)
    pc = _mk(clock)
    assert pc.phase is Phase.IDLE

    ev = pc.start_application_phase(ADMIN)
    assert (ev.previous, ev.current) == (Phase.IDLE, Phase.APPLICATION)

    clock.set(201)
    pc.start_voting_phase(ADMIN)
    clock.set(301)
    assert pc.check_finalize() == 301
    pc.finalize()
    assert pc.phase is Phase.FINALIZED

    log = pc._events
    phases = [e.current for e in log.of_type(EventType.PHASE_UPDATED)]
    assert phases == [Phase.APPLICATION, Phase.VOTING, Phase.FINALIZED]
    assert [e.seq for e in log.since(0)] == [1, 2, 3]


def test_start_application_requires_admin():
    pc = _mk(ManualClock(0))
    with pytest.raises(Unauthorized):
        pc.start_application_phase("mallory")
    assert pc.phase is Phase.IDLE


def test_start_application_must_precede_deadline():
    pc = _mk(ManualClock(100))
    with pytest.raises(ApplicationDeadlinePassed):
        pc.start_application_phase(ADMIN)
    assert pc.phase is Phase.IDLE

    pc = _mk(ManualClock(99))
    pc.start_application_phase(ADMIN)
    assert pc.phase is Phase.APPLICATION


def test_start_application_after_deadline_fails():
    pc = _mk(ManualClock(101))
    with pytest.raises(ApplicationDeadlinePassed) as ei:
        pc.start_application_phase(ADMIN)
    assert ei.value.details == {"now": 101, "boundary": 100}
    assert pc.phase is Phase.IDLE


def test_start_voting_before_application_end_fails():
    clock = ManualClock(0)
    pc = _mk(clock)
    pc.start_application_phase(ADMIN)
    clock.set(200)
    with pytest.raises(ApplicationPeriodOngoing):
        pc.start_voting_phase(ADMIN)
    clock.set(201)
    pc.start_voting_phase(ADMIN)
    assert pc.phase is Phase.VOTING


def test_finalize_before_voting_end_fails():
    clock = ManualClock(0)
    pc = _mk(clock)
    pc.start_application_phase(ADMIN)
    clock.set(201)
    pc.start_voting_phase(ADMIN)
    clock.set(300)
    with pytest.raises(VotingOngoing):
        pc.check_finalize()
    clock.set(301)
    assert pc.check_finalize() == 301


def test_transitions_cannot_be_skipped_or_repeated():
    clock = ManualClock(0)
    pc = _mk(clock)
    with pytest.raises(WrongPhase):
        pc.start_voting_phase(ADMIN)
    with pytest.raises(WrongPhase):
        pc.check_finalize()
    pc.start_application_phase(ADMIN)
    with pytest.raises(WrongPhase) as ei:
        pc.start_application_phase(ADMIN)
    assert ei.value.details["required"] == "IDLE"
    assert ei.value.details["current"] == "APPLICATION"


def test_unset_boundaries_are_not_enforced():
    clock = ManualClock(10_000)
    pc = _mk(clock, application_start_deadline=None, application_end=None, voting_end=None)
    pc.start_application_phase(ADMIN)
    pc.start_voting_phase(ADMIN)
    pc.finalize()
    assert pc.phase is Phase.FINALIZED


def test_manual_clock_refuses_to_go_backwards():
    clock = ManualClock(10)
    assert clock.advance(5) == 15
    with pytest.raises(ValueError):
        clock.set(14)
    with pytest.raises(ValueError):
        clock.advance(-1)
