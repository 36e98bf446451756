from __future__ import annotations

from typing import Optional

import pytest

from governance.adapters.payout import RecordingPayout
from governance.config import GovernanceConfig, RoundSchedule, SelectionParams
from governance.lifecycle.phase import ManualClock
from governance.round import GovernanceRound

ADMIN = "admin"

# Schedule used by most round tests (unix seconds).
T_DEADLINE = 1_000
T_APP_END = 2_000
T_VOTE_END = 3_000


def make_config(max_winners: int = 3, scan_safety_margin: int = 100, **schedule) -> GovernanceConfig:
    sched = dict(
        application_start_deadline=T_DEADLINE,
        application_end=T_APP_END,
        voting_end=T_VOTE_END,
    )
    sched.update(schedule)
    return GovernanceConfig(
        schedule=RoundSchedule(**sched),
        selection=SelectionParams(max_winners=max_winners, scan_safety_margin=scan_safety_margin),
        admins=(ADMIN,),
        round_id="test-round",
    )


def make_round(
    cfg: Optional[GovernanceConfig] = None,
    *,
    clock: Optional[ManualClock] = None,
    payout: Optional[RecordingPayout] = None,
) -> GovernanceRound:
    return GovernanceRound(cfg or make_config(), payout=payout, clock=clock or ManualClock(T_DEADLINE - 100))


def open_voting(rnd: GovernanceRound, clock: ManualClock, apps) -> None:
    """Drive `rnd` to VOTING with `apps` = [(applicant, index), ...] registered."""
    rnd.start_application_phase(ADMIN)
    for applicant, index in apps:
        rnd.submit_application(applicant, index, f"ipfs://{applicant}")
    clock.set(T_APP_END + 1)
    rnd.start_voting_phase(ADMIN)


@pytest.fixture
def clock() -> ManualClock:
    return ManualClock(T_DEADLINE - 100)


@pytest.fixture
def payout() -> RecordingPayout:
    return RecordingPayout()


@pytest.fixture
def rnd(clock: ManualClock, payout: RecordingPayout) -> GovernanceRound:
    return make_round(clock=clock, payout=payout)
