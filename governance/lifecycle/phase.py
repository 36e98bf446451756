from __future__ import annotations

"""
PhaseController: strict forward-only state machine for a governance round.

    IDLE ──start_application_phase──▶ APPLICATION
         ──start_voting_phase──────▶ VOTING
         ──finalize────────────────▶ FINALIZED

Transitions are single-use and cannot be skipped. Each one is gated by a
wall-clock boundary from `RoundSchedule` (a boundary left as None is not
enforced) and, for the first two, by the admin role. Every transition appends
a `PhaseUpdated` event.

Boundary semantics (unix seconds, `now` from the injected clock):
  - start_application_phase: allowed while now <  application_start_deadline
  - start_voting_phase:      allowed once now >  application_end
  - finalize:                allowed once now >  voting_end
"""

import logging
import time
from typing import Callable, Optional

from ..access import ADMIN_ROLE, Roles
from ..config import RoundSchedule
from ..errors import (ApplicationDeadlinePassed, ApplicationPeriodOngoing,
                      VotingOngoing, WrongPhase)
from ..events import EventLog, PhaseUpdated
from ..govtypes.phase import Phase
from .. import metrics

log = logging.getLogger(__name__)

Clock = Callable[[], int]


def system_clock() -> int:
    """Current UNIX time in seconds (int)."""
    return int(time.time())


class ManualClock:
    """Settable clock for simulations and tests."""

    def __init__(self, start: int = 0) -> None:
        self.now = int(start)

    def __call__(self) -> int:
        return self.now

    def set(self, ts: int) -> None:
        if ts < self.now:
            raise ValueError(f"clock cannot move backwards ({ts} < {self.now})")
        self.now = int(ts)

    def advance(self, seconds: int) -> int:
        if seconds < 0:
            raise ValueError("seconds must be non-negative")
        self.now += int(seconds)
        return self.now


class PhaseController:
    def __init__(
        self,
        schedule: RoundSchedule,
        *,
        roles: Roles,
        events: EventLog,
        clock: Optional[Clock] = None,
        round_id: str = "default",
        phase: Phase = Phase.IDLE,
    ) -> None:
        self._schedule = schedule
        self._roles = roles
        self._events = events
        self._clock = clock or system_clock
        self._round_id = round_id
        self._phase = Phase(phase)

    @property
    def phase(self) -> Phase:
        return self._phase

    @property
    def schedule(self) -> RoundSchedule:
        return self._schedule

    def now(self) -> int:
        return int(self._clock())

    def require(self, required: Phase, operation: Optional[str] = None) -> None:
        if self._phase is not required:
            raise WrongPhase(required=required, current=self._phase, operation=operation)

    # ---- transitions ----

    def start_application_phase(self, caller: str) -> PhaseUpdated:
        self._roles.require_role(ADMIN_ROLE, caller)
        self.require(Phase.IDLE, "start_application_phase")
        now = self.now()
        deadline = self._schedule.application_start_deadline
        if deadline is not None and now >= deadline:
            raise ApplicationDeadlinePassed(now=now, boundary=deadline)
        return self._advance(Phase.APPLICATION, now)

    def start_voting_phase(self, caller: str) -> PhaseUpdated:
        self._roles.require_role(ADMIN_ROLE, caller)
        self.require(Phase.APPLICATION, "start_voting_phase")
        now = self.now()
        end = self._schedule.application_end
        if end is not None and now <= end:
            raise ApplicationPeriodOngoing(now=now, boundary=end)
        return self._advance(Phase.VOTING, now)

    def check_finalize(self) -> int:
        """
        Validate that finalize may run now; returns the timestamp used.
        Does not transition: the caller commits via `finalize(now)` once
        winners are computed.
        """
        self.require(Phase.VOTING, "finalize")
        now = self.now()
        end = self._schedule.voting_end
        if end is not None and now <= end:
            raise VotingOngoing(now=now, boundary=end)
        return now

    def finalize(self, now: Optional[int] = None) -> PhaseUpdated:
        ts = self.check_finalize() if now is None else now
        self.require(Phase.VOTING, "finalize")
        return self._advance(Phase.FINALIZED, ts)

    def _advance(self, target: Phase, now: int) -> PhaseUpdated:
        prev = self._phase
        if not prev.can_advance_to(target):
            raise WrongPhase(required=Phase(target.value - 1), current=prev)
        self._phase = target
        ev = self._events.append(PhaseUpdated, ts=now, previous=prev, current=target)
        metrics.record_phase(self._round_id, target.name)
        log.info("phase updated round=%s %s -> %s", self._round_id, prev.name, target.name)
        return ev  # type: ignore[return-value]


__all__ = ["Clock", "ManualClock", "PhaseController", "system_clock"]
