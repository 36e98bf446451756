from __future__ import annotations

"""
GovernanceRound: the single owner of one round's state.

Holds the phase controller, application registry, vote aggregator, winner
selector, role set and event log, and exposes the caller-facing operations:

    start_application_phase(caller)           IDLE         admin
    start_voting_phase(caller)                APPLICATION  admin
    submit_application(caller, index, uri)    APPLICATION  unregistered identity
    remove_application(caller, index)         APPLICATION  applicant or admin
    cast_vote(caller, indices, shares)        VOTING       any identity, once
    finalize_results(caller=None)             VOTING       any, after voting_end

plus read-only getters valid in every phase.

Serialization
-------------
Every state-changing operation runs inside one critical section (a
`threading.Lock` plus an owner check) that spans validation, state commit,
event emission and, for finalize, the payout handoff. Other threads block
until the section exits; a call made from the same thread while a section is
active (e.g. from inside the payout collaborator or an event subscriber)
fails with `ReentrantCall` instead of observing or mutating intermediate
state. Reads never take the section.

Finalize ordering
-----------------
winners computed -> winners committed + results_finalized -> phase FINALIZED
-> ResultsFinalized event -> payout.initialize(payees, shares). The external
call is last, so if it raises the committed result stays valid and queryable;
the failure is reported as `PayoutHandoffFailed`.
"""

import logging
import threading
from contextlib import contextmanager
from typing import Any, Dict, Iterator, List, Optional, Sequence, Tuple

from . import metrics
from .access import ADMIN_ROLE, Roles
from .config import GovernanceConfig
from .errors import (AlreadyFinalized, GovernanceError, PayoutHandoffFailed,
                     ReentrantCall)
from .events import EventLog, GovernanceEvent, PhaseUpdated, ResultsFinalized
from .govtypes.application import Application
from .govtypes.phase import Phase
from .govtypes.vote import VoteSubmission
from .govtypes.winner import Winner
from .adapters.payout import PayoutNotifier
from .lifecycle.phase import Clock, PhaseController
from .registry.applications import ApplicationRegistry
from .selection.selector import WinnerSelector
from .voting.aggregator import VoteAggregator, require_known_index

log = logging.getLogger(__name__)

SNAPSHOT_VERSION = 1

PAYOUT_PENDING = "pending"
PAYOUT_DELIVERED = "delivered"
PAYOUT_FAILED = "failed"
PAYOUT_SKIPPED = "skipped"


class GovernanceRound:
    def __init__(
        self,
        config: Optional[GovernanceConfig] = None,
        *,
        payout: Optional[PayoutNotifier] = None,
        clock: Optional[Clock] = None,
        roles: Optional[Roles] = None,
        events: Optional[EventLog] = None,
    ) -> None:
        self._config = config or GovernanceConfig()
        self._config.validate()
        self._round_id = self._config.round_id
        self._payout = payout
        self._payout_status = PAYOUT_PENDING
        self._payout_error: Optional[str] = None

        self._events = events or EventLog()
        self._roles = roles or Roles(self._config.admins)
        self._phases = PhaseController(
            self._config.schedule,
            roles=self._roles,
            events=self._events,
            clock=clock,
            round_id=self._round_id,
        )
        self._registry = ApplicationRegistry(
            events=self._events,
            max_applications=self._config.registry.max_applications,
        )
        self._votes = VoteAggregator(events=self._events)
        self._selector = WinnerSelector(
            max_winners=self._config.selection.max_winners,
            safety_margin=self._config.selection.scan_safety_margin,
        )

        self._lock = threading.Lock()
        self._owner: Optional[int] = None
        self._active: Optional[str] = None

    # ------------------------------------------------------------------ guard

    @contextmanager
    def _critical(self, operation: str) -> Iterator[None]:
        me = threading.get_ident()
        if self._owner == me:
            metrics.record_rejection(self._round_id, ReentrantCall.code)
            raise ReentrantCall(operation=operation, active=self._active)
        with self._lock:
            self._owner = me
            self._active = operation
            try:
                yield
            except PayoutHandoffFailed:
                # finalize already committed; counted by gov_payout_handoffs_total
                raise
            except GovernanceError as e:
                metrics.record_rejection(self._round_id, e.code)
                log.debug("operation rejected round=%s op=%s code=%s", self._round_id, operation, e.code)
                raise
            finally:
                self._owner = None
                self._active = None

    # ------------------------------------------------------------------ transitions

    def start_application_phase(self, caller: str) -> PhaseUpdated:
        with self._critical("start_application_phase"):
            return self._phases.start_application_phase(caller)

    def start_voting_phase(self, caller: str) -> PhaseUpdated:
        with self._critical("start_voting_phase"):
            return self._phases.start_voting_phase(caller)

    # ------------------------------------------------------------------ applications

    def submit_application(self, caller: str, index: int, uri: str) -> Application:
        with self._critical("submit_application"):
            self._phases.require(Phase.APPLICATION, "submit_application")
            app = self._registry.submit(caller, index, uri, now=self._phases.now())
            metrics.record_application(self._round_id, "submitted", self._registry.count)
            log.info("application submitted round=%s applicant=%s index=%d", self._round_id, caller, app.index)
            return app

    def remove_application(self, caller: str, index: int) -> Application:
        with self._critical("remove_application"):
            self._phases.require(Phase.APPLICATION, "remove_application")
            app = self._registry.remove(
                caller, index, is_admin=self._roles.is_admin(caller), now=self._phases.now()
            )
            metrics.record_application(self._round_id, "removed", self._registry.count)
            log.info(
                "application removed round=%s applicant=%s index=%d by=%s",
                self._round_id, app.applicant, app.index, caller,
            )
            return app

    # ------------------------------------------------------------------ votes

    def cast_vote(self, caller: str, indices: Sequence[int], shares: Sequence[int]) -> VoteSubmission:
        with self._critical("cast_vote"):
            self._phases.require(Phase.VOTING, "cast_vote")
            sub = self._votes.cast_vote(
                caller, indices, shares, registry=self._registry, now=self._phases.now()
            )
            metrics.record_vote(self._round_id, sub.total_weight)
            log.info("vote cast round=%s voter=%s entries=%d", self._round_id, caller, len(sub.indices))
            return sub

    # ------------------------------------------------------------------ finalize

    def finalize_results(self, caller: Optional[str] = None) -> Tuple[Winner, ...]:
        with self._critical("finalize_results"), metrics.time_finalize(self._round_id):
            if self._selector.results_finalized:
                raise AlreadyFinalized()
            now = self._phases.check_finalize()
            winners = self._selector.compute(self._registry, self._votes)

            self._selector.commit(winners)
            self._phases.finalize(now)
            self._events.append(ResultsFinalized, ts=now, winners=winners)
            metrics.record_finalized(self._round_id, len(winners))
            log.info(
                "results finalized round=%s winners=%d by=%s",
                self._round_id, len(winners), caller or "-",
            )

            self._handoff()
            return winners

    def _handoff(self) -> None:
        if self._payout is None:
            self._payout_status = PAYOUT_SKIPPED
            log.warning("no payout collaborator configured round=%s", self._round_id)
            return
        payees, shares = self._selector.payout_lists()
        try:
            self._payout.initialize(payees, shares)
        except Exception as e:
            self._payout_status = PAYOUT_FAILED
            self._payout_error = f"{type(e).__name__}: {e}"
            metrics.record_payout(self._round_id, ok=False)
            log.exception("payout handoff failed round=%s", self._round_id)
            raise PayoutHandoffFailed(reason=self._payout_error, winners=len(payees)) from e
        self._payout_status = PAYOUT_DELIVERED
        metrics.record_payout(self._round_id, ok=True)

    # ------------------------------------------------------------------ roles

    def grant_admin(self, caller: str, account: str) -> bool:
        with self._critical("grant_admin"):
            return self._roles.grant_role(caller, ADMIN_ROLE, account)

    def revoke_admin(self, caller: str, account: str) -> bool:
        with self._critical("revoke_admin"):
            return self._roles.revoke_role(caller, ADMIN_ROLE, account)

    # ------------------------------------------------------------------ getters

    @property
    def round_id(self) -> str:
        return self._round_id

    @property
    def config(self) -> GovernanceConfig:
        return self._config

    @property
    def phase(self) -> Phase:
        return self._phases.phase

    @property
    def events(self) -> EventLog:
        return self._events

    @property
    def roles(self) -> Roles:
        return self._roles

    @property
    def results_finalized(self) -> bool:
        return self._selector.results_finalized

    @property
    def payout_status(self) -> str:
        return self._payout_status

    @property
    def application_count(self) -> int:
        return self._registry.count

    def get_application(self, index: int) -> Application:
        return self._registry.get(index)

    def list_applications(self) -> List[Application]:
        return self._registry.list_applications()

    def list_indices(self) -> List[int]:
        return self._registry.list_indices()

    def is_registered(self, identity: str) -> bool:
        return self._registry.is_registered(identity)

    def get_aggregated_score(self, index: int) -> int:
        require_known_index(self._registry, self._votes, index)
        return self._votes.score_of(index)

    def get_submission(self, voter: str) -> VoteSubmission:
        return self._votes.submission_of(voter)

    def has_voted(self, voter: str) -> bool:
        return self._votes.has_voted(voter)

    def get_winner_count(self) -> int:
        return self._selector.winner_count

    def get_winner(self, rank: int) -> Winner:
        return self._selector.get_winner(rank)

    def get_winners(self) -> Tuple[Winner, ...]:
        return self._selector.winners

    def events_since(self, seq: int = 0) -> List[GovernanceEvent]:
        return self._events.since(seq)

    def summary(self) -> Dict[str, Any]:
        return {
            "round_id": self._round_id,
            "phase": self.phase.name,
            "applications": self._registry.count,
            "voters": self._votes.voter_count,
            "total_raw_score": self._votes.total_raw_score,
            "results_finalized": self._selector.results_finalized,
            "winners": [w.to_dict() for w in self._selector.winners],
            "payout_status": self._payout_status,
            "events": len(self._events),
        }

    # ------------------------------------------------------------------ persistence

    def dump(self) -> Dict[str, Any]:
        """JSON-safe snapshot of the whole round."""
        with self._critical("dump"):
            return {
                "version": SNAPSHOT_VERSION,
                "config": self._config.to_dict(),
                "phase": self.phase.name,
                "roles": self._roles.dump(),
                "registry": self._registry.dump(),
                "votes": self._votes.dump(),
                "selection": self._selector.dump(),
                "payout": {"status": self._payout_status, "error": self._payout_error},
                "events": self._events.to_list(),
            }

    @classmethod
    def load(
        cls,
        snapshot: Dict[str, Any],
        *,
        payout: Optional[PayoutNotifier] = None,
        clock: Optional[Clock] = None,
    ) -> "GovernanceRound":
        """Rebuild a round from `dump()` output."""
        version = int(snapshot.get("version", 0))
        if version != SNAPSHOT_VERSION:
            raise ValueError(f"unsupported snapshot version {version}")
        config = GovernanceConfig.from_dict(snapshot["config"])
        rnd = cls(
            config,
            payout=payout,
            clock=clock,
            roles=Roles.load(snapshot.get("roles", {})),
            events=EventLog.from_list(snapshot.get("events", [])),
        )
        rnd._phases = PhaseController(
            config.schedule,
            roles=rnd._roles,
            events=rnd._events,
            clock=clock,
            round_id=rnd._round_id,
            phase=Phase.parse(snapshot.get("phase", Phase.IDLE.name)),
        )
        rnd._registry.restore(snapshot.get("registry", {}))
        rnd._votes.restore(snapshot.get("votes", {}))
        rnd._selector.restore(snapshot.get("selection", {}))
        pay = snapshot.get("payout", {}) or {}
        rnd._payout_status = str(pay.get("status", PAYOUT_PENDING))
        rnd._payout_error = pay.get("error")
        return rnd


__all__ = [
    "GovernanceRound",
    "SNAPSHOT_VERSION",
    "PAYOUT_PENDING",
    "PAYOUT_DELIVERED",
    "PAYOUT_FAILED",
    "PAYOUT_SKIPPED",
]
