from __future__ import annotations
"""
Governance round events.

Every successful state change appends one event to the round's append-only
`EventLog`. Events are pure frozen dataclasses with JSON-serializable fields
and small helpers to (de)serialize, so off-system auditors can replay them.

Events:
  - ApplicationSubmitted: an applicant registered at an index.
  - ApplicationRemoved:   an application was deleted by its owner or an admin.
  - VoteCast:             a voter's full index/share arrays.
  - PhaseUpdated:         the round moved to its next phase.
  - ResultsFinalized:     winners were committed.

Timestamps are unix seconds taken from the round clock. `seq` is 1-based and
strictly increasing within one log.
"""


import logging
from dataclasses import dataclass
from enum import Enum
from threading import RLock
from typing import Any, Callable, Dict, List, Mapping, Optional, Tuple, Union

from .govtypes.phase import Phase
from .govtypes.winner import Winner

log = logging.getLogger(__name__)


class EventType(str, Enum):
    APPLICATION_SUBMITTED = "ApplicationSubmitted"
    APPLICATION_REMOVED = "ApplicationRemoved"
    VOTE_CAST = "VoteCast"
    PHASE_UPDATED = "PhaseUpdated"
    RESULTS_FINALIZED = "ResultsFinalized"


# ────────────────────────────────────────────────────────────────────────────────
# Event payloads
# ────────────────────────────────────────────────────────────────────────────────

@dataclass(frozen=True)
class ApplicationSubmitted:
    seq: int
    ts: int
    applicant: str
    index: int
    uri: str
    etype: EventType = EventType.APPLICATION_SUBMITTED

    def to_dict(self) -> Dict[str, Any]:
        return {
            "etype": self.etype.value,
            "seq": self.seq,
            "ts": self.ts,
            "applicant": self.applicant,
            "index": self.index,
            "uri": self.uri,
        }

    @staticmethod
    def from_dict(d: Mapping[str, Any]) -> "ApplicationSubmitted":
        return ApplicationSubmitted(
            seq=int(d["seq"]), ts=int(d["ts"]),
            applicant=str(d["applicant"]), index=int(d["index"]), uri=str(d["uri"]),
        )


@dataclass(frozen=True)
class ApplicationRemoved:
    seq: int
    ts: int
    applicant: str
    index: int
    removed_by: str
    etype: EventType = EventType.APPLICATION_REMOVED

    def to_dict(self) -> Dict[str, Any]:
        return {
            "etype": self.etype.value,
            "seq": self.seq,
            "ts": self.ts,
            "applicant": self.applicant,
            "index": self.index,
            "removed_by": self.removed_by,
        }

    @staticmethod
    def from_dict(d: Mapping[str, Any]) -> "ApplicationRemoved":
        return ApplicationRemoved(
            seq=int(d["seq"]), ts=int(d["ts"]),
            applicant=str(d["applicant"]), index=int(d["index"]), removed_by=str(d["removed_by"]),
        )


@dataclass(frozen=True)
class VoteCast:
    seq: int
    ts: int
    voter: str
    indices: Tuple[int, ...]
    shares: Tuple[int, ...]
    etype: EventType = EventType.VOTE_CAST

    def to_dict(self) -> Dict[str, Any]:
        return {
            "etype": self.etype.value,
            "seq": self.seq,
            "ts": self.ts,
            "voter": self.voter,
            "indices": list(self.indices),
            "shares": list(self.shares),
        }

    @staticmethod
    def from_dict(d: Mapping[str, Any]) -> "VoteCast":
        return VoteCast(
            seq=int(d["seq"]), ts=int(d["ts"]), voter=str(d["voter"]),
            indices=tuple(int(i) for i in d["indices"]),
            shares=tuple(int(s) for s in d["shares"]),
        )


@dataclass(frozen=True)
class PhaseUpdated:
    seq: int
    ts: int
    previous: Phase
    current: Phase
    etype: EventType = EventType.PHASE_UPDATED

    def to_dict(self) -> Dict[str, Any]:
        return {
            "etype": self.etype.value,
            "seq": self.seq,
            "ts": self.ts,
            "previous": self.previous.name,
            "current": self.current.name,
        }

    @staticmethod
    def from_dict(d: Mapping[str, Any]) -> "PhaseUpdated":
        return PhaseUpdated(
            seq=int(d["seq"]), ts=int(d["ts"]),
            previous=Phase.parse(d["previous"]), current=Phase.parse(d["current"]),
        )


@dataclass(frozen=True)
class ResultsFinalized:
    seq: int
    ts: int
    winners: Tuple[Winner, ...]
    etype: EventType = EventType.RESULTS_FINALIZED

    def to_dict(self) -> Dict[str, Any]:
        return {
            "etype": self.etype.value,
            "seq": self.seq,
            "ts": self.ts,
            "winners": [w.to_dict() for w in self.winners],
        }

    @staticmethod
    def from_dict(d: Mapping[str, Any]) -> "ResultsFinalized":
        return ResultsFinalized(
            seq=int(d["seq"]), ts=int(d["ts"]),
            winners=tuple(Winner.from_dict(w) for w in d["winners"]),
        )


GovernanceEvent = Union[ApplicationSubmitted, ApplicationRemoved, VoteCast, PhaseUpdated, ResultsFinalized]

_DECODERS: Dict[EventType, Callable[[Mapping[str, Any]], Any]] = {
    EventType.APPLICATION_SUBMITTED: ApplicationSubmitted.from_dict,
    EventType.APPLICATION_REMOVED: ApplicationRemoved.from_dict,
    EventType.VOTE_CAST: VoteCast.from_dict,
    EventType.PHASE_UPDATED: PhaseUpdated.from_dict,
    EventType.RESULTS_FINALIZED: ResultsFinalized.from_dict,
}


def decode_event(d: Mapping[str, Any]) -> GovernanceEvent:
    """Decode any event dict produced by `to_dict()`."""
    return _DECODERS[EventType(d["etype"])](d)


# ────────────────────────────────────────────────────────────────────────────────
# Append-only log
# ────────────────────────────────────────────────────────────────────────────────

Subscriber = Callable[[GovernanceEvent], None]


class EventLog:
    """
    Append-only notification stream for one round.

    Subscribers are called synchronously after an event is appended. A
    subscriber that raises is logged and skipped; state changes that
    produced the event are never undone.
    """

    def __init__(self) -> None:
        self._lock = RLock()
        self._events: List[GovernanceEvent] = []
        self._subscribers: List[Subscriber] = []

    def __len__(self) -> int:
        return len(self._events)

    @property
    def last_seq(self) -> int:
        return self._events[-1].seq if self._events else 0

    def subscribe(self, fn: Subscriber) -> Callable[[], None]:
        """Register an observer. Returns a callable that unsubscribes it."""
        with self._lock:
            self._subscribers.append(fn)

        def _unsubscribe() -> None:
            with self._lock:
                if fn in self._subscribers:
                    self._subscribers.remove(fn)

        return _unsubscribe

    def append(self, factory: Callable[..., GovernanceEvent], *, ts: int, **fields: Any) -> GovernanceEvent:
        with self._lock:
            ev = factory(seq=self.last_seq + 1, ts=int(ts), **fields)
            self._events.append(ev)
            subscribers = list(self._subscribers)
        log.debug("event appended etype=%s seq=%d", ev.etype.value, ev.seq)
        for fn in subscribers:
            try:
                fn(ev)
            except Exception:
                log.exception("event subscriber failed etype=%s seq=%d", ev.etype.value, ev.seq)
        return ev

    def since(self, seq: int = 0) -> List[GovernanceEvent]:
        """Events with `seq` strictly greater than the given one."""
        return [e for e in self._events if e.seq > seq]

    def of_type(self, etype: Union[EventType, str]) -> List[GovernanceEvent]:
        et = EventType(etype)
        return [e for e in self._events if e.etype is et]

    def last(self, etype: Optional[Union[EventType, str]] = None) -> Optional[GovernanceEvent]:
        items = self.of_type(etype) if etype is not None else self._events
        return items[-1] if items else None

    def to_list(self) -> List[Dict[str, Any]]:
        return [e.to_dict() for e in self._events]

    @classmethod
    def from_list(cls, items: List[Mapping[str, Any]]) -> "EventLog":
        out = cls()
        for d in items:
            out._events.append(decode_event(d))
        return out


__all__ = [
    "EventType",
    "ApplicationSubmitted",
    "ApplicationRemoved",
    "VoteCast",
    "PhaseUpdated",
    "ResultsFinalized",
    "GovernanceEvent",
    "decode_event",
    "EventLog",
]
