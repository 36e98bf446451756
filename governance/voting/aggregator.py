from __future__ import annotations

"""
VoteAggregator: one ballot per identity, accumulated into raw scores.

A ballot is a pair of equal-length sequences: application indices and raw
shares. Shares are non-negative integers with no required total; only their
relative magnitude across all ballots matters because normalization happens at
finalize. Repeating an index inside one ballot adds both shares.

All validation runs before any mutation, so a rejected ballot leaves scores,
submissions and the event log untouched. Aggregated scores only ever grow.
"""

import logging
from typing import Any, Dict, Sequence, Tuple

from ..errors import (AlreadyVoted, ApplicationNotFound, InvalidInput,
                      SubmissionNotFound)
from ..events import EventLog, VoteCast
from ..govtypes.vote import VoteSubmission
from ..registry.applications import ApplicationRegistry

log = logging.getLogger(__name__)


def _as_int_tuple(values: Sequence[Any], name: str) -> Tuple[int, ...]:
    out = []
    for v in values:
        if isinstance(v, bool) or not isinstance(v, int):
            raise InvalidInput(f"{name} must contain ints", details={name: repr(v)})
        out.append(v)
    return tuple(out)


class VoteAggregator:
    def __init__(self, *, events: EventLog) -> None:
        self._events = events
        self._scores: Dict[int, int] = {}
        self._submissions: Dict[str, VoteSubmission] = {}

    # ---- views ----

    @property
    def voter_count(self) -> int:
        return len(self._submissions)

    @property
    def total_raw_score(self) -> int:
        return sum(self._scores.values())

    def has_voted(self, voter: str) -> bool:
        return voter in self._submissions

    def score_of(self, index: int) -> int:
        """Aggregated raw score for `index` (0 if nothing was cast for it)."""
        return self._scores.get(index, 0)

    def has_score(self, index: int) -> bool:
        return index in self._scores

    def scores(self) -> Dict[int, int]:
        return dict(sorted(self._scores.items()))

    def submission_of(self, voter: str) -> VoteSubmission:
        sub = self._submissions.get(voter)
        if sub is None:
            raise SubmissionNotFound(voter=voter)
        return sub

    # ---- mutations ----

    def cast_vote(
        self,
        voter: str,
        indices: Sequence[int],
        shares: Sequence[int],
        *,
        registry: ApplicationRegistry,
        now: int = 0,
    ) -> VoteSubmission:
        if not voter:
            raise InvalidInput("voter identity must be non-empty")
        if indices is None or len(indices) == 0:
            raise InvalidInput("ballot must reference at least one application")
        if shares is None or len(indices) != len(shares):
            raise InvalidInput(
                "indices and shares must have the same length",
                details={"indices": len(indices), "shares": 0 if shares is None else len(shares)},
            )
        if voter in self._submissions:
            raise AlreadyVoted(voter=voter)

        idx = _as_int_tuple(indices, "indices")
        shr = _as_int_tuple(shares, "shares")
        for s in shr:
            if s < 0:
                raise InvalidInput("shares must be non-negative", details={"share": s})
        for i in idx:
            if not registry.exists(i):
                raise InvalidInput(
                    "ballot references a non-existent application",
                    details={"index": i},
                )

        for i, s in zip(idx, shr):
            self._scores[i] = self._scores.get(i, 0) + s
        sub = VoteSubmission(voter=voter, indices=idx, shares=shr, cast_at=int(now))
        self._submissions[voter] = sub
        self._events.append(VoteCast, ts=now, voter=voter, indices=idx, shares=shr)
        log.debug("vote cast voter=%s entries=%d weight=%d", voter, len(idx), sub.total_weight)
        return sub

    # ---- persistence ----

    def dump(self) -> Dict[str, Any]:
        return {
            "scores": {str(k): v for k, v in sorted(self._scores.items())},
            "submissions": [s.to_dict() for _, s in sorted(self._submissions.items())],
        }

    def restore(self, data: Dict[str, Any]) -> None:
        self._scores = {int(k): int(v) for k, v in (data.get("scores") or {}).items()}
        self._submissions = {}
        for d in data.get("submissions", []):
            sub = VoteSubmission.from_dict(d)
            self._submissions[sub.voter] = sub


def require_known_index(registry: ApplicationRegistry, aggregator: VoteAggregator, index: int) -> None:
    """Raise ApplicationNotFound unless `index` holds an application or has a recorded score."""
    if not registry.exists(index) and not aggregator.has_score(index):
        raise ApplicationNotFound(index=index)


__all__ = ["VoteAggregator", "require_known_index"]
