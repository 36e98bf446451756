from __future__ import annotations

"""
WinnerSelector: computes and then holds the finalized Winner list.

`compute()` is read-only over the registry and aggregator:

  1. candidate collection: bounded ascending scan of application slots
     (see ApplicationRegistry.scan_candidates)
  2. top-K: K = min(max_winners, application_count), stable ranking
  3. normalization to BASIS_POINTS with the remainder on rank 0

`commit()` stores the result exactly once; afterwards the list is read-only.
Phase transition, events and the payout handoff are sequenced by
GovernanceRound around these two calls.
"""

import logging
from typing import Any, Dict, List, Tuple

from ..errors import AlreadyFinalized, NoApplications, WinnerNotFound
from ..govtypes.winner import BASIS_POINTS, Winner
from ..registry.applications import ApplicationRegistry
from ..voting.aggregator import VoteAggregator
from .topk import normalize_shares, rank_top_k

log = logging.getLogger(__name__)


class WinnerSelector:
    def __init__(self, *, max_winners: int, safety_margin: int) -> None:
        self._max_winners = int(max_winners)
        self._safety_margin = int(safety_margin)
        self._winners: Tuple[Winner, ...] = ()
        self._finalized = False

    @property
    def results_finalized(self) -> bool:
        return self._finalized

    @property
    def winners(self) -> Tuple[Winner, ...]:
        return self._winners

    @property
    def winner_count(self) -> int:
        return len(self._winners)

    def get_winner(self, rank: int) -> Winner:
        if isinstance(rank, bool) or not isinstance(rank, int) or not (0 <= rank < len(self._winners)):
            raise WinnerNotFound(rank=rank if isinstance(rank, int) else -1, count=len(self._winners))
        return self._winners[rank]

    def compute(self, registry: ApplicationRegistry, aggregator: VoteAggregator) -> Tuple[Winner, ...]:
        if self._finalized:
            raise AlreadyFinalized()
        n = registry.count
        if n == 0:
            raise NoApplications()

        candidates = registry.scan_candidates(self._safety_margin)
        k = min(self._max_winners, n)
        ranked = rank_top_k([(a.index, aggregator.score_of(a.index)) for a in candidates], k)
        shares = normalize_shares([score for _, score in ranked])

        by_index = {a.index: a for a in candidates}
        winners = tuple(
            Winner(
                rank=rank,
                index=index,
                applicant=by_index[index].applicant,
                normalized_share=share,
                raw_score=score,
            )
            for rank, ((index, score), share) in enumerate(zip(ranked, shares))
        )
        log.debug(
            "winners computed candidates=%d k=%d total_raw=%d",
            len(candidates), k, sum(score for _, score in ranked),
        )
        return winners

    def commit(self, winners: Tuple[Winner, ...]) -> None:
        if self._finalized:
            raise AlreadyFinalized()
        if sum(w.normalized_share for w in winners) != BASIS_POINTS:
            raise ValueError("winner shares must sum to BASIS_POINTS")
        self._winners = tuple(winners)
        self._finalized = True

    def payout_lists(self) -> Tuple[List[str], List[int]]:
        """(payees, shares) in rank order, as handed to the payout collaborator."""
        return [w.applicant for w in self._winners], [w.normalized_share for w in self._winners]

    # ---- persistence ----

    def dump(self) -> Dict[str, Any]:
        return {
            "results_finalized": self._finalized,
            "winners": [w.to_dict() for w in self._winners],
        }

    def restore(self, data: Dict[str, Any]) -> None:
        self._winners = tuple(Winner.from_dict(d) for d in data.get("winners", []))
        self._finalized = bool(data.get("results_finalized", False))


__all__ = ["WinnerSelector"]
