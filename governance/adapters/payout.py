from __future__ import annotations

"""
governance.adapters.payout
==========================

Port to the downstream payout component that actually disburses funds once a
round is finalized. The core calls `initialize(payees, shares)` exactly once,
at the end of finalize, with the winners in rank order and shares that sum to
BASIS_POINTS.

Provided here:
- `PayoutNotifier`: the Protocol the round depends on.
- `RecordingPayout`: in-process implementation that validates its inputs the
  way a deterministic N-way splitter does (non-empty, equal lengths, no
  duplicate payees, exact total) and refuses a second initialization.
- `split_amount`: integer division of an amount by basis-point shares with the
  floor remainder assigned to the first payee.
"""

import logging
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Protocol, Sequence, Tuple, runtime_checkable

from ..errors import PayoutError
from ..govtypes.winner import BASIS_POINTS

log = logging.getLogger(__name__)


@runtime_checkable
class PayoutNotifier(Protocol):
    """Minimal surface of the payout collaborator."""

    def initialize(self, payees: Sequence[str], shares: Sequence[int]) -> None:
        """Accept the final payee list and basis-point shares (sum == BASIS_POINTS)."""


def validate_split(payees: Sequence[str], shares: Sequence[int]) -> None:
    if len(payees) == 0 or len(payees) != len(shares):
        raise PayoutError("payees and shares must be non-empty and equal length",
                          details={"payees": len(payees), "shares": len(shares)})
    seen = set()
    for p in payees:
        if not p:
            raise PayoutError("payee identity must be non-empty")
        if p in seen:
            raise PayoutError("duplicate payee", details={"payee": p})
        seen.add(p)
    for s in shares:
        if isinstance(s, bool) or not isinstance(s, int) or s < 0:
            raise PayoutError("shares must be non-negative ints", details={"share": repr(s)})
    total = sum(shares)
    if total != BASIS_POINTS:
        raise PayoutError("shares must sum to BASIS_POINTS", details={"total": total})


def split_amount(total: int, payees: Sequence[str], shares: Sequence[int]) -> Dict[str, int]:
    """
    Divide `total` base units by basis-point `shares`.

    owed(payee) = floor(total * share / BASIS_POINTS); the remainder left by
    truncation goes to the first payee so the parts sum to `total`.
    """
    validate_split(payees, shares)
    if total < 0:
        raise PayoutError("total must be non-negative", details={"total": total})
    parts = [(total * s) // BASIS_POINTS for s in shares]
    parts[0] += total - sum(parts)
    return dict(zip(payees, parts))


@dataclass
class RecordingPayout:
    """
    Payout collaborator that records what it was initialized with.

    `fail_with` makes `initialize` raise the given exception after
    validation, which is how tests exercise the handoff failure path.
    """
    payees: Tuple[str, ...] = ()
    shares: Tuple[int, ...] = ()
    initialized: bool = False
    calls: int = 0
    fail_with: Optional[BaseException] = None
    history: List[Tuple[Tuple[str, ...], Tuple[int, ...]]] = field(default_factory=list)

    def initialize(self, payees: Sequence[str], shares: Sequence[int]) -> None:
        self.calls += 1
        if self.initialized:
            raise PayoutError("payout already initialized")
        validate_split(payees, shares)
        if self.fail_with is not None:
            raise self.fail_with
        self.payees = tuple(payees)
        self.shares = tuple(shares)
        self.initialized = True
        self.history.append((self.payees, self.shares))
        log.info("payout initialized payees=%d", len(self.payees))

    def allocation(self, total: int) -> Dict[str, int]:
        if not self.initialized:
            raise PayoutError("payout not initialized")
        return split_amount(total, self.payees, self.shares)


__all__ = ["PayoutNotifier", "RecordingPayout", "validate_split", "split_amount"]
