from __future__ import annotations

from enum import IntEnum
from typing import Optional


class Phase(IntEnum):
    """
    Lifecycle stage of a governance round.

    Ordered and monotonic: the only legal successor of a phase is the next
    integer value. No phase is ever revisited.
    """

    IDLE = 0
    APPLICATION = 1
    VOTING = 2
    FINALIZED = 3

    def next(self) -> Optional["Phase"]:
        if self is Phase.FINALIZED:
            return None
        return Phase(self.value + 1)

    def can_advance_to(self, other: "Phase") -> bool:
        return self.next() is other

    @classmethod
    def parse(cls, value: object) -> "Phase":
        """Accept a Phase, its int value, or its (case-insensitive) name."""
        if isinstance(value, Phase):
            return value
        if isinstance(value, int):
            return cls(value)
        return cls[str(value).strip().upper()]


__all__ = ["Phase"]
