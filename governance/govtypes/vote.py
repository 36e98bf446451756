from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Iterator, Mapping, Tuple


@dataclass(frozen=True)
class VoteSubmission:
    """
    One voter's ballot. Immutable once cast.

    `shares` are raw, unnormalized weights; they do not need to sum to any
    fixed total. Only relative magnitude across all ballots matters.
    """
    voter: str
    indices: Tuple[int, ...]
    shares: Tuple[int, ...]
    cast_at: int = 0

    def __post_init__(self) -> None:
        if len(self.indices) != len(self.shares):
            raise ValueError("indices and shares must have the same length")

    def pairs(self) -> Iterator[Tuple[int, int]]:
        return zip(self.indices, self.shares)

    @property
    def total_weight(self) -> int:
        return sum(self.shares)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "voter": self.voter,
            "indices": list(self.indices),
            "shares": list(self.shares),
            "cast_at": self.cast_at,
        }

    @staticmethod
    def from_dict(d: Mapping[str, Any]) -> "VoteSubmission":
        return VoteSubmission(
            voter=str(d["voter"]),
            indices=tuple(int(i) for i in d["indices"]),
            shares=tuple(int(s) for s in d["shares"]),
            cast_at=int(d.get("cast_at", 0)),
        )


__all__ = ["VoteSubmission"]
