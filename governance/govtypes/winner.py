from __future__ import annotations

from dataclasses import asdict, dataclass
from typing import Any, Dict, Final, Mapping

# Fixed-point total for normalized shares (10_000 bp = 100%).
BASIS_POINTS: Final[int] = 10_000

# Extra index slots the finalize scan may visit beyond the application count.
DEFAULT_SCAN_SAFETY_MARGIN: Final[int] = 100


@dataclass(frozen=True)
class Winner:
    """
    A finalized top-K entry.

    Fields:
      - rank: 0-based position (0 = highest raw score).
      - index: application index.
      - applicant: payee identity.
      - normalized_share: basis points (0..10000); all winners sum to 10000.
      - raw_score: aggregated raw score at finalize time.
    """
    rank: int
    index: int
    applicant: str
    normalized_share: int
    raw_score: int

    def __post_init__(self) -> None:
        if not (0 <= self.normalized_share <= BASIS_POINTS):
            raise ValueError(f"normalized_share out of range: {self.normalized_share}")

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    @staticmethod
    def from_dict(d: Mapping[str, Any]) -> "Winner":
        return Winner(
            rank=int(d["rank"]),
            index=int(d["index"]),
            applicant=str(d["applicant"]),
            normalized_share=int(d["normalized_share"]),
            raw_score=int(d["raw_score"]),
        )


__all__ = ["Winner", "BASIS_POINTS", "DEFAULT_SCAN_SAFETY_MARGIN"]
