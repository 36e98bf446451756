from __future__ import annotations

"""
Top-K ranking and basis-point normalization.

Both functions are pure integer arithmetic: no floats, no randomness, and the
output depends only on the candidate order and scores passed in.

Ranking
-------
Candidates arrive in ascending index order. Each one is inserted into a list
of at most K slots: it takes the position of the first slot whose score it
*strictly* exceeds, shifting lower entries down (the K+1-th falls off). Equal
scores never displace, so the earlier (lower index) candidate keeps the higher
rank. Open slots are filled in arrival order.

Normalization
-------------
- total == 0: every winner gets floor(10000 / K); the remainder goes to rank 0.
- otherwise: floor(raw * 10000 / total) each; the truncation remainder goes
  to rank 0.
Either way the shares sum to exactly BASIS_POINTS.

>>> rank_top_k([(1, 6000), (2, 3000), (3, 1000)], 2)
[(1, 6000), (2, 3000)]
>>> normalize_shares([6000, 3000])
[6667, 3333]
"""


from typing import List, Sequence, Tuple

from ..govtypes.winner import BASIS_POINTS

Entry = Tuple[int, int]  # (application index, raw score)


def rank_top_k(candidates: Sequence[Entry], k: int) -> List[Entry]:
    if k <= 0:
        return []
    slots: List[Entry] = []
    for index, score in candidates:
        pos = len(slots)
        for j, (_, held) in enumerate(slots):
            if score > held:
                pos = j
                break
        if pos >= k:
            continue
        slots.insert(pos, (index, score))
        if len(slots) > k:
            slots.pop()
    return slots


def normalize_shares(raw_scores: Sequence[int], total_bp: int = BASIS_POINTS) -> List[int]:
    k = len(raw_scores)
    if k == 0:
        raise ValueError("cannot normalize an empty winner set")
    if any(s < 0 for s in raw_scores):
        raise ValueError("raw scores must be non-negative")

    total = sum(raw_scores)
    if total == 0:
        shares = [total_bp // k] * k
    else:
        shares = [(s * total_bp) // total for s in raw_scores]
    shares[0] += total_bp - sum(shares)

    assert sum(shares) == total_bp, "share normalization invariant violated"
    assert min(shares) >= 0, "negative normalized share"
    return shares


__all__ = ["Entry", "rank_top_k", "normalize_shares"]
