from __future__ import annotations
"""Finalize-time winner selection: candidate scan, top-K ranking, share normalization."""

from .topk import normalize_shares, rank_top_k
from .selector import WinnerSelector

__all__ = ["normalize_shares", "rank_top_k", "WinnerSelector"]
