from __future__ import annotations
"""Ballot intake and raw score aggregation."""

from .aggregator import VoteAggregator

__all__ = ["VoteAggregator"]
