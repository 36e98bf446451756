from __future__ import annotations
"""
Core value types for governance rounds.

- Phase: forward-only lifecycle stage of a round.
- Application: one applicant's registered entry at a caller-chosen index.
- VoteSubmission: one voter's immutable ballot (indices + raw shares).
- Winner: a finalized (rank, index, applicant, normalized_share, raw_score).
"""


from .phase import Phase
from .application import Application
from .vote import VoteSubmission
from .winner import Winner, BASIS_POINTS, DEFAULT_SCAN_SAFETY_MARGIN

__all__ = [
    "Phase",
    "Application",
    "VoteSubmission",
    "Winner",
    "BASIS_POINTS",
    "DEFAULT_SCAN_SAFETY_MARGIN",
]
