from __future__ import annotations
"""
Adapters to systems outside the governance core:

- payout:   the downstream payout collaborator port and an in-process recorder
- state_db: SQLite persistence for round snapshots
"""

__all__ = ["payout", "state_db"]
