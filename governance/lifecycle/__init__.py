from __future__ import annotations
"""Round lifecycle: the forward-only phase state machine and its clock."""

from .phase import Clock, ManualClock, PhaseController, system_clock

__all__ = ["Clock", "ManualClock", "PhaseController", "system_clock"]
