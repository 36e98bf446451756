from __future__ import annotations
"""Application registry: one application per identity, one per index."""

from .applications import ApplicationRegistry

__all__ = ["ApplicationRegistry"]
