"""
Command-line tools for governance rounds.

- round_cli: show config, run scripted rounds, inspect persisted rounds.
"""

__all__ = ["round_cli"]
