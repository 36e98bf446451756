from __future__ import annotations

"""
governance.version: semantic version string.

Rules:
- BASE_VERSION is the semver for this package.
- If GOV_VERSION is set in the environment, that wins (packaging/CI).
"""


import os

# Bump this on intentional releases.
BASE_VERSION = "0.1.0"


def build_version() -> str:
    v = os.getenv("GOV_VERSION")
    if v:
        return v
    return BASE_VERSION


__version__ = build_version()


def get_version() -> str:
    """Public helper returning the resolved version string."""
    return __version__


__all__ = ["__version__", "get_version", "BASE_VERSION"]
