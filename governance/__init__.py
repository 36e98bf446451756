from __future__ import annotations
"""
governance - phased, stake-weighted funding rounds.

A round moves Idle -> Application -> Voting -> Finalized. Applicants register
one application each under a caller-chosen index, voters cast one scored
ballot each, and finalize picks the top-K applications and normalizes their
shares to exactly 10_000 basis points before handing them to a payout
component. Submodules are lazily imported to keep import time minimal.

Public surface (lazily loaded):
- config, errors, metrics, events, access
- govtypes, lifecycle, registry, voting, selection
- round, adapters, rpc, cli, scenario
"""


from typing import List

try:
    from .version import __version__  # type: ignore
except Exception:  # pragma: no cover - safe fallback when building incrementally
    __version__ = "0.0.0+local"

__all__: List[str] = [
    "__version__",
    # lazily importable subpackages/modules
    "config",
    "errors",
    "metrics",
    "events",
    "access",
    "govtypes",
    "lifecycle",
    "registry",
    "voting",
    "selection",
    "round",
    "adapters",
    "rpc",
    "cli",
    "scenario",
]

# --- Lazy module loader (PEP 562) -------------------------------------------------
import importlib


_lazy_modules = set(__all__) - {"__version__"}


def __getattr__(name: str):
    if name in _lazy_modules:
        return importlib.import_module(f".{name}", __name__)
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")


def __dir__():
    return sorted(set(globals().keys()) | _lazy_modules)


def get_version() -> str:
    """Return the governance package version string."""
    return __version__
