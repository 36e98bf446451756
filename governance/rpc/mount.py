from __future__ import annotations

"""
governance.rpc.mount
--------------------

Helpers to mount the governance RPC surface into an existing FastAPI app
and/or to register the JSON-RPC methods with your dispatcher.

Typical usage (REST):
    from fastapi import FastAPI
    from governance.rpc.mount import mount_governance
    app = FastAPI()
    mount_governance(app, rnd, prefix="/gov")

Typical usage (JSON-RPC):
    from governance.rpc.mount import register_jsonrpc
    register_jsonrpc(dispatcher, rnd)
"""

import logging
from typing import Any, Protocol

from .. import metrics
from ..round import GovernanceRound
from .methods import build_rest_router, make_methods

log = logging.getLogger(__name__)


class _JsonRpcDispatcherLike(Protocol):
    """Minimal protocol to support common JSON-RPC dispatchers."""
    def add(self, method: str, func: Any) -> None: ...
    def register(self, method: str, func: Any) -> None: ...


def mount_governance(app: Any, rnd: GovernanceRound, *, prefix: str = "/gov") -> None:
    """
    Mount the governance REST endpoints under `prefix` on a FastAPI app.
    """
    router = build_rest_router(rnd)
    app.include_router(router, prefix=prefix, tags=["governance"])
    log.info("governance router mounted round=%s prefix=%s", rnd.round_id, prefix)


def register_jsonrpc(dispatcher: _JsonRpcDispatcherLike, rnd: GovernanceRound) -> int:
    """
    Register JSON-RPC methods on a dispatcher.

    We try `.add(name, fn)` first and fall back to `.register(name, fn)`.
    Returns the number of methods registered.
    """
    methods = make_methods(rnd)
    for name, fn in methods.items():
        if hasattr(dispatcher, "add"):
            dispatcher.add(name, fn)
        else:
            dispatcher.register(name, fn)
    return len(methods)


def create_app(rnd: GovernanceRound, *, prefix: str = "/gov", with_metrics: bool = True):
    """Standalone FastAPI app serving one round (and /metrics when enabled)."""
    from fastapi import FastAPI

    app = FastAPI(title=f"Governance round {rnd.round_id}")
    mount_governance(app, rnd, prefix=prefix)
    if with_metrics:
        metrics.mount_fastapi(app)
    return app


__all__ = ["mount_governance", "register_jsonrpc", "create_app"]
