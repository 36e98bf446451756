from __future__ import annotations
"""
RPC surface for governance rounds: JSON-RPC method table and a FastAPI router.

Typical usage:
    from fastapi import FastAPI
    from governance.rpc import mount_governance
    app = FastAPI()
    mount_governance(app, rnd, prefix="/gov")
"""

RPC_PREFIX = "/gov"

from .methods import build_rest_router, make_methods  # noqa: E402
from .mount import create_app, mount_governance, register_jsonrpc  # noqa: E402

__all__ = [
    "RPC_PREFIX",
    "build_rest_router",
    "make_methods",
    "create_app",
    "mount_governance",
    "register_jsonrpc",
]
