from __future__ import annotations

"""
proofgate.rpc.mount
-------------------

Helpers to mount the gateway's RPC surface into an existing FastAPI app and/or
to register the JSON-RPC methods with a dispatcher.

Typical usage (REST):
    from fastapi import FastAPI
    from proofgate.rpc.mount import mount_proofgate
    app = FastAPI()
    mount_proofgate(app, registry, prefix="/proofgate")

Typical usage (JSON-RPC):
    from proofgate.rpc.mount import register_jsonrpc
    register_jsonrpc(dispatcher, registry)
"""

import logging
from typing import Any, Protocol

from proofgate.jobs.registry import ProofJobRegistry

from .methods import build_rest_router, make_methods

log = logging.getLogger(__name__)


class _JsonRpcDispatcherLike(Protocol):
    def add(self, method: str, func: Any) -> None: ...
    def register(self, method: str, func: Any) -> None: ...


def mount_proofgate(app: Any, registry: ProofJobRegistry, *, prefix: str = "/proofgate") -> None:
    """Mount the REST endpoints under `prefix` on a FastAPI app."""
    router = build_rest_router(registry)
    app.include_router(router, prefix=prefix, tags=["proofgate"])
    log.info("rpc: mounted REST router prefix=%s", prefix)


def register_jsonrpc(dispatcher: _JsonRpcDispatcherLike, registry: ProofJobRegistry) -> None:
    """
    Register JSON-RPC methods on a dispatcher exposing either
    `add(name, fn)` or `register(name, fn)`.
    """
    methods = make_methods(registry)
    for name, fn in methods.items():
        if hasattr(dispatcher, "add"):
            dispatcher.add(name, fn)
        else:
            dispatcher.register(name, fn)
    log.info("rpc: registered %d JSON-RPC methods", len(methods))


__all__ = ["mount_proofgate", "register_jsonrpc"]
