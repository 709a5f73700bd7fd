from __future__ import annotations

from .methods import RpcError, build_rest_router, make_methods
from .mount import mount_proofgate, register_jsonrpc

__all__ = ["RpcError", "make_methods", "build_rest_router", "mount_proofgate", "register_jsonrpc"]
