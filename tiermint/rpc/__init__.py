"""
tiermint.rpc — JSON-RPC method table and FastAPI REST router for a collection.
"""

RPC_PREFIX = "/tiermint"

from .methods import (RpcError, ServiceBundle, build_rest_router,  # noqa: E402
                      make_methods, make_write_methods)
from .mount import create_app, mount_tiermint, register_jsonrpc  # noqa: E402

__all__ = [
    "RPC_PREFIX",
    "RpcError",
    "ServiceBundle",
    "build_rest_router",
    "create_app",
    "make_methods",
    "make_write_methods",
    "mount_tiermint",
    "register_jsonrpc",
]
