from __future__ import annotations

"""
tiermint.rpc.mount
------------------

Attach a collection's RPC surface to a host application.

- `mount_tiermint(app, service)`: include the REST router under a prefix on an
  existing FastAPI app. Pass `authenticate=` (a FastAPI dependency that
  resolves the caller's address) to also mount the mint route.
- `create_app(service)`: a ready-made FastAPI app with the router, a
  `/healthz` check and (optionally) Prometheus metrics at `/metrics`.
- `register_jsonrpc(dispatcher, service)`: hand the read-only JSON-RPC method
  table to any dispatcher exposing `.add(name, fn)` or `.register(name, fn)`.

    app = create_app(ServiceBundle(collection=c, splitter=s))
"""

from typing import Any, Callable, Dict, Optional

from fastapi import FastAPI

from tiermint.metrics import mount_fastapi
from tiermint.version import __version__

from .methods import ServiceBundle, build_rest_router, make_methods


def mount_tiermint(
    app: Any,
    service: ServiceBundle,
    *,
    prefix: str = "/tiermint",
    authenticate: Optional[Callable[..., str]] = None,
) -> None:
    """Include the REST endpoints for `service` under `prefix`."""
    router = build_rest_router(service, authenticate=authenticate)
    app.include_router(router, prefix=prefix, tags=["tiermint"])


def create_app(
    service: ServiceBundle,
    *,
    prefix: str = "/tiermint",
    metrics: bool = True,
    authenticate: Optional[Callable[..., str]] = None,
) -> FastAPI:
    app = FastAPI(title="tiermint", version=__version__)
    mount_tiermint(app, service, prefix=prefix, authenticate=authenticate)
    if metrics:
        mount_fastapi(app, "/metrics")

    @app.get("/healthz")
    def healthz() -> Dict[str, Any]:
        c = service.collection
        return {
            "ok": True,
            "version": __version__,
            "collection": c.address,
            "bands": len(c.ledger),
        }

    return app


def register_jsonrpc(dispatcher: Any, service: ServiceBundle) -> int:
    """Register every read-only method; returns how many were registered."""
    add = getattr(dispatcher, "add", None) or getattr(dispatcher, "register", None)
    if add is None:
        raise TypeError("dispatcher must expose .add(name, fn) or .register(name, fn)")
    methods = make_methods(service)
    for name, fn in methods.items():
        add(name, fn)
    return len(methods)


__all__ = ["create_app", "mount_tiermint", "register_jsonrpc"]
