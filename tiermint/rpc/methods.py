from __future__ import annotations

"""
tiermint.rpc.methods
--------------------

JSON-RPC style method implementations for a tiered collection.

Exposed methods (bind via `make_methods`):
  • tiermint.tokenUri
  • tiermint.rarityOf
  • tiermint.statusOf
  • tiermint.tokenInfo
  • tiermint.tokensLeft
  • tiermint.listBands
  • tiermint.royaltyBalance

The table above is read-only. Minting spends the caller's balance, so it is
only available bound to an identity the embedding app has already
authenticated: `make_write_methods(service, caller)` for JSON-RPC sessions,
and `build_rest_router(service, authenticate=dep)` for REST, where `dep` is a
FastAPI dependency returning the caller's address. Without `authenticate` the
router has no mint route at all.

Design:
  - This module is transport-agnostic. It returns a dict of callables that a
    JSON-RPC dispatcher can register; `build_rest_router` exposes the same
    callables as FastAPI REST endpoints.
  - Amounts cross the wire as decimal strings of wei so no client has to
    deal with 256-bit integers in JSON numbers.

Usage:
    from tiermint.rpc.methods import ServiceBundle, make_methods
    methods = make_methods(ServiceBundle(collection=c, splitter=s))
    dispatcher.register_many(methods)
"""

from dataclasses import dataclass
from typing import Any, Callable, Dict, Optional

from fastapi import APIRouter, Depends, HTTPException, Query

from tiermint.collection import Collection
from tiermint.errors import (TierMintError, Unauthorized, UnknownBand,
                             UnknownToken)
from tiermint.royalty.splitter import RoyaltySplitter


@dataclass
class ServiceBundle:
    """What the methods need. The splitter is optional."""
    collection: Collection
    splitter: Optional[RoyaltySplitter] = None


class RpcError(TierMintError):
    code = "TIERMINT_RPC_ERROR"


# ---- Helpers ---------------------------------------------------------------

def _coerce_int(value: Any, name: str, *, minimum: int = 0) -> int:
    if isinstance(value, bool):
        raise RpcError(f"invalid {name}: must be an integer")
    try:
        iv = int(value, 0) if isinstance(value, str) else int(value)
    except (TypeError, ValueError) as e:
        raise RpcError(f"invalid {name}: must be an integer") from e
    if iv < minimum:
        raise RpcError(f"invalid {name}: must be >= {minimum}")
    return iv


def _band_view(b: Dict[str, Any]) -> Dict[str, Any]:
    return {
        "name": b["name"],
        "rarity": b["rarity"],
        "group": b["group"],
        "startId": b["start_id"],
        "endId": b["end_id"],
        "total": b["total"],
        "remaining": b["remaining"],
        "batchAllowance": b["batch_allowance"],
        "unitPrice": str(b["unit_price"]),
        "initialStatus": b["initial_status"],
    }


# ---- JSON-RPC method factory ----------------------------------------------

def make_methods(service: ServiceBundle) -> Dict[str, Callable[..., Any]]:
    """
    Build a mapping of JSON-RPC method name -> callable.
    Each callable returns plain JSON-serializable structures.
    """
    c = service.collection

    def tiermint_token_uri(*, tokenId: Any) -> Dict[str, Any]:
        tid = _coerce_int(tokenId, "tokenId", minimum=1)
        return {"tokenId": tid, "uri": c.token_uri(tid)}

    def tiermint_rarity_of(*, tokenId: Any) -> Dict[str, Any]:
        tid = _coerce_int(tokenId, "tokenId", minimum=1)
        return {"tokenId": tid, "rarity": c.rarity_by_token_id(tid)}

    def tiermint_status_of(*, tokenId: Any) -> Dict[str, Any]:
        tid = _coerce_int(tokenId, "tokenId", minimum=1)
        return {"tokenId": tid, "status": c.product_status_by_token_id(tid)}

    def tiermint_token_info(*, tokenId: Any) -> Dict[str, Any]:
        tid = _coerce_int(tokenId, "tokenId", minimum=1)
        info = c.token_info(tid)
        return {
            "tokenId": info["token_id"],
            "band": info["band"],
            "rarity": info["rarity"],
            "status": info["status"],
            "uri": info["uri"],
        }

    def tiermint_tokens_left(*, band: str) -> Dict[str, Any]:
        if not band:
            raise RpcError("band is required")
        return {"band": band, "remaining": c.tokens_left(band)}

    def tiermint_list_bands() -> Dict[str, Any]:
        items = [_band_view(b) for b in c.bands()]
        return {"items": items, "totalSupply": c.ledger.total_supply}

    def tiermint_royalty_balance() -> Dict[str, Any]:
        if service.splitter is None:
            raise RpcError("no royalty splitter is attached")
        s = service.splitter
        return {"address": s.address, "balance": str(s.balance), "recipients": s.recipients.addresses}

    # Map JSON-RPC names → callables
    return {
        "tiermint.tokenUri": tiermint_token_uri,
        "tiermint.rarityOf": tiermint_rarity_of,
        "tiermint.statusOf": tiermint_status_of,
        "tiermint.tokenInfo": tiermint_token_info,
        "tiermint.tokensLeft": tiermint_tokens_left,
        "tiermint.listBands": tiermint_list_bands,
        "tiermint.royaltyBalance": tiermint_royalty_balance,
    }


def make_write_methods(service: ServiceBundle, caller: str) -> Dict[str, Callable[..., Any]]:
    """
    State-changing methods bound to ``caller``, an address the embedding app
    has authenticated. Request parameters never choose whose balance is spent.
    """
    if not caller:
        raise RpcError("an authenticated caller is required")
    c = service.collection

    def tiermint_batch_mint(*, band: str, quantity: Any, value: Any = 0) -> Dict[str, Any]:
        q = _coerce_int(quantity, "quantity")
        v = _coerce_int(value, "value")
        ids = c.batch_mint(caller, band, q, v)
        return {"band": band, "requested": q, "granted": len(ids), "tokenIds": ids}

    return {"tiermint.batchMint": tiermint_batch_mint}


# ---- REST adapter (FastAPI) -------------------------------------------------

def _http_status(e: TierMintError) -> int:
    if isinstance(e, (UnknownToken, UnknownBand)):
        return 404
    if isinstance(e, Unauthorized):
        return 403
    return 400


def build_rest_router(
    service: ServiceBundle, *, authenticate: Optional[Callable[..., str]] = None
) -> APIRouter:
    """
    Return a FastAPI APIRouter exposing the same methods as REST endpoints.
    Errors map to 404 (unknown token/band), 403 (missing role) or 400.

    ``POST /bands/{band}/mint`` is only mounted when ``authenticate`` is given;
    the minting address is whatever that dependency resolves to.
    """
    methods = make_methods(service)
    router = APIRouter()

    def call(name: str, **kwargs: Any) -> Any:
        return invoke(methods[name], **kwargs)

    def invoke(fn: Callable[..., Any], **kwargs: Any) -> Any:
        try:
            return fn(**kwargs)
        except TierMintError as e:
            raise HTTPException(status_code=_http_status(e), detail=e.to_dict()) from e

    @router.get("/tokens/{token_id}/uri")
    def http_token_uri(token_id: int):
        return call("tiermint.tokenUri", tokenId=token_id)

    @router.get("/tokens/{token_id}/rarity")
    def http_rarity_of(token_id: int):
        return call("tiermint.rarityOf", tokenId=token_id)

    @router.get("/tokens/{token_id}/status")
    def http_status_of(token_id: int):
        return call("tiermint.statusOf", tokenId=token_id)

    @router.get("/tokens/{token_id}")
    def http_token_info(token_id: int):
        return call("tiermint.tokenInfo", tokenId=token_id)

    @router.get("/bands")
    def http_list_bands():
        return call("tiermint.listBands")

    @router.get("/bands/{band}/left")
    def http_tokens_left(band: str):
        return call("tiermint.tokensLeft", band=band)

    @router.get("/royalty/balance")
    def http_royalty_balance():
        return call("tiermint.royaltyBalance")

    if authenticate is not None:

        @router.post("/bands/{band}/mint")
        def http_batch_mint(
            band: str,
            quantity: int = Query(..., ge=0),
            value: str = "0",
            caller: str = Depends(authenticate),
        ):
            try:
                write = make_write_methods(service, caller)
            except RpcError as e:
                raise HTTPException(status_code=401, detail=e.to_dict()) from e
            return invoke(write["tiermint.batchMint"], band=band, quantity=quantity, value=value)

    return router


__all__ = ["ServiceBundle", "RpcError", "make_methods", "make_write_methods", "build_rest_router"]
