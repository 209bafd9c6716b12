from __future__ import annotations

"""
Prometheus metrics for tiered collections and royalty distribution.

We expose counters and a histogram covering:
- mints: tokens minted by band, paid mint calls by band
- rejections: failed mint calls by reason (error code)
- adjustments: batch-mint requests clamped below the requested quantity
- status: lifecycle transitions by target status
- royalties: amounts received / distributed and the per-recipient share size

Counters are bumped through `Host.on_commit`, i.e. once the outermost call has
committed; a rolled-back call only ever shows up in the rejection counter.

This module can be mounted into any ASGI app or FastAPI app via the helpers at
the bottom.
"""


from typing import Optional

from prometheus_client import (CONTENT_TYPE_LATEST, CollectorRegistry, Counter,
                               Histogram, generate_latest)

from .units import WEI_PER_ETHER

# Use a dedicated registry so embedding apps can choose to merge or expose it directly.
REGISTRY = CollectorRegistry()

# ────────────────────────────────────────────────────────────────────────────────
# Label conventions
#   band: configured band name ("rarest", "whale_mycelia", ...)
#   reason: TierMintError code, e.g. "TIERMINT_SUPPLY_EXHAUSTED"
#   status: "ready" | "deployed" | "redeemed"
# ────────────────────────────────────────────────────────────────────────────────

TOKENS_MINTED = Counter(
    "tiermint_tokens_minted_total",
    "Total tokens minted by band.",
    labelnames=("band",),
    registry=REGISTRY,
)

MINT_CALLS = Counter(
    "tiermint_mint_calls_total",
    "Successful mint calls by band and kind (batch | random | seed).",
    labelnames=("band", "kind"),
    registry=REGISTRY,
)

MINT_REJECTIONS = Counter(
    "tiermint_mint_rejections_total",
    "Mint calls rejected, by reason.",
    labelnames=("reason",),
    registry=REGISTRY,
)

ADJUSTED_MINTS = Counter(
    "tiermint_adjusted_mints_total",
    "Batch-mint requests granted fewer tokens than requested, by band.",
    labelnames=("band",),
    registry=REGISTRY,
)

STATUS_TRANSITIONS = Counter(
    "tiermint_status_transitions_total",
    "Token lifecycle transitions by target status.",
    labelnames=("status",),
    registry=REGISTRY,
)

ROYALTIES_RECEIVED_WEI = Counter(
    "tiermint_royalties_received_wei_total",
    "Native value received by royalty distributors (wei).",
    registry=REGISTRY,
)

ROYALTIES_DISTRIBUTED_WEI = Counter(
    "tiermint_royalties_distributed_wei_total",
    "Native value paid out to royalty recipients (wei).",
    registry=REGISTRY,
)

# Share sizes are observed in ether to keep bucket scales readable.
ROYALTY_SHARE_ETHER = Histogram(
    "tiermint_royalty_share_ether",
    "Distribution of per-recipient royalty shares (ether).",
    buckets=(0.0001, 0.001, 0.01, 0.05, 0.1, 0.25, 0.5, 1, 2.5, 5, 10, 25, 100),
    registry=REGISTRY,
)

# ────────────────────────────────────────────────────────────────────────────────
# Recording helpers
# ────────────────────────────────────────────────────────────────────────────────


def record_mint(band: str, quantity: int, kind: str = "batch", requested: Optional[int] = None) -> None:
    """Record a committed mint of ``quantity`` tokens."""
    MINT_CALLS.labels(band=band, kind=kind).inc()
    TOKENS_MINTED.labels(band=band).inc(quantity)
    if requested is not None and requested != quantity:
        ADJUSTED_MINTS.labels(band=band).inc()


def record_rejection(reason: str) -> None:
    MINT_REJECTIONS.labels(reason=reason).inc()


def record_status(status: str, count: int = 1) -> None:
    if count > 0:
        STATUS_TRANSITIONS.labels(status=status).inc(count)


def record_royalty_received(amount_wei: int) -> None:
    if amount_wei > 0:
        ROYALTIES_RECEIVED_WEI.inc(amount_wei)


def record_distribution(share_wei: int, recipients: int) -> None:
    """Record one distribution round of ``recipients`` equal shares."""
    if share_wei <= 0 or recipients <= 0:
        return
    ROYALTIES_DISTRIBUTED_WEI.inc(share_wei * recipients)
    for _ in range(recipients):
        ROYALTY_SHARE_ETHER.observe(share_wei / WEI_PER_ETHER)


# ────────────────────────────────────────────────────────────────────────────────
# ASGI/FastAPI mounting helpers
# ────────────────────────────────────────────────────────────────────────────────


def metrics_app(registry: Optional[CollectorRegistry] = None):
    """
    Return a minimal ASGI app that serves Prometheus metrics at '/'.
    No web framework required.
    """
    reg = registry or REGISTRY

    async def app(scope, receive, send):  # type: ignore[override]
        if scope["type"] != "http" or (scope.get("path") or "/") != "/":
            await send({"type": "http.response.start", "status": 404, "headers": []})
            await send({"type": "http.response.body", "body": b"Not Found"})
            return
        payload = generate_latest(reg)
        headers = [
            (b"content-type", CONTENT_TYPE_LATEST.encode("ascii")),
            (b"cache-control", b"no-cache, no-store, must-revalidate"),
        ]
        await send({"type": "http.response.start", "status": 200, "headers": headers})
        await send({"type": "http.response.body", "body": payload})

    return app


def mount_fastapi(app, path: str = "/metrics", registry: Optional[CollectorRegistry] = None) -> None:
    """
    Mount a GET {path} endpoint on a FastAPI app to serve metrics.

    Usage:
        from fastapi import FastAPI
        from tiermint.metrics import mount_fastapi
        app = FastAPI()
        mount_fastapi(app)
    """
    from fastapi import Response

    reg = registry or REGISTRY

    @app.get(path)
    def _metrics():
        return Response(generate_latest(reg), media_type=CONTENT_TYPE_LATEST)


__all__ = [
    "REGISTRY",
    "TOKENS_MINTED",
    "MINT_CALLS",
    "MINT_REJECTIONS",
    "ADJUSTED_MINTS",
    "STATUS_TRANSITIONS",
    "ROYALTIES_RECEIVED_WEI",
    "ROYALTIES_DISTRIBUTED_WEI",
    "ROYALTY_SHARE_ETHER",
    "record_mint",
    "record_rejection",
    "record_status",
    "record_royalty_received",
    "record_distribution",
    "metrics_app",
    "mount_fastapi",
]
