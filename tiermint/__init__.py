from __future__ import annotations
"""
tiermint - tiered NFT collection engine.

Rarity bands with contiguous token id ranges, batch allowances, exact-payment
minting, product lifecycle status, rarity/URI resolution and an equal-split
royalty distributor, on top of a small single-writer host runtime.

Subpackages are imported on first attribute access, so ``import tiermint``
stays cheap for CLI use:

    import tiermint
    cfg = tiermint.config.product_preset()
    c = tiermint.collection.Collection(cfg, deployer=admin)
"""

import importlib
from typing import List

from .version import __version__

_SUBMODULES = (
    "access",
    "cli",
    "collection",
    "config",
    "errors",
    "metrics",
    "pricing",
    "resolver",
    "royalty",
    "rpc",
    "runtime",
    "status",
    "supply",
    "units",
)

__all__: List[str] = ["__version__", *_SUBMODULES]


def __getattr__(name: str):
    if name in _SUBMODULES:
        module = importlib.import_module(f"{__name__}.{name}")
        globals()[name] = module
        return module
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")


def __dir__():
    return sorted(set(globals()) | set(_SUBMODULES))
