from __future__ import annotations
"""
tiermint.config — configuration for a tiered collection and its royalty
distributor.

Covers:
- Rarity bands: supply, unit price, initial product status, optional mint
  group, seed mints and a progressive batch-allowance schedule
- Collection policy: base URI, lifecycle variant, allowance mode
  (replace/add), payment basis (granted/requested quantity)
- Roles: artist and extra admin addresses; royalty receiver + bps
- Royalty distributor: recipient list

Bands are laid out in the order given; identifier ranges are assigned
rarest-first starting at token id 1.

Environment overrides (all optional; sensible defaults provided):

  TIERMINT_PRESET=product|membership       # starting point when no file is given
  TIERMINT_BASE_URI=https://token-cdn-domain/
  TIERMINT_ALLOWANCE_MODE=replace|add
  TIERMINT_PAYMENT_BASIS=granted|requested
  TIERMINT_ROYALTY_BPS=500
  TIERMINT_ARTIST=0x...
  TIERMINT_RANDOM_SEED=tiermint

You can also load from a JSON or YAML file via
`TIERMINT_CONFIG_FILE=/path/to/config.(json|yaml|yml)`.
File values override defaults; environment overrides the file.

Prices in files may be given as ether strings ("1.5") or as integer wei.
"""


from dataclasses import asdict, dataclass, field, replace
from typing import Any, Dict, List, Optional
import json
import os
from pathlib import Path

import yaml

from .errors import ConfigError
from .units import to_wei

STATUS_NAMES = ("not_ready", "ready")
VARIANTS = {"product": "deployed", "membership": "redeemed"}
ALLOWANCE_MODES = ("replace", "add")
PAYMENT_BASES = ("granted", "requested")

DEFAULT_BASE_URI = "https://token-cdn-domain/"


# -------------------------- Data classes --------------------------


@dataclass
class BandConfig:
    """One rarity band. `unit_price` is integer wei."""
    name: str
    rarity: str
    total: int
    unit_price: int
    initial_status: str = "ready"
    group: Optional[str] = None
    seed: int = 0
    allowance_schedule: List[int] = field(default_factory=list)

    def validate(self) -> None:
        if not self.name or not self.name.replace("_", "").isalnum():
            raise ConfigError(f"band name must be alphanumeric/underscore (got {self.name!r}).")
        if not self.rarity:
            raise ConfigError(f"band {self.name!r} needs a rarity name.")
        if self.total <= 0:
            raise ConfigError(f"band {self.name!r} total must be positive (got {self.total}).")
        if self.unit_price < 0:
            raise ConfigError(f"band {self.name!r} unit_price must be non-negative.")
        if self.initial_status not in STATUS_NAMES:
            raise ConfigError(
                f"band {self.name!r} initial_status must be one of {STATUS_NAMES} (got {self.initial_status!r})."
            )
        if not (0 <= self.seed <= self.total):
            raise ConfigError(f"band {self.name!r} seed must be within [0, total] (got {self.seed}).")
        if any(a < 0 for a in self.allowance_schedule):
            raise ConfigError(f"band {self.name!r} allowance_schedule entries must be non-negative.")


@dataclass
class CollectionConfig:
    """Collection-level configuration."""
    name: str = "tiermint"
    base_uri: str = DEFAULT_BASE_URI
    variant: str = "product"
    lifecycle_uris: bool = True
    bands: List[BandConfig] = field(default_factory=list)
    artist: Optional[str] = None
    admins: List[str] = field(default_factory=list)
    royalty_receiver: Optional[str] = None
    royalty_bps: int = 0
    allowance_mode: str = "replace"
    payment_basis: str = "granted"
    random_seed: str = "tiermint"

    @property
    def final_status(self) -> str:
        return VARIANTS[self.variant]

    def total_supply(self) -> int:
        return sum(b.total for b in self.bands)

    def groups(self) -> List[str]:
        seen: List[str] = []
        for b in self.bands:
            if b.group and b.group not in seen:
                seen.append(b.group)
        return seen

    def validate(self) -> None:
        if self.variant not in VARIANTS:
            raise ConfigError(f"variant must be one of {sorted(VARIANTS)} (got {self.variant!r}).")
        if self.allowance_mode not in ALLOWANCE_MODES:
            raise ConfigError(f"allowance_mode must be one of {ALLOWANCE_MODES} (got {self.allowance_mode!r}).")
        if self.payment_basis not in PAYMENT_BASES:
            raise ConfigError(f"payment_basis must be one of {PAYMENT_BASES} (got {self.payment_basis!r}).")
        if not (0 <= self.royalty_bps <= 10_000):
            raise ConfigError(f"royalty_bps must be between 0 and 10000 (got {self.royalty_bps}).")
        if not self.bands:
            raise ConfigError("at least one band is required.")
        names = set()
        for b in self.bands:
            b.validate()
            if b.name in names:
                raise ConfigError(f"duplicate band name {b.name!r}.")
            names.add(b.name)
        for g in self.groups():
            if g in names:
                raise ConfigError(f"group {g!r} collides with a band name.")
            prices = {b.unit_price for b in self.bands if b.group == g}
            if len(prices) != 1:
                raise ConfigError(f"bands in group {g!r} must share one unit price.")


@dataclass
class SplitterConfig:
    """Royalty distributor: ordered recipients, one equal share each."""
    recipients: List[str] = field(default_factory=list)

    def validate(self) -> None:
        if not self.recipients:
            raise ConfigError("royalty splitter needs at least one recipient.")
        for r in self.recipients:
            if not isinstance(r, str) or not r:
                raise ConfigError(f"invalid recipient address {r!r}.")


@dataclass
class TierMintConfig:
    """Top-level configuration container."""
    collection: CollectionConfig = field(default_factory=CollectionConfig)
    splitter: SplitterConfig = field(default_factory=SplitterConfig)

    def validate(self) -> None:
        self.collection.validate()
        if self.splitter.recipients:
            self.splitter.validate()

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


# -------------------------- Presets --------------------------


def product_preset(
    *,
    base_uri: str = DEFAULT_BASE_URI,
    artist: Optional[str] = None,
    royalty_receiver: Optional[str] = None,
    start_rarer: int = 12,
    start_rare: int = 1012,
    total: int = 2012,
) -> CollectionConfig:
    """
    Three-band product collection: rarest / rarer / rare.

    Band boundaries come from the start offsets: rarest gets `start_rarer`
    tokens, rarer gets `start_rare - start_rarer`, rare the rest of `total`.
    The two top bands represent physical products and start not_ready; the
    bottom band is purely digital and starts ready.
    """
    if not (0 < start_rarer < start_rare < total):
        raise ConfigError("product preset requires 0 < start_rarer < start_rare < total.")
    return CollectionConfig(
        name="product",
        base_uri=base_uri,
        variant="product",
        lifecycle_uris=True,
        bands=[
            BandConfig("rarest", "Mycelia", start_rarer, to_wei("1.5"), initial_status="not_ready"),
            BandConfig("rarer", "Diamond", start_rare - start_rarer, to_wei("1.2"), initial_status="not_ready"),
            BandConfig("rare", "Silver", total - start_rare, to_wei("0.5"), initial_status="ready"),
        ],
        artist=artist,
        royalty_receiver=royalty_receiver,
        royalty_bps=1000 if (royalty_receiver or artist) else 0,
    )


MEMBERSHIP_TIERS = ("Mycelia", "Obsidian", "Diamond", "Gold", "Silver")
MEMBERSHIP_GROUPS = (
    ("whale", (1, 2, 3, 0, 0), "1.0"),
    ("seal", (1, 2, 3, 4, 0), "0.2"),
    ("plankton", (1, 2, 3, 4, 5), "0.1"),
)


def membership_preset(
    *,
    base_uri: str = DEFAULT_BASE_URI,
    artist: Optional[str] = None,
    groups: Optional[Dict[str, List[int]]] = None,
) -> CollectionConfig:
    """
    Five-tier membership collection: whale / seal / plankton groups, each split
    into Mycelia, Obsidian, Diamond, Gold and Silver bands. Per-group counts
    default to whale [1,2,3,0,0], seal [1,2,3,4,0], plankton [1,2,3,4,5];
    zero-count tiers get no band. URIs are `{base}{id}.json`.
    """
    bands: List[BandConfig] = []
    for group, counts, price in MEMBERSHIP_GROUPS:
        if groups and group in groups:
            counts = tuple(groups[group])
        if len(counts) != len(MEMBERSHIP_TIERS):
            raise ConfigError(f"group {group!r} needs {len(MEMBERSHIP_TIERS)} tier counts.")
        for tier, count in zip(MEMBERSHIP_TIERS, counts):
            if count <= 0:
                continue
            bands.append(
                BandConfig(
                    name=f"{group}_{tier.lower()}",
                    rarity=tier,
                    total=int(count),
                    unit_price=to_wei(price),
                    initial_status="not_ready" if tier in ("Mycelia", "Obsidian") else "ready",
                    group=group,
                )
            )
    return CollectionConfig(
        name="membership",
        base_uri=base_uri,
        variant="membership",
        lifecycle_uris=False,
        bands=bands,
        artist=artist,
    )


PRESETS = {"product": product_preset, "membership": membership_preset}


# -------------------------- Loaders --------------------------


def _getenv_int(name: str, default: int) -> int:
    v = os.getenv(name)
    if v is None or v == "":
        return default
    try:
        return int(str(v).replace("_", ""))
    except ValueError as e:
        raise ConfigError(f"Invalid int for {name}: {v!r}") from e


def _getenv_choice(name: str, default: str, choices) -> str:
    v = os.getenv(name)
    if v is None or v == "":
        return default
    v = v.strip().lower()
    if v not in choices:
        raise ConfigError(f"{name} must be one of {tuple(choices)} (got {v!r}).")
    return v


def from_env(base: Optional[TierMintConfig] = None, prefix: str = "TIERMINT_") -> TierMintConfig:
    """
    Build a TierMintConfig from environment variables, optionally layering on top of `base`.
    """
    if base is None:
        preset = _getenv_choice(f"{prefix}PRESET", "product", PRESETS)
        base = TierMintConfig(collection=PRESETS[preset]())
    c = base.collection

    collection = replace(
        c,
        base_uri=os.getenv(f"{prefix}BASE_URI") or c.base_uri,
        allowance_mode=_getenv_choice(f"{prefix}ALLOWANCE_MODE", c.allowance_mode, ALLOWANCE_MODES),
        payment_basis=_getenv_choice(f"{prefix}PAYMENT_BASIS", c.payment_basis, PAYMENT_BASES),
        royalty_bps=_getenv_int(f"{prefix}ROYALTY_BPS", c.royalty_bps),
        artist=os.getenv(f"{prefix}ARTIST") or c.artist,
        random_seed=os.getenv(f"{prefix}RANDOM_SEED") or c.random_seed,
    )
    cfg = TierMintConfig(collection=collection, splitter=base.splitter)
    cfg.validate()
    return cfg


def _price(v: Any) -> int:
    try:
        return to_wei(v)
    except (TypeError, ValueError) as e:
        raise ConfigError(f"invalid price {v!r}: {e}") from e


def _band_from_dict(d: Dict[str, Any]) -> BandConfig:
    try:
        return BandConfig(
            name=str(d["name"]),
            rarity=str(d.get("rarity", d["name"])),
            total=int(d["total"]),
            unit_price=_price(d.get("unit_price", 0)),
            initial_status=str(d.get("initial_status", "ready")),
            group=d.get("group"),
            seed=int(d.get("seed", 0)),
            allowance_schedule=[int(a) for a in d.get("allowance_schedule", [])],
        )
    except KeyError as e:
        raise ConfigError(f"band entry missing field {e.args[0]!r}") from e


def from_dict(data: Dict[str, Any]) -> TierMintConfig:
    col = data.get("collection", {})
    spl = data.get("splitter", {})

    preset = col.get("preset")
    if preset is not None:
        if preset not in PRESETS:
            raise ConfigError(f"unknown preset {preset!r}")
        collection = PRESETS[preset]()
    else:
        collection = CollectionConfig()

    defaults = asdict(collection)
    picked = {k: col.get(k, defaults[k]) for k in defaults if k != "bands"}
    if "bands" in col:
        bands = [_band_from_dict(b) for b in col["bands"]]
    else:
        bands = collection.bands
    collection = CollectionConfig(bands=bands, **picked)
    collection.admins = list(collection.admins)

    cfg = TierMintConfig(
        collection=collection,
        splitter=SplitterConfig(recipients=list(spl.get("recipients", []))),
    )
    cfg.validate()
    return cfg


def from_file(path: str | os.PathLike[str]) -> TierMintConfig:
    """
    Load configuration from a JSON or YAML file. Unparseable content, or a
    top level that is not a mapping, raises ConfigError.
    """
    p = Path(path)
    if not p.exists():
        raise FileNotFoundError(p)

    text = p.read_text(encoding="utf-8")
    try:
        if p.suffix.lower() in (".yaml", ".yml"):
            data = yaml.safe_load(text) or {}
        else:
            data = json.loads(text or "{}")
    except (yaml.YAMLError, json.JSONDecodeError) as e:
        raise ConfigError(f"cannot parse {p}: {e}", details={"path": str(p)}) from e
    if not isinstance(data, dict):
        raise ConfigError(f"{p}: top level must be a mapping, got {type(data).__name__}")
    return from_dict(data)


def load() -> TierMintConfig:
    """
    Load configuration using the following precedence:
      1) File at $TIERMINT_CONFIG_FILE (JSON/YAML), else $TIERMINT_PRESET
      2) Environment variables (TIERMINT_*), applied on top
    """
    file_path = os.getenv("TIERMINT_CONFIG_FILE")
    base = from_file(file_path) if file_path else None
    return from_env(base=base)


# -------------------------- Utilities --------------------------


def pretty(cfg: Optional[TierMintConfig] = None) -> str:
    """Return a human-readable JSON string of the current config."""
    obj = (cfg or load()).to_dict()
    return json.dumps(obj, indent=2, sort_keys=True)


__all__ = [
    "BandConfig",
    "CollectionConfig",
    "SplitterConfig",
    "TierMintConfig",
    "product_preset",
    "membership_preset",
    "PRESETS",
    "from_env",
    "from_dict",
    "from_file",
    "load",
    "pretty",
]
