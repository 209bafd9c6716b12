"""
tiermint.cli
------------

Inspect a collection configuration without deploying anything:

- config: print the resolved configuration (file → env precedence)
- bands: table of bands with identifier ranges, prices and initial status
- resolve ID: rarity, status and metadata URI of a token id

Examples
--------
python -m tiermint.cli config --preset membership
python -m tiermint.cli bands --config collection.yaml --json
python -m tiermint.cli resolve 1012
"""

import json
import logging
from typing import Any, Dict, List, Optional

import typer

from tiermint import config as cfgmod
from tiermint.collection import Collection
from tiermint.errors import TierMintError
from tiermint.runtime.host import Host, derive_address
from tiermint.units import from_wei
from tiermint.version import __version__

log = logging.getLogger(__name__)

app = typer.Typer(
    name="tiermint",
    add_completion=False,
    no_args_is_help=True,
    help="Inspect tiered collection configurations: bands, ranges and token URIs.",
)

CLI_DEPLOYER = derive_address("tiermint:cli:deployer")


def _print_version(value: bool) -> None:
    if value:
        typer.echo(f"tiermint {__version__}")
        raise typer.Exit()


@app.callback()
def _root(
    version: bool = typer.Option(
        False, "--version", callback=_print_version, is_eager=True, help="Show the version and exit."
    ),
) -> None:
    """Inspect tiered collection configurations."""


# -------------------- utils --------------------


def _load(config_file: Optional[str], preset: Optional[str]) -> cfgmod.TierMintConfig:
    try:
        if config_file:
            base = cfgmod.from_file(config_file)
        elif preset:
            if preset not in cfgmod.PRESETS:
                raise cfgmod.ConfigError(f"unknown preset {preset!r}; choose from {sorted(cfgmod.PRESETS)}")
            base = cfgmod.TierMintConfig(collection=cfgmod.PRESETS[preset]())
        else:
            return cfgmod.load()
        return cfgmod.from_env(base=base)
    except (TierMintError, FileNotFoundError) as e:
        typer.secho(f"config error: {e}", fg=typer.colors.RED, err=True)
        raise typer.Exit(2) from e


def _collection(cfg: cfgmod.TierMintConfig) -> Collection:
    return Collection(cfg.collection, Host(), deployer=CLI_DEPLOYER)


def _print_bands(rows: List[Dict[str, Any]]) -> None:
    header = f"{'band':<18} {'rarity':<10} {'group':<9} {'ids':<14} {'total':>6} {'price':>10}  status"
    typer.secho(header, bold=True)
    for r in rows:
        ids = f"[{r['start_id']}, {r['end_id']})"
        typer.echo(
            f"{r['name']:<18} {r['rarity']:<10} {(r['group'] or '-'):<9} {ids:<14} "
            f"{r['total']:>6} {from_wei(r['unit_price']):>10}  {r['initial_status']}"
        )


# -------------------- commands --------------------

_CONFIG_OPT = typer.Option(None, "--config", "-c", help="JSON/YAML config file (default: $TIERMINT_CONFIG_FILE).")
_PRESET_OPT = typer.Option(None, "--preset", help="Start from a preset: product or membership.")


@app.command("config")
def show_config(
    config_file: Optional[str] = _CONFIG_OPT,
    preset: Optional[str] = _PRESET_OPT,
) -> None:
    """Print the resolved configuration as JSON."""
    typer.echo(cfgmod.pretty(_load(config_file, preset)))


@app.command("bands")
def list_bands(
    config_file: Optional[str] = _CONFIG_OPT,
    preset: Optional[str] = _PRESET_OPT,
    json_out: bool = typer.Option(False, "--json", help="Output as JSON."),
) -> None:
    """Show every band with its identifier range and price."""
    rows = _collection(_load(config_file, preset)).bands()
    if json_out:
        typer.echo(json.dumps(rows, indent=2, sort_keys=True))
    else:
        _print_bands(rows)


@app.command("resolve")
def resolve(
    token_id: int = typer.Argument(..., min=1, help="Token id to resolve."),
    config_file: Optional[str] = _CONFIG_OPT,
    preset: Optional[str] = _PRESET_OPT,
    json_out: bool = typer.Option(False, "--json", help="Output as JSON."),
) -> None:
    """Resolve a token id to its band, rarity, initial status and URI."""
    c = _collection(_load(config_file, preset))
    try:
        info = c.resolver.describe(token_id)
    except TierMintError as e:
        typer.secho(f"error: {e}", fg=typer.colors.RED, err=True)
        raise typer.Exit(1) from e
    if json_out:
        typer.echo(json.dumps(info, indent=2, sort_keys=True))
        return
    typer.echo(f"token {info['token_id']}: {info['rarity']} ({info['band']}) status={info['status']}")
    typer.echo(info["uri"])


def get_app() -> typer.Typer:
    return app


def main() -> None:
    logging.basicConfig(level=logging.WARNING, format="%(levelname)s %(name)s: %(message)s")
    app()


__all__ = ["app", "get_app", "main"]
