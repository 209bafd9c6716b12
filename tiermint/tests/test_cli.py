from __future__ import annotations

import json

import pytest
from typer.testing import CliRunner

from tiermint.cli import app

runner = CliRunner()


@pytest.fixture(autouse=True)
def no_env_config(monkeypatch):
    monkeypatch.delenv("TIERMINT_CONFIG_FILE", raising=False)
    monkeypatch.delenv("TIERMINT_PRESET", raising=False)
    monkeypatch.delenv("TIERMINT_BASE_URI", raising=False)


def test_config_prints_json():
    result = runner.invoke(app, ["config", "--preset", "membership"])
    assert result.exit_code == 0, result.output
    obj = json.loads(result.stdout)
    assert obj["collection"]["variant"] == "membership"


def test_bands_table():
    result = runner.invoke(app, ["bands"])
    assert result.exit_code == 0, result.output
    assert "rarest" in result.stdout
    assert "Mycelia" in result.stdout
    assert "[1, 13)" in result.stdout
    assert "1.5" in result.stdout


def test_bands_json_from_file(tmp_path):
    p = tmp_path / "drop.yaml"
    p.write_text(
        "collection:\n"
        "  bands:\n"
        "    - {name: gold, rarity: Gold, total: 5, unit_price: '0.25'}\n"
        "    - {name: tin, rarity: Tin, total: 20, unit_price: '0.01'}\n",
        encoding="utf-8",
    )
    result = runner.invoke(app, ["bands", "--config", str(p), "--json"])
    assert result.exit_code == 0, result.output
    rows = json.loads(result.stdout)
    assert [(r["name"], r["start_id"], r["end_id"]) for r in rows] == [("gold", 1, 6), ("tin", 6, 26)]


def test_resolve_token():
    result = runner.invoke(app, ["resolve", "1012"])
    assert result.exit_code == 0, result.output
    lines = result.stdout.strip().splitlines()
    assert lines[0] == "token 1012: Diamond (rarer) status=not_ready"
    assert lines[1] == "https://token-cdn-domain/1012/not_ready.json"


def test_resolve_json_membership():
    result = runner.invoke(app, ["resolve", "27", "--preset", "membership", "--json"])
    assert result.exit_code == 0, result.output
    info = json.loads(result.stdout)
    assert info["rarity"] == "Silver"
    assert info["band"] == "plankton_silver"
    assert info["uri"] == "https://token-cdn-domain/27.json"


def test_resolve_out_of_range_exits_1():
    result = runner.invoke(app, ["resolve", "2013"])
    assert result.exit_code == 1


def test_config_errors_exit_2(tmp_path):
    result = runner.invoke(app, ["bands", "--config", str(tmp_path / "missing.yaml")])
    assert result.exit_code == 2
    result = runner.invoke(app, ["config", "--preset", "bespoke"])
    assert result.exit_code == 2


def test_version_flag():
    result = runner.invoke(app, ["--version"])
    assert result.exit_code == 0
    assert result.stdout.startswith("tiermint ")


@pytest.mark.parametrize("name, text", [("bad.yaml", "collection: {bands: [\n"), ("bad.json", "{oops")])
def test_malformed_config_file_exits_2(tmp_path, name, text):
    p = tmp_path / name
    p.write_text(text, encoding="utf-8")
    result = runner.invoke(app, ["bands", "--config", str(p)])
    assert result.exit_code == 2
    assert result.exception is None or isinstance(result.exception, SystemExit)
