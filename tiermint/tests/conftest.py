"""
Shared pytest fixtures:
- deterministic accounts derived with SHA3 (deployer, artist, buyers)
- a fresh Host per test
- product (three-band) and membership (five-tier) collections
"""
from __future__ import annotations

from typing import Callable

import pytest

from tiermint.collection import Collection
from tiermint.config import membership_preset, product_preset
from tiermint.runtime.host import Host, derive_address
from tiermint.units import to_wei

BASE_URI = "https://token-cdn-domain/"
START_RARER = 12
START_RARE = 1012
TOTAL_AMOUNT = 2012


def account(tag: str) -> str:
    return derive_address(f"tiermint-test:{tag}")


@pytest.fixture
def host() -> Host:
    return Host()


@pytest.fixture
def deployer() -> str:
    return account("deployer")


@pytest.fixture
def artist() -> str:
    return account("artist")


@pytest.fixture
def buyer(host: Host) -> str:
    addr = account("buyer")
    host.ledger.credit(addr, to_wei("10000"))
    return addr


@pytest.fixture
def fund(host: Host) -> Callable[[str, str], str]:
    """fund(tag, ether) -> address credited with `ether`."""

    def _fund(tag: str, ether: str = "100") -> str:
        addr = account(tag)
        host.ledger.credit(addr, to_wei(ether))
        return addr

    return _fund


@pytest.fixture
def product(host: Host, deployer: str, artist: str) -> Collection:
    cfg = product_preset(
        base_uri=BASE_URI,
        artist=artist,
        start_rarer=START_RARER,
        start_rare=START_RARE,
        total=TOTAL_AMOUNT,
    )
    return Collection(cfg, host, deployer=deployer)


@pytest.fixture
def membership(host: Host, deployer: str, artist: str) -> Collection:
    return Collection(membership_preset(base_uri=BASE_URI, artist=artist), host, deployer=deployer)
