"""Shared fixtures."""

from __future__ import annotations

from datetime import timedelta

import pytest
from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric import rsa

from crossarb.ledger import PositionLedger
from crossarb.models import Event
from fakes import NOW, FakeVenue, make_event


@pytest.fixture
def kalshi() -> FakeVenue:
    return FakeVenue("kalshi")


@pytest.fixture
def polymarket() -> FakeVenue:
    return FakeVenue("polymarket")


@pytest.fixture
def ledger() -> PositionLedger:
    return PositionLedger()


@pytest.fixture
def btc_pair() -> tuple[Event, Event]:
    resolves = NOW + timedelta(hours=6)
    a = make_event(
        "kalshi",
        "KXBTC-26MAR01",
        "Will Bitcoin be above $100,000 on March 1, 2026?",
        resolution_date=resolves,
        category="Crypto",
    )
    b = make_event(
        "polymarket",
        "512345",
        "Bitcoin above $100,000 on March 1, 2026?",
        resolution_date=resolves + timedelta(hours=1),
        category="crypto",
    )
    return a, b


@pytest.fixture(scope="session")
def rsa_key() -> rsa.RSAPrivateKey:
    return rsa.generate_private_key(public_exponent=65537, key_size=2048)


@pytest.fixture(scope="session")
def rsa_pem(rsa_key) -> str:
    return rsa_key.private_bytes(
        serialization.Encoding.PEM,
        serialization.PrivateFormat.PKCS8,
        serialization.NoEncryption(),
    ).decode()
