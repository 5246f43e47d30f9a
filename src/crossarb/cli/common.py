"""Shared CLI wiring: credentials, venue clients and bot from settings."""

from __future__ import annotations

import importlib

import structlog
import typer
from cryptography.exceptions import UnsupportedAlgorithm

from crossarb.bot import ArbitrageBot
from crossarb.config import ConfigurationError, Settings
from crossarb.venues.kalshi import KalshiClient
from crossarb.venues.polymarket import PolymarketClient, PolymarketWallet
from crossarb.venues.signing import RequestSigner, load_private_key, rsa_pss_signer

log = structlog.get_logger(__name__)


def kalshi_signer(settings: Settings, required: bool = False) -> RequestSigner | None:
    pem = settings.kalshi_api_secret
    if not pem:
        if required:
            raise ConfigurationError("KALSHI_API_SECRET is not set (or [kalshi] private_key_path)")
        return None
    try:
        return rsa_pss_signer(load_private_key(pem))
    except (ValueError, TypeError, UnsupportedAlgorithm) as e:
        raise ConfigurationError(f"invalid Kalshi private key: {e}") from e


def polymarket_wallet(settings: Settings, required: bool = False) -> PolymarketWallet | None:
    """Build the wallet from its configured factory; signing lives outside this package."""
    path = settings.polymarket_wallet_factory
    if not path:
        if required:
            raise ConfigurationError(
                "no Polymarket wallet: set POLYMARKET_WALLET_FACTORY or [polymarket] wallet_factory"
            )
        return None
    module_name, _, attr = path.partition(":")
    if not module_name or not attr:
        raise ConfigurationError(f"wallet factory must be 'module:callable', got {path!r}")
    try:
        factory = getattr(importlib.import_module(module_name), attr)
    except (ImportError, AttributeError) as e:
        raise ConfigurationError(f"cannot load wallet factory {path!r}: {e}") from e
    wallet = factory(settings)
    log.info("polymarket_wallet_attached", factory=path, address=settings.polymarket_wallet_address)
    return wallet


def build_bot(settings: Settings, require_credentials: bool = False) -> ArbitrageBot:
    """Kalshi is venue A, Polymarket venue B.

    With require_credentials (live trading) a missing Kalshi key or private key,
    or a missing Polymarket wallet, raises ConfigurationError.
    """
    api_key = settings.require_kalshi_api_key() if require_credentials else (settings.kalshi_api_key or "")
    signer = kalshi_signer(settings, required=require_credentials)
    wallet = polymarket_wallet(settings, required=require_credentials)
    kalshi = KalshiClient(
        api_key=api_key,
        signer=signer,
        base_url=settings.kalshi_api_base,
        timeout=settings.request_timeout_sec,
        rate_per_sec=settings.kalshi_rate_per_sec,
    )
    polymarket = PolymarketClient(
        base_url=settings.gamma_api_base, wallet=wallet, timeout=settings.request_timeout_sec
    )
    return ArbitrageBot.from_settings(settings, kalshi, polymarket)


def bot_or_exit(settings: Settings, require_credentials: bool = False) -> ArbitrageBot:
    try:
        return build_bot(settings, require_credentials=require_credentials)
    except ConfigurationError as e:
        typer.echo(f"Configuration error: {e}")
        raise typer.Exit(1)
