"""TOML config loading, profiles and logging setup."""

from __future__ import annotations

import logging
import os
import tomllib
from pathlib import Path
from typing import Any, Mapping

# Default config search path (project root or cwd)
_CONFIG_DIR = Path(__file__).resolve().parent.parent.parent.parent / "config"
_CWD_CONFIG = Path.cwd() / "config"


class ConfigurationError(Exception):
    """Startup configuration is missing or invalid."""


def _load_toml(path: Path) -> dict[str, Any]:
    with open(path, "rb") as f:
        return tomllib.load(f)


def _deep_merge(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    """Recursively merge override into base. Override values take precedence."""
    result = dict(base)
    for key, value in override.items():
        if key in result and isinstance(result[key], dict) and isinstance(value, dict):
            result[key] = _deep_merge(result[key], value)
        else:
            result[key] = value
    return result


def _find_config_dir(config_dir: Path | None = None) -> Path:
    if config_dir is not None:
        return config_dir
    if _CWD_CONFIG.exists():
        return _CWD_CONFIG
    return _CONFIG_DIR


def load_config(profile: str | None = None, config_dir: Path | None = None) -> dict[str, Any]:
    """Load merged config from default.toml and optional profile overlay."""
    directory = _find_config_dir(config_dir)
    default_path = directory / "default.toml"
    base = _load_toml(default_path) if default_path.exists() else {}
    if profile:
        profile_path = directory / f"{profile}.toml"
        if not profile_path.exists():
            raise ConfigurationError(f"profile not found: {profile_path}")
        base = _deep_merge(base, _load_toml(profile_path))
    return base


def get_settings(profile: str | None = None, config_dir: Path | None = None) -> Settings:
    """Return Settings instance from merged config."""
    return Settings.from_dict(load_config(profile, config_dir))


class Settings:
    """Application settings from TOML config plus credentials from the environment."""

    def __init__(
        self,
        *,
        matching: dict[str, Any] | None = None,
        arbitrage: dict[str, Any] | None = None,
        filters: dict[str, Any] | None = None,
        execution: dict[str, Any] | None = None,
        scheduler: dict[str, Any] | None = None,
        kalshi: dict[str, Any] | None = None,
        polymarket: dict[str, Any] | None = None,
        logging: dict[str, Any] | None = None,
        environ: Mapping[str, str] | None = None,
    ):
        self.matching = matching or {}
        self.arbitrage = arbitrage or {}
        self.filters = filters or {}
        self.execution = execution or {}
        self.scheduler = scheduler or {}
        self.kalshi = kalshi or {}
        self.polymarket = polymarket or {}
        self.logging = logging or {}
        self.environ = os.environ if environ is None else environ

    @classmethod
    def from_dict(cls, raw: dict[str, Any], environ: Mapping[str, str] | None = None) -> Settings:
        return cls(
            matching=raw.get("matching"),
            arbitrage=raw.get("arbitrage"),
            filters=raw.get("filters"),
            execution=raw.get("execution"),
            scheduler=raw.get("scheduler"),
            kalshi=raw.get("kalshi"),
            polymarket=raw.get("polymarket"),
            logging=raw.get("logging"),
            environ=environ,
        )

    # Convenience accessors with defaults
    @property
    def similarity_threshold(self) -> float:
        return float(self.matching.get("similarity_threshold", 0.80))

    @property
    def min_profit_threshold(self) -> float:
        return float(self.arbitrage.get("min_profit_threshold", 0.02))

    @property
    def kalshi_fee_rate(self) -> float:
        return float(self.arbitrage.get("kalshi_fee_rate", 0.01))

    @property
    def polymarket_fee_rate(self) -> float:
        return float(self.arbitrage.get("polymarket_fee_rate", 0.01))

    @property
    def categories(self) -> list[str]:
        return list(self.filters.get("categories", ["crypto", "sports"]))

    @property
    def max_hours_until_resolution(self) -> float:
        return float(self.filters.get("max_hours_until_resolution", 24))

    @property
    def min_liquidity(self) -> float:
        return float(self.filters.get("min_liquidity", 100.0))

    @property
    def notional_usd(self) -> float:
        return float(self.execution.get("notional_usd", 100.0))

    @property
    def scan_interval_sec(self) -> float:
        return float(self.scheduler.get("scan_interval_sec", 60))

    @property
    def settlement_interval_sec(self) -> float:
        return float(self.scheduler.get("settlement_interval_sec", 300))

    @property
    def kalshi_api_base(self) -> str:
        return self.kalshi.get("api_base", "https://api.elections.kalshi.com/trade-api/v2")

    @property
    def kalshi_rate_per_sec(self) -> float:
        return float(self.kalshi.get("rate_per_sec", 10.0))

    @property
    def gamma_api_base(self) -> str:
        return self.polymarket.get("gamma_api_base", "https://gamma-api.polymarket.com")

    @property
    def request_timeout_sec(self) -> float:
        return float(self.execution.get("request_timeout_sec", 10.0))

    @property
    def kalshi_api_key(self) -> str | None:
        return self.environ.get("KALSHI_API_KEY") or None

    @property
    def kalshi_api_secret(self) -> str | None:
        """RSA private key PEM: KALSHI_API_SECRET, else the file at [kalshi] private_key_path."""
        secret = self.environ.get("KALSHI_API_SECRET")
        if secret:
            return secret
        path = self.kalshi.get("private_key_path")
        if not path:
            return None
        try:
            return Path(path).expanduser().read_text()
        except OSError as e:
            raise ConfigurationError(f"cannot read Kalshi private key {path}: {e}") from e

    @property
    def polymarket_wallet_factory(self) -> str | None:
        """Import path ("module:callable") of a factory returning a PolymarketWallet."""
        return self.environ.get("POLYMARKET_WALLET_FACTORY") or self.polymarket.get("wallet_factory") or None

    @property
    def polymarket_wallet_address(self) -> str | None:
        return self.environ.get("POLYMARKET_WALLET_ADDRESS") or None

    def require_kalshi_api_key(self) -> str:
        key = self.kalshi_api_key
        if not key:
            raise ConfigurationError("KALSHI_API_KEY is not set")
        return key

    @property
    def logging_level(self) -> str:
        return self.logging.get("level", "INFO").upper()

    @property
    def logging_format(self) -> str:
        return self.logging.get("format", "console")

    @property
    def logging_level_num(self) -> int:
        return getattr(logging, self.logging_level, logging.INFO)


def configure_logging(settings: Settings) -> None:
    """Configure structlog with settings. Call once at application entry."""
    import structlog

    processors = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
    ]
    if settings.logging_format == "json":
        processors.append(structlog.processors.JSONRenderer())
    else:
        processors.append(structlog.dev.ConsoleRenderer())

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.make_filtering_bound_logger(settings.logging_level_num),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(),
        cache_logger_on_first_use=True,
    )
