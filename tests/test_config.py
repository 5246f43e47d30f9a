"""Config loading, profile overlay and environment credentials."""

import pytest

from crossarb.config import ConfigurationError, Settings, get_settings, load_config
from crossarb.config.settings import _deep_merge


def test_deep_merge():
    base = {"a": 1, "b": {"c": 2, "d": 3}}
    override = {"b": {"d": 4}, "e": 5}
    assert _deep_merge(base, override) == {"a": 1, "b": {"c": 2, "d": 4}, "e": 5}
    assert base["b"]["d"] == 3


def test_load_shipped_default_and_dev_profile():
    default = load_config()
    assert default["matching"]["similarity_threshold"] == 0.80
    dev = load_config("dev")
    assert dev["execution"]["notional_usd"] == 5.0
    assert dev["execution"]["request_timeout_sec"] == 10.0
    assert dev["logging"]["level"] == "DEBUG"


def test_profile_overlay_from_dir(tmp_path):
    (tmp_path / "default.toml").write_text(
        "[arbitrage]\nmin_profit_threshold = 0.02\nkalshi_fee_rate = 0.01\n\n[scheduler]\nscan_interval_sec = 60\n"
    )
    (tmp_path / "prod.toml").write_text("[arbitrage]\nmin_profit_threshold = 0.03\n")
    settings = get_settings("prod", config_dir=tmp_path)
    assert settings.min_profit_threshold == 0.03
    assert settings.kalshi_fee_rate == 0.01
    assert settings.scan_interval_sec == 60


def test_missing_profile_raises(tmp_path):
    with pytest.raises(ConfigurationError):
        load_config("nope", config_dir=tmp_path)


def test_defaults_without_files(tmp_path):
    settings = get_settings(config_dir=tmp_path)
    assert settings.similarity_threshold == 0.80
    assert settings.categories == ["crypto", "sports"]
    assert settings.notional_usd == 100.0
    assert settings.request_timeout_sec == 10.0
    assert settings.logging_level == "INFO"


def test_kalshi_key_from_environment():
    assert Settings(environ={"KALSHI_API_KEY": "abc"}).require_kalshi_api_key() == "abc"
    settings = Settings(environ={})
    assert settings.kalshi_api_key is None
    with pytest.raises(ConfigurationError):
        settings.require_kalshi_api_key()


def test_polymarket_wallet_address_from_environment():
    settings = Settings(environ={"POLYMARKET_WALLET_ADDRESS": "0xabc"})
    assert settings.polymarket_wallet_address == "0xabc"
    assert Settings(environ={}).polymarket_wallet_address is None


def test_kalshi_secret_env_wins_over_key_file(tmp_path):
    key_file = tmp_path / "k.pem"
    key_file.write_text("FROM FILE")
    assert Settings(kalshi={"private_key_path": str(key_file)}, environ={}).kalshi_api_secret == "FROM FILE"
    env = {"KALSHI_API_SECRET": "FROM ENV"}
    assert Settings(kalshi={"private_key_path": str(key_file)}, environ=env).kalshi_api_secret == "FROM ENV"
    assert Settings(environ={}).kalshi_api_secret is None
    with pytest.raises(ConfigurationError):
        Settings(kalshi={"private_key_path": str(tmp_path / "missing.pem")}, environ={}).kalshi_api_secret


def test_wallet_factory_from_env_or_config():
    configured = Settings(polymarket={"wallet_factory": "a:b"}, environ={})
    assert configured.polymarket_wallet_factory == "a:b"
    env = {"POLYMARKET_WALLET_FACTORY": "c:d"}
    assert Settings(polymarket={"wallet_factory": "a:b"}, environ=env).polymarket_wallet_factory == "c:d"
