"""Configuration loading."""

from crossarb.config.settings import ConfigurationError, Settings, configure_logging, get_settings, load_config

__all__ = ["ConfigurationError", "Settings", "configure_logging", "get_settings", "load_config"]
