"""Configuration loading and validation."""

from jsonsalvage.config.loader import load_config
from jsonsalvage.config.schema import LoggingConfig, ProviderConfig, SalvageConfig

__all__ = ["LoggingConfig", "ProviderConfig", "SalvageConfig", "load_config"]
