"""Configuration: environment, YAML and defaults."""

from ark_wallet.config.settings import (
    AppConfig,
    FaucetConfig,
    ServiceConfig,
    StorageConfig,
    StorageEngine,
)

__all__ = ["AppConfig", "FaucetConfig", "ServiceConfig", "StorageConfig", "StorageEngine"]
