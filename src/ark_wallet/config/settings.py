"""Application settings loaded from environment variables and config files.

Configuration is loaded from (highest priority first):
1. Environment variables (prefix: ``ARKWALLET_``, nested via ``__``)
2. YAML config file (``ARKWALLET_CONFIG_PATH`` env var)
3. Defaults defined here
"""

from __future__ import annotations

import enum
from pathlib import Path
from typing import Any, Self

import yaml
from pydantic import Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

# ---------------------------------------------------------------------------
# Enums for validated choices
# ---------------------------------------------------------------------------


class StorageEngine(enum.StrEnum):
    """Supported key-value storage backends for the wallet registry."""

    MEMORY = "memory"
    FILE = "file"
    SQLITE = "sqlite"


# ---------------------------------------------------------------------------
# Sub-config models
# ---------------------------------------------------------------------------


class ServiceConfig(BaseSettings):
    """Remote wallet service settings."""

    model_config = SettingsConfigDict(
        env_prefix="ARKWALLET_SERVICE__",
        case_sensitive=False,
    )

    url: str = "http://localhost:8080"
    timeout: float = Field(default=30.0, gt=0, description="Per-request timeout in seconds")


class StorageConfig(BaseSettings):
    """Durable storage settings for the wallet registry."""

    model_config = SettingsConfigDict(
        env_prefix="ARKWALLET_STORAGE__",
        case_sensitive=False,
    )

    engine: StorageEngine = Field(
        default=StorageEngine.FILE,
        description="Storage backend: memory, file or sqlite",
    )
    path: str = Field(
        default="./ark_wallets.json",
        description="JSON file used by the file backend",
    )
    dsn: str = Field(
        default="sqlite:///./ark_wallets.db",
        description="SQLAlchemy connection string used by the sqlite backend",
    )
    registry_key: str = "ark_wallets"


class FaucetConfig(BaseSettings):
    """Test-network faucet settings."""

    model_config = SettingsConfigDict(
        env_prefix="ARKWALLET_FAUCET__",
        case_sensitive=False,
    )

    default_amount: float = Field(default=0.01, gt=0, description="Amount in BTC")


# ---------------------------------------------------------------------------
# Top-level config
# ---------------------------------------------------------------------------


def _load_yaml(path: str | Path) -> dict[str, Any]:
    """Load a YAML configuration file and return its contents as a dict.

    Returns an empty dict if the file doesn't exist or is empty.
    """
    p = Path(path)
    if not p.exists():
        return {}
    text = p.read_text(encoding="utf-8")
    data = yaml.safe_load(text)
    return data if isinstance(data, dict) else {}


class AppConfig(BaseSettings):
    """Top-level application configuration.

    Loads settings from environment variables (``ARKWALLET_`` prefix),
    an optional YAML file, and built-in defaults.
    """

    model_config = SettingsConfigDict(
        env_prefix="ARKWALLET_",
        env_nested_delimiter="__",
        case_sensitive=False,
    )

    debug: bool = False
    config_path: str = ""

    service: ServiceConfig = Field(default_factory=ServiceConfig)
    storage: StorageConfig = Field(default_factory=StorageConfig)
    faucet: FaucetConfig = Field(default_factory=FaucetConfig)

    @model_validator(mode="before")
    @classmethod
    def _merge_yaml(cls, values: dict[str, Any]) -> dict[str, Any]:
        """Merge YAML config file contents under the env var overrides."""
        config_path = values.get("config_path", "")
        if not config_path:
            return values
        yaml_data = _load_yaml(config_path)
        for key, val in yaml_data.items():
            if key not in values or values[key] is None:
                values[key] = val
            elif isinstance(val, dict) and isinstance(values.get(key), dict):
                # YAML fills in nested keys the environment left unset
                values[key] = {**val, **values[key]}
        return values

    @classmethod
    def from_yaml(cls, path: str | Path) -> Self:
        """Construct ``AppConfig`` loading defaults from a YAML file.

        Environment variables still override YAML values.
        """
        return cls(config_path=str(path))
