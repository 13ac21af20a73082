"""
Settings Management Module

Provides pydantic-based configuration management with:
- Environment variable loading (no prefix, e.g. ``AD_SERVER_URL``)
- Optional YAML configuration file layered underneath the environment
- Validation of URLs and the creative key pattern at startup
"""

import os
import re
from pathlib import Path
from typing import Any

import yaml
from pydantic import ValidationError, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from .config import DEFAULT_KEY_REGEX, KeyField
from .exceptions import ConfigError


class Settings(BaseSettings):
    """
    Ad normalizer service settings.

    Configuration hierarchy (lowest to highest precedence):
    1. Field defaults
    2. YAML configuration file (optional)
    3. Environment variables
    4. Explicit overrides passed to ``load_settings``

    Examples:
        >>> settings = load_settings()
        >>> settings.key_field
        'universaladid'

        With a YAML base:
        >>> settings = load_settings(Path("settings/config.yaml"))
    """

    model_config = SettingsConfigDict(
        case_sensitive=False,
        extra="ignore",
        frozen=True,
    )

    ad_server_url: str
    encore_url: str
    redis_url: str
    asset_server_url: str
    output_bucket_url: str
    root_url: str

    key_field: str = KeyField.UNIVERSAL_AD_ID.value
    key_regex: str = DEFAULT_KEY_REGEX
    encore_profile: str = "program"
    jit_package: bool = False
    packaging_queue: str = "package"
    in_flight_ttl: int = 3600
    redis_ttl: int = 86400
    osc_access_token: str | None = None

    port: int = 8000
    log_level: str = "INFO"
    json_logs: bool = True

    @field_validator(
        "ad_server_url",
        "encore_url",
        "asset_server_url",
        "output_bucket_url",
        "root_url",
    )
    @classmethod
    def _strip_trailing_slash(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("must not be empty")
        return value.rstrip("/")

    @field_validator("key_regex")
    @classmethod
    def _check_key_regex(cls, value: str) -> str:
        try:
            re.compile(value)
        except re.error as e:
            raise ValueError(f"invalid regular expression: {e}") from e
        return value

    @field_validator("key_field")
    @classmethod
    def _normalize_key_field(cls, value: str) -> str:
        return value.strip().lower()

    @field_validator("log_level")
    @classmethod
    def _normalize_log_level(cls, value: str) -> str:
        return value.strip().upper()

    @property
    def key_pattern(self) -> "re.Pattern[str]":
        return re.compile(self.key_regex)


def _read_yaml(config_path: Path) -> dict[str, Any]:
    with open(config_path) as f:
        data = yaml.safe_load(f) or {}
    if not isinstance(data, dict):
        raise ConfigError(
            "Configuration file must hold a mapping",
            context={"path": str(config_path)},
        )
    return {str(key).lower(): value for key, value in data.items()}


def load_settings(config_path: Path | None = None, **overrides: Any) -> Settings:
    """
    Load and validate settings.

    Args:
        config_path: Optional YAML file; values set in the environment win over it
        **overrides: Field values taking precedence over every other source

    Returns:
        Settings instance

    Raises:
        ConfigError: If required values are missing or invalid
    """
    data: dict[str, Any] = {}
    if config_path is not None and config_path.exists():
        environ = {key.lower() for key in os.environ}
        data = {key: value for key, value in _read_yaml(config_path).items() if key not in environ}
    data.update(overrides)

    try:
        return Settings(**data)
    except ValidationError as e:
        keys = [".".join(str(part) for part in error["loc"]) for error in e.errors()]
        raise ConfigError(f"Invalid configuration: {', '.join(keys)}", config_keys=keys) from e


__all__ = ["Settings", "load_settings"]
