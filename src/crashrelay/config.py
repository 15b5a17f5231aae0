"""
Configuration management.

Uses Pydantic Settings for environment variable handling and validation,
with an optional YAML file providing defaults.
"""

import json
import os
from functools import lru_cache
from typing import Any, Dict, List, Optional

import yaml
from pydantic import Field, ValidationError as PydanticValidationError, field_validator
from pydantic_core import PydanticCustomError
from pydantic_settings import BaseSettings, SettingsConfigDict
from yarl import URL

from .core.exceptions import ConfigurationError

CONFIG_PATH_ENV = "CRASHRELAY_CONFIG"


def load_config_file(config_path: Optional[str] = None) -> Dict[str, Any]:
    """Load configuration from YAML file."""
    if config_path is None:
        # Look for config.yaml in common locations
        possible_paths = [
            "config.yaml",  # Current directory
            "/etc/crashrelay/config.yaml",
        ]

        for path in possible_paths:
            if os.path.exists(path):
                config_path = path
                break
        else:
            return {}

    if os.path.exists(config_path):
        with open(config_path, 'r') as f:
            config_data = yaml.safe_load(f) or {}
            return config_data
    return {}


def validate_url(raw_url: str) -> URL:
    """
    Parse and normalize the Humio base URL.

    Only absolute http(s) URLs are accepted; dot segments in the path are
    resolved ("http://host/../asd" becomes "http://host/asd").
    """
    try:
        url = URL(raw_url.strip())
    except (TypeError, ValueError) as e:
        raise ValueError(str(e)) from e
    if not url.scheme:
        raise ValueError("schema required")
    if url.scheme not in ("http", "https"):
        raise ValueError("only schemes http(s) are supported")
    return url


class Settings(BaseSettings):
    """Main application settings."""

    # Server configuration
    host: str = Field(default="0.0.0.0", description="Server host")
    port: int = Field(default=8080, description="Server port for webhooks")
    log_level: str = Field(default="INFO", description="Log level")
    timeout_seconds: float = Field(
        default=10.0,
        gt=0,
        description="Shared timeout for server keep-alive and Humio requests",
    )

    # Crashlytics webhook
    crashlytics_auth_token: str = Field(description="Crashlytics webhook authentication token")

    # Humio ingest
    humio_ingest_token: str = Field(description="Humio ingest token")
    humio_url: str = Field(description="Humio HTTP API URL, e.g. https://cloud.humio.com")
    humio_ingest_endpoint: str = Field(
        default="humio-structured",
        description="Name of the Humio ingest endpoint",
    )

    model_config = SettingsConfigDict(env_prefix="CRASHRELAY_", case_sensitive=False)

    @field_validator("crashlytics_auth_token", "humio_ingest_token")
    def validate_not_blank(cls, v: str) -> str:
        """Required secrets must not be blank."""
        if not v.strip():
            raise PydanticCustomError("blank", "Value must not be blank")
        return v

    @field_validator("humio_url")
    def validate_humio_url(cls, v: str) -> str:
        """Normalize the Humio URL, rejecting non http(s) schemes."""
        if not v.strip():
            raise PydanticCustomError("blank", "Value must not be blank")
        try:
            return str(validate_url(v))
        except ValueError as e:
            raise PydanticCustomError("invalid_url", "{reason}", {"reason": str(e)}) from e

    @property
    def humio_base_url(self) -> URL:
        """Humio base URL as a parsed URL."""
        return URL(self.humio_url)


def build_settings(**overrides: Any) -> Settings:
    """
    Build settings from env vars plus explicit overrides.

    Raises ConfigurationError listing missing and invalid fields.
    """
    try:
        return Settings(**overrides)
    except PydanticValidationError as e:
        missing: List[str] = []
        invalid: Dict[str, str] = {}
        for error in e.errors():
            field = ".".join(str(part) for part in error["loc"])
            if error["type"] in ("missing", "blank"):
                missing.append(field)
            else:
                invalid[field] = error["msg"]
        raise ConfigurationError(
            "Invalid configuration",
            details={"missing": missing, "invalid": invalid},
        ) from e


def load_settings(config_path: Optional[str] = None, **overrides: Any) -> Settings:
    """
    Load settings from an optional YAML file, env vars and explicit overrides.

    Precedence: overrides > env vars > config file > defaults.
    """
    config_data = load_config_file(config_path)

    # Config file provides defaults, env vars override
    if config_data:
        _set_env_from_config(config_data)

    return build_settings(**overrides)


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance with config file and env support."""
    return load_settings(os.environ.get(CONFIG_PATH_ENV))


def _set_env_from_config(config_data: Dict[str, Any]) -> None:
    """Set environment variables from config file if not already set."""
    mappings = {
        ("server", "host"): "CRASHRELAY_HOST",
        ("server", "port"): "CRASHRELAY_PORT",
        ("server", "log_level"): "CRASHRELAY_LOG_LEVEL",
        ("server", "timeout_seconds"): "CRASHRELAY_TIMEOUT_SECONDS",
        ("crashlytics", "auth_token"): "CRASHRELAY_CRASHLYTICS_AUTH_TOKEN",
        ("humio", "ingest_token"): "CRASHRELAY_HUMIO_INGEST_TOKEN",
        ("humio", "url"): "CRASHRELAY_HUMIO_URL",
        ("humio", "ingest_endpoint"): "CRASHRELAY_HUMIO_INGEST_ENDPOINT",
    }

    for (section, key), env_var in mappings.items():
        if env_var not in os.environ:
            value = (config_data.get(section) or {}).get(key)
            if value is not None:
                os.environ[env_var] = value if isinstance(value, str) else json.dumps(value)


def reload_settings() -> Settings:
    """Reload settings (clears cache)."""
    get_settings.cache_clear()
    return get_settings()
