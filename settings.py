"""
settings.py

Responsibility: Reads process settings (credentials, config location, timing,
logging) from environment variables into an immutable Settings value.
Does NOT: parse the tunnel configuration document or make HTTP calls.
"""

from __future__ import annotations

from pydantic import PositiveFloat, PositiveInt, ValidationError, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from exceptions import ConfigurationError

# NOTE: /config is the Docker volume mount point for the tunnel configuration.
_DEFAULT_CONFIG_PATH = "/config/config.json"


class Settings(BaseSettings):
    """
    Process-level settings, passed explicitly to everything that needs them.

    Each field is read from the environment variable of the same name
    (case-insensitive). Unset or empty variables fall back to the defaults.
    There is no module-level settings singleton; callers load a fresh value
    with Settings.from_env() at the start of each cycle.
    """

    model_config = SettingsConfigDict(
        frozen=True,
        str_strip_whitespace=True,
        env_ignore_empty=True,
    )

    # Cloudflare API token with Tunnel read and DNS edit permissions
    cloudflare_api_token: str = ""

    # Inline JSON configuration document; takes precedence over app_config_path
    app_config: str = ""

    # Path of the JSON configuration document when app_config is empty
    app_config_path: str = _DEFAULT_CONFIG_PATH

    # Seconds between scheduled sync cycles (hourly by default)
    sync_interval_seconds: PositiveInt = 3600

    # Upper bound for a single sync cycle, in seconds
    sync_cycle_timeout_seconds: PositiveFloat = 600.0

    # Per-request timeout for Cloudflare API calls, in seconds
    http_timeout_seconds: PositiveFloat = 30.0

    # Whether the lifespan starts the background scheduler
    sync_scheduler_enabled: bool = True

    log_level: str = "INFO"

    @field_validator("log_level")
    @classmethod
    def normalise_log_level(cls, value: str) -> str:
        return value.upper() or "INFO"

    @classmethod
    def from_env(cls) -> Settings:
        """
        Builds Settings from the current environment variables.

        Returns:
            A Settings instance with defaults for every unset variable.

        Raises:
            ConfigurationError: If a numeric or boolean variable is malformed.
        """
        try:
            return cls()
        except ValidationError as exc:
            raise ConfigurationError.from_validation_error("environment settings", exc) from exc
