"""
services/config_service.py

Responsibility: Validates the raw configuration document and turns it into
the typed SyncConfig used by the sync engine.
Does NOT: read files or environment variables (ConfigRepository does), or
make HTTP calls.
"""

from __future__ import annotations

import logging
from typing import Any

from pydantic import ValidationError

from exceptions import ConfigurationError
from models import AppConfig, SyncConfig
from repositories.config_repository import ConfigRepository

logger = logging.getLogger(__name__)


class ConfigService:
    """
    Business-level access to the tunnel configuration.

    Expected document shape:

        {
          "account_id": "...",
          "tunnels": {
            "<tunnel-id>": {
              "zones": {
                "<zone-id>": {"records": {"sub.example.com": ["A", "AAAA"]}}
              }
            }
          }
        }

    Collaborators:
        - ConfigRepository: returns the decoded document
    """

    def __init__(self, config_repo: ConfigRepository) -> None:
        """
        Args:
            config_repo: Repository for the current settings.
        """
        self._repo = config_repo

    def get_sync_config(self) -> SyncConfig:
        """
        Loads and validates the configuration document.

        Returns:
            The validated SyncConfig.

        Raises:
            ConfigurationError: If the document is missing or malformed.
        """
        config = parse_sync_config(self._repo.load())
        logger.debug("Configuration validated: %d tunnel(s).", len(config.tunnels))
        return config


def parse_sync_config(document: dict[str, Any]) -> SyncConfig:
    """
    Validates a decoded configuration document.

    Args:
        document: The top-level JSON object.

    Returns:
        A SyncConfig with record types as frozensets.

    Raises:
        ConfigurationError: Naming the dotted path of the first invalid value.
    """
    try:
        app_config = AppConfig.model_validate(document)
    except ValidationError as exc:
        raise ConfigurationError.from_validation_error("configuration document", exc) from exc
    return app_config.to_sync_config()
