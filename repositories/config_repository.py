"""
repositories/config_repository.py

Responsibility: Provides low-level read access to the raw tunnel configuration
document, either inline (APP_CONFIG) or from a JSON file (APP_CONFIG_PATH).
Does NOT: validate the document's structure, or contain sync logic.
"""

from __future__ import annotations

import json
import logging
from typing import Any

from exceptions import ConfigurationError
from settings import Settings

logger = logging.getLogger(__name__)


class ConfigRepository:
    """
    Loads the configuration document fresh on every call.

    Nothing is cached, so edits to the file (or a restarted process with a
    new APP_CONFIG) take effect on the next sync cycle.

    Collaborators:
        - Settings: tells the repository where the document lives
    """

    def __init__(self, settings: Settings) -> None:
        """
        Args:
            settings: The current process settings.
        """
        self._settings = settings

    # ---------------------------------------------------------------------------
    # Public API
    # ---------------------------------------------------------------------------

    def load(self) -> dict[str, Any]:
        """
        Returns the decoded configuration document.

        Returns:
            The top-level JSON object as a dict.

        Raises:
            ConfigurationError: If the document cannot be read, is not valid
                JSON, or is not a JSON object.
        """
        if self._settings.app_config:
            source = "APP_CONFIG"
            text = self._settings.app_config
        else:
            source = self._settings.app_config_path
            text = self._read_file(source)

        try:
            document = json.loads(text)
        except json.JSONDecodeError as exc:
            raise ConfigurationError(f"Failed to parse {source} as JSON: {exc}") from exc

        if not isinstance(document, dict):
            raise ConfigurationError(f"{source} must contain a JSON object")

        logger.debug("Configuration loaded from %s.", source)
        return document

    # ---------------------------------------------------------------------------
    # Internal helpers
    # ---------------------------------------------------------------------------

    @staticmethod
    def _read_file(path: str) -> str:
        try:
            with open(path, "r", encoding="utf-8") as f:
                return f.read()
        except FileNotFoundError as exc:
            raise ConfigurationError(
                f"No configuration found: APP_CONFIG is empty and {path} does not exist"
            ) from exc
        except OSError as exc:
            raise ConfigurationError(f"Could not read configuration file {path}: {exc}") from exc
