"""
watcher.py

Responsibility: Sets up a watchdog file system observer that monitors the
tunnel configuration file for out-of-band edits and logs them.
Does NOT: reload or validate configuration, or trigger sync cycles.
"""

from __future__ import annotations

import logging
import os

from watchdog.events import FileSystemEvent, FileSystemEventHandler
from watchdog.observers import Observer

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Event handler
# ---------------------------------------------------------------------------


class _ConfigFileHandler(FileSystemEventHandler):
    """
    Watchdog event handler for the configuration file's directory.

    The configuration is re-read at the start of every sync cycle, so no
    active reload is needed — the log tells operators when an edit will be
    picked up.
    """

    def __init__(self, config_path: str) -> None:
        super().__init__()
        self._config_path = os.path.abspath(config_path)

    def _is_config(self, event: FileSystemEvent) -> bool:
        if event.is_directory:
            return False
        paths = [event.src_path, getattr(event, "dest_path", "")]
        return any(p and os.path.abspath(os.fsdecode(p)) == self._config_path for p in paths)

    def on_modified(self, event: FileSystemEvent) -> None:
        """Called by watchdog when a file in the watched directory is modified."""
        if self._is_config(event):
            logger.info("Configuration file changed: %s (applies from the next sync cycle).", self._config_path)

    def on_created(self, event: FileSystemEvent) -> None:
        """Called by watchdog when a file is created in the watched directory."""
        if self._is_config(event):
            logger.info("Configuration file created: %s (applies from the next sync cycle).", self._config_path)

    def on_moved(self, event: FileSystemEvent) -> None:
        """Called by watchdog on renames; editors often save via rename."""
        if self._is_config(event):
            logger.info("Configuration file replaced: %s (applies from the next sync cycle).", self._config_path)


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def create_observer(config_path: str) -> Observer:
    """
    Creates and returns a configured (but not yet started) watchdog Observer.

    Args:
        config_path: The configuration file to monitor. Its parent directory
                     is watched so replace-on-save editors are detected too.

    Returns:
        A configured watchdog Observer ready to be started.
    """
    watch_dir = os.path.dirname(os.path.abspath(config_path))
    observer = Observer()
    observer.schedule(_ConfigFileHandler(config_path), path=watch_dir, recursive=False)
    logger.info("Config watcher configured for: %s", config_path)
    return observer
