"""
tests/unit/test_config_repository.py

Unit tests for repositories/config_repository.py.
Uses pytest's tmp_path for file-backed documents.
"""

from __future__ import annotations

import json

import pytest

from exceptions import ConfigurationError
from repositories.config_repository import ConfigRepository
from settings import Settings


def test_load_prefers_inline_document(tmp_path):
    """APP_CONFIG wins over the config file when both are present."""
    path = tmp_path / "config.json"
    path.write_text(json.dumps({"source": "file"}), encoding="utf-8")
    repo = ConfigRepository(Settings(app_config='{"source": "inline"}', app_config_path=str(path)))

    assert repo.load() == {"source": "inline"}


def test_load_reads_file_when_no_inline_document(tmp_path):
    """Without APP_CONFIG the document is read from app_config_path."""
    path = tmp_path / "config.json"
    path.write_text(json.dumps({"account_id": "acct"}), encoding="utf-8")
    repo = ConfigRepository(Settings(app_config_path=str(path)))

    assert repo.load() == {"account_id": "acct"}


def test_load_is_not_cached(tmp_path):
    """Edits to the file are visible on the next load."""
    path = tmp_path / "config.json"
    path.write_text('{"v": 1}', encoding="utf-8")
    repo = ConfigRepository(Settings(app_config_path=str(path)))
    assert repo.load() == {"v": 1}

    path.write_text('{"v": 2}', encoding="utf-8")
    assert repo.load() == {"v": 2}


def test_load_missing_file_raises(tmp_path):
    """A missing file with no inline document is a ConfigurationError."""
    repo = ConfigRepository(Settings(app_config_path=str(tmp_path / "absent.json")))

    with pytest.raises(ConfigurationError):
        repo.load()


@pytest.mark.parametrize("text", ["{not json", "[1, 2]", '"just a string"'])
def test_load_rejects_invalid_or_non_object_json(text):
    """Unparseable JSON and non-object documents raise ConfigurationError."""
    repo = ConfigRepository(Settings(app_config=text))

    with pytest.raises(ConfigurationError):
        repo.load()
