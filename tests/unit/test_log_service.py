"""
tests/unit/test_log_service.py

Unit tests for services/log_service.py.
"""

from __future__ import annotations

import logging

import pytest

from services.log_service import LogService


@pytest.mark.asyncio
async def test_log_creates_entry():
    """log() must store an entry with the correct message and level."""
    service = LogService()
    entry = service.log("Test message", level="INFO")

    assert entry.message == "Test message"
    assert entry.level == "INFO"
    assert entry.timestamp is not None


@pytest.mark.asyncio
async def test_log_uppercases_level():
    """log() must uppercase the level string for consistency."""
    service = LogService()
    entry = service.log("warning msg", level="warning")
    assert entry.level == "WARNING"


@pytest.mark.asyncio
async def test_get_recent_returns_newest_first():
    """get_recent must return entries ordered newest first."""
    service = LogService()
    service.log("first")
    service.log("second")
    service.log("third")

    entries = service.get_recent(limit=10)
    assert [e.message for e in entries] == ["third", "second", "first"]


@pytest.mark.asyncio
async def test_capacity_drops_oldest_entries():
    """Only the most recent `capacity` entries are kept."""
    service = LogService(capacity=2)
    for message in ("a", "b", "c"):
        service.log(message)

    assert [e.message for e in service.get_recent()] == ["c", "b"]


@pytest.mark.asyncio
async def test_get_by_level_filters():
    """get_by_level returns only entries of the requested severity."""
    service = LogService()
    service.log("ok")
    service.log("boom", level="ERROR")

    assert [e.message for e in service.get_by_level("error")] == ["boom"]


def test_log_mirrors_to_python_logging(caplog):
    """Every entry is also emitted through the standard logging module."""
    service = LogService()
    with caplog.at_level(logging.WARNING, logger="services.log_service"):
        service.log("mirrored", level="WARNING")

    assert "mirrored" in caplog.text
