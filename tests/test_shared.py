from __future__ import annotations

import json
import logging
import sys
from pathlib import Path

import shared


class LoggerStub:
    def __init__(self) -> None:
        self.calls: list[tuple[int, str]] = []

    def log(self, level: int, message: str) -> None:
        self.calls.append((level, message))


def test_configure_logging_sets_level_format_and_stream(monkeypatch):
    # Arrange
    captured: dict[str, object] = {}

    def fake_basic_config(**kwargs):
        captured.update(kwargs)

    monkeypatch.setattr(shared.logging, "basicConfig", fake_basic_config)

    # Act
    shared.configure_logging("DEBUG")

    # Assert
    assert captured["level"] == logging.DEBUG
    assert captured["format"] == "%(message)s"
    assert captured["stream"] is sys.stderr


def test_configure_logging_unknown_level_falls_back_to_info(monkeypatch):
    # Arrange
    captured: dict[str, object] = {}

    def fake_basic_config(**kwargs):
        captured.update(kwargs)

    monkeypatch.setattr(shared.logging, "basicConfig", fake_basic_config)

    # Act
    shared.configure_logging("NOT_A_LEVEL")

    # Assert
    assert captured["level"] == logging.INFO


def test_log_event_emits_json_payload_with_fields():
    # Arrange
    logger = LoggerStub()

    # Act
    shared.log_event(logger, logging.WARNING, "version_date_fallback", path=Path("CHANGELOG.md"), version="1.0.2")

    # Assert
    assert len(logger.calls) == 1
    level, payload = logger.calls[0]
    assert level == logging.WARNING
    assert json.loads(payload) == {"event": "version_date_fallback", "path": "CHANGELOG.md", "version": "1.0.2"}
