from __future__ import annotations

import logging
from pathlib import Path

import pytest

from covid_explorer.logging_config import configure_logging


def test_configure_logging_adds_stream_handler() -> None:
    # Ensure configuring logging doesn't raise and attaches a StreamHandler
    configure_logging(None)
    root = logging.getLogger()
    assert any(isinstance(h, logging.StreamHandler) for h in root.handlers)


def test_configure_logging_writes_file_and_accepts_level_name(tmp_path: Path) -> None:
    log_path = tmp_path / "logs" / "explorer.log"
    configure_logging(log_path, "debug")

    logging.getLogger("covid_explorer.test").debug("hello file")
    for h in logging.getLogger().handlers:
        h.flush()

    assert logging.getLogger().level == logging.DEBUG
    assert "hello file" in log_path.read_text(encoding="utf-8")
    configure_logging(None)


def test_configure_logging_rejects_unknown_level() -> None:
    with pytest.raises(ValueError):
        configure_logging(None, "chatty")
