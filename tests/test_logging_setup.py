# tests/test_logging_setup.py

from __future__ import annotations

import logging
from pathlib import Path

import pytest

from todomai.logging_setup import console_threshold, setup_logging


@pytest.mark.parametrize(
    ("name", "expected"),
    [
        ("todomai.tasks.task_store", logging.DEBUG),
        ("todomai.connectors.matrix_connector", logging.WARNING),
        ("todomai.connectors.console_connector", logging.DEBUG),
        ("todomai.tasks.persistence", logging.WARNING),
        ("nio.rooms", logging.WARNING),
        ("TTS.utils.manage", logging.WARNING),
        ("TTSX", logging.ERROR),
        ("py.warnings", logging.ERROR),
        ("urllib3.connectionpool", logging.ERROR),
    ],
)
def test_console_threshold(name: str, expected: int) -> None:
    assert console_threshold(name) == expected


def test_setup_logging_writes_file(tmp_path: Path) -> None:
    root = logging.getLogger()
    saved = list(root.handlers), root.level
    try:
        setup_logging(log_dir=tmp_path)
        logging.getLogger("todomai.tasks.persistence").debug("kv save key=x")
        for h in root.handlers:
            h.flush()
        assert "kv save key=x" in (tmp_path / "todomai.log").read_text("utf-8")
    finally:
        for h in list(root.handlers):
            root.removeHandler(h)
            h.close()
        for h in saved[0]:
            root.addHandler(h)
        root.setLevel(saved[1])
        logging.captureWarnings(False)
