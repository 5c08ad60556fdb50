# src/todomai/logging_setup.py

from __future__ import annotations

import logging
import sys
from pathlib import Path


# Console thresholds by logger-name prefix; the longest matching prefix wins.
# Anything not listed (other third-party libraries) is shown only at ERROR+.
CONSOLE_THRESHOLDS: dict[str, int] = {
    "todomai": logging.DEBUG,
    # Background Matrix thread would interleave with the REPL prompt.
    "todomai.connectors.matrix_": logging.WARNING,
    # Store-ready and per-save lines belong in the file log only.
    "todomai.tasks.persistence": logging.WARNING,
    "nio": logging.WARNING,
    # Coqui TTS prints model download/progress chatter.
    "TTS": logging.WARNING,
    "py.warnings": logging.ERROR,
}


def _matches(name: str, prefix: str) -> bool:
    if prefix.endswith("_"):
        return name.startswith(prefix)
    return name == prefix or name.startswith(prefix + ".")


def console_threshold(name: str) -> int:
    matches = [p for p in CONSOLE_THRESHOLDS if _matches(name, p)]
    if not matches:
        return logging.ERROR
    return CONSOLE_THRESHOLDS[max(matches, key=len)]


class _ConsoleNoiseFilter(logging.Filter):
    """Keep the interactive console readable; the file log still gets everything."""

    def filter(self, record: logging.LogRecord) -> bool:
        return record.levelno >= console_threshold(record.name)


def setup_logging(
    *,
    log_dir: str | Path = ".local/todomai",
    console_level: int = logging.INFO,
    file_level: int = logging.DEBUG,
) -> None:
    """
    Configure logging with:
    - Console handler: readable + filtered for interactive use
    - File handler: full logs for debugging

    Call this ONCE, very early (before first logger.info).
    """
    log_dir = Path(log_dir)
    log_dir.mkdir(parents=True, exist_ok=True)
    log_file = log_dir / "todomai.log"

    root = logging.getLogger()
    root.setLevel(logging.DEBUG)

    # Remove any pre-existing handlers to avoid duplicates.
    for h in list(root.handlers):
        root.removeHandler(h)

    fmt = logging.Formatter(
        fmt="%(asctime)s.%(msecs)03d %(levelname)s %(name)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )

    ch = logging.StreamHandler(sys.stderr)
    ch.setLevel(console_level)
    ch.setFormatter(fmt)
    ch.addFilter(_ConsoleNoiseFilter())
    root.addHandler(ch)

    fh = logging.FileHandler(str(log_file), encoding="utf-8")
    fh.setLevel(file_level)
    fh.setFormatter(fmt)
    root.addHandler(fh)

    # Route warnings.warn(...) into logging as 'py.warnings'
    logging.captureWarnings(True)
