"""
Centralized logging configuration.

Usage:
    from lab_compliance.utils.log import get_logger
    logger = get_logger(__name__)
    logger.info("Evaluating specification %s", spec_id)

The engine logs skipped test references and undeclared links at
WARNING, parameter rollups at DEBUG and specification outcomes at INFO.
"""

from __future__ import annotations

import logging
import sys
from pathlib import Path

NAMESPACE = "lab_compliance"
LOG_FILENAME = "lab-compliance.log"

_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"
_DATEFMT = "%Y-%m-%d %H:%M:%S"

_configured = False


def _level(level: str) -> int:
    return getattr(logging, str(level).upper(), logging.INFO)


def setup_logging(level: str = "INFO", log_file: Path | None = None) -> None:
    """
    Configure the `lab_compliance` logger. Call once at startup.

    Repeated calls only adjust the level, and attach the file handler
    if one was not attached before.
    """
    global _configured
    root = logging.getLogger(NAMESPACE)
    root.setLevel(_level(level))

    fmt = logging.Formatter(_FORMAT, datefmt=_DATEFMT)

    if not _configured:
        console = logging.StreamHandler(sys.stderr)
        console.setFormatter(fmt)
        root.addHandler(console)
        _configured = True

    if log_file and not any(isinstance(h, logging.FileHandler) for h in root.handlers):
        log_file = Path(log_file)
        log_file.parent.mkdir(parents=True, exist_ok=True)
        fh = logging.FileHandler(str(log_file), encoding="utf-8")
        fh.setFormatter(fmt)
        root.addHandler(fh)


def log_file_for(settings) -> Path:
    """Path of the log file inside the configured log directory."""
    return Path(settings.paths.log_dir) / LOG_FILENAME


def reset_logging() -> None:
    """Detach and close every handler added by `setup_logging`."""
    global _configured
    root = logging.getLogger(NAMESPACE)
    for handler in list(root.handlers):
        root.removeHandler(handler)
        handler.close()
    _configured = False


def get_logger(name: str) -> logging.Logger:
    """Get a logger for a module. Automatically namespaced under 'lab_compliance'."""
    if not name.startswith(NAMESPACE):
        name = f"{NAMESPACE}.{name}"
    return logging.getLogger(name)
