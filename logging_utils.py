"""Logging for frameqa scans.

Every module logs under the ``frameqa`` namespace. A scan writes its log next
to its metadata, in ``<output_root>/logs/frameqa.log``, and echoes it to the
console.
"""

from __future__ import annotations

import logging
import os
from pathlib import Path

LOGGER_NAMESPACE = "frameqa"
LOG_DIR_NAME = "logs"
LOG_FILE_NAME = "frameqa.log"

_FORMATTER = logging.Formatter(
    fmt="%(asctime)s - %(levelname)s - %(name)s - %(message)s",
    datefmt="%Y-%m-%d %H:%M:%S",
)


def scan_log_path(output_root: Path) -> Path:
    return output_root / LOG_DIR_NAME / LOG_FILE_NAME


def _has_file_handler(logger: logging.Logger, log_path: Path) -> bool:
    target = os.path.abspath(log_path)
    return any(
        isinstance(handler, logging.FileHandler) and handler.baseFilename == target
        for handler in logger.handlers
    )


def setup_logging(output_root: Path, level: str = "INFO") -> Path:
    """Attach the scan log for ``output_root`` to the ``frameqa`` logger.

    Repeated scans into the same output root reuse the existing handler, and
    the console handler is only added once per process. Root handlers are
    left alone.
    """

    log_path = scan_log_path(output_root)
    log_path.parent.mkdir(parents=True, exist_ok=True)

    logger = logging.getLogger(LOGGER_NAMESPACE)
    logger.setLevel(getattr(logging, level.upper(), logging.INFO))

    if not _has_file_handler(logger, log_path):
        file_handler = logging.FileHandler(log_path, encoding="utf-8")
        file_handler.setFormatter(_FORMATTER)
        logger.addHandler(file_handler)

    if not any(type(handler) is logging.StreamHandler for handler in logger.handlers):
        console = logging.StreamHandler()
        console.setFormatter(_FORMATTER)
        logger.addHandler(console)

    logger.debug("Scan log at %s", log_path)
    return log_path


def get_logger(name: str) -> logging.Logger:
    """Module logger under the ``frameqa`` namespace."""

    return logging.getLogger(f"{LOGGER_NAMESPACE}.{name}")
