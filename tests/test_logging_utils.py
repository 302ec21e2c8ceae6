"""Tests for scan log setup."""

import logging
import os

from logging_utils import LOGGER_NAMESPACE, get_logger, scan_log_path, setup_logging


def _file_handlers(path):
    logger = logging.getLogger(LOGGER_NAMESPACE)
    return [h for h in logger.handlers if isinstance(h, logging.FileHandler) and h.baseFilename == os.path.abspath(path)]


def test_log_lands_under_output_root(tmp_path):
    log_path = setup_logging(tmp_path)
    assert log_path == scan_log_path(tmp_path)
    assert log_path.name == "frameqa.log"
    assert log_path.parent.is_dir()


def test_repeated_setup_reuses_handlers(tmp_path):
    first = setup_logging(tmp_path, "DEBUG")
    setup_logging(tmp_path, "DEBUG")
    assert len(_file_handlers(first)) == 1
    consoles = [h for h in logging.getLogger(LOGGER_NAMESPACE).handlers if type(h) is logging.StreamHandler]
    assert len(consoles) == 1


def test_module_loggers_write_to_scan_log(tmp_path):
    log_path = setup_logging(tmp_path, "INFO")
    get_logger("pipeline").info("scanning frames")
    for handler in _file_handlers(log_path):
        handler.flush()
    assert "frameqa.pipeline - scanning frames" in log_path.read_text(encoding="utf-8")
