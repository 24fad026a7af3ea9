"""Tests for the script logging setup."""

from __future__ import annotations

import logging
import os
import sys

import pytest

PROJECT_ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
if PROJECT_ROOT not in sys.path:
    sys.path.insert(0, PROJECT_ROOT)

from src.logging_config import setup_logging


@pytest.fixture
def scratch_namespace():
    name = "fast_spectrum_logging_test"
    yield name
    logger = logging.getLogger(name)
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()
    logger.propagate = True


def test_console_lines_are_short(scratch_namespace, capsys) -> None:
    logger = setup_logging(logging.INFO, namespace=scratch_namespace)
    logging.getLogger(f"{scratch_namespace}.basis").info("A basis matrix (42x10) is constructed.")

    out = capsys.readouterr().out
    assert logger.name == scratch_namespace
    assert "  [test_logging_config] A basis matrix (42x10) is constructed." in out
    assert "INFO" not in out


def test_repeated_setup_replaces_handlers(scratch_namespace, tmp_path) -> None:
    setup_logging(logging.INFO, log_file=str(tmp_path / "first.log"), namespace=scratch_namespace)
    logger = setup_logging(logging.DEBUG, namespace=scratch_namespace)

    assert len(logger.handlers) == 1
    assert logger.level == logging.DEBUG
    assert logger.propagate is False


def test_log_file_keeps_timestamps_and_names(scratch_namespace, tmp_path) -> None:
    path = tmp_path / "run.log"
    logger = setup_logging(logging.INFO, log_file=str(path), namespace=scratch_namespace)
    logging.getLogger(f"{scratch_namespace}.sampling").warning("Requested 20 samples but the mesh only yields 12.")
    logging.getLogger(f"{scratch_namespace}.sampling").debug("not at INFO")
    for handler in logger.handlers:
        handler.flush()

    text = path.read_text(encoding="utf-8")
    assert f"WARNING {scratch_namespace}.sampling: Requested 20 samples" in text
    assert "not at INFO" not in text
