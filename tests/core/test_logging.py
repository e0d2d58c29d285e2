"""Tests for nikki.core.utils.logging."""

import sys

import pytest
from loguru import logger

from nikki.core.utils.logging import setup_logging


@pytest.fixture(autouse=True)
def _restore_logging():
    yield
    logger.remove()
    logger.add(sys.stderr)


def test_file_keeps_info_while_console_is_quiet(tmp_path, capsys):
    log_file = tmp_path / "logs" / "nikki.log"
    setup_logging(level="WARNING", log_file=str(log_file))

    logger.info("Opened journal database")
    logger.warning("Entry id collision")
    logger.remove()

    text = log_file.read_text(encoding="utf-8")
    assert "Opened journal database" in text
    assert "Entry id collision" in text
    err = capsys.readouterr().err
    assert "Entry id collision" in err
    assert "Opened journal database" not in err


def test_file_level_follows_verbose_console(tmp_path):
    log_file = tmp_path / "nikki.log"
    setup_logging(level="DEBUG", log_file=str(log_file))

    logger.debug("Added entry")
    logger.remove()

    assert "Added entry" in log_file.read_text(encoding="utf-8")


def test_console_only(capsys):
    setup_logging(level="ERROR")
    logger.warning("hidden")
    logger.error("shown")
    err = capsys.readouterr().err
    assert "shown" in err
    assert "hidden" not in err
