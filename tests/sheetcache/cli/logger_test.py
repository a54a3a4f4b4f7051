"""Tests for the sheetcache.cli.logger module."""

import logging

import colorlog
import pytest

from sheetcache.cli.logger import configure_logging


@pytest.fixture(autouse=True)
def _restore_logging():
    root = logging.getLogger()
    handlers, level = root.handlers[:], root.level
    google_level = logging.getLogger("google").level
    yield
    root.handlers[:] = handlers
    root.setLevel(level)
    logging.getLogger("google").setLevel(google_level)


class TestConfigureLogging:
    """Tests for the configure_logging function."""

    def test_level_by_name(self):
        configure_logging("INFO")
        assert logging.getLogger().level == logging.INFO

    def test_default_level_is_warning(self):
        configure_logging()
        assert logging.getLogger().level == logging.WARNING

    def test_verbose_forces_debug(self):
        configure_logging("ERROR", verbose=True)
        assert logging.getLogger().level == logging.DEBUG

    def test_client_libraries_stay_quiet(self):
        configure_logging(verbose=True)
        assert logging.getLogger("google").level == logging.WARNING

    def test_replaces_previous_handlers(self):
        configure_logging()
        configure_logging()
        assert len(logging.getLogger().handlers) == 1

    def test_no_color(self, monkeypatch):
        monkeypatch.setenv("NO_COLOR", "1")
        configure_logging()
        (handler,) = logging.getLogger().handlers
        assert not isinstance(handler.formatter, colorlog.ColoredFormatter)
