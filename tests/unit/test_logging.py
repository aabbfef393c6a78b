"""Tests for structlog setup."""

import json
import logging

import pytest
import structlog

from tidydraws.utils.logging import NOISY_LOGGERS, setup_logging


@pytest.fixture(autouse=True)
def restore_logging():
    yield
    logging.getLogger().handlers.clear()
    structlog.reset_defaults()


class TestSetupLogging:
    def test_console_level_follows_verbose(self):
        setup_logging()
        (handler,) = logging.getLogger().handlers
        assert handler.level == logging.WARNING

        setup_logging(verbose=True)
        (handler,) = logging.getLogger().handlers
        assert handler.level == logging.DEBUG

    def test_json_file_receives_debug_events(self, tmp_path):
        path = tmp_path / "logs" / "run.log.json"
        setup_logging(log_file=path)
        structlog.get_logger().debug("draws_reshaped", n_rows=500)
        for handler in logging.getLogger().handlers:
            handler.flush()

        record = json.loads(path.read_text(encoding="utf-8").splitlines()[-1])
        assert record["event"] == "draws_reshaped"
        assert record["n_rows"] == 500
        assert record["level"] == "debug"

    def test_plotting_libraries_quietened(self):
        setup_logging(verbose=True)
        for name in NOISY_LOGGERS:
            assert logging.getLogger(name).level == logging.WARNING
