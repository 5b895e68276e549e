"""
Unit tests for logging setup.
"""

import logging

import pytest

from xstake.utils.logger import LOG_FILE_NAME, XStakeLogger, get_logger, setup_logging


@pytest.fixture(autouse=True)
def restore_logging():
    yield
    setup_logging(force=True)


class TestLogging:
    """Tests for the xstake logger tree."""

    def test_subsystem_logger_name(self):
        assert get_logger("ledger").name == "xstake.ledger"

    def test_setup_without_force_is_idempotent(self):
        root = setup_logging(force=True)
        handlers = list(root.handlers)

        setup_logging(level=logging.DEBUG)

        assert root.handlers == handlers
        assert root.level == logging.INFO

    def test_force_replaces_handlers(self):
        setup_logging(force=True)

        root = setup_logging(level=logging.DEBUG, force=True)

        assert root.level == logging.DEBUG
        assert len(root.handlers) == 1

    def test_log_dir_adds_file(self, tmp_path):
        log_dir = tmp_path / "logs"
        setup_logging(log_dir=log_dir, force=True)

        get_logger("ledger").info("Mint: 110 for 11000 shares")

        assert XStakeLogger.log_file == log_dir / LOG_FILE_NAME
        text = (log_dir / LOG_FILE_NAME).read_text()
        assert "xstake.ledger: Mint: 110 for 11000 shares" in text

    def test_debug_filtered_at_info(self, tmp_path):
        setup_logging(level=logging.INFO, log_dir=tmp_path, force=True)

        get_logger("partition").debug("Routed 110")

        assert "Routed" not in (tmp_path / LOG_FILE_NAME).read_text()


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
