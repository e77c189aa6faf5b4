"""
Unit tests for loguru sink configuration.
"""

import sys

import pytest
from loguru import logger

from logos_core.core.log_config import configure_logging


@pytest.fixture(autouse=True)
def restore_logger():
    yield
    logger.remove()
    logger.add(sys.stderr)


class TestConfigureLogging:
    def test_stderr_only(self):
        handler_ids = configure_logging(level="WARNING", log_file="")
        assert len(handler_ids) == 1

    def test_file_sink(self, tmp_path):
        log_file = tmp_path / "logos.log"
        handler_ids = configure_logging(level="INFO", log_file=str(log_file))
        assert len(handler_ids) == 2

        logger.info("scheduled 3 reviews")
        logger.debug("not written at INFO")
        logger.remove(handler_ids[1])

        content = log_file.read_text(encoding="utf-8")
        assert "scheduled 3 reviews" in content
        assert "not written at INFO" not in content
