"""
Test suite for logging setup
"""
import logging

import pytest
from loguru import logger

from cryptowire.utils.logger import setup_logging, traced


@pytest.fixture
def restore_logging():
    yield
    logger.remove()
    logging.basicConfig(handlers=[], force=True)


class TestLogging:
    """Sinks, trace ids and the stdlib bridge"""

    def test_file_sink_includes_trace_id(self, tmp_path, restore_logging):
        log_file = tmp_path / "logs" / "cryptowire.log"
        setup_logging("DEBUG", str(log_file))

        traced("a1b2c3d4").warning("Failed: https://decrypt.co/feed (timeout)")
        logger.info("untraced line")
        logger.remove()

        lines = log_file.read_text().splitlines()
        assert "| a1b2c3d4 |" in lines[0]
        assert lines[0].endswith("Failed: https://decrypt.co/feed (timeout)")
        assert "| -        |" in lines[1]

    def test_stdlib_records_reach_loguru(self, restore_logging):
        setup_logging("DEBUG", None)
        records = []
        logger.add(lambda message: records.append(message.record), level="DEBUG")

        logging.getLogger("aiohttp.client").warning("connection reset")

        assert [r["message"] for r in records] == ["connection reset"]
        assert records[0]["extra"]["trace_id"] == "-"
