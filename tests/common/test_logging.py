import logging
import pytest
from src.common.logging import setup_logger, log_execution_time

LOGGER_NAME = "tests.timing"

@pytest.fixture
def logger(caplog):
    logger = setup_logger(LOGGER_NAME)
    caplog.set_level(logging.DEBUG, logger=LOGGER_NAME)
    return logger

def test_setup_logger_adds_single_handler():
    first = setup_logger("tests.handlers")
    second = setup_logger("tests.handlers")
    assert first is second
    assert len(first.handlers) == 1

def test_slow_call_logged(logger, caplog):
    @log_execution_time(logger, threshold_ms=-1)
    def work():
        return 42

    assert work() == 42
    assert "work took" in caplog.text

def test_fast_call_not_logged(logger, caplog):
    @log_execution_time(logger, threshold_ms=60_000)
    def work():
        return 42

    assert work() == 42
    assert "took" not in caplog.text

def test_failure_logged_and_reraised(logger, caplog):
    @log_execution_time(logger)
    def broken():
        raise ValueError("boom")

    with pytest.raises(ValueError):
        broken()
    assert "broken failed: boom" in caplog.text
