import logging
import os
import sys

# Add parent directory to path
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from vibeco_mcp.constants import short_session_id
from vibeco_mcp.logging_config import HealthCheckFilter, get_logging_config


def make_record(name, message):
    return logging.LogRecord(name, logging.INFO, __file__, 1, message, None, None)


def test_health_check_access_lines_are_filtered():
    log_filter = HealthCheckFilter()

    assert not log_filter.filter(
        make_record("uvicorn.access", '127.0.0.1:5000 - "GET /health HTTP/1.1" 200')
    )
    assert log_filter.filter(
        make_record("uvicorn.access", '127.0.0.1:5000 - "POST /mcp HTTP/1.1" 200')
    )
    assert log_filter.filter(make_record("vibeco_mcp.main", "GET /health HTTP/1.1"))


def test_all_handlers_write_to_stderr():
    config = get_logging_config("debug")

    for handler in config["handlers"].values():
        assert handler["stream"] == "ext://sys.stderr"
    assert config["loggers"]["vibeco_mcp"]["level"] == "DEBUG"


def test_session_ids_are_truncated_for_logs():
    assert short_session_id("0123456789abcdef") == "01234567..."
