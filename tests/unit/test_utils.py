"""
Unit tests for arbitrage_paths.utils module.
"""

import logging

from arbitrage_paths.utils import (
    ensure_path_exists,
    format_duration,
    LOG_FORMAT,
    get_logger,
    is_valid_address,
    normalize_address,
    timing_decorator,
)


class TestFormatDuration:
    def test_seconds(self):
        assert format_duration(1.5) == "1.50s"

    def test_minutes(self):
        assert format_duration(90) == "1.5m"

    def test_hours(self):
        assert format_duration(5400) == "1.5h"


class TestPathUtils:
    def test_ensure_directory(self, tmp_path):
        target = tmp_path / "a" / "b"
        result = ensure_path_exists(target)
        assert result.is_dir()

    def test_ensure_file_parent(self, tmp_path):
        target = tmp_path / "nested" / "dex_pools.db"
        ensure_path_exists(target, is_file=True)
        assert target.parent.is_dir()
        assert not target.exists()


class TestAddressUtils:
    def test_normalize_address(self):
        assert normalize_address("  0xABCdef  ") == "0xabcdef"
        assert normalize_address(None) == ""

    def test_is_valid_address(self):
        assert is_valid_address("0xc02aaa39b223fe8d0a0e5c4f27ead9083c756cc2")
        assert is_valid_address("0xC02aaA39b223FE8D0A0e5C4F27eAD9083C756Cc2")
        assert not is_valid_address("c02aaa39b223fe8d0a0e5c4f27ead9083c756cc2")
        assert not is_valid_address("0x1234")
        assert not is_valid_address("0x" + "z" * 40)
        assert not is_valid_address(None)


class TestLogging:
    def test_get_logger_adds_single_handler(self):
        logger = get_logger("arbitrage_paths.tests.single")
        again = get_logger("arbitrage_paths.tests.single")
        assert logger is again
        assert len(logger.handlers) == 1

    def test_get_logger_default_level(self):
        logger = get_logger("arbitrage_paths.tests.level")
        assert logger.level == logging.INFO

    def test_get_logger_keeps_configured_level(self):
        logger = get_logger("arbitrage_paths.tests.configured")
        logger.setLevel(logging.ERROR)

        assert get_logger("arbitrage_paths.tests.configured", level=logging.DEBUG).level == logging.ERROR

    def test_get_logger_format(self):
        handler = get_logger("arbitrage_paths.tests.format").handlers[0]
        assert handler.formatter._fmt == LOG_FORMAT
        assert "%(name)s:%(lineno)d" in LOG_FORMAT

    def test_timing_decorator_preserves_result(self):
        @timing_decorator
        def add(a, b):
            return a + b

        assert add(2, 3) == 5
        assert add.__name__ == "add"
