"""
Tests for the rate-limited logging helper.
"""
import logging
from unittest.mock import MagicMock, patch

from cachetools import TTLCache

from smart_account_sdk._rate_limited_log import rate_limited_log


def _logger(name="tests.rate_limited"):
    mock_logger = MagicMock()
    mock_logger.name = name
    return mock_logger


class TestRateLimitedLog:
    """Tests for the rate-limited logging implementation."""

    def test_repeated_message_suppressed(self):
        mock_logger = _logger()

        assert rate_limited_log("Probe failed", logger_instance=mock_logger) is True
        assert rate_limited_log("Probe failed", logger_instance=mock_logger) is False

        mock_logger.warning.assert_called_once_with("Probe failed")

    def test_level_and_message_are_part_of_the_key(self):
        mock_logger = _logger()

        rate_limited_log("Probe failed", level="warning", logger_instance=mock_logger)
        rate_limited_log("Probe failed", level="error", logger_instance=mock_logger)
        rate_limited_log("Other failure", level="warning", logger_instance=mock_logger)

        mock_logger.error.assert_called_once_with("Probe failed")
        assert mock_logger.warning.call_count == 2

    def test_loggers_are_limited_independently(self):
        first, second = _logger("tests.first"), _logger("tests.second")

        rate_limited_log("Probe failed", logger_instance=first)
        rate_limited_log("Probe failed", logger_instance=second)

        first.warning.assert_called_once_with("Probe failed")
        second.warning.assert_called_once_with("Probe failed")

    def test_message_logged_again_after_interval(self):
        now = [1000.0]
        cache = TTLCache(maxsize=256, ttl=1, timer=lambda: now[0])
        mock_logger = _logger()

        with patch.dict("smart_account_sdk._rate_limited_log._log_caches", {1: cache}):
            assert rate_limited_log("Probe failed", interval=1, logger_instance=mock_logger) is True
            assert rate_limited_log("Probe failed", interval=1, logger_instance=mock_logger) is False

            now[0] += 1.5
            assert rate_limited_log("Probe failed", interval=1, logger_instance=mock_logger) is True

        assert mock_logger.warning.call_count == 2

    def test_unknown_level_falls_back_to_warning(self):
        mock_logger = MagicMock(spec=["name", "warning"])
        mock_logger.name = "tests.fallback"

        rate_limited_log("Odd level", level="verbose", logger_instance=mock_logger)

        mock_logger.warning.assert_called_once_with("Odd level")

    def test_default_logger(self, caplog):
        with caplog.at_level(logging.INFO, logger="smart_account_sdk._rate_limited_log"):
            rate_limited_log("Module level message", level="info")

        assert "Module level message" in caplog.text
