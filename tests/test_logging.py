"""
Tests for host-aware logging.
"""

import logging
from unittest.mock import MagicMock

import pytest
from shadedrelief.relief_logging import LogLevel, ReliefLogger, get_logger, set_global_feedback


class TestReliefLogger:
    def test_get_logger_is_cached(self):
        assert get_logger("shadedrelief.test_a") is get_logger("shadedrelief.test_a")

    def test_forwards_to_standard_logging(self, caplog):
        logger = ReliefLogger("shadedrelief.test_std", LogLevel.DEBUG)
        with caplog.at_level(logging.DEBUG, logger="shadedrelief.test_std"):
            logger.info("tile 3 of 9")
            logger.debug("window 6x6")
        assert [r.getMessage() for r in caplog.records] == ["tile 3 of 9", "window 6x6"]

    def test_level_filters_messages(self, caplog):
        logger = ReliefLogger("shadedrelief.test_level", LogLevel.WARNING)
        with caplog.at_level(logging.DEBUG, logger="shadedrelief.test_level"):
            logger.info("hidden")
            logger.warning("shown")
        assert [r.getMessage() for r in caplog.records] == ["shown"]

    def test_feedback_routing(self):
        feedback = MagicMock()
        logger = ReliefLogger("shadedrelief.test_feedback", LogLevel.DEBUG)
        logger.set_feedback(feedback)

        logger.error("failed")
        logger.warning("careful")
        logger.info("hello")
        logger.debug("details")

        feedback.reportError.assert_called_once_with("failed")
        feedback.pushInfo.assert_any_call("WARNING: careful")
        feedback.pushInfo.assert_any_call("hello")
        feedback.pushDebugInfo.assert_called_once_with("details")

    def test_set_level(self):
        logger = ReliefLogger("shadedrelief.test_set_level")
        logger.set_level(30)
        assert logger.level is LogLevel.WARNING
        with pytest.raises(ValueError):
            logger.set_level(5)


def test_global_feedback():
    feedback = MagicMock()
    logger = get_logger("shadedrelief.test_global")
    try:
        set_global_feedback(feedback)
        logger.info("routed")
        feedback.pushInfo.assert_called_with("routed")
    finally:
        set_global_feedback(None)
