"""
Tests for the graceful_failure context manager used for non-critical work
such as activity logging.
"""

import logging
from unittest.mock import MagicMock, patch

import pytest

from mediarating.core.graceful_failure import graceful_failure


@pytest.fixture
def mock_logger():
    """Create a mock logger for testing."""
    return MagicMock(spec=logging.Logger)


class TestGracefulFailure:
    """Tests for the graceful_failure context manager."""

    def test_success_case_no_exception(self, mock_logger):
        """Code executes normally and nothing is logged."""
        result = []

        with graceful_failure("test operation", mock_logger):
            result.append("executed")

        assert result == ["executed"]
        mock_logger.log.assert_not_called()

    def test_exception_is_swallowed(self, mock_logger):
        result = []

        with graceful_failure("failing operation", mock_logger):
            raise ValueError("test error")

        result.append("continued")
        assert result == ["continued"]

    def test_logs_at_warning_by_default(self, mock_logger):
        with graceful_failure("test operation", mock_logger):
            raise ValueError("something went wrong")

        mock_logger.log.assert_called_once()
        call_args = mock_logger.log.call_args
        assert call_args[0][0] == logging.WARNING
        assert call_args[0][1] == "Failed to test operation: something went wrong"
        assert call_args[1]["exc_info"] is False

    def test_custom_level_and_traceback(self, mock_logger):
        with graceful_failure(
            "record activity log", mock_logger, log_level=logging.ERROR, exc_info=True
        ):
            raise RuntimeError("disk full")

        call_args = mock_logger.log.call_args
        assert call_args[0][0] == logging.ERROR
        assert call_args[1]["exc_info"] is True

    def test_context_in_log_message(self, mock_logger):
        with graceful_failure(
            "record activity log",
            mock_logger,
            context={"action": "close_test", "entity_id": 4},
        ):
            raise ValueError("boom")

        message = mock_logger.log.call_args[0][1]
        assert message == "Failed to record activity log (action=close_test, entity_id=4): boom"

    def test_failure_is_counted(self, mock_logger):
        with patch("mediarating.core.graceful_failure.metrics") as mock_metrics:
            with graceful_failure("test operation", mock_logger):
                raise ValueError("error")

        mock_metrics.record_error.assert_called_once_with(error_type="GracefulFailure")

    def test_sentry_only_when_requested(self, mock_logger):
        with patch("mediarating.core.graceful_failure.capture_error") as mock_capture:
            with graceful_failure("quiet operation", mock_logger):
                raise ValueError("one")
            mock_capture.assert_not_called()

            with graceful_failure(
                "loud operation",
                mock_logger,
                context={"entity_id": 9},
                report_to_sentry=True,
            ):
                raise ValueError("two")

        mock_capture.assert_called_once()
        assert mock_capture.call_args[1]["context"] == {
            "operation": "loud operation",
            "entity_id": 9,
        }

    def test_telemetry_failure_does_not_escape(self, mock_logger):
        with patch("mediarating.core.graceful_failure.metrics") as mock_metrics:
            mock_metrics.record_error.side_effect = RuntimeError("registry broken")
            with graceful_failure("test operation", mock_logger):
                raise ValueError("error")

        mock_logger.log.assert_called_once()

    def test_base_exceptions_propagate(self, mock_logger):
        """KeyboardInterrupt and friends are not swallowed."""
        with pytest.raises(KeyboardInterrupt):
            with graceful_failure("test operation", mock_logger):
                raise KeyboardInterrupt()
