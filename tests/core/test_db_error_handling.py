"""
Tests for the handle_db_error context manager.
"""

import logging
from unittest.mock import MagicMock

import pytest
from sqlalchemy.exc import IntegrityError, OperationalError, SQLAlchemyError
from sqlalchemy.orm import Session

from mediarating.core.db_error_handling import DatabaseOperationError, handle_db_error
from mediarating.core.errors import ConflictError, ForbiddenError


def create_mock_db():
    """Create a MagicMock that passes isinstance(mock, Session) check."""
    return MagicMock(spec=Session)


class TestDatabaseOperationError:
    """Tests for the DatabaseOperationError exception class."""

    def test_default_message(self):
        original = ValueError("connection reset")
        error = DatabaseOperationError("submit rating", original)

        assert error.operation_name == "submit rating"
        assert error.original_error is original
        assert error.message == "Failed to submit rating. Please try again later."
        assert str(error) == error.message

    def test_custom_message(self):
        error = DatabaseOperationError(
            "close test", ValueError("x"), message="Custom error message"
        )

        assert str(error) == "Custom error message"


class TestHandleDbError:
    """Tests for the handle_db_error context manager."""

    def test_success_case_no_rollback(self):
        db = create_mock_db()
        result = []

        with handle_db_error(db, "test operation"):
            result.append("executed")

        assert result == ["executed"]
        db.rollback.assert_not_called()

    def test_domain_error_passes_through_after_rollback(self):
        db = create_mock_db()
        original = ForbiddenError("nope")

        with pytest.raises(ForbiddenError) as exc_info:
            with handle_db_error(db, "close test"):
                raise original

        assert exc_info.value is original
        db.rollback.assert_called_once()

    def test_integrity_error_becomes_conflict(self):
        db = create_mock_db()

        with pytest.raises(ConflictError) as exc_info:
            with handle_db_error(db, "grant session"):
                raise IntegrityError("INSERT", {}, Exception("UNIQUE constraint failed"))

        db.rollback.assert_called_once()
        assert exc_info.value.status_code == 409
        assert isinstance(exc_info.value.__cause__, IntegrityError)

    def test_other_sqlalchemy_error_becomes_operation_error(self):
        db = create_mock_db()

        with pytest.raises(DatabaseOperationError) as exc_info:
            with handle_db_error(db, "submit rating"):
                raise OperationalError("UPDATE", {}, Exception("database is locked"))

        db.rollback.assert_called_once()
        assert exc_info.value.operation_name == "submit rating"
        assert isinstance(exc_info.value.original_error, SQLAlchemyError)

    def test_non_database_errors_propagate_untouched(self):
        db = create_mock_db()

        with pytest.raises(KeyError):
            with handle_db_error(db, "test operation"):
                raise KeyError("missing")

        db.rollback.assert_not_called()

    def test_custom_log_level(self, monkeypatch):
        db = create_mock_db()
        mock_logger = MagicMock(spec=logging.Logger)
        monkeypatch.setattr("mediarating.core.db_error_handling.logger", mock_logger)

        with pytest.raises(DatabaseOperationError):
            with handle_db_error(db, "list tests", log_level=logging.CRITICAL):
                raise SQLAlchemyError("boom")

        assert mock_logger.log.call_args[0][0] == logging.CRITICAL
        assert "Database error during list tests" in mock_logger.log.call_args[0][1]
