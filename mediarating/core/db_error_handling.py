"""
Database error handling utilities.

This module provides a reusable context manager for handling database errors
consistently across the core services. It centralizes the common pattern of:
1. Rolling back the database session on error
2. Logging the error with context
3. Raising a typed error the API layer knows how to render

Domain errors (RatingCoreError subclasses) raised inside the block pass through
unchanged after the rollback, so a service can validate, write and raise from
one place without partial writes leaking.

Usage:
    from mediarating.core.db_error_handling import handle_db_error

    with handle_db_error(db, "close test"):
        result = db.execute(stmt)
        db.commit()
"""

import logging
from contextlib import contextmanager
from typing import Generator, Optional

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from mediarating.core.error_responses import ErrorMessages
from mediarating.core.errors import ConflictError, RatingCoreError

logger = logging.getLogger(__name__)


class DatabaseOperationError(Exception):
    """Exception raised when a database operation fails for a non-domain reason.

    It is deliberately not a RatingCoreError: the API renders it through the
    generic 500 handler, which attaches an error_id for log correlation.

    Attributes:
        operation_name: Human-readable name of the operation that failed
        original_error: The underlying exception that caused the failure
        message: The formatted error message
    """

    def __init__(
        self,
        operation_name: str,
        original_error: Exception,
        message: Optional[str] = None,
    ):
        self.operation_name = operation_name
        self.original_error = original_error
        self.message = message or ErrorMessages.database_operation_failed(
            operation_name
        )
        super().__init__(self.message)


@contextmanager
def handle_db_error(
    db: Session,
    operation_name: str,
    *,
    log_level: int = logging.ERROR,
) -> Generator[None, None, None]:
    """Context manager for handling database errors consistently.

    Args:
        db: The SQLAlchemy session to roll back on error.
        operation_name: Human-readable name of the operation for error messages
            and logging (e.g., "submit rating", "close test").
        log_level: Logging level for unexpected database errors.

    Raises:
        RatingCoreError: Re-raised unchanged when raised inside the block.
        ConflictError: When the database reports an integrity violation.
        DatabaseOperationError: For any other SQLAlchemy error.
    """
    try:
        yield
    except RatingCoreError:
        db.rollback()
        raise
    except IntegrityError as e:
        db.rollback()
        logger.warning(f"Integrity error during {operation_name}: {e.orig}")
        raise ConflictError(ErrorMessages.DUPLICATE_RECORD) from e
    except SQLAlchemyError as e:
        db.rollback()
        logger.log(
            log_level,
            f"Database error during {operation_name}: {e}",
            exc_info=True,
        )
        raise DatabaseOperationError(operation_name, e) from e
