"""
Graceful failure utilities.

This module provides a reusable context manager for non-critical operations
that should not block the main execution flow:
1. Attempting an operation
2. Logging any exceptions with context
3. Continuing execution without raising

This is distinct from `db_error_handling.py`, which handles critical errors
that require rollback and an error response. Activity logging and invitation
e-mail run under this manager: a failure there never undoes the operation it
describes.

Usage:
    from mediarating.core.graceful_failure import graceful_failure

    with graceful_failure("record activity log", logger, context={"action": action}):
        db.add(entry)
        db.commit()
"""

import logging
from contextlib import contextmanager
from typing import Any, Generator, Optional

from mediarating.observability import capture_error, metrics


@contextmanager
def graceful_failure(
    operation_name: str,
    logger: logging.Logger,
    *,
    log_level: int = logging.WARNING,
    exc_info: bool = False,
    context: Optional[dict[str, Any]] = None,
    report_to_sentry: bool = False,
) -> Generator[None, None, None]:
    """Context manager for non-critical operations that should not block execution.

    Unlike `handle_db_error`, this does NOT raise and does NOT roll back a
    session; callers that write inside the block roll back themselves.

    Args:
        operation_name: Human-readable name of the operation for logging.
        logger: The logger instance to use for logging errors.
        log_level: Logging level for error messages. Defaults to WARNING.
        exc_info: Whether to include exception traceback in log.
        context: Optional dictionary of additional context to include in the
            log message (e.g., {"action": "close_test", "entity_id": 4}).
        report_to_sentry: Also send the swallowed exception to Sentry.
    """
    try:
        yield
    except Exception as e:
        if context:
            context_str = ", ".join(f"{k}={v}" for k, v in context.items())
            message = f"Failed to {operation_name} ({context_str}): {e}"
        else:
            message = f"Failed to {operation_name}: {e}"

        logger.log(log_level, message, exc_info=exc_info)

        try:
            metrics.record_error(error_type="GracefulFailure")
            if report_to_sentry:
                capture_error(e, context={"operation": operation_name, **(context or {})})
        except Exception:
            pass  # Telemetry should not break graceful failure handling
