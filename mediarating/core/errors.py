"""
Domain error taxonomy for the rating engine.

Every core operation either fully applies or raises one of these. Each class
carries the HTTP status the transport maps it to and a stable machine-readable
code, so not-found, forbidden, gone and conflict stay distinguishable all the
way to the client.

Messages passed to respondent-facing errors must not contain internal ids;
admin-facing errors may include them (see ErrorMessages).
"""
from fastapi import status


class RatingCoreError(Exception):
    """Base class for all typed failures raised by the core services."""

    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR
    code: str = "internal_error"

    def __init__(self, detail: str):
        self.detail = detail
        super().__init__(detail)


class ValidationError(RatingCoreError):
    """Malformed input: stars out of range or granularity, empty required field."""

    status_code = status.HTTP_400_BAD_REQUEST
    code = "validation_error"


class NotFoundError(RatingCoreError):
    """Entity or token does not exist."""

    status_code = status.HTTP_404_NOT_FOUND
    code = "not_found"


class ForbiddenError(RatingCoreError):
    """Caller is known but not permitted (wrong owner, closed test)."""

    status_code = status.HTTP_403_FORBIDDEN
    code = "forbidden"


class GoneError(RatingCoreError):
    """Token existed but its session has already been completed."""

    status_code = status.HTTP_410_GONE
    code = "gone"


class AlreadyClosedError(RatingCoreError):
    """Close requested on a test that is already closed."""

    status_code = status.HTTP_409_CONFLICT
    code = "already_closed"


class AlreadyCompletedError(RatingCoreError):
    """Completion requested on a session that is already completed."""

    status_code = status.HTTP_409_CONFLICT
    code = "already_completed"


class ConflictError(RatingCoreError):
    """Storage-level constraint violation not otherwise classified."""

    status_code = status.HTTP_409_CONFLICT
    code = "conflict"
