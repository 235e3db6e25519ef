"""
Standardized error messages and response builders.

This module keeps every user-facing error string in one place so that:

1. Messages stay consistent across endpoints
2. Respondent-facing messages never leak internal identifiers
3. Admin-facing messages can include ids for diagnosis: "Test 12 not found."

Error Message Format Guidelines:
- Use sentence case (capitalize first letter only)
- End with a period for complete sentences
- Respondent messages (token-addressed routes) use the constants in the
  RESPONDENT section and never take an id
- Admin messages use the template methods, which include ids

Usage:
    from mediarating.core.error_responses import ErrorMessages
    from mediarating.core.errors import NotFoundError

    raise NotFoundError(ErrorMessages.LINK_NOT_FOUND)
    raise NotFoundError(ErrorMessages.test_not_found(test_id))
"""

from fastapi.responses import JSONResponse

from mediarating.core.errors import RatingCoreError


class ErrorMessages:
    """Centralized error message constants and templates.

    Naming Convention:
    - Constants: SCREAMING_SNAKE_CASE for static messages
    - Methods: snake_case for templates that accept parameters
    """

    # ==========================================================================
    # Respondent-facing (token routes) - no identifiers
    # ==========================================================================
    LINK_NOT_FOUND = "This test link does not exist."
    LINK_ALREADY_USED = "This test link has already been used."
    TEST_CLOSED = "This test is closed and no longer accepts responses."
    TEST_ALREADY_COMPLETED = "This test has already been completed."
    INVALID_STARS = "Stars must be between 0 and 5 in steps of 0.5."
    MEDIA_NOT_IN_TEST = "The selected media item is not part of this test."

    # ==========================================================================
    # Admin-facing
    # ==========================================================================
    AUTH_REQUIRED = "Admin authentication required."
    INVALID_TOKEN = "Invalid authentication token."
    INVALID_TOKEN_PAYLOAD = "Invalid token payload."
    TEST_NAME_REQUIRED = "Test name cannot be empty."
    EMAIL_REQUIRED = "Respondent email cannot be empty."
    DUPLICATE_RECORD = "The request conflicts with an existing record."

    @staticmethod
    def test_not_found(test_id: int) -> str:
        """Message when a test id does not resolve."""
        return f"Test {test_id} not found."

    @staticmethod
    def category_not_found(category_id: int) -> str:
        """Message when a test is created against an unknown category."""
        return f"Category {category_id} not found."

    @staticmethod
    def test_user_not_found(test_id: int, test_user_id: int) -> str:
        """Message when a session id does not belong to the given test."""
        return f"Test user {test_user_id} not found in test {test_id}."

    @staticmethod
    def not_test_owner(test_id: int) -> str:
        """Message when an admin acts on a test they neither own nor super-administer."""
        return (
            f"Not authorized to modify test {test_id}. "
            "Only its creator or a super admin may do this."
        )

    @staticmethod
    def test_already_closed(test_id: int) -> str:
        """Message for a second close on the same test."""
        return f"Test {test_id} is already closed."

    @staticmethod
    def test_closed_for_admin(test_id: int) -> str:
        """Message when an admin mutation is blocked because the test is closed."""
        return f"Test {test_id} is closed and can no longer be modified."

    @staticmethod
    def test_user_completed(test_user_id: int) -> str:
        """Message when deleting a session that has already been completed."""
        return f"Test user {test_user_id} has completed the test and cannot be removed."

    @staticmethod
    def duplicate_invitation(test_id: int) -> str:
        """Message when the same email is invited twice to one test."""
        return f"This email has already been invited to test {test_id}."

    @staticmethod
    def database_operation_failed(operation: str) -> str:
        """Generic message for database operation failures."""
        return f"Failed to {operation}. Please try again later."


def build_error_response(exc: RatingCoreError) -> JSONResponse:
    """Render a domain error as the JSON body the API returns for it."""
    return JSONResponse(
        status_code=exc.status_code,
        content={"detail": exc.detail, "error": exc.code},
    )
