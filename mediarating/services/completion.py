"""
Completion coordinator.

Completing a session is the one-way switch that retires its token. The write
is a single guarded UPDATE (completed_at IS NULL), so of two concurrent calls
exactly one succeeds and the other gets AlreadyCompletedError.

Completion is client-asserted: it does not check that every media item in
the test has been rated.
"""
import logging
from typing import Optional

from sqlalchemy import func, update
from sqlalchemy.orm import Session

from mediarating.core.datetime_utils import utc_now
from mediarating.core.db_error_handling import handle_db_error
from mediarating.core.error_responses import ErrorMessages
from mediarating.core.errors import AlreadyCompletedError, GoneError
from mediarating.core.request_meta import RequestMeta
from mediarating.models import TestUser
from mediarating.observability import metrics
from mediarating.services.activity_log import (
    ActivityAction,
    ActivityLogger,
    CompleteTestDetail,
)
from mediarating.services.session_gate import SessionGate

logger = logging.getLogger(__name__)


class CompletionService:
    def __init__(self, db: Session):
        self.db = db
        self.gate = SessionGate(db)
        self.activity = ActivityLogger(db)

    def complete(self, token: str, request_meta: Optional[RequestMeta] = None) -> None:
        """
        Mark the session completed.

        Raises:
            NotFoundError: Unknown token.
            ForbiddenError: The test is closed.
            AlreadyCompletedError: The session was completed before, or a
                concurrent call completed it first.
        """
        try:
            context = self.gate.resolve(token, request_meta)
        except GoneError:
            metrics.record_operation("complete_test", "already_completed")
            raise AlreadyCompletedError(ErrorMessages.TEST_ALREADY_COMPLETED)

        now = utc_now()
        with handle_db_error(self.db, "complete test"):
            result = self.db.execute(
                update(TestUser)
                .where(
                    TestUser.id == context.session_id,
                    TestUser.completed_at.is_(None),
                )
                .values(
                    completed_at=now,
                    accessed_at=func.coalesce(TestUser.accessed_at, now),
                )
                .execution_options(synchronize_session=False)
            )
            if result.rowcount == 0:
                metrics.record_operation("complete_test", "lost_race")
                raise AlreadyCompletedError(ErrorMessages.TEST_ALREADY_COMPLETED)
            self.db.commit()

        metrics.record_operation("complete_test", "success")
        logger.info(f"Test user {context.session_id} completed test {context.test_id}")

        self.activity.record(
            ActivityAction.COMPLETE_TEST,
            CompleteTestDetail(test_user_id=context.session_id),
            user_email=context.email,
            entity_type="test_user",
            entity_id=context.session_id,
            request_meta=request_meta,
        )
