"""
Session Gate: resolves a respondent's one-time token to a usable session.

Every respondent-facing operation passes through `SessionGate.resolve` first.
Checks always run against fresh reads, in this order:

1. unknown token          -> NotFoundError
2. session completed      -> GoneError
3. parent test closed     -> ForbiddenError

On success the first-access timestamp is stamped with a guarded update, and
only the request that actually stamps it records `access_test`.
"""
import logging
from dataclasses import dataclass
from datetime import datetime
from typing import List, Optional

from sqlalchemy import select, update
from sqlalchemy.orm import Session

from mediarating.core.datetime_utils import ensure_timezone_aware, utc_now
from mediarating.core.db_error_handling import handle_db_error
from mediarating.core.error_responses import ErrorMessages
from mediarating.core.errors import ForbiddenError, GoneError, NotFoundError
from mediarating.core.request_meta import RequestMeta
from mediarating.models import MediaFile, Rating, Test, TestStatus, TestUser
from mediarating.observability import metrics
from mediarating.services.activity_log import (
    AccessTestDetail,
    ActivityAction,
    ActivityLogger,
)
from mediarating.services.media_catalog import MediaCatalog

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SessionContext:
    """Snapshot of a live session and its test, taken when the gate let it through."""

    session_id: int
    test_id: int
    email: str
    test_name: str
    test_description: Optional[str]
    loop_media: bool
    accessed_at: Optional[datetime]


@dataclass(frozen=True)
class RespondentTestView:
    """Everything a respondent page needs to render a test."""

    context: SessionContext
    media: List[MediaFile]


class SessionGate:
    def __init__(self, db: Session):
        self.db = db
        self.activity = ActivityLogger(db)

    def resolve(
        self, token: str, request_meta: Optional[RequestMeta] = None
    ) -> SessionContext:
        """
        Validate a token and return its session context.

        Raises:
            NotFoundError: No session holds this token.
            GoneError: The session has already been completed.
            ForbiddenError: The session's test is closed.
        """
        session = self.db.scalars(
            select(TestUser)
            .where(TestUser.one_time_token == token)
            .execution_options(populate_existing=True)
        ).first()
        if session is None:
            metrics.record_operation("resolve_session", "not_found")
            raise NotFoundError(ErrorMessages.LINK_NOT_FOUND)

        if session.completed_at is not None:
            metrics.record_operation("resolve_session", "gone")
            raise GoneError(ErrorMessages.LINK_ALREADY_USED)

        test = self.db.get(Test, session.test_id, populate_existing=True)
        if test is None or test.status != TestStatus.OPEN:
            metrics.record_operation("resolve_session", "closed")
            raise ForbiddenError(ErrorMessages.TEST_CLOSED)

        session_id = session.id
        email = session.email
        first_access = self._stamp_first_access(session_id)

        if first_access:
            self.activity.record(
                ActivityAction.ACCESS_TEST,
                AccessTestDetail(test_user_id=session_id),
                user_email=email,
                entity_type="test_user",
                entity_id=session_id,
                request_meta=request_meta,
            )

        session = self.db.get(TestUser, session_id, populate_existing=True)
        test = self.db.get(Test, session.test_id)
        metrics.record_operation("resolve_session", "success")
        return SessionContext(
            session_id=session.id,
            test_id=test.id,
            email=session.email,
            test_name=test.name,
            test_description=test.description,
            loop_media=test.loop_media,
            accessed_at=ensure_timezone_aware(session.accessed_at),
        )

    def _stamp_first_access(self, session_id: int) -> bool:
        """Set accessed_at if it is unset. True if this call set it."""
        with handle_db_error(self.db, "record first access"):
            result = self.db.execute(
                update(TestUser)
                .where(TestUser.id == session_id, TestUser.accessed_at.is_(None))
                .values(accessed_at=utc_now())
                .execution_options(synchronize_session=False)
            )
            self.db.commit()
        return result.rowcount == 1

    def open_test(
        self, token: str, request_meta: Optional[RequestMeta] = None
    ) -> RespondentTestView:
        """Resolve the token and load the test's media list."""
        context = self.resolve(token, request_meta)
        media = MediaCatalog(self.db).media_items_for_test(context.test_id)
        return RespondentTestView(context=context, media=media)

    def ratings_for(
        self, token: str, request_meta: Optional[RequestMeta] = None
    ) -> List[Rating]:
        """The respondent's own ratings, so an interrupted session can resume."""
        context = self.resolve(token, request_meta)
        return list(
            self.db.scalars(
                select(Rating)
                .where(Rating.test_user_id == context.session_id)
                .order_by(Rating.rated_at.desc(), Rating.id.desc())
            ).all()
        )
