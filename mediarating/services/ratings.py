"""
Rating upsert engine.

A respondent may revise any rating until completion; each submission
overwrites the previous one for the same media item. The write is a single
INSERT ... ON CONFLICT DO UPDATE keyed on (test_user_id, media_file_id), so two
racing submissions can never produce two rows.

The same statement re-checks that the session is uncompleted and its test
open: rows are inserted from a SELECT over the live session, and the conflict
update carries the same guard. A completion or close that lands after the gate
check leaves the statement with nothing to write.
"""
import logging
import math
from typing import Optional

from sqlalchemy import literal, select
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.orm import Session

from mediarating.core.datetime_utils import utc_now
from mediarating.core.db_error_handling import handle_db_error
from mediarating.core.error_responses import ErrorMessages
from mediarating.core.errors import ConflictError, ValidationError
from mediarating.core.request_meta import RequestMeta
from mediarating.models import Rating, Test, TestStatus, TestUser
from mediarating.observability import metrics
from mediarating.services.activity_log import (
    ActivityAction,
    ActivityLogger,
    SubmitRatingDetail,
)
from mediarating.services.media_catalog import MediaCatalog
from mediarating.services.session_gate import SessionGate

logger = logging.getLogger(__name__)

MIN_STARS = 0.0
MAX_STARS = 5.0

_UPSERT_DIALECTS = {
    "sqlite": sqlite.insert,
    "postgresql": postgresql.insert,
}


def normalize_stars(stars: float) -> float:
    """
    Validate a star value and snap it to its exact half step.

    Raises:
        ValidationError: Outside [0, 5], not finite, or not a multiple of 0.5.
    """
    if not math.isfinite(stars) or stars < MIN_STARS or stars > MAX_STARS:
        raise ValidationError(ErrorMessages.INVALID_STARS)
    doubled = stars * 2
    if not math.isclose(doubled, round(doubled), abs_tol=1e-9):
        raise ValidationError(ErrorMessages.INVALID_STARS)
    return round(doubled) / 2


class RatingService:
    def __init__(self, db: Session):
        self.db = db
        self.gate = SessionGate(db)
        self.catalog = MediaCatalog(db)
        self.activity = ActivityLogger(db)

    def submit(
        self,
        token: str,
        media_file_id: int,
        stars: float,
        comment: Optional[str] = None,
        request_meta: Optional[RequestMeta] = None,
    ) -> Rating:
        """
        Create or overwrite the session's rating for one media item.

        Session Gate errors propagate unchanged.

        Raises:
            ValidationError: Bad star value, or media not part of the test.
        """
        context = self.gate.resolve(token, request_meta)

        stars = normalize_stars(stars)
        if not self.catalog.media_in_test(context.test_id, media_file_id):
            metrics.record_operation("submit_rating", "invalid_media")
            raise ValidationError(ErrorMessages.MEDIA_NOT_IN_TEST)

        with handle_db_error(self.db, "submit rating"):
            result = self.db.execute(
                self._upsert_statement(
                    context.session_id, media_file_id, stars, comment
                )
            )
            self.db.commit()

        if result.rowcount == 0:
            # Completed or closed after the gate let us through; the gate
            # reports which.
            metrics.record_operation("submit_rating", "lost_race")
            self.gate.resolve(token, request_meta)
            raise ConflictError(ErrorMessages.DUPLICATE_RECORD)

        rating = self.db.scalars(
            select(Rating)
            .where(
                Rating.test_user_id == context.session_id,
                Rating.media_file_id == media_file_id,
            )
            .execution_options(populate_existing=True)
        ).one()
        metrics.record_operation("submit_rating", "success")

        self.activity.record(
            ActivityAction.SUBMIT_RATING,
            SubmitRatingDetail(
                test_id=context.test_id,
                media_file_id=media_file_id,
                stars=stars,
                has_comment=bool(comment),
            ),
            user_email=context.email,
            entity_type="rating",
            entity_id=rating.id,
            request_meta=request_meta,
        )
        return rating

    def _upsert_statement(
        self,
        test_user_id: int,
        media_file_id: int,
        stars: float,
        comment: Optional[str],
    ):
        dialect = self.db.get_bind().dialect.name
        insert = _UPSERT_DIALECTS.get(dialect)
        if insert is None:
            raise NotImplementedError(f"Rating upsert is not supported on {dialect}")

        columns = Rating.__table__.c
        session_is_live = (
            TestUser.id == test_user_id,
            TestUser.completed_at.is_(None),
            Test.status == TestStatus.OPEN,
        )
        row_from_live_session = (
            select(
                TestUser.id,
                literal(media_file_id, type_=columns.media_file_id.type),
                literal(stars, type_=columns.stars.type),
                literal(comment, type_=columns.comment.type),
                literal(utc_now(), type_=columns.rated_at.type),
            )
            .join(Test, Test.id == TestUser.test_id)
            .where(*session_is_live)
        )
        stmt = insert(Rating).from_select(
            ["test_user_id", "media_file_id", "stars", "comment", "rated_at"],
            row_from_live_session,
        )
        return stmt.on_conflict_do_update(
            index_elements=["test_user_id", "media_file_id"],
            set_={
                "stars": stmt.excluded.stars,
                "comment": stmt.excluded.comment,
                "rated_at": stmt.excluded.rated_at,
            },
            where=(
                select(TestUser.id)
                .join(Test, Test.id == TestUser.test_id)
                .where(*session_is_live)
                .exists()
            ),
        )
