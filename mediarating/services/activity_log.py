"""
Append-only activity audit trail.

Every state-changing operation records one entry after its own commit. Writing
the entry is fire-and-forget: a failure is logged and counted but never undoes
or fails the operation it describes.

Each action has exactly one detail shape. Shapes are closed (unknown fields are
rejected) and versioned so that stored JSON can always be read back with
`parse_detail`.
"""
import enum
import json
import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Dict, List, Literal, Optional, Type

from pydantic import BaseModel, ConfigDict
from sqlalchemy import func, select
from sqlalchemy.orm import Session

from mediarating.core.config import settings
from mediarating.core.datetime_utils import to_utc, utc_now
from mediarating.core.errors import ValidationError
from mediarating.core.graceful_failure import graceful_failure
from mediarating.core.request_meta import RequestMeta
from mediarating.models import ActivityLog

logger = logging.getLogger(__name__)


class ActivityAction(str, enum.Enum):
    """Closed vocabulary of audited actions."""

    CREATE_TEST = "create_test"
    CLOSE_TEST = "close_test"
    DELETE_TEST = "delete_test"
    ADD_TEST_USER = "add_test_user"
    DELETE_TEST_USER = "delete_test_user"
    ACCESS_TEST = "access_test"
    SUBMIT_RATING = "submit_rating"
    COMPLETE_TEST = "complete_test"


class ActivityDetail(BaseModel):
    """Base for per-action detail payloads."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    version: Literal[1] = 1


class CreateTestDetail(ActivityDetail):
    name: str
    description: Optional[str] = None
    category_id: int
    loop_media: bool


class CloseTestDetail(ActivityDetail):
    name: str


class DeleteTestDetail(ActivityDetail):
    name: str
    created_by: str


class AddTestUserDetail(ActivityDetail):
    test_id: int
    email: str


class DeleteTestUserDetail(ActivityDetail):
    test_id: int
    email: str


class AccessTestDetail(ActivityDetail):
    test_user_id: int


class SubmitRatingDetail(ActivityDetail):
    test_id: int
    media_file_id: int
    stars: float
    has_comment: bool


class CompleteTestDetail(ActivityDetail):
    test_user_id: int


ACTION_DETAIL_SHAPES: Dict[ActivityAction, Type[ActivityDetail]] = {
    ActivityAction.CREATE_TEST: CreateTestDetail,
    ActivityAction.CLOSE_TEST: CloseTestDetail,
    ActivityAction.DELETE_TEST: DeleteTestDetail,
    ActivityAction.ADD_TEST_USER: AddTestUserDetail,
    ActivityAction.DELETE_TEST_USER: DeleteTestUserDetail,
    ActivityAction.ACCESS_TEST: AccessTestDetail,
    ActivityAction.SUBMIT_RATING: SubmitRatingDetail,
    ActivityAction.COMPLETE_TEST: CompleteTestDetail,
}


def parse_detail(action: str, raw: Optional[str]) -> Optional[ActivityDetail]:
    """
    Deserialize a stored detail blob into the shape registered for its action.

    Raises:
        ValueError: If the action is not in the vocabulary.
        pydantic.ValidationError: If the blob does not match the shape.
    """
    if raw is None:
        return None
    shape = ACTION_DETAIL_SHAPES[ActivityAction(action)]
    return shape.model_validate_json(raw)


@dataclass
class ActivityLogFilters:
    """Query filters. All set fields AND together; the time range is [from_time, to_time)."""

    admin_username: Optional[str] = None
    user_email: Optional[str] = None
    action: Optional[ActivityAction] = None
    entity_type: Optional[str] = None
    from_time: Optional[datetime] = None
    to_time: Optional[datetime] = None


@dataclass
class ActivityLogPage:
    entries: List[ActivityLog]
    total: int
    limit: int
    offset: int


class ActivityLogger:
    """Writes and queries the activity trail."""

    def __init__(self, db: Session):
        self.db = db

    def record(
        self,
        action: ActivityAction,
        detail: ActivityDetail,
        *,
        admin_username: Optional[str] = None,
        user_email: Optional[str] = None,
        entity_type: Optional[str] = None,
        entity_id: Optional[int] = None,
        request_meta: Optional[RequestMeta] = None,
    ) -> Optional[ActivityLog]:
        """
        Append one entry in its own transaction.

        Must be called after the primary operation has committed. Returns the
        stored entry, or None if writing it failed (the failure is logged and
        counted, never raised).
        """
        meta = request_meta or RequestMeta()
        entry: Optional[ActivityLog] = None

        with graceful_failure(
            "record activity log",
            logger,
            log_level=logging.ERROR,
            exc_info=True,
            context={"action": getattr(action, "value", action), "entity_id": entity_id},
            report_to_sentry=True,
        ):
            expected_shape = ACTION_DETAIL_SHAPES[action]
            if type(detail) is not expected_shape:
                raise TypeError(
                    f"Detail for {action.value} must be {expected_shape.__name__}, "
                    f"got {type(detail).__name__}"
                )

            candidate = ActivityLog(
                admin_username=admin_username,
                user_email=user_email,
                action=action.value,
                entity_type=entity_type,
                entity_id=entity_id,
                details=detail.model_dump_json(),
                ip_address=meta.ip_address,
                user_agent=meta.user_agent,
                timestamp=utc_now(),
            )
            try:
                self.db.add(candidate)
                self.db.commit()
            except Exception:
                self.db.rollback()
                raise
            entry = candidate

        return entry

    def query(
        self,
        filters: Optional[ActivityLogFilters] = None,
        limit: Optional[int] = None,
        offset: int = 0,
    ) -> ActivityLogPage:
        """
        Page through entries matching the filters, newest first.

        `limit` defaults to ACTIVITY_LOG_DEFAULT_LIMIT and is capped at
        ACTIVITY_LOG_MAX_LIMIT. `total` counts the whole filtered set.
        """
        if limit is None:
            limit = settings.ACTIVITY_LOG_DEFAULT_LIMIT
        if limit < 1:
            raise ValidationError("Limit must be at least 1.")
        if offset < 0:
            raise ValidationError("Offset must not be negative.")
        limit = min(limit, settings.ACTIVITY_LOG_MAX_LIMIT)

        conditions = self._conditions(filters or ActivityLogFilters())

        total = self.db.scalar(
            select(func.count()).select_from(ActivityLog).where(*conditions)
        )
        entries = self.db.scalars(
            select(ActivityLog)
            .where(*conditions)
            .order_by(ActivityLog.timestamp.desc(), ActivityLog.id.desc())
            .limit(limit)
            .offset(offset)
        ).all()

        return ActivityLogPage(
            entries=list(entries), total=total or 0, limit=limit, offset=offset
        )

    @staticmethod
    def _conditions(filters: ActivityLogFilters) -> list:
        conditions = []
        if filters.admin_username is not None:
            conditions.append(ActivityLog.admin_username == filters.admin_username)
        if filters.user_email is not None:
            conditions.append(ActivityLog.user_email == filters.user_email)
        if filters.action is not None:
            conditions.append(ActivityLog.action == ActivityAction(filters.action).value)
        if filters.entity_type is not None:
            conditions.append(ActivityLog.entity_type == filters.entity_type)
        if filters.from_time is not None:
            conditions.append(ActivityLog.timestamp >= to_utc(filters.from_time))
        if filters.to_time is not None:
            conditions.append(ActivityLog.timestamp < to_utc(filters.to_time))
        return conditions


def detail_as_dict(entry: ActivityLog) -> Optional[dict]:
    """Detail payload of a stored entry as a plain dict, for API responses."""
    if entry.details is None:
        return None
    try:
        parsed = parse_detail(entry.action, entry.details)
    except ValueError:
        # Entries written before a vocabulary change stay readable as raw JSON
        logger.warning(f"Activity log {entry.id} has an unreadable detail payload")
        return json.loads(entry.details)
    return parsed.model_dump() if parsed is not None else None
