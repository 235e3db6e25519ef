"""
Admin endpoint for browsing the activity trail.
"""
from datetime import datetime
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from mediarating.core.auth import ActingAdmin, get_acting_admin
from mediarating.models import get_db
from mediarating.schemas.activity_logs import (
    ActivityLogListResponse,
    ActivityLogResponse,
)
from mediarating.services.activity_log import (
    ActivityAction,
    ActivityLogFilters,
    ActivityLogger,
    detail_as_dict,
)

router = APIRouter()


@router.get("", response_model=ActivityLogListResponse)
def list_activity_logs(
    admin_username: Optional[str] = Query(None),
    user_email: Optional[str] = Query(None),
    action: Optional[ActivityAction] = Query(None),
    entity_type: Optional[str] = Query(None),
    from_time: Optional[datetime] = Query(None, description="Inclusive lower bound"),
    to_time: Optional[datetime] = Query(None, description="Exclusive upper bound"),
    limit: Optional[int] = Query(
        None, ge=1, description="Page size (default 50, capped at 200)"
    ),
    offset: int = Query(0, ge=0),
    db: Session = Depends(get_db),
    admin: ActingAdmin = Depends(get_acting_admin),
):
    """
    Page through the activity trail, newest first.

    All filters combine with AND. `total` counts every matching entry, not
    just the returned page.
    """
    page = ActivityLogger(db).query(
        ActivityLogFilters(
            admin_username=admin_username,
            user_email=user_email,
            action=action,
            entity_type=entity_type,
            from_time=from_time,
            to_time=to_time,
        ),
        limit=limit,
        offset=offset,
    )
    return ActivityLogListResponse(
        entries=[
            ActivityLogResponse(
                id=entry.id,
                admin_username=entry.admin_username,
                user_email=entry.user_email,
                action=entry.action,
                entity_type=entry.entity_type,
                entity_id=entry.entity_id,
                details=detail_as_dict(entry),
                ip_address=entry.ip_address,
                user_agent=entry.user_agent,
                timestamp=entry.timestamp,
            )
            for entry in page.entries
        ],
        total=page.total,
        limit=page.limit,
        offset=page.offset,
    )
