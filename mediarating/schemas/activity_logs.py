"""
Pydantic schemas for the activity log endpoint.
"""
from pydantic import BaseModel, Field
from typing import Any, Dict, List, Optional

from mediarating.schemas.common import UtcDatetime


class ActivityLogResponse(BaseModel):
    """One audit trail entry."""

    id: int
    admin_username: Optional[str] = None
    user_email: Optional[str] = None
    action: str
    entity_type: Optional[str] = None
    entity_id: Optional[int] = None
    details: Optional[Dict[str, Any]] = Field(
        None, description="Action-specific payload (shape fixed per action)"
    )
    ip_address: Optional[str] = None
    user_agent: Optional[str] = None
    timestamp: UtcDatetime


class ActivityLogListResponse(BaseModel):
    """A page of audit trail entries."""

    entries: List[ActivityLogResponse]
    total: int = Field(..., description="Number of entries matching the filters")
    limit: int
    offset: int
