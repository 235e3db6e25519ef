"""
Pydantic schemas for admin test management endpoints.
"""
from pydantic import BaseModel, ConfigDict, Field
from typing import Optional

from mediarating.models import TestStatus
from mediarating.schemas.common import UtcDatetime


class TestCreate(BaseModel):
    """Schema for creating a test."""

    __test__ = False

    # Blank names are rejected by the service with a 400, not here
    name: str = Field(..., max_length=255, description="Test name")
    description: Optional[str] = Field(
        None, max_length=5000, description="Optional description shown to respondents"
    )
    category_id: int = Field(..., description="Category the test's media is drawn from")
    loop_media: bool = Field(True, description="Whether players should loop media")


class TestResponse(BaseModel):
    """Schema for a test."""

    __test__ = False

    model_config = ConfigDict(from_attributes=True)

    id: int = Field(..., description="Test ID")
    name: str = Field(..., description="Test name")
    description: Optional[str] = Field(None, description="Test description")
    created_by: str = Field(..., description="Username of the owning admin")
    status: TestStatus = Field(..., description="Test status (open, closed)")
    loop_media: bool = Field(..., description="Playback hint")
    created_at: UtcDatetime = Field(..., description="Creation timestamp")


class TestUserCreate(BaseModel):
    """Schema for inviting a respondent to a test."""

    __test__ = False

    email: str = Field(..., max_length=255, description="Respondent email")


class TestUserResponse(BaseModel):
    """Schema for a respondent session as seen by admins."""

    __test__ = False

    model_config = ConfigDict(from_attributes=True)

    id: int = Field(..., description="Session ID")
    test_id: int = Field(..., description="Test ID")
    email: str = Field(..., description="Respondent email")
    link: str = Field(..., description="One-time respondent link")
    accessed_at: Optional[UtcDatetime] = Field(None, description="First access timestamp")
    completed_at: Optional[UtcDatetime] = Field(None, description="Completion timestamp")
    created_at: UtcDatetime = Field(..., description="Invitation timestamp")
