"""
Pydantic schemas for respondent (token-addressed) endpoints.
"""
from pydantic import BaseModel, ConfigDict, Field
from typing import List, Optional

from mediarating.models import MediaType
from mediarating.schemas.common import UtcDatetime


class RespondentMediaItem(BaseModel):
    """A media item as presented to a respondent."""

    model_config = ConfigDict(from_attributes=True)

    id: int = Field(..., description="Media file ID")
    filename: str = Field(..., description="Original filename")
    media_type: MediaType = Field(..., description="audio, video, image or text")
    mime_type: str = Field(..., description="MIME type for the player")


class RespondentTestResponse(BaseModel):
    """What a respondent sees when opening their link."""

    name: str = Field(..., description="Test name")
    description: Optional[str] = Field(None, description="Test description")
    loop_media: bool = Field(..., description="Playback hint")
    media: List[RespondentMediaItem] = Field(..., description="Items to rate")


class RatingSubmit(BaseModel):
    """Schema for submitting or revising a rating."""

    media_file_id: int = Field(..., description="Media file being rated")
    # Range and half-step granularity are enforced by the rating service (400)
    stars: float = Field(..., description="Stars from 0 to 5 in steps of 0.5")
    comment: Optional[str] = Field(None, max_length=5000, description="Optional comment")


class RatingResponse(BaseModel):
    """Schema for a stored rating."""

    model_config = ConfigDict(from_attributes=True)

    id: int = Field(..., description="Rating ID")
    media_file_id: int = Field(..., description="Media file ID")
    stars: float = Field(..., description="Stars")
    comment: Optional[str] = Field(None, description="Comment")
    rated_at: UtcDatetime = Field(..., description="Last write timestamp")


class CompletionResponse(BaseModel):
    """Schema returned when a respondent completes a test."""

    message: str = Field(..., description="Success message")
