"""
Pydantic schemas for test results.
"""
from pydantic import BaseModel, ConfigDict, Field
from typing import List, Optional

from mediarating.schemas.common import UtcDatetime
from mediarating.schemas.tests import TestResponse


class MediaItemSummaryResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    media_file_id: int
    filename: str
    media_type: str
    mean_stars: float = Field(..., description="Mean stars across all ratings")
    rating_count: int = Field(..., description="Number of ratings")


class IndividualRatingResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    rating_id: int
    session_id: int
    respondent_email: str
    media_file_id: int
    filename: str
    stars: float
    comment: Optional[str] = None
    rated_at: UtcDatetime


class TestResultsResponse(BaseModel):
    """Aggregated and individual results for one test."""

    __test__ = False

    model_config = ConfigDict(from_attributes=True)

    test: TestResponse
    per_media_item: List[MediaItemSummaryResponse] = Field(
        ..., description="Rated items, highest mean first"
    )
    individual: List[IndividualRatingResponse] = Field(
        ..., description="Every rating, newest first"
    )
