"""
Results aggregation for a test: per-item mean and count, plus every individual
rating. Always computed from current rows.
"""
from dataclasses import dataclass
from datetime import datetime
from typing import List, Optional

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from mediarating.core.datetime_utils import ensure_timezone_aware
from mediarating.models import MediaFile, Rating, Test, TestUser
from mediarating.services.test_lifecycle import TestLifecycleService


@dataclass(frozen=True)
class MediaItemSummary:
    media_file_id: int
    filename: str
    media_type: str
    mean_stars: float
    rating_count: int


@dataclass(frozen=True)
class IndividualRating:
    rating_id: int
    session_id: int
    respondent_email: str
    media_file_id: int
    filename: str
    stars: float
    comment: Optional[str]
    rated_at: datetime


@dataclass(frozen=True)
class TestResults:
    __test__ = False

    test: Test
    per_media_item: List[MediaItemSummary]
    individual: List[IndividualRating]


class AggregationService:
    def __init__(self, db: Session):
        self.db = db

    def aggregate(self, test_id: int) -> TestResults:
        """
        Summarize all ratings of a test.

        Media items nobody rated are absent from `per_media_item`, which is
        ordered by mean descending. `individual` is newest first.

        Raises:
            NotFoundError: Unknown test.
        """
        test = TestLifecycleService(self.db).get(test_id)
        return TestResults(
            test=test,
            per_media_item=self._per_media_item(test_id),
            individual=self._individual(test_id),
        )

    def _per_media_item(self, test_id: int) -> List[MediaItemSummary]:
        mean_stars = func.avg(Rating.stars).label("mean_stars")
        rating_count = func.count(Rating.id).label("rating_count")
        rows = self.db.execute(
            select(
                MediaFile.id,
                MediaFile.filename,
                MediaFile.media_type,
                mean_stars,
                rating_count,
            )
            .join(Rating, Rating.media_file_id == MediaFile.id)
            .join(TestUser, TestUser.id == Rating.test_user_id)
            .where(TestUser.test_id == test_id)
            .group_by(MediaFile.id, MediaFile.filename, MediaFile.media_type)
            .order_by(mean_stars.desc(), MediaFile.id)
        ).all()
        return [
            MediaItemSummary(
                media_file_id=row.id,
                filename=row.filename,
                media_type=getattr(row.media_type, "value", row.media_type),
                mean_stars=float(row.mean_stars),
                rating_count=row.rating_count,
            )
            for row in rows
        ]

    def _individual(self, test_id: int) -> List[IndividualRating]:
        rows = self.db.execute(
            select(Rating, TestUser.email, MediaFile.filename)
            .join(TestUser, TestUser.id == Rating.test_user_id)
            .join(MediaFile, MediaFile.id == Rating.media_file_id)
            .where(TestUser.test_id == test_id)
            .order_by(Rating.rated_at.desc(), Rating.id.desc())
        ).all()
        return [
            IndividualRating(
                rating_id=rating.id,
                session_id=rating.test_user_id,
                respondent_email=email,
                media_file_id=rating.media_file_id,
                filename=filename,
                stars=rating.stars,
                comment=rating.comment,
                rated_at=ensure_timezone_aware(rating.rated_at),
            )
            for rating, email, filename in rows
        ]
