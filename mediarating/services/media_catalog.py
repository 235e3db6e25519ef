"""
Read-only lookups into the media tables.

Category and media management live in a separate subsystem; the rating core
only needs to know which media items a test covers.
"""
from typing import List, Sequence

from sqlalchemy import select
from sqlalchemy.orm import Session

from mediarating.models import (
    Category,
    MediaFile,
    media_file_categories,
    test_categories,
)


class MediaCatalog:
    """Queries resolving categories and tests to their media items."""

    def __init__(self, db: Session):
        self.db = db

    def category_exists(self, category_id: int) -> bool:
        return self.db.get(Category, category_id) is not None

    def media_items_for_categories(
        self, category_ids: Sequence[int]
    ) -> List[MediaFile]:
        """Distinct media files linked to any of the given categories, oldest upload first."""
        if not category_ids:
            return []
        stmt = (
            select(MediaFile)
            .join(
                media_file_categories,
                media_file_categories.c.media_file_id == MediaFile.id,
            )
            .where(media_file_categories.c.category_id.in_(category_ids))
            .distinct()
            .order_by(MediaFile.uploaded_at, MediaFile.id)
        )
        return list(self.db.scalars(stmt).all())

    def media_items_for_test(self, test_id: int) -> List[MediaFile]:
        """Media files drawn from the test's categories, oldest upload first."""
        stmt = (
            select(MediaFile)
            .join(
                media_file_categories,
                media_file_categories.c.media_file_id == MediaFile.id,
            )
            .join(
                test_categories,
                test_categories.c.category_id == media_file_categories.c.category_id,
            )
            .where(test_categories.c.test_id == test_id)
            .distinct()
            .order_by(MediaFile.uploaded_at, MediaFile.id)
        )
        return list(self.db.scalars(stmt).all())

    def media_in_test(self, test_id: int, media_file_id: int) -> bool:
        """True if the media file belongs to one of the test's categories."""
        stmt = (
            select(media_file_categories.c.media_file_id)
            .join(
                test_categories,
                test_categories.c.category_id == media_file_categories.c.category_id,
            )
            .where(
                test_categories.c.test_id == test_id,
                media_file_categories.c.media_file_id == media_file_id,
            )
            .limit(1)
        )
        return self.db.execute(stmt).first() is not None
