"""
Models package for the media rating service.
"""
from .base import Base, engine, SessionLocal, get_db
from .models import (
    ActivityLog,
    Category,
    MediaFile,
    MediaType,
    Rating,
    Test,
    TestStatus,
    TestUser,
    media_file_categories,
    test_categories,
)

__all__ = [
    "Base",
    "engine",
    "SessionLocal",
    "get_db",
    "ActivityLog",
    "Category",
    "MediaFile",
    "MediaType",
    "Rating",
    "Test",
    "TestStatus",
    "TestUser",
    "media_file_categories",
    "test_categories",
]
