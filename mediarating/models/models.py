"""
Database models for the media rating service.

Categories and media files are owned by the media-management subsystem; this
service only reads them to resolve what a test contains.
"""
from sqlalchemy import (
    Column,
    Integer,
    String,
    Boolean,
    DateTime,
    ForeignKey,
    Text,
    Enum,
    Float,
    Table,
    UniqueConstraint,
    Index,
    CheckConstraint,
)
from sqlalchemy.orm import relationship
from datetime import datetime, timezone
import enum

from .base import Base


class TestStatus(str, enum.Enum):
    """Test lifecycle status. Transitions open -> closed exactly once."""

    __test__ = False

    OPEN = "open"
    CLOSED = "closed"


class MediaType(str, enum.Enum):
    """Media type enumeration."""

    AUDIO = "audio"
    VIDEO = "video"
    IMAGE = "image"
    TEXT = "text"


def _enum_values(enum_cls: type[enum.Enum]) -> list[str]:
    return [member.value for member in enum_cls]


media_file_categories = Table(
    "media_file_categories",
    Base.metadata,
    Column(
        "media_file_id",
        Integer,
        ForeignKey("media_files.id", ondelete="CASCADE"),
        primary_key=True,
    ),
    Column(
        "category_id",
        Integer,
        ForeignKey("categories.id", ondelete="CASCADE"),
        primary_key=True,
    ),
)

test_categories = Table(
    "test_categories",
    Base.metadata,
    Column(
        "test_id",
        Integer,
        ForeignKey("tests.id", ondelete="CASCADE"),
        primary_key=True,
    ),
    Column(
        "category_id",
        Integer,
        ForeignKey("categories.id", ondelete="CASCADE"),
        primary_key=True,
    ),
)


class Category(Base):
    """Category grouping media files of a single media type."""

    __tablename__ = "categories"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(255), nullable=False)
    media_type = Column(String(20), nullable=False)  # MediaType value

    media_files = relationship(
        "MediaFile", secondary=media_file_categories, back_populates="categories"
    )


class MediaFile(Base):
    """Uploaded media file (metadata only; bytes live in file storage)."""

    __tablename__ = "media_files"

    id = Column(Integer, primary_key=True, index=True)
    filename = Column(String(255), nullable=False)
    file_path = Column(String(1024), nullable=False)
    media_type = Column(String(20), nullable=False)  # MediaType value
    mime_type = Column(String(255), nullable=False)
    uploaded_at = Column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        nullable=False,
    )

    categories = relationship(
        "Category", secondary=media_file_categories, back_populates="media_files"
    )


class Test(Base):
    """A named bundle of media drawn from categories, rated by invited respondents."""

    __tablename__ = "tests"
    __test__ = False  # not a pytest class

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(255), nullable=False)
    description = Column(Text)
    created_at = Column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        nullable=False,
    )
    status = Column(
        Enum(TestStatus, name="test_status", values_callable=_enum_values),
        default=TestStatus.OPEN,
        nullable=False,
        index=True,
    )
    created_by = Column(String(255), nullable=False, index=True)  # Admin username
    loop_media = Column(Boolean, default=True, nullable=False)  # Playback hint

    # Relationships
    categories = relationship("Category", secondary=test_categories)
    sessions = relationship(
        "TestUser",
        back_populates="test",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )


class TestUser(Base):
    """
    A respondent session: one invited email holding one one-time token.

    completed_at set means the session is terminal; completed_at implies
    accessed_at.
    """

    __tablename__ = "test_users"
    __test__ = False

    id = Column(Integer, primary_key=True, index=True)
    test_id = Column(
        Integer, ForeignKey("tests.id", ondelete="CASCADE"), nullable=False
    )
    email = Column(String(255), nullable=False)
    one_time_token = Column(String(128), unique=True, nullable=False, index=True)
    accessed_at = Column(DateTime(timezone=True))
    completed_at = Column(DateTime(timezone=True))
    created_at = Column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        nullable=False,
    )

    # Relationships
    test = relationship("Test", back_populates="sessions")
    ratings = relationship(
        "Rating",
        back_populates="test_user",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )

    __table_args__ = (
        UniqueConstraint("test_id", "email", name="uq_test_user_email"),
        Index("ix_test_users_test_id", "test_id"),
        CheckConstraint(
            "completed_at IS NULL OR accessed_at IS NOT NULL",
            name="ck_test_user_completed_implies_accessed",
        ),
    )


class Rating(Base):
    """Star rating (0-5 in half steps) of one media item by one session."""

    __tablename__ = "ratings"

    id = Column(Integer, primary_key=True, index=True)
    test_user_id = Column(
        Integer, ForeignKey("test_users.id", ondelete="CASCADE"), nullable=False
    )
    media_file_id = Column(
        Integer, ForeignKey("media_files.id", ondelete="CASCADE"), nullable=False
    )
    stars = Column(Float, nullable=False)
    comment = Column(Text)
    rated_at = Column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        nullable=False,
    )

    # Relationships
    test_user = relationship("TestUser", back_populates="ratings")
    media_file = relationship("MediaFile")

    __table_args__ = (
        # The upsert conflict target: one row per (session, media item)
        UniqueConstraint(
            "test_user_id", "media_file_id", name="uq_rating_session_media"
        ),
        CheckConstraint("stars >= 0 AND stars <= 5", name="ck_rating_stars_range"),
        Index("ix_ratings_media_file_id", "media_file_id"),
    )


class ActivityLog(Base):
    """
    Append-only audit trail entry.

    Holds plain ids instead of foreign keys so entries outlive their subject.
    `details` is JSON text whose shape is fixed per action.
    """

    __tablename__ = "activity_logs"

    id = Column(Integer, primary_key=True, index=True)
    admin_username = Column(String(255))
    user_email = Column(String(255))
    action = Column(String(50), nullable=False)
    entity_type = Column(String(50))
    entity_id = Column(Integer)
    details = Column(Text)
    ip_address = Column(String(64))
    user_agent = Column(String(512))
    timestamp = Column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        nullable=False,
    )

    __table_args__ = (
        Index("ix_activity_logs_timestamp", "timestamp"),
        Index("ix_activity_logs_admin_username", "admin_username"),
        Index("ix_activity_logs_action", "action"),
    )
