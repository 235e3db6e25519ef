"""Initial schema: media catalog, tests, sessions, ratings and activity logs

Revision ID: 0001_initial_schema
Revises:
Create Date: 2026-10-16 09:00:00.000000

Ratings carry the (test_user_id, media_file_id) unique constraint the upsert
uses as its conflict target. Activity logs hold plain ids, no foreign keys,
so entries survive deletion of the test or session they describe.
"""

from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision: str = "0001_initial_schema"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        "categories",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column("media_type", sa.String(length=20), nullable=False),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(op.f("ix_categories_id"), "categories", ["id"], unique=False)

    op.create_table(
        "media_files",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("filename", sa.String(length=255), nullable=False),
        sa.Column("file_path", sa.String(length=1024), nullable=False),
        sa.Column("media_type", sa.String(length=20), nullable=False),
        sa.Column("mime_type", sa.String(length=255), nullable=False),
        sa.Column("uploaded_at", sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(op.f("ix_media_files_id"), "media_files", ["id"], unique=False)

    op.create_table(
        "media_file_categories",
        sa.Column("media_file_id", sa.Integer(), nullable=False),
        sa.Column("category_id", sa.Integer(), nullable=False),
        sa.ForeignKeyConstraint(
            ["media_file_id"], ["media_files.id"], ondelete="CASCADE"
        ),
        sa.ForeignKeyConstraint(["category_id"], ["categories.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("media_file_id", "category_id"),
    )

    op.create_table(
        "tests",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column(
            "status",
            sa.Enum("open", "closed", name="test_status"),
            nullable=False,
        ),
        sa.Column("created_by", sa.String(length=255), nullable=False),
        sa.Column("loop_media", sa.Boolean(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(op.f("ix_tests_id"), "tests", ["id"], unique=False)
    op.create_index(op.f("ix_tests_status"), "tests", ["status"], unique=False)
    op.create_index(op.f("ix_tests_created_by"), "tests", ["created_by"], unique=False)

    op.create_table(
        "test_categories",
        sa.Column("test_id", sa.Integer(), nullable=False),
        sa.Column("category_id", sa.Integer(), nullable=False),
        sa.ForeignKeyConstraint(["test_id"], ["tests.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["category_id"], ["categories.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("test_id", "category_id"),
    )

    op.create_table(
        "test_users",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("test_id", sa.Integer(), nullable=False),
        sa.Column("email", sa.String(length=255), nullable=False),
        sa.Column("one_time_token", sa.String(length=128), nullable=False),
        sa.Column("accessed_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("completed_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.CheckConstraint(
            "completed_at IS NULL OR accessed_at IS NOT NULL",
            name="ck_test_user_completed_implies_accessed",
        ),
        sa.ForeignKeyConstraint(["test_id"], ["tests.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("test_id", "email", name="uq_test_user_email"),
    )
    op.create_index(op.f("ix_test_users_id"), "test_users", ["id"], unique=False)
    op.create_index("ix_test_users_test_id", "test_users", ["test_id"], unique=False)
    op.create_index(
        op.f("ix_test_users_one_time_token"),
        "test_users",
        ["one_time_token"],
        unique=True,
    )

    op.create_table(
        "ratings",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("test_user_id", sa.Integer(), nullable=False),
        sa.Column("media_file_id", sa.Integer(), nullable=False),
        sa.Column("stars", sa.Float(), nullable=False),
        sa.Column("comment", sa.Text(), nullable=True),
        sa.Column("rated_at", sa.DateTime(timezone=True), nullable=False),
        sa.CheckConstraint("stars >= 0 AND stars <= 5", name="ck_rating_stars_range"),
        sa.ForeignKeyConstraint(
            ["test_user_id"], ["test_users.id"], ondelete="CASCADE"
        ),
        sa.ForeignKeyConstraint(
            ["media_file_id"], ["media_files.id"], ondelete="CASCADE"
        ),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint(
            "test_user_id", "media_file_id", name="uq_rating_session_media"
        ),
    )
    op.create_index(op.f("ix_ratings_id"), "ratings", ["id"], unique=False)
    op.create_index(
        "ix_ratings_media_file_id", "ratings", ["media_file_id"], unique=False
    )

    op.create_table(
        "activity_logs",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("admin_username", sa.String(length=255), nullable=True),
        sa.Column("user_email", sa.String(length=255), nullable=True),
        sa.Column("action", sa.String(length=50), nullable=False),
        sa.Column("entity_type", sa.String(length=50), nullable=True),
        sa.Column("entity_id", sa.Integer(), nullable=True),
        sa.Column("details", sa.Text(), nullable=True),
        sa.Column("ip_address", sa.String(length=64), nullable=True),
        sa.Column("user_agent", sa.String(length=512), nullable=True),
        sa.Column("timestamp", sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(op.f("ix_activity_logs_id"), "activity_logs", ["id"], unique=False)
    op.create_index(
        "ix_activity_logs_timestamp", "activity_logs", ["timestamp"], unique=False
    )
    op.create_index(
        "ix_activity_logs_admin_username",
        "activity_logs",
        ["admin_username"],
        unique=False,
    )
    op.create_index(
        "ix_activity_logs_action", "activity_logs", ["action"], unique=False
    )


def downgrade() -> None:
    op.drop_table("activity_logs")
    op.drop_table("ratings")
    op.drop_table("test_users")
    op.drop_table("test_categories")
    op.drop_table("tests")
    op.drop_table("media_file_categories")
    op.drop_table("media_files")
    op.drop_table("categories")
    sa.Enum(name="test_status").drop(op.get_bind(), checkfirst=True)
