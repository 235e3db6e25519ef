"""
Pytest configuration and shared fixtures for testing.
"""
import os
from pathlib import Path

# Settings are read at import time; provide what they require before any
# mediarating module is imported.
os.environ.setdefault("JWT_SECRET_KEY", "test-secret-key-for-pytest-only")
os.environ.setdefault("ENV", "test")
os.environ.setdefault("INVITATION_EMAILS_ENABLED", "false")

from contextlib import asynccontextmanager  # noqa: E402
from datetime import datetime, timezone  # noqa: E402
from typing import Dict  # noqa: E402

import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402
from sqlalchemy import create_engine  # noqa: E402
from sqlalchemy.orm import sessionmaker  # noqa: E402

from mediarating.core.auth import ActingAdmin, create_access_token  # noqa: E402
from mediarating.main import app  # noqa: E402
from mediarating.models import (  # noqa: E402
    Base,
    Category,
    MediaFile,
    get_db,
)
from mediarating.services.test_lifecycle import TestLifecycleService  # noqa: E402


def pytest_addoption(parser: pytest.Parser) -> None:
    parser.addoption(
        "--run-integration",
        action="store_true",
        default=False,
        help="Run integration tests that require live external services",
    )


def pytest_collection_modifyitems(
    config: pytest.Config, items: list[pytest.Item]
) -> None:
    if config.getoption("--run-integration"):
        return
    skip_integration = pytest.mark.skip(reason="need --run-integration option to run")
    for item in items:
        if "integration" in item.keywords:
            item.add_marker(skip_integration)


@asynccontextmanager
async def _test_lifespan(app):
    """No-op lifespan for tests. Skips Sentry initialization."""
    yield


app.router.lifespan_context = _test_lifespan

# Path is relative to this file so the .db lands inside tests/ regardless of
# the working directory.
_TEST_DB = Path(__file__).parent / "test.db"
SQLALCHEMY_DATABASE_URL = f"sqlite:///{_TEST_DB}"

engine = create_engine(
    SQLALCHEMY_DATABASE_URL, connect_args={"check_same_thread": False}
)
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture(scope="function")
def db_session():
    """
    Create a fresh database session for each test.
    """
    Base.metadata.create_all(bind=engine)

    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture(scope="function")
def client(db_session):
    """
    Create a test client with database dependency override.
    """

    def override_get_db():
        yield db_session

    app.dependency_overrides[get_db] = override_get_db
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


# ==========================================================================
# Admins
# ==========================================================================


@pytest.fixture
def owner_admin() -> ActingAdmin:
    return ActingAdmin(username="alice")


@pytest.fixture
def other_admin() -> ActingAdmin:
    return ActingAdmin(username="bob")


@pytest.fixture
def super_admin() -> ActingAdmin:
    return ActingAdmin(username="root", is_super_admin=True)


def _headers(admin: ActingAdmin) -> Dict[str, str]:
    token = create_access_token(admin.username, admin.is_super_admin)
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def owner_headers(owner_admin):
    return _headers(owner_admin)


@pytest.fixture
def other_headers(other_admin):
    return _headers(other_admin)


@pytest.fixture
def super_headers(super_admin):
    return _headers(super_admin)


# ==========================================================================
# Media catalog and tests
# ==========================================================================


@pytest.fixture
def audio_category(db_session):
    """A category with three audio clips."""
    category = Category(name="Jingles", media_type="audio")
    db_session.add(category)
    db_session.flush()
    for index, filename in enumerate(["intro.mp3", "verse.mp3", "outro.mp3"]):
        media = MediaFile(
            filename=filename,
            file_path=f"/uploads/{filename}",
            media_type="audio",
            mime_type="audio/mpeg",
            uploaded_at=datetime(2026, 1, 1, 12, index, tzinfo=timezone.utc),
        )
        media.categories.append(category)
        db_session.add(media)
    db_session.commit()
    db_session.refresh(category)
    return category


@pytest.fixture
def media_items(db_session, audio_category):
    """The audio category's clips, oldest upload first."""
    return sorted(audio_category.media_files, key=lambda m: m.uploaded_at)


@pytest.fixture
def foreign_media(db_session):
    """A media file in a category no fixture test uses."""
    category = Category(name="Posters", media_type="image")
    media = MediaFile(
        filename="poster.png",
        file_path="/uploads/poster.png",
        media_type="image",
        mime_type="image/png",
    )
    media.categories.append(category)
    db_session.add_all([category, media])
    db_session.commit()
    db_session.refresh(media)
    return media


@pytest.fixture
def open_test(db_session, audio_category, owner_admin):
    """An open test owned by owner_admin, drawing from the audio category."""
    return TestLifecycleService(db_session).create(
        name="Jingle survey",
        description="Rate each jingle",
        category_id=audio_category.id,
        acting_admin=owner_admin,
    )


@pytest.fixture
def granted(db_session, open_test, owner_admin):
    """(session, link) for one invited respondent on open_test."""
    return TestLifecycleService(db_session).grant_session(
        open_test.id, "respondent@example.com", owner_admin
    )


@pytest.fixture
def token(granted):
    session, _ = granted
    return session.one_time_token
