"""
Tests for the rating upsert engine.
"""
from datetime import datetime, timedelta, timezone
from unittest.mock import patch

import pytest
from sqlalchemy import func, select, update

from mediarating.core.datetime_utils import ensure_timezone_aware
from mediarating.core.errors import (
    ForbiddenError,
    GoneError,
    NotFoundError,
    ValidationError,
)
from mediarating.models import ActivityLog, Rating, Test, TestStatus, TestUser
from mediarating.services.activity_log import parse_detail
from mediarating.services.completion import CompletionService
from mediarating.services.ratings import RatingService, normalize_stars
from mediarating.services.session_gate import SessionGate
from mediarating.services.test_lifecycle import TestLifecycleService

T0 = datetime(2026, 3, 1, 10, 0, 0, tzinfo=timezone.utc)


def _rating_count(db_session) -> int:
    return db_session.scalar(select(func.count()).select_from(Rating))


class TestNormalizeStars:
    """Tests for star validation."""

    @pytest.mark.parametrize("stars", [0, 0.5, 2.5, 3.0, 4.5, 5])
    def test_half_steps_accepted(self, stars):
        assert normalize_stars(stars) == float(stars)

    @pytest.mark.parametrize("stars", [-0.5, 5.5, 2.3, 4.75, float("nan"), float("inf")])
    def test_invalid_values_rejected(self, stars):
        with pytest.raises(ValidationError):
            normalize_stars(stars)

    def test_float_noise_snaps_to_half_step(self):
        assert normalize_stars(0.1 + 0.2 + 2.2) == 2.5


class TestSubmit:
    """Tests for RatingService.submit."""

    def test_first_submission_creates_rating(self, db_session, granted, token, media_items):
        session, _ = granted

        rating = RatingService(db_session).submit(
            token, media_items[0].id, 4.5, "catchy"
        )

        assert rating.test_user_id == session.id
        assert rating.media_file_id == media_items[0].id
        assert rating.stars == 4.5
        assert rating.comment == "catchy"

    def test_resubmission_overwrites_in_place(self, db_session, token, media_items):
        """Second submit replaces stars and comment and advances rated_at."""
        service = RatingService(db_session)

        with patch("mediarating.services.ratings.utc_now", return_value=T0):
            first = service.submit(token, media_items[0].id, 2.0, "meh")
        first_id = first.id

        with patch(
            "mediarating.services.ratings.utc_now",
            return_value=T0 + timedelta(minutes=5),
        ):
            second = service.submit(token, media_items[0].id, 4.0, None)

        assert _rating_count(db_session) == 1
        assert second.id == first_id
        assert second.stars == 4.0
        assert second.comment is None
        assert ensure_timezone_aware(second.rated_at) == T0 + timedelta(minutes=5)

    def test_identical_resubmission_is_idempotent(self, db_session, token, media_items):
        service = RatingService(db_session)

        service.submit(token, media_items[1].id, 3.5, "same")
        again = service.submit(token, media_items[1].id, 3.5, "same")

        assert _rating_count(db_session) == 1
        assert (again.stars, again.comment) == (3.5, "same")

    def test_each_media_item_gets_its_own_row(self, db_session, token, media_items):
        service = RatingService(db_session)
        for item in media_items:
            service.submit(token, item.id, 1.0)

        assert _rating_count(db_session) == len(media_items)

    def test_media_outside_test_rejected(self, db_session, token, foreign_media):
        with pytest.raises(ValidationError):
            RatingService(db_session).submit(token, foreign_media.id, 3.0)
        assert _rating_count(db_session) == 0

    def test_invalid_stars_rejected_without_write(self, db_session, token, media_items):
        with pytest.raises(ValidationError):
            RatingService(db_session).submit(token, media_items[0].id, 3.3)
        assert _rating_count(db_session) == 0

    def test_every_submission_logged(self, db_session, open_test, token, media_items):
        service = RatingService(db_session)
        service.submit(token, media_items[0].id, 2.0)
        service.submit(token, media_items[0].id, 2.5, "better")

        entries = db_session.scalars(
            select(ActivityLog)
            .where(ActivityLog.action == "submit_rating")
            .order_by(ActivityLog.id)
        ).all()
        assert len(entries) == 2

        detail = parse_detail(entries[1].action, entries[1].details)
        assert detail.test_id == open_test.id
        assert detail.media_file_id == media_items[0].id
        assert detail.stars == 2.5
        assert detail.has_comment is True


class TestSubmitGate:
    """Submissions go through the Session Gate first."""

    def test_unknown_token(self, db_session, open_test, media_items):
        with pytest.raises(NotFoundError):
            RatingService(db_session).submit("bogus", media_items[0].id, 3.0)

    def test_closed_test_rejects_ratings(
        self, db_session, open_test, token, media_items, owner_admin
    ):
        TestLifecycleService(db_session).close(open_test.id, owner_admin)

        with pytest.raises(ForbiddenError):
            RatingService(db_session).submit(token, media_items[0].id, 3.0)
        assert _rating_count(db_session) == 0

    def test_completed_session_rejects_ratings(self, db_session, token, media_items):
        service = RatingService(db_session)
        service.submit(token, media_items[0].id, 3.0)
        CompletionService(db_session).complete(token)

        with pytest.raises(GoneError):
            service.submit(token, media_items[0].id, 5.0)

        stored = db_session.scalars(select(Rating)).one()
        assert stored.stars == 3.0


class TestSubmitRace:
    """A completion or close landing after the gate check blocks the write."""

    def _resolve_then(self, mutate):
        gate_resolve = SessionGate.resolve

        def resolve_then_mutate(gate, tok, request_meta=None):
            context = gate_resolve(gate, tok, request_meta)
            mutate(gate.db, context)
            gate.db.commit()
            return context

        return resolve_then_mutate

    def test_completed_after_gate_writes_nothing(self, db_session, token, media_items):
        def complete(db, context):
            db.execute(
                update(TestUser)
                .where(TestUser.id == context.session_id)
                .values(completed_at=T0)
            )

        with patch.object(SessionGate, "resolve", self._resolve_then(complete)):
            with pytest.raises(GoneError):
                RatingService(db_session).submit(token, media_items[0].id, 4.0)

        assert _rating_count(db_session) == 0

    def test_completed_after_gate_keeps_existing_rating(
        self, db_session, token, media_items
    ):
        RatingService(db_session).submit(token, media_items[0].id, 2.0, "first")

        def complete(db, context):
            db.execute(
                update(TestUser)
                .where(TestUser.id == context.session_id)
                .values(completed_at=T0)
            )

        with patch.object(SessionGate, "resolve", self._resolve_then(complete)):
            with pytest.raises(GoneError):
                RatingService(db_session).submit(token, media_items[0].id, 5.0, "late")

        stored = db_session.scalars(
            select(Rating).execution_options(populate_existing=True)
        ).one()
        assert (stored.stars, stored.comment) == (2.0, "first")

    def test_closed_after_gate_writes_nothing(
        self, db_session, open_test, token, media_items
    ):
        def close(db, context):
            db.execute(
                update(Test)
                .where(Test.id == context.test_id)
                .values(status=TestStatus.CLOSED)
            )

        with patch.object(SessionGate, "resolve", self._resolve_then(close)):
            with pytest.raises(ForbiddenError):
                RatingService(db_session).submit(token, media_items[0].id, 4.0)

        assert _rating_count(db_session) == 0
