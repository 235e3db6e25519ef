"""
Respondent endpoints, addressed by one-time token.

No authentication: possession of the token is the credential. Error bodies
never echo ids or tokens.
"""
from typing import List

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from mediarating.core.request_meta import RequestMeta, get_request_meta
from mediarating.models import get_db
from mediarating.schemas.ratings import (
    CompletionResponse,
    RatingResponse,
    RatingSubmit,
    RespondentMediaItem,
    RespondentTestResponse,
)
from mediarating.services.completion import CompletionService
from mediarating.services.ratings import RatingService
from mediarating.services.session_gate import SessionGate

router = APIRouter()


@router.get("/{token}", response_model=RespondentTestResponse)
def open_test(
    token: str,
    db: Session = Depends(get_db),
    meta: RequestMeta = Depends(get_request_meta),
):
    """
    Open a test by its one-time link.

    Returns the test's name, description and the media items to rate.
    404 for an unknown link, 410 once completed, 403 once the test is closed.
    """
    view = SessionGate(db).open_test(token, meta)
    return RespondentTestResponse(
        name=view.context.test_name,
        description=view.context.test_description,
        loop_media=view.context.loop_media,
        media=[RespondentMediaItem.model_validate(item) for item in view.media],
    )


@router.get("/{token}/ratings", response_model=List[RatingResponse])
def list_my_ratings(
    token: str,
    db: Session = Depends(get_db),
    meta: RequestMeta = Depends(get_request_meta),
):
    """The respondent's own ratings so far, newest first."""
    return SessionGate(db).ratings_for(token, meta)


@router.post("/{token}/ratings", response_model=RatingResponse)
def submit_rating(
    token: str,
    payload: RatingSubmit,
    db: Session = Depends(get_db),
    meta: RequestMeta = Depends(get_request_meta),
):
    """
    Create or overwrite the rating for one media item.

    Resubmitting for the same item replaces stars and comment in place.
    """
    return RatingService(db).submit(
        token,
        media_file_id=payload.media_file_id,
        stars=payload.stars,
        comment=payload.comment,
        request_meta=meta,
    )


@router.post("/{token}/complete", response_model=CompletionResponse)
def complete_test(
    token: str,
    db: Session = Depends(get_db),
    meta: RequestMeta = Depends(get_request_meta),
):
    """Finish the test. The link stops working afterwards."""
    CompletionService(db).complete(token, meta)
    return CompletionResponse(message="Test completed. Thank you for your responses.")
