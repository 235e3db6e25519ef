"""
Admin endpoints for test management, respondent sessions and results.
"""
import logging
from typing import List

from fastapi import APIRouter, BackgroundTasks, Depends, Response, status
from sqlalchemy.orm import Session

from mediarating.core.auth import ActingAdmin, get_acting_admin
from mediarating.core.request_meta import RequestMeta, get_request_meta
from mediarating.models import TestUser, get_db
from mediarating.schemas.results import TestResultsResponse
from mediarating.schemas.tests import (
    TestCreate,
    TestResponse,
    TestUserCreate,
    TestUserResponse,
)
from mediarating.services.aggregation import AggregationService
from mediarating.services.email_service import send_test_invitation_email
from mediarating.services.test_lifecycle import (
    TestLifecycleService,
    build_invitation_link,
)

logger = logging.getLogger(__name__)

router = APIRouter()


def _session_response(session: TestUser) -> TestUserResponse:
    return TestUserResponse(
        id=session.id,
        test_id=session.test_id,
        email=session.email,
        link=build_invitation_link(session.one_time_token),
        accessed_at=session.accessed_at,
        completed_at=session.completed_at,
        created_at=session.created_at,
    )


@router.post("", response_model=TestResponse, status_code=status.HTTP_201_CREATED)
def create_test(
    payload: TestCreate,
    db: Session = Depends(get_db),
    admin: ActingAdmin = Depends(get_acting_admin),
    meta: RequestMeta = Depends(get_request_meta),
):
    """Create an open test drawing its media from one category."""
    return TestLifecycleService(db).create(
        name=payload.name,
        description=payload.description,
        category_id=payload.category_id,
        loop_media=payload.loop_media,
        acting_admin=admin,
        request_meta=meta,
    )


@router.get("", response_model=List[TestResponse])
def list_tests(
    db: Session = Depends(get_db),
    admin: ActingAdmin = Depends(get_acting_admin),
):
    """All tests, newest first."""
    return TestLifecycleService(db).list_tests()


@router.get("/{test_id}", response_model=TestResponse)
def get_test(
    test_id: int,
    db: Session = Depends(get_db),
    admin: ActingAdmin = Depends(get_acting_admin),
):
    return TestLifecycleService(db).get(test_id)


@router.post("/{test_id}/close", response_model=TestResponse)
def close_test(
    test_id: int,
    db: Session = Depends(get_db),
    admin: ActingAdmin = Depends(get_acting_admin),
    meta: RequestMeta = Depends(get_request_meta),
):
    """
    Close a test. Only its creator or a super admin may do this.

    A closed test accepts no new sessions or ratings but stays readable.
    Closing twice returns 409.
    """
    return TestLifecycleService(db).close(test_id, admin, meta)


@router.delete("/{test_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_test(
    test_id: int,
    db: Session = Depends(get_db),
    admin: ActingAdmin = Depends(get_acting_admin),
    meta: RequestMeta = Depends(get_request_meta),
):
    """Delete a test together with its sessions and ratings."""
    TestLifecycleService(db).delete(test_id, admin, meta)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post(
    "/{test_id}/users",
    response_model=TestUserResponse,
    status_code=status.HTTP_201_CREATED,
)
def add_test_user(
    test_id: int,
    payload: TestUserCreate,
    background_tasks: BackgroundTasks,
    db: Session = Depends(get_db),
    admin: ActingAdmin = Depends(get_acting_admin),
    meta: RequestMeta = Depends(get_request_meta),
):
    """
    Invite a respondent and e-mail them their one-time link.

    The e-mail is sent after the response; a delivery failure does not undo
    the invitation.
    """
    service = TestLifecycleService(db)
    session, link = service.grant_session(test_id, payload.email, admin, meta)
    test = service.get(test_id)

    background_tasks.add_task(
        send_test_invitation_email,
        email=session.email,
        test_name=test.name,
        test_description=test.description,
        link=link,
    )
    return _session_response(session)


@router.get("/{test_id}/users", response_model=List[TestUserResponse])
def list_test_users(
    test_id: int,
    db: Session = Depends(get_db),
    admin: ActingAdmin = Depends(get_acting_admin),
):
    """Sessions of a test, newest first."""
    sessions = TestLifecycleService(db).list_sessions(test_id)
    return [_session_response(session) for session in sessions]


@router.delete(
    "/{test_id}/users/{test_user_id}", status_code=status.HTTP_204_NO_CONTENT
)
def delete_test_user(
    test_id: int,
    test_user_id: int,
    db: Session = Depends(get_db),
    admin: ActingAdmin = Depends(get_acting_admin),
    meta: RequestMeta = Depends(get_request_meta),
):
    """Revoke an uncompleted session on an open test."""
    TestLifecycleService(db).delete_session(test_id, test_user_id, admin, meta)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.get("/{test_id}/results", response_model=TestResultsResponse)
def get_test_results(
    test_id: int,
    db: Session = Depends(get_db),
    admin: ActingAdmin = Depends(get_acting_admin),
):
    """Per-item mean and count, plus every individual rating."""
    results = AggregationService(db).aggregate(test_id)
    return TestResultsResponse.model_validate(results)
