"""
API v1 router combining all v1 endpoints.
"""
from fastapi import APIRouter
from mediarating.api.v1 import activity_logs, admin_tests, health, respondent

api_router = APIRouter()

# Include all v1 routers
api_router.include_router(health.router, tags=["health"])
api_router.include_router(respondent.router, prefix="/test", tags=["respondent"])
api_router.include_router(admin_tests.router, prefix="/admin/tests", tags=["admin"])
api_router.include_router(
    activity_logs.router, prefix="/admin/activity-logs", tags=["admin"]
)
