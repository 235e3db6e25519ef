"""
Core services: test lifecycle, session gate, ratings, completion, results
and the activity trail.
"""
from .activity_log import ActivityAction, ActivityLogger, ActivityLogFilters
from .aggregation import AggregationService
from .completion import CompletionService
from .media_catalog import MediaCatalog
from .ratings import RatingService
from .session_gate import SessionContext, SessionGate
from .test_lifecycle import TestLifecycleService

__all__ = [
    "ActivityAction",
    "ActivityLogger",
    "ActivityLogFilters",
    "AggregationService",
    "CompletionService",
    "MediaCatalog",
    "RatingService",
    "SessionContext",
    "SessionGate",
    "TestLifecycleService",
]
