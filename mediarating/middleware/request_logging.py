"""
Request/response logging middleware for tracking API interactions.
"""
import logging
import re
import time
import uuid
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response
from starlette.routing import BaseRoute, Match
from starlette.types import Scope
from typing import Callable, Sequence

from mediarating.core.logging_config import request_id_context
from mediarating.observability import metrics

logger = logging.getLogger(__name__)

# One-time tokens travel in the path; they must never reach the logs
_TOKEN_PATH = re.compile(r"(/test/)[^/]+")

UNMATCHED_ROUTE = "unmatched"


def redact_path(path: str) -> str:
    return _TOKEN_PATH.sub(r"\1<token>", path)


def route_template(routes: Sequence[BaseRoute], scope: Scope, prefix: str = "") -> str:
    """
    Full path template of the route serving `scope`, e.g. "/v1/test/{token}".

    Walks the application's routes rather than trusting scope["route"], whose
    path omits the prefix of the router it was included from. Mounted
    sub-applications are searched with their mount path prepended.
    """
    for route in routes:
        match, child_scope = route.matches(scope)
        if match != Match.FULL:
            continue
        path = prefix + getattr(route, "path_format", getattr(route, "path", ""))
        sub_routes = getattr(route, "routes", None)
        if sub_routes:
            nested = route_template(sub_routes, {**scope, **child_scope}, path)
            return nested if nested != UNMATCHED_ROUTE else path
        return path
    return UNMATCHED_ROUTE


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """
    Middleware to log incoming requests and outgoing responses.

    Logs:
    - Request method and path (respondent tokens redacted)
    - Response status code and duration
    - User identifier (token preview from the auth header if present)
    """

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        # Generate or extract request ID for correlation
        request_id = request.headers.get("X-Request-ID") or str(uuid.uuid4())
        request_id_context.set(request_id)

        start_time = time.time()

        user_identifier = "anonymous"
        auth_header = request.headers.get("Authorization", "")
        if auth_header.startswith("Bearer "):
            # Extract first few chars of token for logging (not the full token)
            token_preview = auth_header[7:17] + "..."
            user_identifier = f"token:{token_preview}"

        method = request.method
        path = redact_path(str(request.url.path))
        client_host = request.client.host if request.client else "unknown"

        logger.info(
            "Incoming request",
            extra={
                "method": method,
                "path": path,
                "client_host": client_host,
                "user_identifier": user_identifier,
            },
        )

        response = await call_next(request)

        duration = time.time() - start_time
        duration_ms = round(duration * 1000, 2)
        status_code = response.status_code

        # Add request_id header to response for client-side correlation
        response.headers["X-Request-ID"] = request_id

        # Label metrics by route template to keep cardinality bounded
        route_path = route_template(request.app.router.routes, request.scope)
        metrics.record_http_request(method, route_path, status_code, duration)

        extra_fields = {
            "method": method,
            "path": path,
            "status_code": status_code,
            "duration_ms": duration_ms,
            "client_host": client_host,
            "user_identifier": user_identifier,
        }

        if status_code >= 500:
            logger.error("Server error response", extra=extra_fields)
        elif status_code >= 400:
            logger.warning("Client error response", extra=extra_fields)
        else:
            logger.info("Request completed", extra=extra_fields)

        return response
