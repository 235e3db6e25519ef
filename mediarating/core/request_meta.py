"""
Request metadata captured for the activity trail.

Client IP extraction only trusts headers set by infrastructure proxies.
X-Forwarded-For and X-Real-IP can be injected by clients and are ignored.
"""
from dataclasses import dataclass
from typing import Optional

from fastapi import Request


@dataclass(frozen=True)
class RequestMeta:
    """Who-and-where of the caller, stored on every activity log entry."""

    ip_address: Optional[str] = None
    user_agent: Optional[str] = None


def get_secure_client_ip(request: Request) -> str:
    """
    Securely extract the real client IP address from request.

    Priority:
    1. X-Envoy-External-Address (set by the Envoy edge proxy, not spoofable)
    2. request.client.host (direct connection, local development)
    3. "unknown"
    """
    envoy_ip = request.headers.get("X-Envoy-External-Address")
    if envoy_ip:
        return envoy_ip.split(",")[0].strip()

    if request.client:
        return request.client.host

    return "unknown"


def get_request_meta(request: Request) -> RequestMeta:
    """FastAPI dependency building RequestMeta from the incoming request."""
    return RequestMeta(
        ip_address=get_secure_client_ip(request),
        user_agent=request.headers.get("User-Agent"),
    )
