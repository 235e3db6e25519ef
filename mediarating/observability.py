"""
Application telemetry: Prometheus counters and Sentry error capture.

Usage:
    from mediarating.observability import metrics, capture_error

    metrics.record_operation("submit_rating", "success")
    metrics.record_error(error_type="GracefulFailure")
    capture_error(exc, context={"path": "/v1/test/..."})

Counters are always registered; the /metrics endpoint decides whether they
are exposed (PROMETHEUS_METRICS_ENABLED). Sentry is only initialized when a
DSN is configured, otherwise capture_error is a no-op.
"""
import logging
from typing import Any, Optional

import sentry_sdk
from prometheus_client import CollectorRegistry, Counter, Histogram

from mediarating.core.config import settings

logger = logging.getLogger(__name__)

# Dedicated registry so repeated imports in tests do not collide with the
# process-wide default registry.
REGISTRY = CollectorRegistry(auto_describe=True)


class ApplicationMetrics:
    """
    Application-level metrics backed by prometheus-client.

    Label values are bounded: operation names and outcomes come from code,
    never from request data.
    """

    def __init__(self, registry: CollectorRegistry) -> None:
        self._http_requests = Counter(
            "http_server_requests",
            "HTTP requests served",
            ["method", "route", "status_code"],
            registry=registry,
        )
        self._http_duration = Histogram(
            "http_server_request_duration_seconds",
            "HTTP request latency",
            ["method", "route"],
            registry=registry,
        )
        self._operations = Counter(
            "rating_core_operations",
            "Core operations by outcome",
            ["operation", "outcome"],
            registry=registry,
        )
        self._errors = Counter(
            "app_errors",
            "Errors by type",
            ["error_type"],
            registry=registry,
        )

    def record_http_request(
        self, method: str, route: str, status_code: int, duration: float
    ) -> None:
        """Record one served request and its latency in seconds."""
        self._http_requests.labels(
            method=method, route=route, status_code=str(status_code)
        ).inc()
        self._http_duration.labels(method=method, route=route).observe(duration)

    def record_operation(self, operation: str, outcome: str) -> None:
        """Record a core operation outcome (e.g. "success", "not_found")."""
        self._operations.labels(operation=operation, outcome=outcome).inc()

    def record_error(self, error_type: str) -> None:
        self._errors.labels(error_type=error_type).inc()


metrics = ApplicationMetrics(REGISTRY)

_sentry_initialized = False


def init_sentry() -> bool:
    """Initialize the Sentry SDK if a DSN is configured.

    Returns:
        True if Sentry was initialized, False if skipped or failed.
    """
    global _sentry_initialized

    if not settings.SENTRY_DSN:
        logger.debug("Sentry initialization skipped (DSN not configured)")
        return False

    try:
        sentry_sdk.init(
            dsn=settings.SENTRY_DSN,
            environment=settings.ENV,
            release=settings.APP_VERSION,
            traces_sample_rate=settings.SENTRY_TRACES_SAMPLE_RATE,
            send_default_pii=False,
        )
    except Exception as e:
        logger.error(f"Failed to initialize Sentry: {e}", exc_info=True)
        return False

    _sentry_initialized = True
    logger.info(
        f"Sentry initialized for environment '{settings.ENV}' "
        f"with {settings.SENTRY_TRACES_SAMPLE_RATE * 100:.0f}% trace sampling"
    )
    return True


def capture_error(
    exception: BaseException,
    *,
    context: Optional[dict[str, Any]] = None,
    tags: Optional[dict[str, str]] = None,
) -> Optional[str]:
    """Capture an exception and send it to Sentry.

    Returns:
        Event ID if captured, None if Sentry is not initialized.
    """
    if not _sentry_initialized:
        return None

    with sentry_sdk.new_scope() as scope:
        if context:
            scope.set_context("additional", {k: str(v) for k, v in context.items()})
        if tags:
            for key, value in tags.items():
                scope.set_tag(key, value)
        return sentry_sdk.capture_exception(exception)
