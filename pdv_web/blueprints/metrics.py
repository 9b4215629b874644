"""
Prometheus metrics blueprint.

Exposes /metrics with HTTP request metrics plus back-office counters
(login outcomes, product/customer saves). The endpoint is not
authenticated; restrict it at the network level.
"""
import os
import time

from flask import Blueprint, Response, g, request
from prometheus_client import (
    CONTENT_TYPE_LATEST, REGISTRY, CollectorRegistry, Counter, Gauge, Histogram,
    generate_latest, multiprocess
)

metrics_bp = Blueprint('metrics', __name__)

# Gunicorn workers share metrics through PROMETHEUS_MULTIPROC_DIR
MULTIPROCESS_MODE = os.environ.get('PROMETHEUS_MULTIPROC_DIR') is not None

if MULTIPROCESS_MODE:
    registry = CollectorRegistry()
    multiprocess.MultiProcessCollector(registry)
    _metric_registry = None
else:
    registry = REGISTRY
    _metric_registry = REGISTRY

# Never instrumented: static assets and the scrape itself
UNTRACKED_ENDPOINTS = frozenset({'static', 'metrics.metrics'})

http_requests_total = Counter(
    'pdv_http_requests_total',
    'Total HTTP requests',
    ['method', 'endpoint', 'http_status'],
    registry=_metric_registry
)

http_request_duration_seconds = Histogram(
    'pdv_http_request_duration_seconds',
    'HTTP request latency in seconds',
    ['method', 'endpoint'],
    registry=_metric_registry,
    buckets=(0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0)
)

http_requests_in_flight = Gauge(
    'pdv_http_requests_in_flight',
    'HTTP requests currently being processed',
    registry=_metric_registry
)

# outcome: success | rejected | error
login_attempts_total = Counter(
    'pdv_login_attempts_total',
    'Company login attempts by outcome',
    ['outcome'],
    registry=_metric_registry
)

# kind: product | customer; operation: create | update | delete
record_saves_total = Counter(
    'pdv_record_saves_total',
    'Records written through the back-office editors',
    ['kind', 'operation'],
    registry=_metric_registry
)


def setup_metrics_instrumentation(app):
    """Register before/after request hooks that record HTTP metrics."""

    @app.before_request
    def before_request_metrics():
        if request.endpoint in UNTRACKED_ENDPOINTS:
            return
        g._metrics_started_at = time.perf_counter()
        http_requests_in_flight.inc()

    @app.after_request
    def after_request_metrics(response):
        started_at = g.pop('_metrics_started_at', None)
        if started_at is None:
            return response

        endpoint = request.endpoint or 'unknown'
        try:
            http_request_duration_seconds.labels(
                method=request.method, endpoint=endpoint
            ).observe(time.perf_counter() - started_at)
            http_requests_total.labels(
                method=request.method, endpoint=endpoint, http_status=response.status_code
            ).inc()
        except Exception as e:
            app.logger.warning(f"[METRICS] Failed to record request metrics: {e}")
        finally:
            http_requests_in_flight.dec()

        return response


@metrics_bp.route('/metrics')
def metrics():
    """Prometheus exposition in text format."""
    return Response(generate_latest(registry), mimetype=CONTENT_TYPE_LATEST)
