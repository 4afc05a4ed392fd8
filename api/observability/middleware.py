"""
Observability Middleware

Flask hooks that add OpenTelemetry instrumentation and request logging
to every BloodLink API call.
"""

import time
import logging
from flask import Flask, request, g
from opentelemetry import trace
from opentelemetry.instrumentation.flask import FlaskInstrumentor

logger = logging.getLogger(__name__)


def add_observability_middleware(app: Flask, instrument: bool = True):
    """Add request timing, trace correlation and access logging to the app."""

    if instrument:
        FlaskInstrumentor().instrument_app(app)

    @app.before_request
    def start_request_timer():
        g.start_time = time.time()
        g.trace_id = None

        span = trace.get_current_span()
        if span.is_recording():
            g.trace_id = format(span.get_span_context().trace_id, "032x")
            span.set_attributes({
                "http.target": request.path,
                "http.user_agent": request.headers.get("User-Agent", "")
            })

    @app.after_request
    def log_request(response):
        duration_ms = round((time.time() - g.get('start_time', time.time())) * 1000, 2)

        span = trace.get_current_span()
        if span.is_recording():
            span.set_attributes({
                "http.status_code": response.status_code,
                "http.duration_ms": duration_ms
            })

        logger.info(
            f"{request.method} {request.path} {response.status_code}",
            extra={
                "method": request.method,
                "path": request.path,
                "status_code": response.status_code,
                "duration_ms": duration_ms,
                "trace_id": g.get('trace_id')
            }
        )

        if g.get('trace_id'):
            response.headers['X-Trace-Id'] = g.trace_id

        return response
