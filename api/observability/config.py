"""
OpenTelemetry Configuration

Sets up tracing and log configuration for the BloodLink API.
"""

import os
import logging
from opentelemetry import trace
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.sampling import TraceIdRatioBased
from opentelemetry.sdk.trace.export import BatchSpanProcessor, ConsoleSpanExporter
from opentelemetry.sdk.resources import Resource
from opentelemetry.exporter.otlp.proto.grpc.trace_exporter import OTLPSpanExporter

SERVICE_NAME = 'bloodlink-api'


def setup_observability(environment: str = None, otel_enabled: bool = None) -> bool:
    """
    Initialize OpenTelemetry tracing based on environment configuration.

    Returns:
        True when a tracer provider was installed
    """
    environment = environment or os.getenv('ENVIRONMENT', 'development')
    if otel_enabled is None:
        otel_enabled = os.getenv('OTEL_ENABLED', 'true').lower() == 'true'
    service_version = os.getenv('SERVICE_VERSION', '1.0.0')

    setup_structured_logging(environment)

    if not otel_enabled:
        return False

    # Environment-specific sampling
    if environment == 'production':
        sampler = TraceIdRatioBased(0.1)
    elif environment == 'staging':
        sampler = TraceIdRatioBased(0.5)
    else:
        sampler = TraceIdRatioBased(1.0)

    resource = Resource.create({
        "service.name": SERVICE_NAME,
        "service.version": service_version,
        "deployment.environment": environment
    })

    tracer_provider = TracerProvider(
        sampler=sampler,
        resource=resource
    )

    otlp_endpoint = os.getenv('OTEL_EXPORTER_OTLP_ENDPOINT')
    if otlp_endpoint:
        headers = None
        if os.getenv('OTEL_API_KEY'):
            headers = {"Authorization": f"Bearer {os.getenv('OTEL_API_KEY')}"}
        tracer_provider.add_span_processor(
            BatchSpanProcessor(
                OTLPSpanExporter(endpoint=otlp_endpoint, headers=headers),
                max_export_batch_size=512
            )
        )
    elif environment == 'development':
        # Development without a collector: print spans
        tracer_provider.add_span_processor(BatchSpanProcessor(ConsoleSpanExporter()))

    trace.set_tracer_provider(tracer_provider)
    return True


def setup_structured_logging(environment: str):
    """Configure root logging levels per environment."""
    log_level = {
        'production': logging.WARNING,
        'staging': logging.INFO,
        'development': logging.INFO
    }.get(environment, logging.INFO)

    logging.basicConfig(
        level=log_level,
        format='%(asctime)s %(levelname)s %(name)s %(message)s',
        handlers=[logging.StreamHandler()]
    )

    if environment == 'production':
        # Production: Reduce noise, focus on errors and business events
        logging.getLogger('urllib3').setLevel(logging.WARNING)
        logging.getLogger('requests').setLevel(logging.WARNING)
        logging.getLogger('pymongo').setLevel(logging.WARNING)

    elif environment == 'development':
        logging.getLogger('domain').setLevel(logging.DEBUG)
        logging.getLogger('services').setLevel(logging.DEBUG)
