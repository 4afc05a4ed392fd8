"""
BloodLink API - Flask Application Entry Point

This module builds the Flask application with OpenAPI 3.0 support,
selects the configured data store, and wires middleware and routes for
donor registration, emergency requests and donor reports.
"""

import os
import logging
from datetime import datetime
from typing import Any, Dict, Optional
from flask import jsonify
from flask_openapi3 import OpenAPI, Info, Tag

from observability.config import setup_observability
from observability.middleware import add_observability_middleware
from middleware.cors import configure_cors
from middleware.error_handler import ErrorHandlerMiddleware, register_custom_error_handlers
from models.enums import StoreBackend
from models.responses import HealthCheckResponse
from domain.proximity import DEFAULT_RADIUS_KM, DEFAULT_ICON_URL
from services.hal import create_hal_formatter
from services.health import HealthCheckService
from services.notifier import ProximityNotifier, LoggingNotificationSink
from services.repository import BloodLinkRepository, DEFAULT_CACHE_TTL_SECONDS
from services.store import BloodLinkStore, InMemoryStore

logger = logging.getLogger(__name__)

SERVICE_VERSION = "1.0.0"

# OpenAPI info
info = Info(
    title="BloodLink API",
    version=SERVICE_VERSION,
    description="Blood donor registry, emergency blood requests and donor reporting"
)


def _env_flag(name: str, default: str = 'true') -> bool:
    return os.getenv(name, default).lower() == 'true'


def _optional_float(value: Any) -> Optional[float]:
    if value is None or value == '':
        return None
    return float(value)


def load_config() -> Dict[str, Any]:
    """Read application configuration from the environment."""
    environment = os.getenv('ENVIRONMENT', 'development')
    return {
        # Environment configuration
        'ENVIRONMENT': environment,
        'DEBUG': environment == 'development',
        'DOCS_ENABLED': _env_flag('DOCS_ENABLED'),
        'OTEL_ENABLED': _env_flag('OTEL_ENABLED'),

        # Store configuration
        'STORE_BACKEND': os.getenv('STORE_BACKEND', StoreBackend.MEMORY.value),
        'MONGODB_URI': os.getenv('MONGODB_URI', 'mongodb://localhost:27017/bloodlink_dev'),
        'MONGODB_DATABASE': os.getenv('MONGODB_DATABASE', 'bloodlink_dev'),
        'BLOODLINK_API_URL': os.getenv('BLOODLINK_API_URL', ''),
        'BLOODLINK_API_TIMEOUT': float(os.getenv('BLOODLINK_API_TIMEOUT', '10')),
        'REPOSITORY_CACHE_TTL_SECONDS': float(
            os.getenv('REPOSITORY_CACHE_TTL_SECONDS', str(DEFAULT_CACHE_TTL_SECONDS))
        ),

        # Proximity notifications
        'NOTIFICATION_RADIUS_KM': float(os.getenv('NOTIFICATION_RADIUS_KM', str(DEFAULT_RADIUS_KM))),
        'NOTIFICATION_ICON_URL': os.getenv('NOTIFICATION_ICON_URL', DEFAULT_ICON_URL),
        'GEOLOCATION_TIMEOUT_SECONDS': _optional_float(os.getenv('GEOLOCATION_TIMEOUT_SECONDS')),

        # API configuration
        'BASE_URL': os.getenv('BASE_URL', 'http://localhost:5000'),
        'FRONTEND_URL': os.getenv('FRONTEND_URL', ''),
        'CORS_ALLOWED_ORIGINS': os.getenv('CORS_ALLOWED_ORIGINS', '')
    }


def create_store(config: Dict[str, Any]) -> BloodLinkStore:
    """Instantiate the store backend named by ``STORE_BACKEND``."""
    try:
        backend = StoreBackend(config['STORE_BACKEND'])
    except ValueError:
        raise ValueError(f"Unknown STORE_BACKEND: {config['STORE_BACKEND']!r}")

    if backend == StoreBackend.MONGODB:
        from services.mongodb import MongoDBService
        return MongoDBService(config['MONGODB_URI'], config['MONGODB_DATABASE'])

    if backend == StoreBackend.HTTP:
        if not config.get('BLOODLINK_API_URL'):
            raise ValueError("BLOODLINK_API_URL is required when STORE_BACKEND is 'http'")
        from services.bloodlink_client import BloodLinkClient
        return BloodLinkClient(config['BLOODLINK_API_URL'], timeout=config['BLOODLINK_API_TIMEOUT'])

    return InMemoryStore()


def create_app(config: Optional[Dict[str, Any]] = None) -> OpenAPI:
    """
    Build the BloodLink application.

    Args:
        config: Overrides applied on top of the environment configuration.
            A ``STORE`` entry supplies a ready store instance.
    """
    settings = load_config()
    settings.update(config or {})

    # Initialize observability first
    setup_observability(settings['ENVIRONMENT'], settings['OTEL_ENABLED'])

    app = OpenAPI(__name__, info=info, doc_ui=settings['DOCS_ENABLED'])
    app.config.update(settings)

    add_observability_middleware(app, instrument=app.config['OTEL_ENABLED'])

    # Initialize services
    store = app.config.get('STORE') or create_store(app.config)
    repository = BloodLinkRepository(store, cache_ttl=app.config['REPOSITORY_CACHE_TTL_SECONDS'])
    notifier = ProximityNotifier(
        LoggingNotificationSink(),
        radius_km=app.config['NOTIFICATION_RADIUS_KM'],
        icon_url=app.config['NOTIFICATION_ICON_URL'],
        location_timeout=app.config['GEOLOCATION_TIMEOUT_SECONDS']
    )
    health_service = HealthCheckService(store, SERVICE_VERSION, app.config)

    # Initialize middleware
    hal_formatter = create_hal_formatter(app.config['BASE_URL'])
    ErrorHandlerMiddleware(app, hal_formatter)
    register_custom_error_handlers(app, hal_formatter)
    configure_cors(app)

    # Make services available to routes
    app.store = store
    app.repository = repository
    app.notifier = notifier
    app.health_service = health_service
    app.hal_formatter = hal_formatter

    # Register routes
    from routes.donors import donors_bp
    from routes.emergencies import emergencies_bp
    from routes.reports import reports_bp

    app.register_api(donors_bp)
    app.register_api(emergencies_bp)
    app.register_api(reports_bp)

    health_tag = Tag(name="Health", description="System health and status")

    @app.get('/api/healthz', tags=[health_tag], responses={200: HealthCheckResponse, 503: HealthCheckResponse})
    def health_check():
        """Health check with store backend status."""
        try:
            health_data = health_service.get_comprehensive_health()
        except Exception as e:
            logger.error(f"Health check service failed: {e}")
            health_data = {
                "status": "unhealthy",
                "service": "bloodlink-api",
                "version": SERVICE_VERSION,
                "environment": app.config['ENVIRONMENT'],
                "timestamp": datetime.utcnow().isoformat() + "Z",
                "error": f"Health check service failed: {str(e)}"
            }

        status_code = 503 if health_data["status"] == "unhealthy" else 200
        return jsonify(hal_formatter.format_health(health_data)), status_code

    logger.info(
        "BloodLink API initialized",
        extra={"environment": app.config['ENVIRONMENT'], "store_backend": store.name}
    )
    return app


app = create_app()


if __name__ == '__main__':
    # Development server
    app.run(
        host='0.0.0.0',
        port=int(os.getenv('PORT', 5000)),
        debug=app.config['DEBUG']
    )
