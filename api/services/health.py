"""
Health Check Service

Reports the health of the configured store backend together with basic
system metrics for the BloodLink API.
"""

import os
import time
import psutil
from datetime import datetime
from typing import Dict, Any, Mapping, Optional
from opentelemetry import trace

from services.store import BloodLinkStore

tracer = trace.get_tracer(__name__)


class HealthCheckService:
    """Service for store and process health monitoring."""

    def __init__(self, store: BloodLinkStore, service_version: str = "1.0.0",
                 config: Optional[Mapping[str, Any]] = None):
        """
        Args:
            store: Store backend to check
            service_version: Version reported in the health document
            config: Application config supplying ENVIRONMENT and feature flags
        """
        self.store = store
        self.service_version = service_version
        self.config = config if config is not None else {}

    def get_comprehensive_health(self) -> Dict[str, Any]:
        """Get health status including the store backend and system metrics."""
        with tracer.start_as_current_span("health.comprehensive_check") as span:
            start_time = time.time()

            store_health = self._check_store_health()
            system_metrics = self._get_system_metrics()
            overall_status = self._determine_overall_status([store_health["status"]])

            response_time_ms = round((time.time() - start_time) * 1000, 2)

            health_data = {
                "status": overall_status,
                "service": "bloodlink-api",
                "version": self.service_version,
                "environment": self.config.get('ENVIRONMENT', 'development'),
                "timestamp": datetime.utcnow().isoformat() + "Z",
                "response_time_ms": response_time_ms,
                "dependencies": {
                    "store": store_health
                },
                "system_metrics": system_metrics,
                "feature_flags": self._get_feature_flags()
            }

            span.set_attributes({
                "health.overall_status": overall_status,
                "health.response_time_ms": response_time_ms,
                "health.store_backend": self.store.name,
                "health.store_status": store_health["status"]
            })

            return health_data

    def _check_store_health(self) -> Dict[str, Any]:
        """Check the store backend."""
        with tracer.start_as_current_span("health.store_check") as span:
            start_time = time.time()
            health_info = dict(self.store.health_check())
            health_info.setdefault("status", "unhealthy")
            health_info["response_time_ms"] = round((time.time() - start_time) * 1000, 2)
            health_info["last_check"] = datetime.utcnow().isoformat() + "Z"

            span.set_attributes({
                "store.backend": self.store.name,
                "store.status": health_info["status"],
                "store.response_time_ms": health_info["response_time_ms"]
            })

            return health_info

    def _get_system_metrics(self) -> Dict[str, Any]:
        """Get basic process and host metrics."""
        try:
            memory = psutil.virtual_memory()
            process = psutil.Process(os.getpid())

            return {
                "cpu_percent": psutil.cpu_percent(interval=None),
                "memory": {
                    "used_mb": round(memory.used / 1024 / 1024, 2),
                    "total_mb": round(memory.total / 1024 / 1024, 2),
                    "percent": memory.percent
                },
                "process_rss_mb": round(process.memory_info().rss / 1024 / 1024, 2),
                "load_average": list(os.getloadavg()) if hasattr(os, 'getloadavg') else None
            }
        except psutil.Error as e:
            return {
                "error": f"Failed to collect system metrics: {str(e)}"
            }

    def _get_feature_flags(self) -> Dict[str, bool]:
        """Get current feature flag status."""
        return {
            "docs_enabled": bool(self.config.get('DOCS_ENABLED', True)),
            "otel_enabled": bool(self.config.get('OTEL_ENABLED', True))
        }

    def _determine_overall_status(self, dependency_statuses: list) -> str:
        """Determine overall system status based on dependency health."""
        if all(status == "healthy" for status in dependency_statuses):
            return "healthy"
        elif any(status in ("healthy", "degraded") for status in dependency_statuses):
            return "degraded"
        else:
            return "unhealthy"
