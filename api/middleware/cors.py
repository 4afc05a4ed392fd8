# -*- coding: utf-8 -*-
# SPDX-License-Identifier: Apache-2.0

"""
CORS (Cross-Origin Resource Sharing) middleware for the BloodLink web client.
"""

from flask import Flask, request, make_response
from typing import List, Optional
import os
import logging

logger = logging.getLogger(__name__)


class CORSMiddleware:
    """CORS middleware for Flask applications."""

    def __init__(
        self,
        app: Flask,
        allowed_origins: Optional[List[str]] = None,
        allowed_methods: Optional[List[str]] = None,
        allowed_headers: Optional[List[str]] = None,
        max_age: int = 86400
    ):
        """
        Initialize CORS middleware.

        Args:
            app: Flask application
            allowed_origins: List of allowed origins; entries ending in ``*`` match by prefix
            allowed_methods: List of allowed HTTP methods
            allowed_headers: List of allowed headers
            max_age: Preflight cache duration in seconds
        """
        self.app = app
        self.allowed_origins = allowed_origins if allowed_origins is not None else self._get_default_origins()
        self.allowed_methods = allowed_methods or ['GET', 'POST', 'OPTIONS']
        self.allowed_headers = allowed_headers or [
            'Accept',
            'Content-Type',
            'X-Requested-With',
            'X-Trace-ID'
        ]
        self.expose_headers = ['Content-Type', 'X-Trace-Id']
        self.max_age = max_age

        self.register_cors_handlers()

    def _setting(self, name: str, default: str = '') -> str:
        """Read a setting from the app config, falling back to the environment."""
        value = self.app.config.get(name)
        if value is None:
            value = os.getenv(name, default)
        return value

    def _get_default_origins(self) -> List[str]:
        """Get default allowed origins from app config or environment."""
        origins = []

        if self._setting('ENVIRONMENT', 'development') == 'development':
            origins.extend([
                'http://localhost:3000',
                'http://localhost:5173',
                'http://127.0.0.1:3000',
                'http://127.0.0.1:5173'
            ])

        frontend_url = self._setting('FRONTEND_URL')
        if frontend_url:
            origins.append(frontend_url)

        custom_origins = self._setting('CORS_ALLOWED_ORIGINS')
        if custom_origins:
            origins.extend(origin.strip() for origin in custom_origins.split(',') if origin.strip())

        return origins

    def is_origin_allowed(self, origin: Optional[str]) -> bool:
        """Check if origin is allowed."""
        if not origin:
            return False

        for allowed_origin in self.allowed_origins:
            if allowed_origin == '*' or allowed_origin == origin:
                return True
            if allowed_origin.endswith('*') and origin.startswith(allowed_origin[:-1]):
                return True

        return False

    def add_cors_headers(self, response, origin: str):
        """Add CORS headers to response."""
        response.headers['Access-Control-Allow-Origin'] = origin
        response.headers['Vary'] = 'Origin'
        response.headers['Access-Control-Allow-Methods'] = ', '.join(self.allowed_methods)
        response.headers['Access-Control-Allow-Headers'] = ', '.join(self.allowed_headers)
        response.headers['Access-Control-Expose-Headers'] = ', '.join(self.expose_headers)
        response.headers['Access-Control-Max-Age'] = str(self.max_age)
        return response

    def register_cors_handlers(self):
        """Register CORS handlers with Flask application."""

        @self.app.before_request
        def handle_preflight():
            if request.method == 'OPTIONS':
                origin = request.headers.get('Origin')

                if not self.is_origin_allowed(origin):
                    logger.warning(f"CORS preflight rejected for origin: {origin}")
                    return make_response('', 403)

                return self.add_cors_headers(make_response('', 204), origin)

        @self.app.after_request
        def add_cors_headers_to_response(response):
            origin = request.headers.get('Origin')

            if self.is_origin_allowed(origin):
                if 'Access-Control-Allow-Origin' not in response.headers:
                    self.add_cors_headers(response, origin)
            elif origin and request.method != 'OPTIONS':
                logger.warning(f"CORS rejected for origin: {origin}")

            return response


def configure_cors(app: Flask, **kwargs) -> CORSMiddleware:
    """
    Configure CORS for Flask application.

    Args:
        app: Flask application
        **kwargs: CORS configuration options

    Returns:
        Configured CORSMiddleware instance
    """
    return CORSMiddleware(app, **kwargs)
