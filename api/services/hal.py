# -*- coding: utf-8 -*-
# SPDX-License-Identifier: Apache-2.0

"""
HAL (Hypertext Application Language) response formatting utilities.
Builds RFC 7807 problem documents and resource links for the BloodLink API.
"""

from typing import Dict, List, Any, Optional
from urllib.parse import urljoin

from models.responses import HalLink


class HalLinkBuilder:
    """Builder for HAL links with proper URL construction."""

    def __init__(self, base_url: str):
        self.base_url = base_url.rstrip('/') + '/'

    def build_link(
        self,
        path: str,
        method: str = "GET",
        content_type: Optional[str] = None,
        title: Optional[str] = None,
        templated: bool = False
    ) -> HalLink:
        """Build a HAL link with proper URL construction."""
        href = urljoin(self.base_url, path.lstrip('/'))

        return HalLink(
            href=href,
            method=method,
            type=content_type,
            title=title,
            templated=templated or None
        )

    def build_self_link(self, resource_path: str) -> HalLink:
        """Build self link for a resource."""
        return self.build_link(resource_path, title="Self")


class HalResponseBuilder:
    """Builds resource and error documents with HAL links."""

    def __init__(self, base_url: str):
        self.base_url = base_url.rstrip('/')
        self.link_builder = HalLinkBuilder(base_url)

    def build_resource_response(
        self,
        data: Dict[str, Any],
        resource_path: str,
        extra_links: Optional[Dict[str, HalLink]] = None
    ) -> Dict[str, Any]:
        """Attach a self link (plus any extra links) to a resource document."""
        response = dict(data)

        links = {'self': self.link_builder.build_self_link(resource_path)}
        if extra_links:
            links.update(extra_links)

        response['_links'] = {rel: link.model_dump(exclude_none=True) for rel, link in links.items()}
        return response

    def build_error_response(
        self,
        error_type: str,
        title: str,
        status: int,
        detail: str,
        instance: str,
        validation_errors: Optional[List[Dict[str, Any]]] = None
    ) -> Dict[str, Any]:
        """Build RFC 7807 compliant error response with HAL links."""
        error_response = {
            'type': f"https://api.bloodlink.org/problems/{error_type}",
            'title': title,
            'status': status,
            'detail': detail,
            'instance': instance
        }

        if validation_errors:
            error_response['errors'] = validation_errors

        links = {
            'help': self.link_builder.build_link(
                f"/docs/errors#{error_type}",
                title="Error documentation"
            )
        }

        # Add specific links based on error type
        if error_type == "validation-error":
            links['schema'] = self.link_builder.build_link(
                "/openapi/openapi.json",
                title="API schema"
            )
        elif error_type == "resource-not-found" and instance.startswith("/api/report"):
            links['donors'] = self.link_builder.build_link(
                "/api/donors",
                title="Registered donors"
            )

        error_response['_links'] = {rel: link.model_dump(exclude_none=True) for rel, link in links.items()}
        return error_response


class HalFormatter:
    """High-level HAL formatter with convenience methods."""

    def __init__(self, base_url: str):
        self.builder = HalResponseBuilder(base_url)

    def format_health(self, health: Dict[str, Any]) -> Dict[str, Any]:
        """Format the health document with links to the main collections."""
        link_builder = self.builder.link_builder
        return self.builder.build_resource_response(
            health,
            "/api/healthz",
            {
                'donors': link_builder.build_link("/api/donors", title="Registered donors"),
                'emergencies': link_builder.build_link("/api/emergencies", title="Emergency requests")
            }
        )

    def format_validation_error(
        self,
        detail: str,
        instance: str,
        validation_errors: List[Dict[str, Any]]
    ) -> Dict[str, Any]:
        """Format a validation error response."""
        return self.builder.build_error_response(
            "validation-error",
            "Validation Error",
            400,
            detail,
            instance,
            validation_errors
        )

    def format_not_found_error(
        self,
        detail: str,
        instance: str
    ) -> Dict[str, Any]:
        """Format a not found error response."""
        return self.builder.build_error_response(
            "resource-not-found",
            "Resource Not Found",
            404,
            detail,
            instance
        )

    def format_transport_error(
        self,
        detail: str,
        instance: str
    ) -> Dict[str, Any]:
        """Format an upstream store failure."""
        return self.builder.build_error_response(
            "bad-gateway",
            "Bad Gateway",
            502,
            detail,
            instance
        )

    def format_server_error(
        self,
        detail: str,
        instance: str
    ) -> Dict[str, Any]:
        """Format a server error response."""
        return self.builder.build_error_response(
            "internal-server-error",
            "Internal Server Error",
            500,
            detail,
            instance
        )


# Convenience function for creating HAL formatter
def create_hal_formatter(base_url: str) -> HalFormatter:
    """Create a HAL formatter instance."""
    return HalFormatter(base_url)
