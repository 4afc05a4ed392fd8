# -*- coding: utf-8 -*-
# SPDX-License-Identifier: Apache-2.0

"""
Response models for API endpoints with HAL support.
"""

from typing import List, Optional, Dict, Any
from pydantic import BaseModel, Field, ConfigDict
from .enums import DecisionReason


class HalLink(BaseModel):
    """HAL link representation."""

    href: str = Field(..., description="Link URL")
    method: Optional[str] = Field(None, description="HTTP method")
    type: Optional[str] = Field(None, description="Content type")
    title: Optional[str] = Field(None, description="Link title")
    templated: Optional[bool] = Field(None, description="Whether URL is templated")


class NotificationPayload(BaseModel):
    """Content of a local proximity alert."""

    title: str = Field(..., description="Alert title")
    body: str = Field(..., description="Alert body")
    icon: Optional[str] = Field(None, description="Alert icon URL")


class NotificationDecision(BaseModel):
    """Outcome of the proximity check for a new emergency."""

    model_config = ConfigDict(use_enum_values=True)

    notify: bool = Field(..., description="Whether an alert should be shown")
    reason: DecisionReason = Field(..., description="Decision reason")
    distance_km: Optional[float] = Field(None, description="Observer distance to the emergency, null when unbounded")
    payload: Optional[NotificationPayload] = Field(None, description="Alert content when notify is true")

    def to_wire(self) -> Dict[str, Any]:
        return self.model_dump()


class ReportResult(BaseModel):
    """Result of reporting a donor."""

    model_config = ConfigDict(populate_by_name=True)

    report_count: int = Field(..., ge=0, alias="reportCount", description="Reports after this one")
    removed: bool = Field(..., description="Whether the donor crossed the threshold and was removed")

    def to_wire(self) -> Dict[str, Any]:
        return self.model_dump(by_alias=True)


class ErrorResponse(BaseModel):
    """Error response model following RFC 7807."""

    type: str = Field(..., description="Error type URI")
    title: str = Field(..., description="Error title")
    status: int = Field(..., description="HTTP status code")
    detail: str = Field(..., description="Error detail")
    instance: str = Field(..., description="Request instance")
    errors: Optional[List[Dict[str, Any]]] = Field(None, description="Validation errors")


class HealthCheckResponse(BaseModel):
    """Health check response model."""

    status: str = Field(..., description="Overall health status")
    service: str = Field(..., description="Service name")
    version: str = Field(..., description="Application version")
    environment: str = Field(..., description="Environment name")
    timestamp: str = Field(..., description="Check timestamp")
    dependencies: Dict[str, Dict[str, Any]] = Field(default_factory=dict, description="Dependency health")
