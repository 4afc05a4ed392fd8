# -*- coding: utf-8 -*-
# SPDX-License-Identifier: Apache-2.0

"""
Models package - Pydantic schemas and data models for the BloodLink platform.
"""

# Base models
from .base import BaseEntity, BaseEntityCreate, generate_object_id

# Enumerations
from .enums import (
    BloodType,
    Gender,
    NotificationPermission,
    DecisionReason,
    StoreBackend
)

# Core entities
from .entities import (
    Location,
    Donor,
    EmergencyRequest
)

# Request models
from .requests import (
    RegisterDonorRequest,
    PostEmergencyRequest,
    DonorPath
)

# Response models
from .responses import (
    HalLink,
    NotificationPayload,
    NotificationDecision,
    ReportResult,
    ErrorResponse,
    HealthCheckResponse
)

__all__ = [
    # Base models
    "BaseEntity",
    "BaseEntityCreate",
    "generate_object_id",

    # Enumerations
    "BloodType",
    "Gender",
    "NotificationPermission",
    "DecisionReason",
    "StoreBackend",

    # Core entities
    "Location",
    "Donor",
    "EmergencyRequest",

    # Request models
    "RegisterDonorRequest",
    "PostEmergencyRequest",
    "DonorPath",

    # Response models
    "HalLink",
    "NotificationPayload",
    "NotificationDecision",
    "ReportResult",
    "ErrorResponse",
    "HealthCheckResponse"
]
