# -*- coding: utf-8 -*-
# SPDX-License-Identifier: Apache-2.0

"""
Request models for API endpoints.
"""

import re
from datetime import date
from typing import Any, Dict, Optional
from pydantic import BaseModel, Field, field_validator
from .base import BaseEntityCreate
from .entities import Location
from .enums import BloodType, Gender, NotificationPermission


EMAIL_PATTERN = r'^[a-zA-Z0-9._%+-]+@[a-zA-Z0-9.-]+\.[a-zA-Z]{2,}$'


class RegisterDonorRequest(BaseEntityCreate):
    """Request model for registering a donor."""

    name: str = Field(..., min_length=1, max_length=200, description="Donor full name")
    mobile_no: str = Field(..., min_length=1, max_length=30, description="Mobile number")
    email: str = Field(..., description="Email address")
    blood_type: BloodType = Field(..., description="ABO/Rh blood type")
    dob: date = Field(..., description="Date of birth")
    gender: Gender = Field(..., description="Gender")
    location: Optional[Location] = Field(None, description="Captured donor location")

    @field_validator('email')
    @classmethod
    def validate_email(cls, v):
        """Validate email format."""
        if not re.match(EMAIL_PATTERN, v.strip().lower()):
            raise ValueError('Invalid email format')
        return v.strip().lower()

    @field_validator('name', 'mobile_no')
    @classmethod
    def validate_not_blank(cls, v):
        """Reject blank values."""
        if not v.strip():
            raise ValueError('Value cannot be empty')
        return v.strip()


class PostEmergencyRequest(BaseEntityCreate):
    """Request model for posting an emergency blood request.

    ``observer`` and ``notification_permission`` describe the posting device
    and drive the proximity notification; they are never forwarded to the store.
    """

    pname: str = Field(..., min_length=1, max_length=200, description="Patient name")
    contact: str = Field(..., min_length=1, max_length=30, description="Contact number")
    hospital: str = Field(..., min_length=1, max_length=300, description="Hospital name and address")
    blood_type: BloodType = Field(..., description="Blood type needed")
    units: int = Field(..., ge=1, description="Units requested")
    location: Optional[Location] = Field(None, description="Captured patient location")
    observer: Optional[Location] = Field(None, description="Current position of the posting device")
    notification_permission: Optional[NotificationPermission] = Field(
        None, description="Notification permission of the posting device"
    )

    @field_validator('pname', 'contact', 'hospital')
    @classmethod
    def validate_not_blank(cls, v):
        """Reject blank values."""
        if not v.strip():
            raise ValueError('Value cannot be empty')
        return v.strip()

    def to_wire(self) -> Dict[str, Any]:
        """Serialize the emergency payload sent to the store."""
        return self.model_dump(
            by_alias=True,
            mode="json",
            exclude_none=True,
            exclude={"observer", "notification_permission"}
        )


class DonorPath(BaseModel):
    """Path parameters addressing a donor."""

    donor_id: str = Field(..., description="Donor unique ID")
