# -*- coding: utf-8 -*-
# SPDX-License-Identifier: Apache-2.0

"""
Core entity models for the BloodLink platform.
"""

from datetime import date
from typing import Optional
from pydantic import BaseModel, Field, field_validator, ConfigDict
from .base import BaseEntity
from .enums import BloodType, Gender


class Location(BaseModel):
    """Geographic position in decimal degrees (WGS84)."""

    model_config = ConfigDict(frozen=True)

    lat: float = Field(..., description="Latitude in decimal degrees")
    lng: float = Field(..., description="Longitude in decimal degrees")


class Donor(BaseEntity):
    """Registered blood donor."""

    name: str = Field(..., min_length=1, max_length=200, description="Donor full name")
    mobile_no: str = Field(..., min_length=1, max_length=30, description="Mobile number")
    email: str = Field(..., description="Email address")
    blood_type: BloodType = Field(..., description="ABO/Rh blood type")
    dob: date = Field(..., description="Date of birth")
    gender: Gender = Field(..., description="Gender")
    location: Optional[Location] = Field(None, description="Donor location")
    report_count: int = Field(default=0, ge=0, alias="reportCount", description="Reports received so far")

    @field_validator('name', 'mobile_no')
    @classmethod
    def validate_not_blank(cls, v):
        """Strip surrounding whitespace and reject blank values."""
        if not v.strip():
            raise ValueError('Value cannot be empty')
        return v.strip()


class EmergencyRequest(BaseEntity):
    """Posted need for blood units at a hospital."""

    model_config = ConfigDict(frozen=True, populate_by_name=True, use_enum_values=True)

    pname: str = Field(..., min_length=1, max_length=200, description="Patient name")
    contact: str = Field(..., min_length=1, max_length=30, description="Contact number")
    hospital: str = Field(..., min_length=1, max_length=300, description="Hospital name and address")
    blood_type: BloodType = Field(..., description="Blood type needed")
    units: int = Field(..., ge=1, description="Units requested")
    location: Optional[Location] = Field(None, description="Patient location")

    @field_validator('pname', 'contact', 'hospital')
    @classmethod
    def validate_not_blank(cls, v):
        """Strip surrounding whitespace and reject blank values."""
        if not v.strip():
            raise ValueError('Value cannot be empty')
        return v.strip()
