# SPDX-License-Identifier: Apache-2.0

"""
Donor and emergency domain logic.

Pure checks that must pass before anything is sent to a store, and the
construction of store records from validated requests.
"""

from dataclasses import dataclass, field
from typing import List

from models.entities import Donor, EmergencyRequest
from models.requests import RegisterDonorRequest, PostEmergencyRequest


DONOR_LOCATION_REQUIRED = "Please provide your location to register."
PATIENT_LOCATION_REQUIRED = "Please provide the patient's location."
DONOR_ID_REQUIRED = "Please enter a Unique ID."
INVALID_DONOR_ID = "Invalid Unique ID."

DONOR_REGISTERED = "Donor registered successfully!"
EMERGENCY_POSTED = "Emergency request posted!"


@dataclass
class ValidationResult:
    """Result of a pre-submission check."""
    is_valid: bool
    errors: List[str] = field(default_factory=list)


def validate_registration(request: RegisterDonorRequest) -> ValidationResult:
    """
    Check a donor registration before submission.

    A donor cannot register without a captured location.
    """
    errors = []
    if request.location is None:
        errors.append(DONOR_LOCATION_REQUIRED)

    return ValidationResult(is_valid=not errors, errors=errors)


def validate_emergency(request: PostEmergencyRequest) -> ValidationResult:
    """Check an emergency request before submission."""
    errors = []
    if request.location is None:
        errors.append(PATIENT_LOCATION_REQUIRED)

    return ValidationResult(is_valid=not errors, errors=errors)


def normalize_donor_id(donor_id: str) -> str:
    """Trim a user-entered donor ID."""
    return (donor_id or "").strip()


def build_donor(request: RegisterDonorRequest) -> Donor:
    """Create a new active donor record with no reports."""
    return Donor(
        name=request.name,
        mobile_no=request.mobile_no,
        email=request.email,
        blood_type=request.blood_type,
        dob=request.dob,
        gender=request.gender,
        location=request.location,
        report_count=0
    )


def build_emergency(request: PostEmergencyRequest) -> EmergencyRequest:
    """Create an emergency record from a posted request."""
    return EmergencyRequest(
        pname=request.pname,
        contact=request.contact,
        hospital=request.hospital,
        blood_type=request.blood_type,
        units=request.units,
        location=request.location
    )
