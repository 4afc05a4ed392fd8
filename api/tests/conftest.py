# -*- coding: utf-8 -*-
# SPDX-License-Identifier: Apache-2.0

"""
Pytest configuration and fixtures.
"""

import os
import pytest
from typing import Dict, Any

# Set test environment before the application module is imported
os.environ['ENVIRONMENT'] = 'test'
os.environ['STORE_BACKEND'] = 'memory'
os.environ['OTEL_ENABLED'] = 'false'
os.environ['MONGODB_DATABASE'] = 'bloodlink_test'

from models.entities import Location, EmergencyRequest
from models.requests import RegisterDonorRequest, PostEmergencyRequest
from services.notifier import RecordingNotificationSink
from services.store import InMemoryStore


# Patient location used across tests (Kolkata)
HOSPITAL_LOCATION = {"lat": 22.5726, "lng": 88.3639}


@pytest.fixture
def sample_donor_data() -> Dict[str, Any]:
    """Sample donor registration payload."""
    return {
        "name": "Asha Roy",
        "mobile_no": "9876543210",
        "email": "Asha.Roy@Example.com",
        "blood_type": "O+",
        "dob": "1994-05-17",
        "gender": "Female",
        "location": dict(HOSPITAL_LOCATION)
    }


@pytest.fixture
def sample_emergency_data() -> Dict[str, Any]:
    """Sample emergency request payload."""
    return {
        "pname": "Ravi Das",
        "contact": "9123456780",
        "hospital": "City Hospital, Park Street",
        "blood_type": "AB-",
        "units": 2,
        "location": dict(HOSPITAL_LOCATION)
    }


@pytest.fixture
def donor_request(sample_donor_data) -> RegisterDonorRequest:
    return RegisterDonorRequest.model_validate(sample_donor_data)


@pytest.fixture
def emergency_request(sample_emergency_data) -> PostEmergencyRequest:
    return PostEmergencyRequest.model_validate(sample_emergency_data)


@pytest.fixture
def emergency(sample_emergency_data) -> EmergencyRequest:
    return EmergencyRequest.model_validate(sample_emergency_data)


@pytest.fixture
def hospital_location() -> Location:
    return Location(**HOSPITAL_LOCATION)


@pytest.fixture
def memory_store() -> InMemoryStore:
    return InMemoryStore()


@pytest.fixture
def app(memory_store):
    """Application wired to a fresh in-memory store."""
    from app import create_app

    application = create_app({
        'TESTING': True,
        'ENVIRONMENT': 'test',
        'OTEL_ENABLED': False,
        'STORE': memory_store,
        'BASE_URL': 'http://localhost:5000'
    })
    application.notifier.sink = RecordingNotificationSink()
    return application


@pytest.fixture
def client(app):
    """Flask test client."""
    return app.test_client()
