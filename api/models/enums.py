# -*- coding: utf-8 -*-
# SPDX-License-Identifier: Apache-2.0

"""
Enumeration types for the BloodLink platform.
"""

from enum import Enum


class BloodType(str, Enum):
    """ABO/Rh blood group combinations."""
    A_POS = "A+"
    A_NEG = "A-"
    B_POS = "B+"
    B_NEG = "B-"
    AB_POS = "AB+"
    AB_NEG = "AB-"
    O_POS = "O+"
    O_NEG = "O-"


class Gender(str, Enum):
    """Donor gender options offered at registration."""
    MALE = "Male"
    FEMALE = "Female"
    OTHER = "Other"


class NotificationPermission(str, Enum):
    """Notification permission state reported by the posting device."""
    GRANTED = "granted"
    DENIED = "denied"
    DEFAULT = "default"


class DecisionReason(str, Enum):
    """Why a proximity notification was or was not raised."""
    NEARBY = "nearby"
    OUT_OF_RANGE = "out-of-range"
    PERMISSION_DENIED = "permission-denied"
    LOCATION_UNAVAILABLE = "location-unavailable"


class StoreBackend(str, Enum):
    """Data store used to persist donors and emergencies."""
    MEMORY = "memory"
    MONGODB = "mongodb"
    HTTP = "http"
