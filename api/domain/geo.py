# SPDX-License-Identifier: Apache-2.0

"""
Great-circle distance between donor, patient and observer locations.
"""

import math
from typing import Optional

from models.entities import Location


EARTH_RADIUS_KM = 6371.0

# Returned when either side has no location; compares greater than any radius.
UNBOUNDED_DISTANCE = math.inf


def distance(a: Optional[Location], b: Optional[Location]) -> float:
    """
    Haversine distance between two locations.

    Coordinates are not range-checked; malformed input yields NaN.

    Args:
        a: First location, or None when unknown
        b: Second location, or None when unknown

    Returns:
        Distance in kilometers, or UNBOUNDED_DISTANCE if either is missing
    """
    if a is None or b is None:
        return UNBOUNDED_DISTANCE

    d_lat = math.radians(b.lat - a.lat)
    d_lng = math.radians(b.lng - a.lng)

    h = (
        math.sin(d_lat / 2) ** 2
        + math.cos(math.radians(a.lat)) * math.cos(math.radians(b.lat)) * math.sin(d_lng / 2) ** 2
    )
    return 2 * EARTH_RADIUS_KM * math.atan2(math.sqrt(h), math.sqrt(1 - h))
