# SPDX-License-Identifier: Apache-2.0

"""
Proximity notification rule for newly posted emergencies.

Decides whether the device that posted an emergency should show a local
alert. Delivery is left to a notification sink.
"""

import math
from typing import Optional

from models.entities import EmergencyRequest, Location
from models.enums import DecisionReason
from models.responses import NotificationDecision, NotificationPayload
from domain.geo import distance


DEFAULT_RADIUS_KM = 20.0
NOTIFICATION_TITLE = "Urgent Blood Requirement Nearby!"
DEFAULT_ICON_URL = "https://i.imgur.com/SCLJb3i.png"


def build_notification_payload(
    emergency: EmergencyRequest,
    icon_url: Optional[str] = DEFAULT_ICON_URL
) -> NotificationPayload:
    """Build the alert content for an emergency."""
    return NotificationPayload(
        title=NOTIFICATION_TITLE,
        body=f"Blood Type: {emergency.blood_type}\nHospital: {emergency.hospital}",
        icon=icon_url
    )


def notify_if_nearby(
    emergency: EmergencyRequest,
    observer_location: Optional[Location],
    permission_granted: bool,
    radius_km: float = DEFAULT_RADIUS_KM,
    icon_url: Optional[str] = DEFAULT_ICON_URL
) -> NotificationDecision:
    """
    Decide whether to alert an observer about an emergency.

    The radius boundary is exclusive: an emergency exactly ``radius_km`` away
    does not trigger an alert.

    Args:
        emergency: Newly created emergency
        observer_location: Observer position, or None when unavailable
        permission_granted: Whether the observer allowed notifications
        radius_km: Alert radius in kilometers
        icon_url: Icon shown with the alert

    Returns:
        NotificationDecision with the payload set only when notify is true
    """
    if not permission_granted:
        return NotificationDecision(notify=False, reason=DecisionReason.PERMISSION_DENIED)

    if observer_location is None:
        return NotificationDecision(notify=False, reason=DecisionReason.LOCATION_UNAVAILABLE)

    km = distance(observer_location, emergency.location)
    reported_km = round(km, 3) if math.isfinite(km) else None

    if km < radius_km:
        return NotificationDecision(
            notify=True,
            reason=DecisionReason.NEARBY,
            distance_km=reported_km,
            payload=build_notification_payload(emergency, icon_url)
        )

    return NotificationDecision(
        notify=False,
        reason=DecisionReason.OUT_OF_RANGE,
        distance_km=reported_km
    )
