# -*- coding: utf-8 -*-
# SPDX-License-Identifier: Apache-2.0

"""
Proximity notification service.

Runs the capability chain for a newly created emergency, applies the
proximity rule once, and hands positive decisions to a notification sink.
"""

import logging
from typing import List, Optional, Tuple

from opentelemetry import trace

from domain.proximity import notify_if_nearby, DEFAULT_RADIUS_KM, DEFAULT_ICON_URL
from models.entities import EmergencyRequest
from models.responses import NotificationDecision, NotificationPayload
from services.capabilities import DeviceCapabilities, acquire_observer_location

tracer = trace.get_tracer(__name__)
logger = logging.getLogger(__name__)


class NotificationDeliveryError(Exception):
    """Raised by a sink that could not deliver an alert."""
    pass


class NotificationSink:
    """Destination for proximity alerts."""

    def send(self, payload: NotificationPayload, emergency: EmergencyRequest) -> None:
        raise NotImplementedError


class LoggingNotificationSink(NotificationSink):
    """Writes alerts to the application log."""

    def send(self, payload: NotificationPayload, emergency: EmergencyRequest) -> None:
        logger.warning(
            payload.title,
            extra={
                "emergency_id": emergency.id,
                "blood_type": emergency.blood_type,
                "hospital": emergency.hospital,
                "alert_body": payload.body
            }
        )


class RecordingNotificationSink(NotificationSink):
    """Keeps delivered alerts in memory."""

    def __init__(self):
        self.sent: List[Tuple[NotificationPayload, EmergencyRequest]] = []

    def send(self, payload: NotificationPayload, emergency: EmergencyRequest) -> None:
        self.sent.append((payload, emergency))


class ProximityNotifier:
    """Decides on and dispatches local alerts for new emergencies."""

    def __init__(
        self,
        sink: Optional[NotificationSink] = None,
        radius_km: float = DEFAULT_RADIUS_KM,
        icon_url: Optional[str] = DEFAULT_ICON_URL,
        location_timeout: Optional[float] = None
    ):
        self.sink = sink or LoggingNotificationSink()
        self.radius_km = radius_km
        self.icon_url = icon_url
        self.location_timeout = location_timeout

    async def check_and_notify(
        self,
        emergency: EmergencyRequest,
        capabilities: DeviceCapabilities
    ) -> NotificationDecision:
        """
        Evaluate one emergency against the observer's current position.

        Delivery failures are logged and do not change the decision.
        """
        with tracer.start_as_current_span("notifier.check_and_notify") as span:
            span.set_attribute("emergency.id", emergency.id)

            observer = await acquire_observer_location(capabilities, self.location_timeout)
            decision = notify_if_nearby(
                emergency,
                observer.location,
                observer.permission_granted,
                radius_km=self.radius_km,
                icon_url=self.icon_url
            )

            span.set_attributes({
                "notification.notify": decision.notify,
                "notification.reason": decision.reason
            })

            if decision.notify:
                try:
                    self.sink.send(decision.payload, emergency)
                except Exception as e:
                    # The emergency is already stored at this point
                    span.record_exception(e)
                    span.set_attribute("notification.delivered", False)
                    logger.error(
                        f"Failed to deliver proximity alert for emergency {emergency.id}: {e}",
                        extra={"emergency_id": emergency.id, "error_type": e.__class__.__name__}
                    )

            return decision
