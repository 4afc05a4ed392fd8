# -*- coding: utf-8 -*-
# SPDX-License-Identifier: Apache-2.0

"""
Tests for the proximity notification service.
"""

import asyncio
import logging
from unittest.mock import Mock

from models.entities import Location
from models.enums import DecisionReason
from services.capabilities import ReportedCapabilities
from services.notifier import (
    ProximityNotifier, RecordingNotificationSink, LoggingNotificationSink,
    NotificationDeliveryError
)


class TestProximityNotifier:
    """Test check_and_notify."""

    def test_nearby_observer_gets_alert(self, emergency, hospital_location):
        sink = RecordingNotificationSink()
        notifier = ProximityNotifier(sink)

        decision = asyncio.run(notifier.check_and_notify(
            emergency, ReportedCapabilities("granted", hospital_location)
        ))

        assert decision.notify is True
        assert decision.distance_km == 0
        assert len(sink.sent) == 1
        payload, sent_emergency = sink.sent[0]
        assert payload.body == "Blood Type: AB-\nHospital: City Hospital, Park Street"
        assert sent_emergency.id == emergency.id

    def test_far_observer_gets_nothing(self, emergency):
        sink = RecordingNotificationSink()
        notifier = ProximityNotifier(sink)

        decision = asyncio.run(notifier.check_and_notify(
            emergency, ReportedCapabilities("granted", Location(lat=28.6139, lng=77.2090))
        ))

        assert decision.notify is False
        assert decision.reason == DecisionReason.OUT_OF_RANGE.value
        assert sink.sent == []

    def test_denied_permission(self, emergency, hospital_location):
        sink = RecordingNotificationSink()

        decision = asyncio.run(ProximityNotifier(sink).check_and_notify(
            emergency, ReportedCapabilities("denied", hospital_location)
        ))

        assert decision.reason == DecisionReason.PERMISSION_DENIED.value
        assert sink.sent == []

    def test_unavailable_location(self, emergency):
        sink = RecordingNotificationSink()

        decision = asyncio.run(ProximityNotifier(sink).check_and_notify(
            emergency, ReportedCapabilities("granted", None)
        ))

        assert decision.reason == DecisionReason.LOCATION_UNAVAILABLE.value
        assert sink.sent == []

    def test_configured_radius_and_icon(self, emergency):
        sink = RecordingNotificationSink()
        notifier = ProximityNotifier(sink, radius_km=2000, icon_url="https://example.org/drop.png")

        decision = asyncio.run(notifier.check_and_notify(
            emergency, ReportedCapabilities("granted", Location(lat=28.6139, lng=77.2090))
        ))

        assert decision.notify is True
        assert decision.payload.icon == "https://example.org/drop.png"

    def test_delivery_failure_keeps_decision(self, emergency, hospital_location, caplog):
        sink = Mock()
        sink.send.side_effect = NotificationDeliveryError("push service down")

        with caplog.at_level(logging.ERROR):
            decision = asyncio.run(ProximityNotifier(sink).check_and_notify(
                emergency, ReportedCapabilities("granted", hospital_location)
            ))

        assert decision.notify is True
        sink.send.assert_called_once()
        assert "Failed to deliver proximity alert" in caplog.text

    def test_unexpected_sink_error_keeps_decision(self, emergency, hospital_location, caplog):
        sink = Mock()
        sink.send.side_effect = ConnectionError("push gateway down")

        with caplog.at_level(logging.ERROR):
            decision = asyncio.run(ProximityNotifier(sink).check_and_notify(
                emergency, ReportedCapabilities("granted", hospital_location)
            ))

        assert decision.notify is True
        assert "push gateway down" in caplog.text


class TestLoggingNotificationSink:
    """Test the default sink."""

    def test_logs_alert(self, emergency, caplog):
        from domain.proximity import build_notification_payload

        with caplog.at_level(logging.WARNING, logger="services.notifier"):
            LoggingNotificationSink().send(build_notification_payload(emergency), emergency)

        assert "Urgent Blood Requirement Nearby!" in caplog.text
