# SPDX-License-Identifier: Apache-2.0

"""
Emergency request endpoints.

Posting an emergency also evaluates a proximity alert for the posting
device, using the position and notification permission it reports.
"""

import asyncio
import logging

from flask import jsonify, current_app
from flask_openapi3 import APIBlueprint, Tag
from opentelemetry import trace
from opentelemetry.trace import Status, StatusCode

from domain.donors import EMERGENCY_POSTED
from models.requests import PostEmergencyRequest
from models.responses import ErrorResponse
from services.capabilities import ReportedCapabilities
from utils.request import RequestParser

logger = logging.getLogger(__name__)
tracer = trace.get_tracer(__name__)

emergencies_tag = Tag(name="Emergencies", description="Emergency blood requests")
emergencies_bp = APIBlueprint(
    'emergencies',
    __name__,
    url_prefix='/api/emergencies',
    abp_tags=[emergencies_tag]
)


@emergencies_bp.get('')
def list_emergencies():
    """List emergency requests in posting order."""
    with tracer.start_as_current_span("emergencies.list") as span:
        emergencies = current_app.repository.list_emergencies()
        span.set_attribute("emergencies.count", len(emergencies))
        return jsonify([emergency.to_wire() for emergency in emergencies])


@emergencies_bp.post('', responses={400: ErrorResponse, 502: ErrorResponse})
def post_emergency():
    """
    Post an emergency blood request.

    The patient location is required. The response carries the stored
    request plus the proximity notification decision for the posting device.
    """
    with tracer.start_as_current_span("emergencies.post") as span:
        emergency_request = RequestParser.parse_body(PostEmergencyRequest)
        span.set_attributes({
            "emergency.blood_type": emergency_request.blood_type,
            "emergency.units": emergency_request.units
        })

        emergency = current_app.repository.create_emergency(emergency_request)
        span.set_attribute("emergency.id", emergency.id)

        capabilities = ReportedCapabilities(
            permission=emergency_request.notification_permission,
            position=emergency_request.observer
        )
        decision = asyncio.run(current_app.notifier.check_and_notify(emergency, capabilities))

        span.set_status(Status(StatusCode.OK))
        logger.info(
            "Emergency request accepted",
            extra={
                "emergency_id": emergency.id,
                "blood_type": emergency.blood_type,
                "notify": decision.notify,
                "notification_reason": decision.reason
            }
        )

        response = emergency.to_wire()
        response["notification"] = decision.to_wire()
        response["message"] = EMERGENCY_POSTED
        return jsonify(response), 201
