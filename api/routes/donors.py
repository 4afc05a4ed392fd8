# SPDX-License-Identifier: Apache-2.0

"""
Donor registry endpoints.

Lists active donors and registers new ones. Removed donors never appear
in a listing.
"""

from flask import jsonify, current_app
from flask_openapi3 import APIBlueprint, Tag
from opentelemetry import trace
from opentelemetry.trace import Status, StatusCode
import logging

from domain.donors import DONOR_REGISTERED
from models.requests import RegisterDonorRequest
from models.responses import ErrorResponse
from utils.request import RequestParser

logger = logging.getLogger(__name__)
tracer = trace.get_tracer(__name__)

donors_tag = Tag(name="Donors", description="Donor registration and listing")
donors_bp = APIBlueprint(
    'donors',
    __name__,
    url_prefix='/api/donors',
    abp_tags=[donors_tag]
)


@donors_bp.get('')
def list_donors():
    """
    List active donors.

    Returns donors in registration order, each with its current report count.
    """
    with tracer.start_as_current_span("donors.list") as span:
        donors = current_app.repository.list_donors()
        span.set_attribute("donors.count", len(donors))
        return jsonify([donor.to_wire() for donor in donors])


@donors_bp.post('', responses={400: ErrorResponse, 502: ErrorResponse})
def register_donor():
    """
    Register a new donor.

    A captured location is required; the donor starts with a report count of zero.
    """
    with tracer.start_as_current_span("donors.register") as span:
        donor_request = RequestParser.parse_body(RegisterDonorRequest)
        span.set_attribute("donor.blood_type", donor_request.blood_type)

        donor = current_app.repository.create_donor(donor_request)

        span.set_attribute("donor.id", donor.id)
        span.set_status(Status(StatusCode.OK))
        logger.info(
            "Donor registration accepted",
            extra={"donor_id": donor.id, "blood_type": donor.blood_type}
        )

        response = donor.to_wire()
        response["message"] = DONOR_REGISTERED
        return jsonify(response), 201
