# SPDX-License-Identifier: Apache-2.0

"""
Donor report endpoint.

Each report increments the donor's report count; the third report removes
the donor from the registry.
"""

import logging

from flask import jsonify, current_app
from flask_openapi3 import APIBlueprint, Tag
from opentelemetry import trace
from opentelemetry.trace import Status, StatusCode

from domain.donors import normalize_donor_id
from domain.reports import report_message
from models.requests import DonorPath
from models.responses import ErrorResponse

logger = logging.getLogger(__name__)
tracer = trace.get_tracer(__name__)

reports_tag = Tag(name="Reports", description="Reporting of invalid or abusive donor entries")
reports_bp = APIBlueprint(
    'reports',
    __name__,
    url_prefix='/api/report',
    abp_tags=[reports_tag]
)


@reports_bp.post('/<donor_id>', responses={400: ErrorResponse, 404: ErrorResponse, 502: ErrorResponse})
def report_donor(path: DonorPath):
    """
    Report a donor by unique ID.

    Unknown or already removed donors yield 404.
    """
    with tracer.start_as_current_span("reports.submit") as span:
        span.set_attribute("donor.id", path.donor_id)

        result = current_app.repository.report_and_maybe_remove(path.donor_id)
        message = report_message(normalize_donor_id(path.donor_id), result)

        span.set_attributes({
            "donor.report_count": result.report_count,
            "donor.removed": result.removed
        })
        span.set_status(Status(StatusCode.OK))

        response = result.to_wire()
        response["message"] = message
        return jsonify(response)
