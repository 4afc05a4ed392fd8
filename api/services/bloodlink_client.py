# -*- coding: utf-8 -*-
# SPDX-License-Identifier: Apache-2.0

"""
HTTP client for an external BloodLink API.

Used when this service fronts a remote store instead of owning one. Calls are
single-attempt with a bounded timeout; retry policy belongs to callers.
"""

import logging
from typing import Any, Dict, List, Optional
from urllib.parse import quote

import requests
from pydantic import ValidationError
from opentelemetry import trace

from domain.donors import INVALID_DONOR_ID
from domain.reports import REPORT_THRESHOLD
from middleware.error_handler import NotFoundException, TransportException
from models.entities import Donor, EmergencyRequest
from models.requests import RegisterDonorRequest, PostEmergencyRequest
from models.responses import ReportResult
from services.store import BloodLinkStore

tracer = trace.get_tracer(__name__)
logger = logging.getLogger(__name__)


class BloodLinkClient(BloodLinkStore):
    """Store implementation that delegates to a remote BloodLink API."""

    name = "http"
    authoritative = False

    def __init__(self, base_url: str, timeout: float = 10.0, session: Optional[requests.Session] = None):
        """
        Initialize the client.

        Args:
            base_url: API root, e.g. ``https://bloodlink.example.org/api``
            timeout: Per-request timeout in seconds
            session: Optional preconfigured requests session
        """
        self.base_url = base_url.rstrip('/')
        self.timeout = timeout
        self.session = session or requests.Session()
        self.session.headers.setdefault('Accept', 'application/json')

        logger.info(f"BloodLink client initialized for {self.base_url}")

    def _request(self, method: str, path: str, payload: Optional[Dict[str, Any]] = None) -> requests.Response:
        """Send one request and map network failures to TransportException."""
        url = f"{self.base_url}{path}"

        with tracer.start_as_current_span("bloodlink.http.request") as span:
            span.set_attributes({
                "http.method": method,
                "http.url": url
            })
            try:
                response = self.session.request(method, url, json=payload, timeout=self.timeout)
            except requests.RequestException as e:
                span.record_exception(e)
                logger.error(f"BloodLink API {method} {path} failed: {e}")
                raise TransportException(f"BloodLink API unreachable: {e.__class__.__name__}")

            span.set_attribute("http.status_code", response.status_code)
            logger.debug(f"BloodLink API {method} {path} -> {response.status_code}")
            return response

    @staticmethod
    def _json(response: requests.Response, action: str) -> Any:
        """Decode a successful JSON response or raise TransportException."""
        if not response.ok:
            logger.error(f"BloodLink API refused to {action}: HTTP {response.status_code}")
            raise TransportException(
                f"Failed to {action} (upstream status {response.status_code})",
                upstream_status=response.status_code
            )
        try:
            return response.json()
        except ValueError:
            raise TransportException(f"Failed to {action}: upstream returned invalid JSON")

    def _parse(self, model, data: Any, action: str):
        try:
            return model.from_wire(data)
        except (ValidationError, TypeError) as e:
            logger.error(f"BloodLink API returned an invalid record while trying to {action}: {e}")
            raise TransportException(f"Failed to {action}: upstream returned an invalid record")

    def _parse_list(self, model, data: Any, action: str) -> List[Any]:
        if not isinstance(data, list):
            raise TransportException(f"Failed to {action}: upstream did not return a list")
        return [self._parse(model, item, action) for item in data]

    def list_donors(self) -> List[Donor]:
        response = self._request('GET', '/donors')
        donors = self._parse_list(Donor, self._json(response, "load donors"), "load donors")

        active = [donor for donor in donors if donor.report_count < REPORT_THRESHOLD]
        if len(active) < len(donors):
            logger.warning(
                f"BloodLink API listed {len(donors) - len(active)} donor(s) already at the report threshold"
            )
        return active

    def create_donor(self, request: RegisterDonorRequest) -> Donor:
        response = self._request('POST', '/donors', request.to_wire())
        donor = self._parse(Donor, self._json(response, "register donor"), "register donor")
        if donor.report_count >= REPORT_THRESHOLD:
            raise TransportException("Failed to register donor: upstream returned a removed donor")
        return donor

    def list_emergencies(self) -> List[EmergencyRequest]:
        response = self._request('GET', '/emergencies')
        return self._parse_list(EmergencyRequest, self._json(response, "load emergencies"), "load emergencies")

    def create_emergency(self, request: PostEmergencyRequest) -> EmergencyRequest:
        response = self._request('POST', '/emergencies', request.to_wire())
        return self._parse(EmergencyRequest, self._json(response, "post emergency"), "post emergency")

    def report_donor(self, donor_id: str) -> ReportResult:
        response = self._request('POST', f"/report/{quote(donor_id, safe='')}")
        if response.status_code == 404:
            raise NotFoundException(INVALID_DONOR_ID)

        data = self._json(response, "submit report")
        try:
            return ReportResult.model_validate(data)
        except ValidationError:
            raise TransportException("Failed to submit report: upstream returned an invalid result")

    def health_check(self) -> Dict[str, Any]:
        try:
            response = self.session.get(f"{self.base_url}/donors", timeout=self.timeout)
            status = 'healthy' if response.ok else 'degraded'
            return {
                'status': status,
                'backend': self.name,
                'base_url': self.base_url,
                'upstream_status': response.status_code
            }
        except requests.RequestException as e:
            return {
                'status': 'unhealthy',
                'backend': self.name,
                'base_url': self.base_url,
                'error': str(e)
            }

    def close(self) -> None:
        self.session.close()
