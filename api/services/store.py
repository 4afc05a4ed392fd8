# -*- coding: utf-8 -*-
# SPDX-License-Identifier: Apache-2.0

"""
Store interface for donors and emergencies, plus an in-process implementation.

A store is the single authority for durable state. Every store must apply
report increments atomically per donor.
"""

import logging
import threading
from typing import Dict, List, Optional, Any

from opentelemetry import trace

from domain.reports import apply_report, REPORT_THRESHOLD
from models.entities import Donor, EmergencyRequest
from models.requests import RegisterDonorRequest, PostEmergencyRequest
from models.responses import ReportResult
from domain.donors import build_donor, build_emergency, INVALID_DONOR_ID
from middleware.error_handler import NotFoundException

tracer = trace.get_tracer(__name__)
logger = logging.getLogger(__name__)


class BloodLinkStore:
    """Operations every BloodLink data store provides."""

    name = "store"
    # False when a remote service owns the data and other clients may change it
    authoritative = True

    def list_donors(self) -> List[Donor]:
        raise NotImplementedError

    def create_donor(self, request: RegisterDonorRequest) -> Donor:
        raise NotImplementedError

    def list_emergencies(self) -> List[EmergencyRequest]:
        raise NotImplementedError

    def create_emergency(self, request: PostEmergencyRequest) -> EmergencyRequest:
        raise NotImplementedError

    def report_donor(self, donor_id: str) -> ReportResult:
        """
        Record one report against an active donor.

        Raises:
            NotFoundException: if the donor is unknown or already removed
        """
        raise NotImplementedError

    def health_check(self) -> Dict[str, Any]:
        return {'status': 'healthy', 'backend': self.name}

    def close(self) -> None:
        pass


class InMemoryStore(BloodLinkStore):
    """
    Thread-safe in-process store for development and tests.

    Insertion order is preserved for listings. A single lock serializes
    report increments so concurrent reports never lose an update.
    """

    name = "memory"

    def __init__(self, report_threshold: int = REPORT_THRESHOLD):
        self.report_threshold = report_threshold
        self._donors: Dict[str, Donor] = {}
        self._emergencies: List[EmergencyRequest] = []
        self._lock = threading.Lock()

    def list_donors(self) -> List[Donor]:
        with self._lock:
            return [donor.model_copy() for donor in self._donors.values()]

    def create_donor(self, request: RegisterDonorRequest) -> Donor:
        donor = build_donor(request)
        with self._lock:
            self._donors[donor.id] = donor
        logger.info(f"Registered donor {donor.id}")
        return donor.model_copy()

    def get_donor(self, donor_id: str) -> Optional[Donor]:
        with self._lock:
            donor = self._donors.get(donor_id)
            return donor.model_copy() if donor else None

    def list_emergencies(self) -> List[EmergencyRequest]:
        with self._lock:
            return list(self._emergencies)

    def create_emergency(self, request: PostEmergencyRequest) -> EmergencyRequest:
        emergency = build_emergency(request)
        with self._lock:
            self._emergencies.append(emergency)
        logger.info(f"Posted emergency {emergency.id} for blood type {emergency.blood_type}")
        return emergency

    def report_donor(self, donor_id: str) -> ReportResult:
        with tracer.start_as_current_span("memory.donor.report") as span:
            span.set_attribute("donor.id", donor_id)

            with self._lock:
                donor = self._donors.get(donor_id)
                if donor is None:
                    raise NotFoundException(INVALID_DONOR_ID)

                outcome = apply_report(donor.report_count, self.report_threshold)
                if outcome.removed:
                    del self._donors[donor_id]
                else:
                    donor.report_count = outcome.report_count

            span.set_attributes({
                "donor.report_count": outcome.report_count,
                "donor.removed": outcome.removed
            })
            if outcome.removed:
                logger.warning(f"Donor {donor_id} removed after {outcome.report_count} reports")
            else:
                logger.info(f"Donor {donor_id} reported {outcome.report_count} time(s)")

            return outcome.to_result()

    def health_check(self) -> Dict[str, Any]:
        with self._lock:
            return {
                'status': 'healthy',
                'backend': self.name,
                'donors': len(self._donors),
                'emergencies': len(self._emergencies)
            }
