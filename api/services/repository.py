# -*- coding: utf-8 -*-
# SPDX-License-Identifier: Apache-2.0

"""
Repository over a BloodLink store.

The store owns canonical state. Stores that are the authority for their data
(in-process memory, MongoDB) are read through on every call, so every worker
sees the same donors. A remote store is fronted by a cache that expires after
``cache_ttl`` seconds, is updated after each successful write, and is reloaded
before an unknown donor ID is rejected.
"""

import logging
import threading
import time
from typing import Callable, Dict, List, Optional

from opentelemetry import trace

from domain import donors as donor_domain
from domain.reports import report_message
from middleware.error_handler import NotFoundException, ValidationException
from models.entities import Donor, EmergencyRequest
from models.requests import RegisterDonorRequest, PostEmergencyRequest
from models.responses import ReportResult
from services.store import BloodLinkStore

tracer = trace.get_tracer(__name__)
logger = logging.getLogger(__name__)

DEFAULT_CACHE_TTL_SECONDS = 30.0


class BloodLinkRepository:
    """Access to donors and emergencies, cached for remote stores."""

    def __init__(
        self,
        store: BloodLinkStore,
        cache_ttl: float = DEFAULT_CACHE_TTL_SECONDS,
        clock: Callable[[], float] = time.monotonic
    ):
        """
        Args:
            store: Backing store
            cache_ttl: Seconds a remote listing stays fresh; 0 reloads on every read
            clock: Monotonic time source
        """
        self.store = store
        self.cache_enabled = not store.authoritative
        self.cache_ttl = cache_ttl
        self._clock = clock
        self._donors: Optional[Dict[str, Donor]] = None
        self._emergencies: Optional[List[EmergencyRequest]] = None
        self._donors_loaded_at = 0.0
        self._emergencies_loaded_at = 0.0
        self._lock = threading.RLock()

    def refresh(self) -> None:
        """Reload both caches from the store."""
        if not self.cache_enabled:
            return
        with tracer.start_as_current_span("repository.refresh"):
            with self._lock:
                donors = self._load_donors()
                emergencies = self._load_emergencies()
            logger.info(
                "Repository cache refreshed",
                extra={"donors": len(donors), "emergencies": len(emergencies)}
            )

    def invalidate(self) -> None:
        """Drop cached data; the next read goes to the store."""
        with self._lock:
            self._donors = None
            self._emergencies = None

    def _expired(self, loaded_at: float) -> bool:
        return self._clock() - loaded_at >= self.cache_ttl

    def _load_donors(self) -> Dict[str, Donor]:
        self._donors = {donor.id: donor for donor in self.store.list_donors()}
        self._donors_loaded_at = self._clock()
        return self._donors

    def _load_emergencies(self) -> List[EmergencyRequest]:
        self._emergencies = list(self.store.list_emergencies())
        self._emergencies_loaded_at = self._clock()
        return self._emergencies

    def _donor_cache(self) -> Dict[str, Donor]:
        with self._lock:
            if self._donors is None or self._expired(self._donors_loaded_at):
                return self._load_donors()
            return self._donors

    def _emergency_cache(self) -> List[EmergencyRequest]:
        with self._lock:
            if self._emergencies is None or self._expired(self._emergencies_loaded_at):
                return self._load_emergencies()
            return self._emergencies

    def _is_known_donor(self, donor_id: str) -> bool:
        with self._lock:
            if donor_id in self._donor_cache():
                return True
            # Registered elsewhere since the last load
            return donor_id in self._load_donors()

    # Donors

    def list_donors(self) -> List[Donor]:
        """Active donors in registration order."""
        if not self.cache_enabled:
            return self.store.list_donors()
        with self._lock:
            return list(self._donor_cache().values())

    def create_donor(self, request: RegisterDonorRequest) -> Donor:
        """
        Register a donor.

        Raises:
            ValidationException: before any store call when the location is missing
        """
        validation = donor_domain.validate_registration(request)
        if not validation.is_valid:
            raise ValidationException(
                validation.errors[0],
                [{"field": "location", "message": error} for error in validation.errors]
            )

        with tracer.start_as_current_span("repository.donor.create") as span:
            donor = self.store.create_donor(request)
            span.set_attribute("donor.id", donor.id)

            with self._lock:
                if self._donors is not None:
                    self._donors[donor.id] = donor

            logger.info(
                "Donor registered",
                extra={"donor_id": donor.id, "blood_type": donor.blood_type}
            )
            return donor

    def report_and_maybe_remove(self, donor_id: str) -> ReportResult:
        """
        Report a donor, removing it from the cache when the threshold is reached.

        Authoritative stores decide whether the ID is active. For a cached
        remote store an ID missing from a freshly reloaded listing is
        rejected without sending the report.

        Raises:
            ValidationException: if the ID is blank
            NotFoundException: if the donor is not an active donor
        """
        donor_id = donor_domain.normalize_donor_id(donor_id)
        if not donor_id:
            raise ValidationException(
                donor_domain.DONOR_ID_REQUIRED,
                [{"field": "donor_id", "message": donor_domain.DONOR_ID_REQUIRED}]
            )

        if self.cache_enabled and not self._is_known_donor(donor_id):
            logger.info(f"Report rejected for unknown donor {donor_id}")
            raise NotFoundException(donor_domain.INVALID_DONOR_ID)

        with tracer.start_as_current_span("repository.donor.report") as span:
            span.set_attribute("donor.id", donor_id)
            try:
                result = self.store.report_donor(donor_id)
            except NotFoundException:
                # The store already removed this donor; stop listing it.
                with self._lock:
                    if self._donors is not None:
                        self._donors.pop(donor_id, None)
                raise

            with self._lock:
                if self._donors is not None:
                    if result.removed:
                        self._donors.pop(donor_id, None)
                    elif donor_id in self._donors:
                        self._donors[donor_id] = self._donors[donor_id].model_copy(
                            update={"report_count": result.report_count}
                        )

            span.set_attributes({
                "donor.report_count": result.report_count,
                "donor.removed": result.removed
            })
            logger.info(report_message(donor_id, result))
            return result

    # Emergencies

    def list_emergencies(self) -> List[EmergencyRequest]:
        """Emergencies in posting order."""
        if not self.cache_enabled:
            return self.store.list_emergencies()
        with self._lock:
            return list(self._emergency_cache())

    def create_emergency(self, request: PostEmergencyRequest) -> EmergencyRequest:
        """
        Post an emergency.

        Raises:
            ValidationException: before any store call when the location is missing
        """
        validation = donor_domain.validate_emergency(request)
        if not validation.is_valid:
            raise ValidationException(
                validation.errors[0],
                [{"field": "location", "message": error} for error in validation.errors]
            )

        with tracer.start_as_current_span("repository.emergency.create") as span:
            emergency = self.store.create_emergency(request)
            span.set_attribute("emergency.id", emergency.id)

            with self._lock:
                if self._emergencies is not None:
                    self._emergencies.append(emergency)

            logger.info(
                "Emergency posted",
                extra={"emergency_id": emergency.id, "blood_type": emergency.blood_type}
            )
            return emergency
