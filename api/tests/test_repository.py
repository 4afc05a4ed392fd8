# -*- coding: utf-8 -*-
# SPDX-License-Identifier: Apache-2.0

"""
Tests for the BloodLink repository.
"""

import pytest
from unittest.mock import Mock

from middleware.error_handler import NotFoundException, ValidationException, TransportException
from models.entities import Donor
from models.requests import RegisterDonorRequest, PostEmergencyRequest
from models.responses import ReportResult
from services.repository import BloodLinkRepository
from services.store import BloodLinkStore, InMemoryStore


class FakeClock:
    """Manually advanced monotonic clock."""

    def __init__(self):
        self.now = 1000.0

    def __call__(self):
        return self.now


@pytest.fixture
def donor(sample_donor_data):
    return Donor.model_validate(sample_donor_data)


@pytest.fixture
def mock_store(donor):
    """Authoritative store (memory or MongoDB)."""
    store = Mock(spec=BloodLinkStore)
    store.authoritative = True
    store.list_donors.return_value = [donor]
    store.list_emergencies.return_value = []
    return store


@pytest.fixture
def remote_store(mock_store):
    """Store owned by a remote service."""
    mock_store.authoritative = False
    return mock_store


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def cached_repository(remote_store, clock):
    return BloodLinkRepository(remote_store, cache_ttl=30.0, clock=clock)


class TestAuthoritativeStore:
    """Memory and MongoDB stores are read through on every call."""

    def test_every_listing_reads_store(self, mock_store, donor):
        repository = BloodLinkRepository(mock_store)

        assert repository.list_donors() == [donor]
        assert repository.list_donors() == [donor]
        repository.list_emergencies()
        repository.list_emergencies()

        assert mock_store.list_donors.call_count == 2
        assert mock_store.list_emergencies.call_count == 2

    def test_unknown_id_decided_by_store(self, mock_store):
        mock_store.report_donor.side_effect = NotFoundException("Invalid Unique ID.")

        with pytest.raises(NotFoundException, match="Invalid Unique ID."):
            BloodLinkRepository(mock_store).report_and_maybe_remove("65f0c0ffee0000000000abcd")

        mock_store.report_donor.assert_called_once_with("65f0c0ffee0000000000abcd")
        mock_store.list_donors.assert_not_called()

    def test_writes_from_another_repository_are_visible(self, donor_request):
        store = InMemoryStore()
        first = BloodLinkRepository(store)
        second = BloodLinkRepository(store)
        assert second.list_donors() == []

        donor = first.create_donor(donor_request)

        assert [d.id for d in second.list_donors()] == [donor.id]
        assert second.report_and_maybe_remove(donor.id).report_count == 1
        first.report_and_maybe_remove(donor.id)
        first.report_and_maybe_remove(donor.id)
        assert second.list_donors() == []

    def test_refresh_is_noop(self, mock_store):
        BloodLinkRepository(mock_store).refresh()

        mock_store.list_donors.assert_not_called()


class TestRemoteStoreCache:
    """Remote stores are cached with a time-to-live."""

    def test_loads_once_while_fresh(self, cached_repository, remote_store, donor, clock):
        assert cached_repository.list_donors() == [donor]
        clock.now += 29
        assert cached_repository.list_donors() == [donor]

        remote_store.list_donors.assert_called_once()

    def test_reloads_after_ttl(self, cached_repository, remote_store, clock):
        cached_repository.list_donors()
        cached_repository.list_emergencies()

        clock.now += 30
        cached_repository.list_donors()
        cached_repository.list_emergencies()

        assert remote_store.list_donors.call_count == 2
        assert remote_store.list_emergencies.call_count == 2

    def test_zero_ttl_reloads_every_read(self, remote_store, clock):
        repository = BloodLinkRepository(remote_store, cache_ttl=0, clock=clock)

        repository.list_donors()
        repository.list_donors()

        assert remote_store.list_donors.call_count == 2

    def test_removed_elsewhere_drops_out_after_ttl(self, cached_repository, remote_store, clock):
        cached_repository.list_donors()
        remote_store.list_donors.return_value = []

        clock.now += 30

        assert cached_repository.list_donors() == []

    def test_refresh_reloads(self, cached_repository, remote_store):
        cached_repository.list_donors()

        cached_repository.refresh()
        cached_repository.list_donors()

        assert remote_store.list_donors.call_count == 2
        assert remote_store.list_emergencies.call_count == 1

    def test_invalidate(self, cached_repository, remote_store):
        cached_repository.list_emergencies()

        cached_repository.invalidate()
        cached_repository.list_emergencies()

        assert remote_store.list_emergencies.call_count == 2

    def test_transport_error_propagates(self, cached_repository, remote_store):
        remote_store.list_donors.side_effect = TransportException("Failed to load donors")

        with pytest.raises(TransportException):
            cached_repository.list_donors()


class TestRepositoryCreate:
    """Test validation before store calls and cache updates."""

    def test_donor_without_location_never_reaches_store(self, mock_store, sample_donor_data):
        data = dict(sample_donor_data)
        del data["location"]

        with pytest.raises(ValidationException) as exc_info:
            BloodLinkRepository(mock_store).create_donor(RegisterDonorRequest.model_validate(data))

        assert exc_info.value.message == "Please provide your location to register."
        assert exc_info.value.validation_errors[0]["field"] == "location"
        mock_store.create_donor.assert_not_called()

    def test_emergency_without_location_never_reaches_store(self, mock_store, sample_emergency_data):
        data = dict(sample_emergency_data)
        del data["location"]

        with pytest.raises(ValidationException, match="patient's location"):
            BloodLinkRepository(mock_store).create_emergency(PostEmergencyRequest.model_validate(data))

        mock_store.create_emergency.assert_not_called()

    def test_created_donor_joins_cache(self, cached_repository, remote_store, donor, donor_request,
                                       sample_donor_data):
        new_donor = Donor.model_validate({**sample_donor_data, "name": "New Donor"})
        remote_store.create_donor.return_value = new_donor
        cached_repository.list_donors()

        cached_repository.create_donor(donor_request)

        assert [d.id for d in cached_repository.list_donors()] == [donor.id, new_donor.id]
        remote_store.list_donors.assert_called_once()

    def test_created_emergency_joins_cache(self, cached_repository, remote_store, emergency, emergency_request):
        remote_store.create_emergency.return_value = emergency
        cached_repository.list_emergencies()

        cached_repository.create_emergency(emergency_request)

        assert cached_repository.list_emergencies() == [emergency]


class TestReportAndMaybeRemove:
    """Test report flow through the repository."""

    def test_blank_id(self, mock_store):
        with pytest.raises(ValidationException, match="Please enter a Unique ID."):
            BloodLinkRepository(mock_store).report_and_maybe_remove("   ")

        mock_store.report_donor.assert_not_called()

    def test_unknown_id_never_reaches_remote_store(self, cached_repository, remote_store):
        with pytest.raises(NotFoundException, match="Invalid Unique ID."):
            cached_repository.report_and_maybe_remove("nope")

        remote_store.report_donor.assert_not_called()

    def test_cache_miss_reloads_before_rejecting(self, cached_repository, remote_store, donor,
                                                 sample_donor_data):
        cached_repository.list_donors()
        registered_elsewhere = Donor.model_validate({**sample_donor_data, "name": "Other Worker"})
        remote_store.list_donors.return_value = [donor, registered_elsewhere]
        remote_store.report_donor.return_value = ReportResult(report_count=1, removed=False)

        result = cached_repository.report_and_maybe_remove(registered_elsewhere.id)

        assert result.report_count == 1
        remote_store.report_donor.assert_called_once_with(registered_elsewhere.id)

    def test_increment_updates_cached_count(self, cached_repository, remote_store, donor):
        remote_store.report_donor.return_value = ReportResult(report_count=1, removed=False)

        result = cached_repository.report_and_maybe_remove(f"  {donor.id} ")

        remote_store.report_donor.assert_called_once_with(donor.id)
        assert result.report_count == 1
        assert cached_repository.list_donors()[0].report_count == 1

    def test_removal_drops_donor(self, cached_repository, remote_store, donor):
        remote_store.report_donor.return_value = ReportResult(report_count=3, removed=True)

        result = cached_repository.report_and_maybe_remove(donor.id)

        assert result.removed is True
        assert cached_repository.list_donors() == []

    def test_store_not_found_evicts_cached_donor(self, cached_repository, remote_store, donor):
        remote_store.report_donor.side_effect = NotFoundException("Invalid Unique ID.")

        with pytest.raises(NotFoundException):
            cached_repository.report_and_maybe_remove(donor.id)

        assert cached_repository.list_donors() == []

    def test_transport_error_leaves_cache(self, cached_repository, remote_store, donor):
        remote_store.report_donor.side_effect = TransportException("Failed to submit report")

        with pytest.raises(TransportException):
            cached_repository.report_and_maybe_remove(donor.id)

        assert cached_repository.list_donors()[0].report_count == 0

    def test_full_cycle_with_memory_store(self, memory_store, donor_request):
        repository = BloodLinkRepository(memory_store)
        donor = repository.create_donor(donor_request)

        counts = [repository.report_and_maybe_remove(donor.id).report_count for _ in range(3)]

        assert counts == [1, 2, 3]
        assert repository.list_donors() == []
        with pytest.raises(NotFoundException):
            repository.report_and_maybe_remove(donor.id)
