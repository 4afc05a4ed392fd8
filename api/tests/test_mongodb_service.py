# -*- coding: utf-8 -*-
# SPDX-License-Identifier: Apache-2.0

"""
Unit tests for the MongoDB store.
"""

import pytest
from datetime import datetime
from unittest.mock import MagicMock, patch
from bson import ObjectId
from pymongo import ReturnDocument
from pymongo.errors import ServerSelectionTimeoutError, PyMongoError

from middleware.error_handler import NotFoundException, TransportException
from services.mongodb import MongoDBService, DONORS, EMERGENCIES


class TestMongoDBService:
    """Test MongoDB store functionality against mocked collections."""

    @pytest.fixture
    def collections(self):
        return {DONORS: MagicMock(), EMERGENCIES: MagicMock()}

    @pytest.fixture
    def mongodb_service(self, collections):
        """MongoDB service with a mocked database."""
        service = MongoDBService("mongodb://localhost:27017/bloodlink_test", "bloodlink_test")
        database = MagicMock()
        database.__getitem__.side_effect = collections.__getitem__
        service._database = database
        return service

    def test_create_donor_inserts_wire_document(self, mongodb_service, collections, donor_request):
        donor = mongodb_service.create_donor(donor_request)

        document = collections[DONORS].insert_one.call_args[0][0]
        assert document["_id"] == ObjectId(donor.id)
        assert document["reportCount"] == 0
        assert document["blood_type"] == "O+"
        assert isinstance(document["createdAt"], datetime)

    def test_list_donors_sorted_by_creation(self, mongodb_service, collections):
        object_id = ObjectId()
        collections[DONORS].find.return_value.sort.return_value = [{
            "_id": object_id,
            "name": "Asha Roy",
            "mobile_no": "9876543210",
            "email": "asha@example.com",
            "blood_type": "B-",
            "dob": "1994-05-17",
            "gender": "Female",
            "location": {"lat": 1.0, "lng": 2.0},
            "reportCount": 1,
            "createdAt": datetime.utcnow()
        }]

        donors = mongodb_service.list_donors()

        collections[DONORS].find.return_value.sort.assert_called_once_with("createdAt", 1)
        assert donors[0].id == str(object_id)
        assert donors[0].report_count == 1

    def test_report_increments_atomically(self, mongodb_service, collections):
        donor_id = str(ObjectId())
        collections[DONORS].find_one_and_update.return_value = {"_id": ObjectId(donor_id), "reportCount": 2}

        result = mongodb_service.report_donor(donor_id)

        filter_doc, update_doc = collections[DONORS].find_one_and_update.call_args[0]
        assert filter_doc == {"_id": ObjectId(donor_id), "reportCount": {"$lt": 2}}
        assert update_doc == {"$inc": {"reportCount": 1}}
        assert collections[DONORS].find_one_and_update.call_args[1]["return_document"] == ReturnDocument.AFTER
        assert (result.report_count, result.removed) == (2, False)
        collections[DONORS].find_one_and_delete.assert_not_called()

    def test_final_report_deletes_donor(self, mongodb_service, collections):
        donor_id = str(ObjectId())
        collections[DONORS].find_one_and_update.return_value = None
        collections[DONORS].find_one_and_delete.return_value = {"_id": ObjectId(donor_id), "reportCount": 2}

        result = mongodb_service.report_donor(donor_id)

        collections[DONORS].find_one_and_delete.assert_called_once_with({"_id": ObjectId(donor_id)})
        assert (result.report_count, result.removed) == (3, True)

    def test_report_unknown_donor(self, mongodb_service, collections):
        collections[DONORS].find_one_and_update.return_value = None
        collections[DONORS].find_one_and_delete.return_value = None

        with pytest.raises(NotFoundException):
            mongodb_service.report_donor(str(ObjectId()))

    def test_report_malformed_id_is_not_found(self, mongodb_service, collections):
        with pytest.raises(NotFoundException, match="Invalid Unique ID."):
            mongodb_service.report_donor("not-an-object-id")

        collections[DONORS].find_one_and_update.assert_not_called()

    def test_database_errors_become_transport_errors(self, mongodb_service, collections):
        collections[DONORS].find_one_and_update.side_effect = PyMongoError("primary stepped down")

        with pytest.raises(TransportException) as exc_info:
            mongodb_service.report_donor(str(ObjectId()))

        assert exc_info.value.status_code == 502

    def test_create_emergency(self, mongodb_service, collections, emergency_request):
        emergency = mongodb_service.create_emergency(emergency_request)

        document = collections[EMERGENCIES].insert_one.call_args[0][0]
        assert document["_id"] == ObjectId(emergency.id)
        assert document["units"] == 2
        assert "observer" not in document

    def test_list_emergencies(self, mongodb_service, collections):
        collections[EMERGENCIES].find.return_value.sort.return_value = [{
            "_id": ObjectId(),
            "pname": "Ravi Das",
            "contact": "9123456780",
            "hospital": "City Hospital",
            "blood_type": "AB-",
            "units": 2,
            "createdAt": datetime.utcnow()
        }]

        emergencies = mongodb_service.list_emergencies()

        assert emergencies[0].hospital == "City Hospital"
        assert emergencies[0].location is None

    def test_create_indexes(self, mongodb_service, collections):
        mongodb_service.create_indexes()

        assert collections[DONORS].create_index.call_count == 3
        assert collections[EMERGENCIES].create_index.call_count == 2


class TestMongoDBConnection:
    """Test connection handling."""

    @patch('services.mongodb.MongoClient')
    def test_unreachable_server(self, mock_client_cls):
        mock_client_cls.return_value.admin.command.side_effect = ServerSelectionTimeoutError("timeout")
        service = MongoDBService("mongodb://unreachable:27017", "bloodlink_test")

        with pytest.raises(TransportException):
            service.list_donors()

    @patch('services.mongodb.MongoClient')
    def test_health_check_unhealthy(self, mock_client_cls):
        mock_client_cls.return_value.admin.command.side_effect = ServerSelectionTimeoutError("timeout")
        service = MongoDBService("mongodb://unreachable:27017", "bloodlink_test")

        health = service.health_check()

        assert health['status'] == 'unhealthy'
        assert health['backend'] == 'mongodb'

    @patch('services.mongodb.MongoClient')
    def test_health_check_healthy(self, mock_client_cls):
        client = mock_client_cls.return_value
        client.admin.command.return_value = {"ok": 1}
        client.server_info.return_value = {"version": "7.0.2"}
        service = MongoDBService("mongodb://localhost:27017", "bloodlink_test")

        health = service.health_check()

        assert health['status'] == 'healthy'
        assert health['ping'] is True
        assert health['version'] == "7.0.2"

    @patch('services.mongodb.MongoClient')
    def test_close_connection(self, mock_client_cls):
        service = MongoDBService("mongodb://localhost:27017", "bloodlink_test")
        service.client

        service.close()

        mock_client_cls.return_value.close.assert_called_once()
        assert service._client is None
