# -*- coding: utf-8 -*-
# SPDX-License-Identifier: Apache-2.0

"""
MongoDB store for donors and emergencies with connection pooling.

Report increments are applied server-side with conditional atomic updates,
so concurrent reports against the same donor are never lost.
"""

import os
import logging
from datetime import datetime
from typing import List, Dict, Optional, Any
from pymongo import MongoClient, ASCENDING, DESCENDING, ReturnDocument
from pymongo.collection import Collection
from pymongo.database import Database
from pymongo.errors import (
    ConnectionFailure,
    ServerSelectionTimeoutError,
    PyMongoError
)
from bson import ObjectId
from bson.errors import InvalidId
from opentelemetry import trace

from domain.donors import build_donor, build_emergency, INVALID_DONOR_ID
from domain.reports import REPORT_THRESHOLD
from middleware.error_handler import NotFoundException, TransportException
from models.entities import Donor, EmergencyRequest
from models.requests import RegisterDonorRequest, PostEmergencyRequest
from models.responses import ReportResult
from services.store import BloodLinkStore

tracer = trace.get_tracer(__name__)
logger = logging.getLogger(__name__)

DONORS = "donors"
EMERGENCIES = "emergencies"


class MongoDBService(BloodLinkStore):
    """MongoDB-backed BloodLink store with connection pooling."""

    name = "mongodb"

    def __init__(self, connection_string: str = None, database_name: str = None,
                 report_threshold: int = REPORT_THRESHOLD):
        """Initialize MongoDB service with connection pooling."""
        self.connection_string = connection_string or os.getenv(
            'MONGODB_URI',
            'mongodb://localhost:27017/bloodlink_dev'
        )
        self.database_name = database_name or os.getenv('MONGODB_DATABASE', 'bloodlink_dev')
        self.report_threshold = report_threshold
        self._client: Optional[MongoClient] = None
        self._database: Optional[Database] = None

        # Connection pool settings
        self.max_pool_size = int(os.getenv('MONGODB_MAX_POOL_SIZE', '10'))
        self.min_pool_size = int(os.getenv('MONGODB_MIN_POOL_SIZE', '1'))
        self.max_idle_time_ms = int(os.getenv('MONGODB_MAX_IDLE_TIME_MS', '30000'))
        self.server_selection_timeout_ms = int(os.getenv('MONGODB_SERVER_SELECTION_TIMEOUT_MS', '5000'))

        logger.info(f"MongoDB service initialized for database: {self.database_name}")

    @property
    def client(self) -> MongoClient:
        """Get MongoDB client with connection pooling."""
        if self._client is None:
            try:
                self._client = MongoClient(
                    self.connection_string,
                    maxPoolSize=self.max_pool_size,
                    minPoolSize=self.min_pool_size,
                    maxIdleTimeMS=self.max_idle_time_ms,
                    serverSelectionTimeoutMS=self.server_selection_timeout_ms,
                    retryWrites=True,
                    retryReads=True
                )
                # Test connection
                self._client.admin.command('ping')
                logger.info("MongoDB connection established successfully")
            except (ConnectionFailure, ServerSelectionTimeoutError) as e:
                logger.error(f"Failed to connect to MongoDB: {e}")
                self._client = None
                raise TransportException(f"Database unavailable: {e}")

        return self._client

    @property
    def database(self) -> Database:
        """Get MongoDB database."""
        if self._database is None:
            self._database = self.client[self.database_name]
        return self._database

    def get_collection(self, collection_name: str) -> Collection:
        """Get MongoDB collection."""
        return self.database[collection_name]

    def close_connection(self) -> None:
        """Close MongoDB connection."""
        if self._client:
            self._client.close()
            self._client = None
            self._database = None
            logger.info("MongoDB connection closed")

    def close(self) -> None:
        self.close_connection()

    def health_check(self) -> Dict[str, Any]:
        """Check MongoDB connection health."""
        try:
            # Ping the database
            result = self.client.admin.command('ping')

            # Get server info
            server_info = self.client.server_info()

            return {
                'status': 'healthy',
                'backend': self.name,
                'ping': result.get('ok') == 1,
                'version': server_info.get('version'),
                'database': self.database_name,
                'connection_pool_size': self.max_pool_size
            }
        except (PyMongoError, TransportException) as e:
            logger.error(f"MongoDB health check failed: {e}")
            return {
                'status': 'unhealthy',
                'backend': self.name,
                'error': str(e),
                'database': self.database_name
            }

    @staticmethod
    def _validate_object_id(doc_id: str) -> ObjectId:
        """Validate and convert string ID to ObjectId."""
        try:
            return ObjectId(doc_id)
        except (InvalidId, TypeError):
            raise ValueError(f"Invalid ObjectId format: {doc_id}")

    @staticmethod
    def _to_document(wire: Dict[str, Any]) -> Dict[str, Any]:
        """Convert a wire payload into a MongoDB document."""
        document = dict(wire)
        document["_id"] = ObjectId(document["_id"]) if "_id" in document else ObjectId()
        document["createdAt"] = datetime.utcnow()
        return document

    @staticmethod
    def _from_document(document: Dict[str, Any]) -> Dict[str, Any]:
        """Convert a MongoDB document into a wire payload."""
        wire = dict(document)
        wire["_id"] = str(wire["_id"])
        wire.pop("createdAt", None)
        return wire

    # Donors

    def list_donors(self) -> List[Donor]:
        """List active donors in registration order."""
        with tracer.start_as_current_span("db.donors.list"):
            try:
                cursor = self.get_collection(DONORS).find({}).sort("createdAt", ASCENDING)
                donors = [Donor.from_wire(self._from_document(doc)) for doc in cursor]
            except PyMongoError as e:
                logger.error(f"Failed to list donors: {e}")
                raise TransportException("Failed to load donors")

            logger.debug(f"Found {len(donors)} donors")
            return donors

    def create_donor(self, request: RegisterDonorRequest) -> Donor:
        """Insert a new donor with a zero report count."""
        with tracer.start_as_current_span("db.donors.create") as span:
            donor = build_donor(request)
            document = self._to_document(donor.to_wire())
            try:
                result = self.get_collection(DONORS).insert_one(document)
            except PyMongoError as e:
                logger.error(f"Failed to create donor: {e}")
                raise TransportException("Failed to register donor")

            span.set_attribute("donor.id", str(result.inserted_id))
            logger.info(f"Created donor: {result.inserted_id}")
            return donor

    def report_donor(self, donor_id: str) -> ReportResult:
        """
        Atomically record one report against a donor.

        Donors below ``threshold - 1`` reports are incremented in place. Any
        other active donor is on its final report and is deleted in a single
        operation, so two racing final reports remove the donor exactly once
        and the loser sees an unknown donor.
        """
        with tracer.start_as_current_span("db.donors.report") as span:
            span.set_attribute("donor.id", donor_id)
            try:
                object_id = self._validate_object_id(donor_id)
            except ValueError:
                raise NotFoundException(INVALID_DONOR_ID)

            donors = self.get_collection(DONORS)
            try:
                updated = donors.find_one_and_update(
                    {"_id": object_id, "reportCount": {"$lt": self.report_threshold - 1}},
                    {"$inc": {"reportCount": 1}},
                    return_document=ReturnDocument.AFTER
                )
                if updated is not None:
                    result = ReportResult(report_count=updated["reportCount"], removed=False)
                else:
                    deleted = donors.find_one_and_delete({"_id": object_id})
                    if deleted is None:
                        raise NotFoundException(INVALID_DONOR_ID)
                    result = ReportResult(report_count=self.report_threshold, removed=True)
            except PyMongoError as e:
                logger.error(f"Failed to report donor {donor_id}: {e}")
                raise TransportException("Failed to submit report")

            span.set_attributes({
                "donor.report_count": result.report_count,
                "donor.removed": result.removed
            })
            if result.removed:
                logger.warning(f"Donor {donor_id} removed after {result.report_count} reports")
            else:
                logger.info(f"Donor {donor_id} reported {result.report_count} time(s)")
            return result

    # Emergencies

    def list_emergencies(self) -> List[EmergencyRequest]:
        """List emergencies in posting order."""
        with tracer.start_as_current_span("db.emergencies.list"):
            try:
                cursor = self.get_collection(EMERGENCIES).find({}).sort("createdAt", ASCENDING)
                return [EmergencyRequest.from_wire(self._from_document(doc)) for doc in cursor]
            except PyMongoError as e:
                logger.error(f"Failed to list emergencies: {e}")
                raise TransportException("Failed to load emergencies")

    def create_emergency(self, request: PostEmergencyRequest) -> EmergencyRequest:
        """Insert a new emergency request."""
        with tracer.start_as_current_span("db.emergencies.create") as span:
            emergency = build_emergency(request)
            document = self._to_document(emergency.to_wire())
            try:
                result = self.get_collection(EMERGENCIES).insert_one(document)
            except PyMongoError as e:
                logger.error(f"Failed to create emergency: {e}")
                raise TransportException("Failed to post emergency")

            span.set_attribute("emergency.id", str(result.inserted_id))
            logger.info(f"Created emergency: {result.inserted_id}")
            return emergency

    # Index Management

    def create_indexes(self) -> None:
        """Create indexes used by listings and blood type lookups."""
        try:
            logger.info("Creating MongoDB indexes...")

            donors = self.get_collection(DONORS)
            donors.create_index([("createdAt", ASCENDING)])
            donors.create_index([("blood_type", ASCENDING)])
            donors.create_index("email")

            emergencies = self.get_collection(EMERGENCIES)
            emergencies.create_index([("createdAt", DESCENDING)])
            emergencies.create_index([("blood_type", ASCENDING), ("createdAt", DESCENDING)])

            logger.info("MongoDB indexes created successfully")

        except PyMongoError as e:
            logger.error(f"Failed to create MongoDB indexes: {e}")
            raise


# Singleton instance for application use
_mongodb_service: Optional[MongoDBService] = None


def get_mongodb_service() -> MongoDBService:
    """Get singleton MongoDB service instance."""
    global _mongodb_service
    if _mongodb_service is None:
        _mongodb_service = MongoDBService()
    return _mongodb_service


def close_mongodb_connection() -> None:
    """Close MongoDB connection (for cleanup)."""
    global _mongodb_service
    if _mongodb_service:
        _mongodb_service.close_connection()
        _mongodb_service = None
