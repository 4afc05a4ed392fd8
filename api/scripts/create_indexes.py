#!/usr/bin/env python3
# -*- coding: utf-8 -*-
# SPDX-License-Identifier: Apache-2.0

"""
Create the MongoDB indexes used by the BloodLink donor and emergency listings.

Reads MONGODB_URI and MONGODB_DATABASE from the environment.
"""

import sys
import os
import logging

# Add the parent directory to the path so we can import from api
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from pymongo.errors import PyMongoError

from services.mongodb import DONORS, EMERGENCIES, get_mongodb_service, close_mongodb_connection

logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)

logger = logging.getLogger(__name__)


def main() -> int:
    """Create MongoDB indexes and report the resulting index names."""
    mongodb_service = get_mongodb_service()
    try:
        health = mongodb_service.health_check()
        if health['status'] != 'healthy':
            logger.error(f"MongoDB is not healthy: {health}")
            return 1

        logger.info(f"Connected to MongoDB {health['version']} - Database: {health['database']}")

        mongodb_service.create_indexes()

        for collection_name in (DONORS, EMERGENCIES):
            names = sorted(mongodb_service.get_collection(collection_name).index_information())
            logger.info(f"{collection_name}: {', '.join(names)}")

        return 0

    except PyMongoError as e:
        logger.error(f"Failed to create indexes: {e}")
        return 1
    finally:
        close_mongodb_connection()


if __name__ == "__main__":
    sys.exit(main())
