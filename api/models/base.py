# -*- coding: utf-8 -*-
# SPDX-License-Identifier: Apache-2.0

"""
Base entity models with common fields and wire serialization.
"""

from typing import Any, Dict
from pydantic import BaseModel, Field, ConfigDict
from bson import ObjectId


def generate_object_id() -> str:
    """Generate a new MongoDB ObjectId as string."""
    return str(ObjectId())


class BaseEntity(BaseModel):
    """Base entity for records owned by a BloodLink store."""

    model_config = ConfigDict(
        # Allow population by field name or alias
        populate_by_name=True,
        # Use enum values instead of enum objects
        use_enum_values=True,
        # Validate assignment
        validate_assignment=True
    )

    id: str = Field(default_factory=generate_object_id, alias="_id", description="Unique identifier")

    def to_wire(self) -> Dict[str, Any]:
        """Serialize using the JSON field names of the BloodLink API."""
        return self.model_dump(by_alias=True, mode="json")

    @classmethod
    def from_wire(cls, data: Dict[str, Any]):
        """Build an entity from a BloodLink API document."""
        return cls.model_validate(data)


class BaseEntityCreate(BaseModel):
    """Base model for entity creation requests."""

    model_config = ConfigDict(
        populate_by_name=True,
        use_enum_values=True,
        validate_assignment=True
    )

    def to_wire(self) -> Dict[str, Any]:
        """Serialize the creation payload without client-only fields."""
        return self.model_dump(by_alias=True, mode="json", exclude_none=True)
