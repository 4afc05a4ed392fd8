# -*- coding: utf-8 -*-
# SPDX-License-Identifier: Apache-2.0

"""
Request utilities for extracting and validating request data.
"""

from flask import request
from typing import Dict, Any, List, Type, TypeVar
from pydantic import BaseModel, ValidationError
import logging

from middleware.error_handler import ValidationException

logger = logging.getLogger(__name__)

ModelT = TypeVar('ModelT', bound=BaseModel)


class RequestParser:
    """Utility for parsing and validating request bodies."""

    @staticmethod
    def parse_json_body() -> Dict[str, Any]:
        """
        Parse the JSON request body.

        Returns:
            Parsed JSON object

        Raises:
            ValidationException: If the body is missing, not JSON, or not an object
        """
        if not request.is_json:
            raise ValidationException("Request must have Content-Type: application/json")

        data = request.get_json(silent=True)
        if data is None:
            raise ValidationException("Invalid or empty JSON body")
        if not isinstance(data, dict):
            raise ValidationException("JSON body must be an object")
        return data

    @staticmethod
    def validation_errors(error: ValidationError) -> List[Dict[str, Any]]:
        """Flatten pydantic errors into field/message pairs."""
        return [
            {
                "field": ".".join(str(part) for part in item["loc"]) or "body",
                "message": item["msg"]
            }
            for item in error.errors()
        ]

    @classmethod
    def parse_model(cls, model_cls: Type[ModelT], data: Dict[str, Any]) -> ModelT:
        """
        Validate data against a request model.

        Raises:
            ValidationException: With one entry per invalid field
        """
        try:
            return model_cls.model_validate(data)
        except ValidationError as e:
            errors = cls.validation_errors(e)
            logger.info(
                f"Invalid {model_cls.__name__} payload",
                extra={"validation_errors": errors, "path": request.path}
            )
            raise ValidationException("Request validation failed", errors)

    @classmethod
    def parse_body(cls, model_cls: Type[ModelT]) -> ModelT:
        """Parse and validate the JSON body in one step."""
        return cls.parse_model(model_cls, cls.parse_json_body())
