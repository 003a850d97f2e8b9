"""
Request data extraction and validation utilities.

Example usage:
    from app.utils.request_validators import extract_json_fields, RequestField

    data = extract_json_fields(
        RequestField('source', required=True, validator=non_empty_string),
        RequestField('target', required=True, validator=non_empty_string),
    )
"""

import logging
from typing import Any, Callable, Dict, Optional

from flask import request

logger = logging.getLogger(__name__)


class RequestField:
    """
    Declarative field definition for JSON body extraction.

    Args:
        name: Field name in the request data
        required: Whether field must be present and non-empty
        default: Default value if field is missing
        validator: Optional function returning True if the value is valid
        error_message: Custom error message for required field validation
    """

    def __init__(
        self,
        name: str,
        *,
        required: bool = False,
        default: Any = None,
        validator: Optional[Callable[[Any], bool]] = None,
        error_message: Optional[str] = None
    ):
        self.name = name
        self.required = required
        self.default = default
        self.validator = validator
        self.error_message = error_message or f"No {name} provided"

    def extract_and_validate(self, source: Dict[str, Any]) -> Any:
        """
        Raises:
            ValueError: If field is required but missing, or validation fails
        """
        value = source.get(self.name, self.default)

        if self.required and (value is None or value == ''):
            raise ValueError(self.error_message)

        if value is None:
            return value

        if self.validator and not self.validator(value):
            logger.debug("Rejected request field %s=%r", self.name, value)
            raise ValueError(f"Invalid {self.name}")

        return value


def extract_json_fields(*fields: RequestField) -> Dict[str, Any]:
    """
    Extract and validate fields from the JSON request body.

    Raises:
        ValueError: If the body is not an object, a required field is
            missing, or validation fails
    """
    source = request.get_json(silent=True)
    if source is None:
        source = {}
    if not isinstance(source, dict):
        raise ValueError("Request body must be a JSON object")

    return {field.name: field.extract_and_validate(source) for field in fields}


def non_empty_string(value: Any) -> bool:
    return isinstance(value, str) and bool(value.strip())


def is_object(value: Any) -> bool:
    return isinstance(value, dict)
