"""
Required-field validation for decoded JSON payloads.

Required fields are declared by name and checked with a JSON Schema, so
every missing or empty field is reported at once instead of failing on
the first one.
"""

import json
import logging
from typing import Any, Iterable

from jsonschema import Draft7Validator

from hubspot_client.exceptions import RequiredFieldsError

logger = logging.getLogger(__name__)

# Values treated as "not provided" for a required field
_EMPTY_VALUES: list[Any] = ["", None, [], {}]


def _build_schema(required: list[str]) -> dict[str, Any]:
    return {
        "type": "object",
        "required": required,
        "properties": {name: {"not": {"enum": _EMPTY_VALUES}} for name in required},
    }


def missing_required_fields(payload: Any, required: Iterable[str]) -> list[str]:
    """
    List one message per required field that is absent or empty.

    Args:
        payload: Decoded JSON value (expected to be an object)
        required: Field names that must be present and non-empty

    Returns:
        Messages in the order the fields were declared (empty list if valid)
    """
    names = list(required)
    if not names:
        return []
    if not isinstance(payload, dict):
        return [f"payload must be an object, got {type(payload).__name__}"]

    validator = Draft7Validator(_build_schema(names))
    problems: dict[str, str] = {}
    for error in validator.iter_errors(payload):
        if error.validator == "required":
            for name in names:
                if name not in payload:
                    problems[name] = f"field '{name}' is required but is missing"
        elif error.path:
            field = str(error.path[0])
            problems.setdefault(field, f"field '{field}' is required but is empty")

    return [problems[name] for name in names if name in problems]


def decode_json(body: bytes | str, required: Iterable[str] = ()) -> Any:
    """
    Decode a JSON body and enforce required top-level fields.

    Raises:
        json.JSONDecodeError: Body is not valid JSON
        RequiredFieldsError: One or more required fields are missing/empty
    """
    data = json.loads(body)
    missing = missing_required_fields(data, required)
    if missing:
        logger.debug("Decoded payload failed required-field check: %s", missing)
        raise RequiredFieldsError(missing)
    return data
