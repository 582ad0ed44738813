"""
Payload validation helpers for response bodies.

Components:
- missing_required_fields: list every missing/empty required field
- decode_json: decode JSON and enforce required fields
"""

from hubspot_client.validation.required import decode_json, missing_required_fields

__all__ = [
    "decode_json",
    "missing_required_fields",
]
