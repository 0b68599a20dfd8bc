"""Persisted sequence state validation.

Validates both JSON schema compliance and the consistency rules the schema
can't express.
"""
import jsonschema

from .schema import SAVE_FILE_SCHEMA, STORE_SCHEMA


def validate_schema(payload: dict):
    """Validate a store payload (identity -> state) against STORE_SCHEMA."""
    jsonschema.validate(payload, STORE_SCHEMA)
    return True


def validate_save_file(payload: dict):
    """Validate a complete save file against SAVE_FILE_SCHEMA."""
    jsonschema.validate(payload, SAVE_FILE_SCHEMA)
    return True


def validate_semantics(payload):
    """Check cross-field rules of a schema-valid store payload.

    Args:
        payload: Mapping of identity -> {counter, order?, cursor?}

    Returns:
        tuple: (is_valid: bool, error_reason: str or None)
    """
    for identity, data in payload.items():
        order = data.get("order")
        if order is None:
            continue
        if len(set(order)) != len(order):
            return False, f"order_has_duplicates:{identity}"
        cursor = data.get("cursor", 0)
        if cursor > len(order):
            return False, f"cursor_out_of_range:{identity}"
    return True, None
