"""JSON schema definitions for persisted sequence state.

Defines the layout a session's store serializes to, suitable for inclusion
in a save file alongside narrative progress.
"""

SEQUENCE_STATE_SCHEMA = {
    "type": "object",
    "required": ["counter"],
    "properties": {
        "counter": {"type": "integer", "minimum": 0},
        "order": {"type": "array", "items": {"type": "integer", "minimum": 0}},
        "cursor": {"type": "integer", "minimum": 0}
    },
    "dependentRequired": {"cursor": ["order"]},
    "additionalProperties": False
}

STORE_SCHEMA = {
    "$schema": "https://json-schema.org/draft/2020-12/schema",
    "type": "object",
    "additionalProperties": SEQUENCE_STATE_SCHEMA
}

SAVE_FILE_SCHEMA = {
    "$schema": "https://json-schema.org/draft/2020-12/schema",
    "type": "object",
    "required": ["version", "sequences"],
    "properties": {
        "version": {"type": "integer", "minimum": 1},
        "slot": {"type": "string", "minLength": 1},
        "saved_at": {"type": "string"},
        "sequences": STORE_SCHEMA,
        "rng_state": {"type": ["array", "null"]}
    },
    "additionalProperties": False
}
