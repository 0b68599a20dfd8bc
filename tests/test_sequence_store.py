"""Tests for the sequence state store and its persisted layout."""

import jsonschema
import pytest

from embedscript.sequence.state import SequenceState, SequenceStateStore
from embedscript.sequence.validator import validate_save_file, validate_schema, validate_semantics


@pytest.fixture
def sample_payload():
    """Valid store payload with one plain and one shuffle entry."""
    return {
        "intro@0": {"counter": 2},
        "tavern@14": {"counter": 4, "order": [2, 0, 1], "cursor": 1},
    }


class TestSchemaValidation:
    """Test JSON schema validation."""

    def test_valid_schema(self, sample_payload):
        """Test that valid payload passes schema validation."""
        assert validate_schema(sample_payload) is True

    def test_empty_store(self):
        assert validate_schema({}) is True

    def test_missing_counter(self):
        with pytest.raises(jsonschema.ValidationError):
            validate_schema({"a@0": {"order": [0]}})

    def test_negative_counter(self):
        with pytest.raises(jsonschema.ValidationError):
            validate_schema({"a@0": {"counter": -1}})

    def test_cursor_requires_order(self):
        with pytest.raises(jsonschema.ValidationError):
            validate_schema({"a@0": {"counter": 0, "cursor": 0}})

    def test_unknown_field(self):
        with pytest.raises(jsonschema.ValidationError):
            validate_schema({"a@0": {"counter": 0, "seen": []}})

    def test_save_file_requires_version(self, sample_payload):
        with pytest.raises(jsonschema.ValidationError):
            validate_save_file({"sequences": sample_payload})

    def test_valid_save_file(self, sample_payload):
        assert validate_save_file({"version": 1, "slot": "auto", "sequences": sample_payload, "rng_state": None})


class TestSemanticValidation:
    """Test consistency rules the schema can't express."""

    def test_valid(self, sample_payload):
        assert validate_semantics(sample_payload) == (True, None)

    def test_duplicate_order_entries(self):
        ok, err = validate_semantics({"s@0": {"counter": 1, "order": [0, 0], "cursor": 1}})
        assert not ok
        assert err == "order_has_duplicates:s@0"

    def test_cursor_past_order(self):
        ok, err = validate_semantics({"s@0": {"counter": 1, "order": [0, 1], "cursor": 3}})
        assert not ok
        assert err == "cursor_out_of_range:s@0"

    def test_cursor_at_end_is_valid(self):
        assert validate_semantics({"s@0": {"counter": 2, "order": [1, 0], "cursor": 2}})[0]


class TestStore:
    """Test store access and serialization."""

    def test_get_or_create_is_lazy(self):
        store = SequenceStateStore()
        assert store.get("a") is None
        state = store.get_or_create("a")
        assert state == SequenceState()
        assert store.get_or_create("a") is state
        assert "a" in store
        assert len(store) == 1

    def test_reset_and_clear(self):
        store = SequenceStateStore()
        store.get_or_create("a")
        store.get_or_create("b")
        assert store.reset("a") is True
        assert store.reset("a") is False
        assert list(store) == ["b"]
        store.clear()
        assert len(store) == 0

    def test_state_to_dict_omits_shuffle_fields(self):
        assert SequenceState(counter=3).to_dict() == {"counter": 3}
        assert SequenceState(1, [1, 0], 1).to_dict() == {"counter": 1, "order": [1, 0], "cursor": 1}

    def test_round_trip(self, sample_payload):
        store = SequenceStateStore.from_dict(sample_payload)
        assert store.get("tavern@14").order == [2, 0, 1]
        assert store.get("intro@0").cursor is None
        assert store.to_dict() == sample_payload

    def test_load_rejects_inconsistent_payload(self):
        store = SequenceStateStore()
        store.get_or_create("keep")
        with pytest.raises(ValueError):
            store.load_dict({"s@0": {"counter": 1, "order": [0, 0], "cursor": 0}})
        assert "keep" in store

    def test_load_rejects_bad_layout(self):
        with pytest.raises(jsonschema.ValidationError):
            SequenceStateStore.from_dict({"s@0": {"counter": "two"}})
