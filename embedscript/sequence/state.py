"""Per-directive selection state and the session-wide store holding it.

Entries are created lazily on the first evaluation of a directive identity,
mutated in place afterwards and never removed automatically.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Iterator, List, Mapping, Optional

from .validator import validate_schema, validate_semantics


@dataclass
class SequenceState:
    """Selection state of one list directive."""
    counter: int = 0
    order: Optional[List[int]] = None  # shuffle only: permutation of branch indices
    cursor: Optional[int] = None  # shuffle only: next position in order

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {"counter": self.counter}
        if self.order is not None:
            data["order"] = list(self.order)
            data["cursor"] = self.cursor if self.cursor is not None else 0
        return data

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "SequenceState":
        order = data.get("order")
        return cls(
            counter=data.get("counter", 0),
            order=list(order) if order is not None else None,
            cursor=data.get("cursor", 0 if order is not None else None),
        )


class SequenceStateStore:
    """Mapping from directive identity to its SequenceState.

    One store belongs to one narrative session. The store does no locking:
    hosts evaluating from several threads must serialize access.
    """

    def __init__(self):
        self._states: Dict[str, SequenceState] = {}

    def get(self, identity: str) -> Optional[SequenceState]:
        return self._states.get(identity)

    def get_or_create(self, identity: str) -> SequenceState:
        state = self._states.get(identity)
        if state is None:
            state = SequenceState()
            self._states[identity] = state
        return state

    def reset(self, identity: str) -> bool:
        """Forget the state of one directive.

        Returns:
            True if an entry existed
        """
        return self._states.pop(identity, None) is not None

    def clear(self) -> None:
        self._states.clear()

    def __contains__(self, identity: object) -> bool:
        return identity in self._states

    def __len__(self) -> int:
        return len(self._states)

    def __iter__(self) -> Iterator[str]:
        return iter(self._states)

    def to_dict(self) -> Dict[str, Dict[str, Any]]:
        """Serialize as identity -> {counter, order?, cursor?}."""
        return {identity: state.to_dict() for identity, state in self._states.items()}

    def load_dict(self, payload: Mapping[str, Any]) -> None:
        """Replace the store contents with a previously serialized mapping.

        Raises:
            jsonschema.ValidationError: If the payload doesn't match the layout
            ValueError: If the payload is structurally valid but inconsistent
        """
        validate_schema(payload)
        ok, err = validate_semantics(payload)
        if not ok:
            raise ValueError(f"Inconsistent sequence state payload: {err}")
        self._states = {identity: SequenceState.from_dict(data) for identity, data in payload.items()}

    @classmethod
    def from_dict(cls, payload: Mapping[str, Any]) -> "SequenceStateStore":
        store = cls()
        store.load_dict(payload)
        return store
