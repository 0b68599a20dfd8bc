"""Narrative session: the configuration bundle for parsing and resolving text.

A session owns the sequence state of every directive evaluated through it,
so repeated visits to the same line advance its lists across a play session.
"""
from __future__ import annotations

import random
import threading
from typing import Any, Callable, Dict, List, Mapping, Optional

from .compositor import Compositor
from .config import get_max_depth, get_shuffle_avoid_repeat
from .guards import SimpleGuardEvaluator
from .script.model import Node
from .script.parser import NamingFunction, default_identity, parse
from .sequence.state import SequenceStateStore

TextTransform = Callable[[str], str]


class NarrativeSession:
    """Parses and resolves authored text against shared sequence state.

    The engine does no locking. Hosts resolving text from several threads
    can hold ``session.lock`` around their calls.
    """

    def __init__(
        self,
        store: Optional[SequenceStateStore] = None,
        evaluator=None,
        rng=None,
        naming: Optional[NamingFunction] = None,
        max_depth: Optional[int] = None,
        avoid_shuffle_repeat: Optional[bool] = None,
        pre_transform: Optional[TextTransform] = None,
        post_transform: Optional[TextTransform] = None,
    ):
        """Create a session.

        Args:
            store: Sequence state store (a fresh one if omitted)
            evaluator: Guard evaluator object or callable (SimpleGuardEvaluator if omitted)
            rng: Random source for shuffles (a new random.Random if omitted)
            naming: Identity naming function (document_id, span) -> str
            max_depth: Directive nesting limit (config default if omitted)
            avoid_shuffle_repeat: Keep reshuffles from repeating the last entry
            pre_transform: Applied to raw text before parsing (e.g. localization)
            post_transform: Applied to the resolved string
        """
        self.store = store if store is not None else SequenceStateStore()
        self.evaluator = evaluator if evaluator is not None else SimpleGuardEvaluator()
        self.rng = rng if rng is not None else random.Random()
        self.naming = naming or default_identity
        self.max_depth = max_depth if max_depth is not None else get_max_depth()
        self.avoid_shuffle_repeat = (
            avoid_shuffle_repeat if avoid_shuffle_repeat is not None else get_shuffle_avoid_repeat()
        )
        self.pre_transform = pre_transform
        self.post_transform = post_transform
        self.lock = threading.RLock()

    def parse(self, text: str, document_id: str = "") -> List[Node]:
        """Parse text with this session's naming and nesting settings."""
        if self.pre_transform is not None:
            text = self.pre_transform(text)
        return parse(text, document_id, self.naming, self.max_depth)

    def resolve_nodes(self, nodes: List[Node], context: Any = None) -> str:
        compositor = Compositor(self.store, self.evaluator, self.rng, self.avoid_shuffle_repeat)
        return compositor.resolve(nodes, context)

    def resolve(self, text: str, context: Any = None, document_id: str = "") -> str:
        """Parse and resolve text in one step.

        Args:
            text: Authored text with embedded directives
            context: Variables for guard evaluation
            document_id: Identity of the text's location (e.g. a dialogue line id)

        Returns:
            Final display string

        Raises:
            ScriptSyntaxError: Malformed text; nothing is resolved
            DefinitionError: Invalid directive layout
            EvaluationError: Guard evaluation failed
        """
        result = self.resolve_nodes(self.parse(text, document_id), context)
        if self.post_transform is not None:
            result = self.post_transform(result)
        return result

    def export_state(self) -> Dict[str, Dict[str, Any]]:
        """Sequence state as identity -> {counter, order?, cursor?}."""
        return self.store.to_dict()

    def restore_state(self, payload: Mapping[str, Any]) -> None:
        """Replace sequence state with a previously exported mapping."""
        self.store.load_dict(payload)


def resolve_text(
    text: str,
    context: Any = None,
    session: Optional[NarrativeSession] = None,
    document_id: str = "",
) -> str:
    """Resolve text through a session (a throwaway one if none is given)."""
    if session is None:
        session = NarrativeSession()
    return session.resolve(text, context, document_id)
