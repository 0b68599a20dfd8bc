"""Resolution of parsed trees into display strings."""
from __future__ import annotations

from typing import Any, Iterable

from .script.classifier import validate
from .script.model import Directive, Node, Text
from .sequence.selection import select_branch
from .sequence.state import SequenceStateStore


class Compositor:
    """Walks a parsed tree, resolving every directive it meets."""

    def __init__(self, store: SequenceStateStore, evaluator, rng, avoid_shuffle_repeat: bool = True):
        self.store = store
        self.evaluator = evaluator
        self.rng = rng
        self.avoid_shuffle_repeat = avoid_shuffle_repeat

    def resolve(self, nodes: Iterable[Node], context: Any = None) -> str:
        """Concatenate the resolved text of every node, in document order.

        Raises:
            DefinitionError: A directive has an invalid branch layout
            EvaluationError: A guard could not be evaluated
        """
        return "".join(self.resolve_node(node, context) for node in nodes)

    def resolve_node(self, node: Node, context: Any = None) -> str:
        if isinstance(node, Text):
            return node.value
        return self.resolve_directive(node, context)

    def resolve_directive(self, directive: Directive, context: Any = None) -> str:
        validate(directive)
        index = select_branch(
            directive,
            self.store,
            self.evaluator,
            context,
            self.rng,
            self.avoid_shuffle_repeat,
        )
        if index is None:
            return ""
        return self.resolve(directive.branches[index].content, context)
