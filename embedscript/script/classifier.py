"""Directive classification and branch-count validation.

Classification is purely syntactic and happens at parse time. Validation is
deferred to the first resolution of a directive so that the grammar never
rejects text for semantic reasons.
"""
from __future__ import annotations

from typing import Optional

from ..errors import DefinitionError
from .model import Directive, DirectiveKind

# Marker words that may appear where a condition is expected: {stopping: A|B}
KEYWORD_MARKERS = {
    "stopping": DirectiveKind.STOPPING,
    "shuffle": DirectiveKind.SHUFFLE,
    "cycle": DirectiveKind.CYCLE,
    "once": DirectiveKind.ONCE_ONLY,
}

LIST_KINDS = frozenset({
    DirectiveKind.STOPPING,
    DirectiveKind.CYCLE,
    DirectiveKind.SHUFFLE,
    DirectiveKind.ONCE_ONLY,
})


def classify(marker: Optional[DirectiveKind], guard: Optional[str]) -> DirectiveKind:
    """Determine a directive's kind from its type marker and condition.

    Args:
        marker: Sequence-type marker found after the opening brace, if any
        guard: Condition source text, if any

    Returns:
        CONDITIONAL when only a condition is present, the marker's kind when
        a marker is present, STOPPING when neither is
    """
    if marker is not None:
        return marker
    if guard is not None:
        return DirectiveKind.CONDITIONAL
    return DirectiveKind.STOPPING


def is_list(kind: DirectiveKind) -> bool:
    return kind in LIST_KINDS


def validate(directive: Directive) -> None:
    """Check the branch-count contract of a directive.

    Raises:
        DefinitionError: Conditional without 1 or 2 branches, or a list
            directive without branches
    """
    count = len(directive.branches)
    if directive.kind is DirectiveKind.CONDITIONAL:
        if count not in (1, 2):
            raise DefinitionError(
                f"Conditional directive '{directive.guard}' must have 1 or 2 branches, found {count}",
                directive.identity,
                directive.span,
            )
    elif count == 0:
        raise DefinitionError(
            f"{directive.kind.value} directive has no branches",
            directive.identity,
            directive.span,
        )
