"""Branch selection for conditional and list directives.

List directives keep per-identity state in a SequenceStateStore:
- STOPPING: walk the eligible branches, then keep repeating the last one
- CYCLE: walk the eligible branches and wrap around
- ONCE_ONLY: walk the eligible branches once, then produce nothing
- SHUFFLE: emit a persisted random permutation, reshuffling when exhausted

A round in which no branch is eligible produces nothing and leaves the state
untouched. Conditional directives hold no state.

States of a list directive: UNVISITED, ACTIVE, EXHAUSTED (ONCE_ONLY only).
"""

import logging
from enum import Enum
from typing import Any, List, Optional

from ..errors import EvaluationError
from ..guards import evaluate_with
from ..script.classifier import is_list
from ..script.model import Directive, DirectiveKind, Span
from .state import SequenceState, SequenceStateStore


class SequenceStatus(Enum):
    UNVISITED = "unvisited"
    ACTIVE = "active"
    EXHAUSTED = "exhausted"


def evaluate_guard(evaluator, guard: str, span: Span, context: Any) -> bool:
    """Evaluate a guard, surfacing evaluator failures as EvaluationError.

    Args:
        evaluator: GuardEvaluator or callable
        guard: Guard source text
        span: Source span of the guarded directive or branch
        context: Caller-supplied variable context

    Raises:
        EvaluationError: If the evaluator raises
    """
    try:
        return evaluate_with(evaluator, guard, context)
    except Exception as e:
        raise EvaluationError(guard, span, f"{type(e).__name__}: {e}") from e


def eligible_indices(directive: Directive, evaluator, context: Any) -> List[int]:
    """Indices of the branches whose guard (if any) holds this round."""
    eligible = []
    for index, branch in enumerate(directive.branches):
        if branch.guard is None or evaluate_guard(evaluator, branch.guard, branch.span, context):
            eligible.append(index)
    return eligible


def select_conditional(directive: Directive, evaluator, context: Any) -> Optional[int]:
    """Pick branch 0 when the guard holds, otherwise branch 1 if present."""
    if evaluate_guard(evaluator, directive.guard, directive.span, context):
        return 0
    if len(directive.branches) > 1:
        return 1
    return None


def select_stopping(state: SequenceState, eligible: List[int]) -> Optional[int]:
    if not eligible:
        return None
    index = eligible[min(state.counter, len(eligible) - 1)]
    state.counter += 1
    return index


def select_cycle(state: SequenceState, eligible: List[int]) -> Optional[int]:
    if not eligible:
        return None
    index = eligible[state.counter % len(eligible)]
    state.counter += 1
    return index


def select_once_only(state: SequenceState, eligible: List[int]) -> Optional[int]:
    if not eligible or state.counter >= len(eligible):
        return None
    index = eligible[state.counter]
    state.counter += 1
    return index


def _new_order(eligible: List[int], rng, last: Optional[int], avoid_repeat: bool) -> List[int]:
    order = list(eligible)
    rng.shuffle(order)
    if avoid_repeat and len(order) > 1 and order[0] == last:
        swap = rng.randrange(1, len(order))
        order[0], order[swap] = order[swap], order[0]
    return order


def select_shuffle(state: SequenceState, eligible: List[int], rng, avoid_repeat: bool = True) -> Optional[int]:
    """Emit the next entry of the persisted permutation.

    Entries that are not eligible this round are skipped over without being
    consumed: the next eligible entry is swapped into the cursor position.
    When nothing eligible remains past the cursor, a fresh permutation of the
    current eligible set is drawn from rng.
    """
    if not eligible:
        return None
    allowed = set(eligible)
    order = state.order or []
    cursor = state.cursor or 0
    found = next((i for i in range(cursor, len(order)) if order[i] in allowed), None)
    if found is None:
        last = order[cursor - 1] if 0 < cursor <= len(order) else None
        order = _new_order(eligible, rng, last, avoid_repeat)
        cursor = found = 0
        logging.debug(f"Reshuffled sequence order to {order}")
    elif found != cursor:
        order[cursor], order[found] = order[found], order[cursor]
    index = order[cursor]
    state.order = order
    state.cursor = cursor + 1
    state.counter += 1
    return index


def select_branch(
    directive: Directive,
    store: SequenceStateStore,
    evaluator,
    context: Any,
    rng,
    avoid_repeat: bool = True,
) -> Optional[int]:
    """Choose which branch of a directive to produce this round.

    Args:
        directive: A validated directive
        store: Session store holding list directive state
        evaluator: Guard evaluator
        context: Variable context for guards
        rng: Random source for shuffles (shuffle + randrange)
        avoid_repeat: Keep a reshuffle from starting with the last entry

    Returns:
        Branch index, or None when the directive produces nothing
    """
    kind = directive.kind
    if not is_list(kind):
        return select_conditional(directive, evaluator, context)

    eligible = eligible_indices(directive, evaluator, context)
    if not eligible:
        logging.debug(f"No eligible branch for {directive.identity}; state left unchanged")
        return None
    state = store.get_or_create(directive.identity)

    if kind is DirectiveKind.STOPPING:
        index = select_stopping(state, eligible)
    elif kind is DirectiveKind.CYCLE:
        index = select_cycle(state, eligible)
    elif kind is DirectiveKind.ONCE_ONLY:
        index = select_once_only(state, eligible)
    else:
        index = select_shuffle(state, eligible, rng, avoid_repeat)

    logging.debug(f"{kind.value} {directive.identity} -> branch {index} (counter={state.counter})")
    return index


def sequence_status(kind: DirectiveKind, state: Optional[SequenceState], branch_count: int) -> SequenceStatus:
    """Report where a list directive is in its lifecycle.

    Args:
        kind: Directive kind (must be a list kind)
        state: Stored state, or None if never evaluated
        branch_count: Total number of authored branches

    Raises:
        ValueError: If kind is not a list kind
    """
    if not is_list(kind):
        raise ValueError(f"{kind.value} directives keep no sequence state")
    if state is None or (state.counter == 0 and state.order is None):
        return SequenceStatus.UNVISITED
    if kind is DirectiveKind.ONCE_ONLY and state.counter >= branch_count:
        return SequenceStatus.EXHAUSTED
    return SequenceStatus.ACTIVE
