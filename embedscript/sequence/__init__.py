"""Sequence state store and selection engine for embedscript."""

from .state import SequenceState, SequenceStateStore
from .selection import (
    SequenceStatus, select_branch, select_conditional, select_stopping, select_cycle,
    select_once_only, select_shuffle, eligible_indices, evaluate_guard, sequence_status,
)
from .validator import validate_schema, validate_semantics, validate_save_file
from .persistence import SaveError, save_session, load_session, list_saves, delete_save

__all__ = [
    'SequenceState', 'SequenceStateStore',
    'SequenceStatus', 'select_branch', 'select_conditional', 'select_stopping', 'select_cycle',
    'select_once_only', 'select_shuffle', 'eligible_indices', 'evaluate_guard', 'sequence_status',
    'validate_schema', 'validate_semantics', 'validate_save_file',
    'SaveError', 'save_session', 'load_session', 'list_saves', 'delete_save',
]
