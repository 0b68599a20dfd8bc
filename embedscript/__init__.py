"""embedscript: resolves narrative text with embedded conditional and sequence directives."""

from .errors import EmbedScriptError, ScriptSyntaxError, DefinitionError, EvaluationError
from .script import DirectiveKind, Text, Branch, Directive, parse, default_identity
from .sequence import SequenceState, SequenceStateStore, SequenceStatus, sequence_status
from .guards import GuardEvaluator, SimpleGuardEvaluator
from .compositor import Compositor
from .session import NarrativeSession, resolve_text

__all__ = [
    'EmbedScriptError', 'ScriptSyntaxError', 'DefinitionError', 'EvaluationError',
    'DirectiveKind', 'Text', 'Branch', 'Directive', 'parse', 'default_identity',
    'SequenceState', 'SequenceStateStore', 'SequenceStatus', 'sequence_status',
    'GuardEvaluator', 'SimpleGuardEvaluator',
    'Compositor',
    'NarrativeSession', 'resolve_text',
]
