"""Grammar, parser and directive classifier for embedscript."""

from .model import DirectiveKind, Position, Span, Text, Branch, Directive, Node
from .expectations import Expectation, build_message
from .parser import Parser, parse, default_identity
from .classifier import classify, validate, is_list

__all__ = [
    'DirectiveKind', 'Position', 'Span', 'Text', 'Branch', 'Directive', 'Node',
    'Expectation', 'build_message',
    'Parser', 'parse', 'default_identity',
    'classify', 'validate', 'is_list',
]
