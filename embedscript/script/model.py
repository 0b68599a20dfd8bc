"""Parsed tree data models for embedscript.

This module defines the node types produced by the parser: plain Text
fragments and Directive nodes whose branches hold nested node sequences.
"""
from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Optional, Tuple, Union


class DirectiveKind(Enum):
    """How a directive chooses its output branch."""
    CONDITIONAL = "conditional"
    STOPPING = "stopping"
    CYCLE = "cycle"
    SHUFFLE = "shuffle"
    ONCE_ONLY = "once"


@dataclass(frozen=True)
class Position:
    """A point in the source text (offset is 0-based, line/column 1-based)."""
    offset: int
    line: int
    column: int


@dataclass(frozen=True)
class Span:
    start: Position
    end: Position


@dataclass(frozen=True)
class Text:
    """A run of literal text."""
    value: str
    span: Span


@dataclass(frozen=True)
class Branch:
    """One candidate fragment of a directive."""
    content: Tuple["Node", ...]
    span: Span
    guard: Optional[str] = None  # per-entry guard (multi-line lists only)


@dataclass(frozen=True)
class Directive:
    """An authored {...} annotation.

    Examples:
        {x > 0: positive|non-positive}
        {~rain|wind|silence}
    """
    kind: DirectiveKind
    branches: Tuple[Branch, ...]
    span: Span
    identity: str
    guard: Optional[str] = None  # directive-level condition (conditionals)
    multiline: bool = False


Node = Union[Text, Directive]
