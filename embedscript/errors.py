"""Exceptions raised while parsing and resolving embedded directives."""
from __future__ import annotations

from typing import TYPE_CHECKING, List, Optional, Tuple

if TYPE_CHECKING:
    from .script.expectations import Expectation
    from .script.model import Position, Span


class EmbedScriptError(Exception):
    """Base exception for the embedscript engine."""


class ScriptSyntaxError(EmbedScriptError):
    """Raised when authored text can't be parsed.

    Positioned at the furthest point the parser reached, with the
    expectations still viable there.
    """

    def __init__(
        self,
        message: str,
        span: "Span",
        expected: Tuple["Expectation", ...] = (),
        found: Optional[str] = None,
    ):
        super().__init__(message)
        self.message = message
        self.span = span
        self.expected = expected
        self.found = found

    @property
    def position(self) -> "Position":
        return self.span.start

    @property
    def expected_tokens(self) -> List[str]:
        return sorted({e.describe() for e in self.expected})

    def __str__(self) -> str:
        pos = self.position
        return f"{self.message} (line {pos.line}, column {pos.column})"


class DefinitionError(EmbedScriptError):
    """Raised on first resolution of a directive with an invalid branch layout."""

    def __init__(self, message: str, identity: str, span: "Span"):
        super().__init__(message)
        self.message = message
        self.identity = identity
        self.span = span


class EvaluationError(EmbedScriptError):
    """Raised when the guard evaluator fails on a guard expression."""

    def __init__(self, guard: str, span: "Span", reason: str):
        super().__init__(f"Failed to evaluate guard '{guard}': {reason}")
        self.guard = guard
        self.span = span
        self.reason = reason
