"""Recursive-descent parser for embedded directives.

Grammar (informal):

    Source           = (Text | Embed)*
    Embed            = InlineEmbed | MultiLineEmbed
    InlineEmbed      = '{' (Condition | Type)? Arguments '}'
    Arguments        = Argument ('|' Argument)*
    Argument         = (InlineText | Embed)*
    MultiLineEmbed   = '{' Type? Newline Whitespace ('-' Whitespace MultilineArgument Whitespace)+ '}'
    MultilineArgument = Condition? (MultilineText | Embed)*
    Type             = 'stopping:' | '~' | 'shuffle:' | '&' | 'cycle:' | '!' | 'once:'
    Condition        = [^\\n|:{}]+ ':' Whitespace

Text excludes braces; InlineText also excludes pipes and line breaks;
MultilineText excludes braces and dashes.

On failure the error reports the furthest position any alternative reached
together with every expectation recorded at that position.
"""
from __future__ import annotations

import logging
import re
from bisect import bisect_right
from dataclasses import replace
from typing import Callable, Dict, List, Optional, Pattern, Tuple

from ..config import clamp_max_depth, get_max_depth
from ..errors import ScriptSyntaxError
from .classifier import KEYWORD_MARKERS, classify
from .expectations import Expectation, build_message, char_class, end_of_input, literal, other
from .model import Branch, Directive, DirectiveKind, Node, Position, Span, Text

NamingFunction = Callable[[str, Span], str]

_FAILED = object()

_TEXT = (re.compile(r"[^{}]+"), char_class("{}", inverted=True))
_INLINE_TEXT = (re.compile(r"[^{}|\r\n]+"), char_class("{}|\r\n", inverted=True))
_MULTILINE_TEXT = (re.compile(r"[^{}\-]+"), char_class("{}-", inverted=True))
_EXPRESSION = (re.compile(r"[^\n|:{}]+"), char_class("\n|:{}", inverted=True))
_WHITESPACE = (re.compile(r"[ \t\n\r]*"), char_class(" \t\n\r"))

# Tried in this order
_TYPE_MARKERS = (
    ("stopping:", DirectiveKind.STOPPING),
    ("~", DirectiveKind.SHUFFLE),
    ("shuffle:", DirectiveKind.SHUFFLE),
    ("&", DirectiveKind.CYCLE),
    ("cycle:", DirectiveKind.CYCLE),
    ("!", DirectiveKind.ONCE_ONLY),
    ("once:", DirectiveKind.ONCE_ONLY),
)


def default_identity(document_id: str, span: Span) -> str:
    """Name a directive by its document and the offset where it starts.

    The offset counts characters, not UTF-8 bytes, so text containing
    non-ASCII characters before a directive gets a smaller number than a
    byte-based naming would give.
    """
    return f"{document_id}@{span.start.offset}"


class Parser:
    """Single-use parser over one source string."""

    def __init__(
        self,
        source: str,
        document_id: str = "",
        naming: Optional[NamingFunction] = None,
        max_depth: Optional[int] = None,
    ):
        self.source = source
        self.document_id = document_id
        self.naming = naming or default_identity
        self.max_depth = clamp_max_depth(max_depth) if max_depth is not None else get_max_depth()
        self.pos = 0
        self.depth = 0
        self._max_fail_pos = 0
        self._max_fail_expected: List[Expectation] = []
        self._line_starts = [0] + [m.end() for m in re.finditer("\n", source)]
        # embed start offset -> (result, end offset); lives only as long as this parser
        self._embed_memo: Dict[int, Tuple[object, int]] = {}

    def parse(self) -> List[Node]:
        """Parse the whole source.

        Raises:
            ScriptSyntaxError: If the source isn't fully consumed, or nests
                deeper than the interpreter stack allows
        """
        start = self.pos
        try:
            nodes = self._parse_fragments(_TEXT)
        except RecursionError:
            raise ScriptSyntaxError(
                "Directive nesting exceeds the interpreter stack",
                self._span(start, start),
                (other("shallower directive nesting"),),
                self.source[start] if start < len(self.source) else None,
            ) from None
        if self.pos == len(self.source):
            return nodes
        self._fail(end_of_input())
        error = self._error()
        logging.debug(f"Parse of document '{self.document_id}' failed: {error}")
        raise error

    # ---------------- positions & failures ----------------

    def _position(self, offset: int) -> Position:
        line = bisect_right(self._line_starts, offset)
        return Position(offset, line, offset - self._line_starts[line - 1] + 1)

    def _span(self, start: int, end: int) -> Span:
        return Span(self._position(start), self._position(end))

    def _fail(self, expectation: Expectation) -> None:
        if self.pos < self._max_fail_pos:
            return
        if self.pos > self._max_fail_pos:
            self._max_fail_pos = self.pos
            self._max_fail_expected = []
        self._max_fail_expected.append(expectation)

    def _error(self) -> ScriptSyntaxError:
        pos = self._max_fail_pos
        found = self.source[pos] if pos < len(self.source) else None
        end = pos + 1 if found is not None else pos
        expected = tuple(dict.fromkeys(self._max_fail_expected))
        return ScriptSyntaxError(build_message(expected, found), self._span(pos, end), expected, found)

    # ---------------- terminals ----------------

    def _literal(self, text: str):
        if self.source.startswith(text, self.pos):
            self.pos += len(text)
            return text
        self._fail(literal(text))
        return _FAILED

    def _match(self, rule: Tuple[Pattern[str], Expectation]):
        pattern, expectation = rule
        start = self.pos
        m = pattern.match(self.source, start)
        if m is not None:
            self.pos = m.end()
        # the character that ended the run was rejected by the class
        self._fail(expectation)
        if m is None:
            return _FAILED
        return self.source[start:self.pos]

    def _parse_newline(self):
        start = self.pos
        self._literal("\r")
        if self._literal("\n") is _FAILED:
            self.pos = start
            return _FAILED
        return "\n"

    # ---------------- fragments ----------------

    def _parse_fragments(self, text_rule) -> List[Node]:
        nodes: List[Node] = []
        while True:
            start = self.pos
            value = self._match(text_rule)
            if value is not _FAILED:
                nodes.append(Text(value, self._span(start, self.pos)))
                continue
            node = self._parse_embed()
            if node is _FAILED:
                return nodes
            nodes.append(node)

    def _parse_embed(self):
        start = self.pos
        if start in self._embed_memo:
            node, self.pos = self._embed_memo[start]
            return node
        if self.source.startswith("{", start) and self.depth >= self.max_depth:
            description = f"directive nesting of at most {self.max_depth} levels"
            raise ScriptSyntaxError(
                f"Directive nesting exceeds the maximum depth of {self.max_depth}",
                self._span(start, start + 1),
                (other(description),),
                "{",
            )
        self.depth += 1
        try:
            node = self._parse_inline_embed()
            if node is _FAILED:
                node = self._parse_multiline_embed()
        finally:
            self.depth -= 1
        self._embed_memo[start] = (node, self.pos)
        return node

    # ---------------- inline form ----------------

    def _parse_inline_embed(self):
        start = self.pos
        if self._literal("{") is _FAILED:
            return _FAILED
        marker, guard = None, None
        expr = self._parse_condition()
        if expr is not _FAILED:
            if expr in KEYWORD_MARKERS:
                marker = KEYWORD_MARKERS[expr]
            else:
                guard = expr
        else:
            found = self._parse_type()
            if found is not _FAILED:
                marker = found
        branches = self._parse_arguments()
        if self._literal("}") is _FAILED:
            self.pos = start
            return _FAILED
        return self._directive(start, marker, guard, branches, multiline=False)

    def _parse_condition(self):
        start = self.pos
        expr = self._match(_EXPRESSION)
        if expr is _FAILED:
            return _FAILED
        if self._literal(":") is _FAILED:
            self.pos = start
            return _FAILED
        self._match(_WHITESPACE)
        return expr

    def _parse_type(self):
        for text, kind in _TYPE_MARKERS:
            if self._literal(text) is not _FAILED:
                return kind
        return _FAILED

    def _parse_arguments(self) -> List[Branch]:
        branches = [self._parse_argument()]
        while self._literal("|") is not _FAILED:
            branches.append(self._parse_argument())
        return branches

    def _parse_argument(self) -> Branch:
        start = self.pos
        nodes = self._parse_fragments(_INLINE_TEXT)
        return Branch(tuple(nodes), self._span(start, self.pos))

    # ---------------- multi-line form ----------------

    def _parse_multiline_embed(self):
        start = self.pos
        if self._literal("{") is _FAILED:
            return _FAILED
        marker = self._parse_type()
        if marker is _FAILED:
            marker = None
        if self._parse_newline() is _FAILED:
            self.pos = start
            return _FAILED
        branches = self._parse_multiline_arguments()
        if branches is _FAILED or self._literal("}") is _FAILED:
            self.pos = start
            return _FAILED
        return self._directive(start, marker, None, branches, multiline=True)

    def _parse_multiline_arguments(self):
        start = self.pos
        self._match(_WHITESPACE)
        branches: List[Branch] = []
        while self._literal("-") is not _FAILED:
            self._match(_WHITESPACE)
            branches.append(self._parse_multiline_argument())
            self._match(_WHITESPACE)
        if not branches:
            self.pos = start
            return _FAILED
        return branches

    def _parse_multiline_argument(self) -> Branch:
        start = self.pos
        guard = self._parse_condition()
        if guard is _FAILED:
            guard = None
        nodes = self._parse_fragments(_MULTILINE_TEXT)
        return Branch(self._trim(nodes), self._span(start, self.pos), guard)

    def _trim(self, nodes: List[Node]) -> Tuple[Node, ...]:
        """Strip whitespace around a multi-line branch's content."""
        if nodes and isinstance(nodes[0], Text):
            first = nodes[0]
            value = first.value.lstrip()
            offset = first.span.start.offset + len(first.value) - len(value)
            nodes[0] = replace(first, value=value, span=self._span(offset, first.span.end.offset))
        if nodes and isinstance(nodes[-1], Text):
            last = nodes[-1]
            value = last.value.rstrip()
            offset = last.span.start.offset + len(value)
            nodes[-1] = replace(last, value=value, span=self._span(last.span.start.offset, offset))
        return tuple(n for n in nodes if not (isinstance(n, Text) and not n.value))

    def _directive(
        self,
        start: int,
        marker: Optional[DirectiveKind],
        guard: Optional[str],
        branches: List[Branch],
        multiline: bool,
    ) -> Directive:
        span = self._span(start, self.pos)
        return Directive(
            kind=classify(marker, guard),
            branches=tuple(branches),
            span=span,
            identity=self.naming(self.document_id, span),
            guard=guard,
            multiline=multiline,
        )


def parse(
    source: str,
    document_id: str = "",
    naming: Optional[NamingFunction] = None,
    max_depth: Optional[int] = None,
) -> List[Node]:
    """Parse authored text into a sequence of Text and Directive nodes.

    Args:
        source: Raw text to parse
        document_id: Identity of the enclosing document, mixed into every
            directive identity
        naming: Function (document_id, span) -> identity; defaults to
            default_identity
        max_depth: Maximum directive nesting; defaults to config.get_max_depth()

    Returns:
        Top-level nodes in document order

    Raises:
        ScriptSyntaxError: On malformed text or excessive nesting
    """
    return Parser(source, document_id, naming, max_depth).parse()
