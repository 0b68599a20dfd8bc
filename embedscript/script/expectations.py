"""Parse expectations and error message building.

The parser records what it expected at every failed match; only those at
the furthest position survive. This module describes them for humans.
"""
from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Iterable, Optional, Tuple

LITERAL = "literal"
CLASS = "class"
END = "end"
OTHER = "other"


def _hex_escape(match: "re.Match[str]") -> str:
    return f"\\x{ord(match.group(0)):02X}"


def _literal_escape(s: str) -> str:
    s = (s.replace("\\", "\\\\").replace('"', '\\"').replace("\0", "\\0")
         .replace("\t", "\\t").replace("\n", "\\n").replace("\r", "\\r"))
    return re.sub(r"[\x00-\x1F\x7F-\x9F]", _hex_escape, s)


def _class_escape(s: str) -> str:
    s = (s.replace("\\", "\\\\").replace("]", "\\]").replace("^", "\\^")
         .replace("-", "\\-").replace("\0", "\\0").replace("\t", "\\t")
         .replace("\n", "\\n").replace("\r", "\\r"))
    return re.sub(r"[\x00-\x1F\x7F-\x9F]", _hex_escape, s)


@dataclass(frozen=True)
class Expectation:
    """Something the parser would have accepted at a given position."""
    type: str
    text: str = ""
    inverted: bool = False

    def describe(self) -> str:
        if self.type == LITERAL:
            return f'"{_literal_escape(self.text)}"'
        if self.type == CLASS:
            return "[" + ("^" if self.inverted else "") + _class_escape(self.text) + "]"
        if self.type == END:
            return "end of input"
        return self.text


def literal(text: str) -> Expectation:
    return Expectation(LITERAL, text)


def char_class(chars: str, inverted: bool = False) -> Expectation:
    return Expectation(CLASS, chars, inverted)


def end_of_input() -> Expectation:
    return Expectation(END)


def other(description: str) -> Expectation:
    return Expectation(OTHER, description)


def describe_expected(expected: Iterable[Expectation]) -> str:
    """Join expectation descriptions as "a", "a or b", or "a, b, or c"."""
    descriptions = sorted({e.describe() for e in expected})
    if not descriptions:
        return "nothing"
    if len(descriptions) == 1:
        return descriptions[0]
    if len(descriptions) == 2:
        return f"{descriptions[0]} or {descriptions[1]}"
    return ", ".join(descriptions[:-1]) + ", or " + descriptions[-1]


def describe_found(found: Optional[str]) -> str:
    return f'"{_literal_escape(found)}"' if found else "end of input"


def build_message(expected: Tuple[Expectation, ...], found: Optional[str]) -> str:
    """Build the error text, e.g. 'Expected "|" or "}" but end of input found.'"""
    return f"Expected {describe_expected(expected)} but {describe_found(found)} found."
