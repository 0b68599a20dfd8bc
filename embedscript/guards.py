"""Guard evaluation for conditional text.

Guards are opaque to the grammar: the parser captures the text before the
colon and hands it, with the caller's variable context, to an evaluator.
Any object with an ``evaluate(guard, context) -> bool`` method (or a plain
callable with the same signature) can be plugged in.

SimpleGuardEvaluator is the default. It is intentionally small and supports:
- variables: ``visits``, ``player.name`` (mapping keys or attributes)
- literals: ``3``, ``2.5``, ``"text"``, ``'text'``, ``true``, ``false``, ``null``
- comparisons: ``== != > >= < <=``
- logic: ``!``/``not``, ``&&``/``and``, ``||``/``or``, parentheses
"""

import operator
import re
from typing import Any, Callable, List, Mapping, Optional, Protocol, Tuple


class GuardEvaluator(Protocol):
    def evaluate(self, guard: str, context: Any) -> bool:
        ...


def evaluate_with(evaluator, guard: str, context: Any) -> bool:
    """Run a guard through an evaluator object or a plain callable."""
    if hasattr(evaluator, "evaluate"):
        return bool(evaluator.evaluate(guard, context))
    return bool(evaluator(guard, context))


_TOKEN_RE = re.compile(r"""
    \s*(?:
        (?P<number>\d+\.\d+|\d+)
       |(?P<string>"[^"]*"|'[^']*')
       |(?P<op>==|!=|>=|<=|&&|\|\||[<>!()\-])
       |(?P<name>[A-Za-z_][A-Za-z0-9_.]*)
    )""", re.VERBOSE)

_COMPARISONS = {
    "==": operator.eq,
    "!=": operator.ne,
    ">": operator.gt,
    ">=": operator.ge,
    "<": operator.lt,
    "<=": operator.le,
}

_CONSTANTS = {"true": True, "false": False, "null": None, "none": None}

Compiled = Callable[[Any], Any]


def lookup(context: Any, path: str) -> Any:
    """Resolve a dotted variable path against mappings or object attributes.

    Raises:
        KeyError: If any segment of the path is missing
    """
    value = context if context is not None else {}
    for part in path.split("."):
        if isinstance(value, Mapping):
            if part not in value:
                raise KeyError(path)
            value = value[part]
        elif hasattr(value, part):
            value = getattr(value, part)
        else:
            raise KeyError(path)
    return value


def _tokenize(source: str) -> List[Tuple[str, str]]:
    tokens = []
    pos = 0
    source = source.rstrip()
    while pos < len(source):
        m = _TOKEN_RE.match(source, pos)
        if not m or m.end() == pos:
            raise ValueError(f"Unexpected character {source[pos]!r} in guard '{source}'")
        kind = m.lastgroup
        tokens.append((kind, m.group(kind)))
        pos = m.end()
    return tokens


class _GuardCompiler:
    """Turns a token list into a closure over the variable context."""

    def __init__(self, source: str):
        self.source = source
        self.tokens = _tokenize(source)
        self.index = 0

    def compile(self) -> Compiled:
        if not self.tokens:
            raise ValueError("Empty guard expression")
        expr = self._or()
        if self.index < len(self.tokens):
            raise ValueError(f"Unexpected '{self.tokens[self.index][1]}' in guard '{self.source}'")
        return expr

    def _peek(self) -> Optional[str]:
        if self.index < len(self.tokens):
            return self.tokens[self.index][1]
        return None

    def _take(self) -> Tuple[str, str]:
        if self.index >= len(self.tokens):
            raise ValueError(f"Unexpected end of guard '{self.source}'")
        token = self.tokens[self.index]
        self.index += 1
        return token

    def _or(self) -> Compiled:
        left = self._and()
        while self._peek() in ("||", "or"):
            self.index += 1
            right = self._and()
            left = (lambda l, r: lambda ctx: l(ctx) or r(ctx))(left, right)
        return left

    def _and(self) -> Compiled:
        left = self._not()
        while self._peek() in ("&&", "and"):
            self.index += 1
            right = self._not()
            left = (lambda l, r: lambda ctx: l(ctx) and r(ctx))(left, right)
        return left

    def _not(self) -> Compiled:
        if self._peek() in ("!", "not"):
            self.index += 1
            inner = self._not()
            return lambda ctx: not inner(ctx)
        return self._comparison()

    def _comparison(self) -> Compiled:
        left = self._value()
        op = self._peek()
        if op in _COMPARISONS:
            self.index += 1
            right = self._value()
            fn = _COMPARISONS[op]
            return lambda ctx: fn(left(ctx), right(ctx))
        return left

    def _value(self) -> Compiled:
        kind, text = self._take()
        if kind == "number":
            number = float(text) if "." in text else int(text)
            return lambda ctx: number
        if kind == "string":
            string = text[1:-1]
            return lambda ctx: string
        if kind == "name":
            if text.lower() in _CONSTANTS:
                constant = _CONSTANTS[text.lower()]
                return lambda ctx: constant
            return lambda ctx: lookup(ctx, text)
        if text == "(":
            inner = self._or()
            if self._take()[1] != ")":
                raise ValueError(f"Missing ')' in guard '{self.source}'")
            return inner
        if text == "-":
            inner = self._value()
            return lambda ctx: -inner(ctx)
        raise ValueError(f"Unexpected '{text}' in guard '{self.source}'")


def compile_guard(source: str) -> Compiled:
    """Compile guard source text into a callable taking the variable context.

    Raises:
        ValueError: If the guard is malformed
    """
    return _GuardCompiler(source.strip()).compile()


class SimpleGuardEvaluator:
    """Default evaluator for guard expressions."""

    def evaluate(self, guard: str, context: Any) -> bool:
        """Evaluate a guard against a variable context.

        Args:
            guard: Guard source text as captured by the parser
            context: Mapping (or object) holding the variables

        Returns:
            Truthiness of the expression

        Raises:
            ValueError: Malformed guard
            KeyError: Unknown variable
        """
        return bool(compile_guard(guard)(context))
