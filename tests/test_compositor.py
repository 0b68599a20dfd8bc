"""Tests for resolving parsed text through a narrative session."""

import random

import pytest

from embedscript import (
    Compositor, DefinitionError, EvaluationError, NarrativeSession, ScriptSyntaxError,
    SequenceStateStore, SimpleGuardEvaluator, resolve_text,
)
from embedscript.script.model import Branch, Directive, DirectiveKind, Position, Span, Text


@pytest.fixture
def session():
    return NarrativeSession(rng=random.Random(42))


class TestConditionals:
    """Guarded text with and without an else branch."""

    def test_true_and_false_branches(self, session):
        text = "{x > 0: positive|non-positive}"
        assert session.resolve(text, {"x": 5}) == "positive"
        assert session.resolve(text, {"x": -1}) == "non-positive"

    def test_single_branch_false_produces_nothing(self, session):
        assert session.resolve("You {met: again }see a stranger.", {"met": False}) == "You see a stranger."
        assert session.resolve("You {met: again }see a stranger.", {"met": True}) == "You again see a stranger."

    def test_conditional_holds_no_state(self, session):
        session.resolve("{x: a|b}", {"x": True}, "line")
        assert len(session.store) == 0

    def test_three_branch_conditional_is_definition_error(self, session):
        """Test that a conditional with too many branches fails on resolution, not parse."""
        nodes = session.parse("{x: a|b|c}")
        assert nodes[0].kind is DirectiveKind.CONDITIONAL
        with pytest.raises(DefinitionError):
            session.resolve_nodes(nodes, {"x": True})

    def test_attribute_context(self, session):
        class Player:
            name = "Ada"
            gold = 12

        assert session.resolve("{gold >= 10: Rich|Poor}", {"gold": 3}) == "Poor"
        assert session.resolve("{player.gold >= 10: Rich|Poor}", {"player": Player()}) == "Rich"


class TestNesting:
    """Nested directives keep independent state."""

    def test_nested_cycles(self, session):
        text = "Say {&hi {&A|B}|bye}."
        out = [session.resolve(text, document_id="n") for _ in range(4)]
        assert out == ["Say hi A.", "Say bye.", "Say hi B.", "Say bye."]

    def test_unselected_branch_is_not_evaluated(self, session):
        text = "{&plain|{missing: x|y}}"
        assert session.resolve(text, {}, "n") == "plain"
        with pytest.raises(EvaluationError):
            session.resolve(text, {}, "n")

    def test_multiline_with_nested_inline(self, session):
        text = "{&\n- Hello {&a|b} world\n- Bye\n}"
        out = [session.resolve(text, document_id="m") for _ in range(3)]
        assert out == ["Hello a world", "Bye", "Hello b world"]


class TestErrors:
    """Error surfacing during resolution."""

    def test_unknown_variable_is_evaluation_error(self, session):
        with pytest.raises(EvaluationError) as info:
            session.resolve("{missing > 1: a|b}", {})
        assert info.value.guard == "missing > 1"
        assert "KeyError" in info.value.reason
        assert isinstance(info.value.__cause__, KeyError)

    def test_failing_branch_guard_in_list(self, session):
        """Test that a branch guard failure names the branch, not the directive."""
        text = "{&\n- nope > 1: A\n- B\n}"
        directive = session.parse(text, "list")[0]
        with pytest.raises(EvaluationError) as info:
            session.resolve(text, {}, "list")
        assert info.value.guard == "nope > 1"
        assert info.value.span == directive.branches[0].span
        assert info.value.span != directive.span
        assert "list@0" not in session.store

    def test_callable_evaluator_failure(self):
        def explode(guard, context):
            raise RuntimeError("backend offline")

        session = NarrativeSession(evaluator=explode)
        with pytest.raises(EvaluationError) as info:
            session.resolve("{ready: go}")
        assert "backend offline" in str(info.value)

    def test_syntax_error_resolves_nothing(self, session):
        with pytest.raises(ScriptSyntaxError):
            session.resolve("{&A|B", document_id="broken")
        assert len(session.store) == 0

    def test_hand_built_empty_list(self):
        start = Position(0, 1, 1)
        span = Span(start, start)
        directive = Directive(DirectiveKind.CYCLE, (), span, "doc@0")
        compositor = Compositor(SequenceStateStore(), SimpleGuardEvaluator(), random.Random(0))
        with pytest.raises(DefinitionError):
            compositor.resolve([directive])


class TestSessionHooks:
    """Pre/post transforms and helpers."""

    def test_pre_transform_runs_before_parsing(self):
        table = {"$greeting": "{&Hi|Hello}, traveller."}
        session = NarrativeSession(pre_transform=lambda text: table.get(text, text))
        assert session.resolve("$greeting", document_id="g") == "Hi, traveller."
        assert session.resolve("$greeting", document_id="g") == "Hello, traveller."

    def test_post_transform_runs_on_result(self):
        session = NarrativeSession(post_transform=str.upper)
        assert session.resolve("{&a|b} c") == "A C"

    def test_plain_text_passes_through(self, session):
        assert session.resolve("Nothing to see: here | really.") == "Nothing to see: here | really."

    def test_resolve_text_without_session(self):
        assert resolve_text("{x: yes|no}", {"x": 0}) == "no"

    def test_resolve_text_with_session(self, session):
        assert resolve_text("{&a|b}", session=session, document_id="r") == "a"
        assert resolve_text("{&a|b}", session=session, document_id="r") == "b"

    def test_shared_store_between_sessions(self):
        store = SequenceStateStore()
        first = NarrativeSession(store=store)
        second = NarrativeSession(store=store)
        assert first.resolve("{A|B}", document_id="s") == "A"
        assert second.resolve("{A|B}", document_id="s") == "B"

    def test_hand_built_tree(self):
        start = Position(0, 1, 1)
        span = Span(start, start)
        directive = Directive(
            DirectiveKind.STOPPING,
            (Branch((Text("one", span),), span), Branch((Text("two", span),), span)),
            span,
            "custom",
        )
        compositor = Compositor(SequenceStateStore(), SimpleGuardEvaluator(), random.Random(0))
        assert compositor.resolve([Text("> ", span), directive]) == "> one"
        assert compositor.resolve([directive]) == "two"
