"""Tests for Binding, bind and effect."""

import pytest

import wcomp
from wcomp import Cell, Interpreter, Scope, UnsafeExpressionError, bind, effect


class TestBind:
    def test_renders_immediately(self):
        scope = Scope({"first": "Ada", "last": "Lovelace"})
        out = []
        bind("first + ' ' + last", scope, out.append)
        assert out == ["Ada Lovelace"]

    def test_rerenders_after_flush(self):
        scope = Scope({"first": "Ada", "last": "Lovelace"})
        out = []
        bind("first + ' ' + last", scope, out.append)
        scope.set("last", "Byron")
        assert out == ["Ada Lovelace"]  # deferred
        wcomp.flush()
        assert out == ["Ada Lovelace", "Ada Byron"]

    def test_writes_coalesce(self):
        scope = Scope({"n": 0})
        out = []
        bind("n * 10", scope, out.append)
        for i in range(1, 6):
            scope.set("n", i)
        wcomp.flush()
        assert out == [0, 50]

    def test_unrelated_change_does_not_render(self):
        scope = Scope({"a": 1, "b": 2})
        out = []
        bind("a + 1", scope, out.append)
        scope.set("b", 3)
        wcomp.flush()
        assert out == [2]

    def test_equal_write_does_not_render(self):
        scope = Scope({"a": 1})
        out = []
        bind("a", scope, out.append)
        scope.set("a", 1)
        wcomp.flush()
        assert out == [1]

    def test_value_and_dependencies(self):
        scope = Scope({"price": 3, "qty": 2, "tax": 0})
        b = bind("price * qty", scope, lambda v: None)
        assert b.value == 6
        assert b.dependencies == frozenset({scope["price"], scope["qty"]})

    def test_refresh_does_not_stack_subscriptions(self):
        scope = Scope({"a": 1})
        bind("a", scope, lambda v: None)
        for i in range(2, 5):
            scope.set("a", i)
            wcomp.flush()
        assert scope["a"].subscriber_count == 1

    def test_mutation_through_cell_renders(self):
        scope = Scope({"items": ["a"]})
        out = []
        bind("len(items)", scope, out.append)
        scope["items"].append("b")
        wcomp.flush()
        assert out == [1, 2]

    def test_conditional_compares_held_value(self):
        scope = Scope({"name": "John"})
        out = []
        bind("'here' if name == 'John' else 'away'", scope, out.append)
        scope.set("name", "Ann")
        wcomp.flush()
        assert out == ["here", "away"]

    def test_comparisons_against_cells(self):
        scope = Scope({"count": 0, "items": [1, 2]})
        out = []
        bind("(count == 0, count != 0, 2 in items)", scope, out.append)
        assert out == [(True, False, True)]

    def test_branch_switch_follows_new_branch(self):
        scope = Scope({"flag": True, "a": "A", "b": "B"})
        out = []
        binding = bind("a if flag else b", scope, out.append)
        scope.set("flag", False)
        wcomp.flush()
        scope.set("b", "B2")
        wcomp.flush()
        scope.set("flag", True)
        scope.set("a", "A2")
        wcomp.flush()
        assert out[:3] == ["A", "B", "B2"]
        assert out[-1] == "A2"
        assert binding.dependencies == {scope["flag"], scope["a"], scope["b"]}

    def test_statement_driven_update(self):
        scope = Scope({"count": 0})
        out = []
        bind("count", scope, out.append)
        Interpreter().execute_statement("count.value = count + 1", scope.context())
        wcomp.flush()
        assert out == [0, 1]


class TestFailures:
    def test_broken_expression_renders_none(self):
        scope = Scope({"a": 1})
        broken, fine = [], []
        bind("a / 0", scope, broken.append)
        bind("a + 1", scope, fine.append)
        scope.set("a", 2)
        wcomp.flush()
        assert broken == [None, None]
        assert fine == [2, 3]

    def test_unsafe_source_raises(self):
        scope = Scope({"a": 1})
        out = []
        with pytest.raises(UnsafeExpressionError):
            bind("eval('a')", scope, out.append)
        assert out == []
        assert scope["a"].subscriber_count == 0

    def test_failing_render_is_logged(self, caplog):
        scope = Scope({"a": 1})
        calls = []

        def render(value):
            calls.append(value)
            if value == 2:
                raise RuntimeError("render failed")

        bind("a", scope, render)
        scope.set("a", 2)
        wcomp.flush()
        assert calls == [1, 2]
        assert "render failed" in caplog.text


class TestDispose:
    def test_dispose_stops_rendering(self):
        scope = Scope({"a": 1})
        out = []
        b = bind("a", scope, out.append)
        b.dispose()
        scope.set("a", 2)
        wcomp.flush()
        assert out == [1]
        assert b.disposed
        assert b.dependencies == frozenset()
        assert scope["a"].subscriber_count == 0

    def test_dispose_during_pass(self):
        scope = Scope({"a": 1})
        out, later = [], []
        first = bind("a", scope, lambda v: [b.dispose() for b in later])
        later.append(bind("a * 2", scope, out.append))
        scope.set("a", 2)
        wcomp.flush()
        assert out == [2]
        first.dispose()

    def test_repr(self):
        b = bind("a", Scope({"a": 1}), lambda v: None)
        assert "1 deps" in repr(b)
        b.dispose()
        assert "disposed" in repr(b)


class TestEffect:
    def test_runs_now_and_on_change(self):
        a, b = Cell(1), Cell(2)
        log = []
        effect(lambda: log.append(a.value + b.value), [a, b])
        assert log == [3]
        a.value = 10
        wcomp.flush()
        assert log == [3, 12]

    def test_disposer(self):
        a = Cell(1)
        log = []
        dispose = effect(lambda: log.append(a.value), [a])
        dispose()
        a.value = 2
        wcomp.flush()
        assert log == [1]
        assert a.subscriber_count == 0
