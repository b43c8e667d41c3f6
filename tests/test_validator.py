"""Tests for the safety validator denylist."""

import pytest

from wcomp import UnsafeExpressionError, is_safe, validate


class TestValidator:
    def test_blocks_denylisted_calls(self):
        for source in (
            "eval('1')",
            "exec ('x = 1')",
            "setTimeout(fn, 0)",
            "setInterval(fn, 10)",
            "Function('return 1')",
            "__import__('os')",
            "open('/etc/passwd')",
            "getattr(x, 'y')",
            "a + compile('1', 'f', 'eval')",
        ):
            assert not is_safe(source), source

    def test_blocks_dunder_attributes(self):
        assert not is_safe("x.__class__")
        assert not is_safe("().__class__.__bases__[0]")

    def test_name_without_call_is_allowed(self):
        assert is_safe("evaluation + 1")
        assert is_safe("eval")

    def test_identifier_prefix_is_not_a_match(self):
        assert is_safe("my_eval(1)")
        assert is_safe("reopen(x)")
        assert is_safe("item.open_count")

    def test_method_call_with_denylisted_name_is_blocked(self):
        # preceded by '.', which is not an identifier character
        assert not is_safe("obj.open()")

    def test_validate_raises(self):
        with pytest.raises(UnsafeExpressionError) as info:
            validate("setTimeout(fn, 0)")
        assert info.value.match == "setTimeout"
        assert info.value.source == "setTimeout(fn, 0)"
