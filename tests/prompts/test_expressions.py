"""Tests for embedded expression evaluation."""

import pytest

from prompt_manager.errors import ConfigurationError, ExpressionError
from prompt_manager.prompts.expressions import ExpressionEvaluator

pytestmark = pytest.mark.unit


class TestExpressionEvaluator:
    def test_arithmetic(self) -> None:
        assert ExpressionEvaluator().evaluate("2+2 is <%= 2+2 %>") == "2+2 is 4"

    def test_multiple_blocks(self) -> None:
        text = "<%= 3*3 %> and <%= 'ab' ~ 'cd' %>"
        assert ExpressionEvaluator().evaluate(text) == "9 and abcd"

    def test_text_without_blocks_unchanged(self) -> None:
        assert ExpressionEvaluator().evaluate("nothing [HERE]") == "nothing [HERE]"

    def test_context_names_are_visible(self) -> None:
        evaluator = ExpressionEvaluator(context={"items": ["a", "b", "c"]})
        assert evaluator.evaluate("<%= items | length %> items") == "3 items"

    def test_none_renders_empty(self) -> None:
        assert ExpressionEvaluator().evaluate("[<%= none %>]") == "[]"

    def test_custom_delimiters(self) -> None:
        evaluator = ExpressionEvaluator("{=", "=}")
        assert evaluator.evaluate("x={= 1 + 1 =}") == "x=2"

    def test_find_blocks(self) -> None:
        assert ExpressionEvaluator().find_blocks("<%= a %> b <%= c %>") == [" a ", " c "]

    def test_syntax_error_identifies_block(self) -> None:
        text = "ok <%= 1 %>\nbad <%= 1 + %>"
        with pytest.raises(ExpressionError) as exc_info:
            ExpressionEvaluator().evaluate(text)
        assert exc_info.value.index == 2
        assert exc_info.value.line == 2
        assert exc_info.value.expression == "1 +"

    def test_undefined_name_fails(self) -> None:
        with pytest.raises(ExpressionError, match="block 1"):
            ExpressionEvaluator().evaluate("<%= undefined_name %>")

    def test_parameters_are_not_visible(self) -> None:
        with pytest.raises(ExpressionError):
            ExpressionEvaluator().evaluate("<%= NAME %>")

    def test_sandbox_blocks_unsafe_attributes(self) -> None:
        with pytest.raises(ExpressionError):
            ExpressionEvaluator().evaluate("<%= ''.__class__.__mro__ %>")

    def test_identical_delimiters_rejected(self) -> None:
        with pytest.raises(ConfigurationError):
            ExpressionEvaluator("%%", "%%")
