"""Tests for RenderOptions validation and overrides."""

import pytest
from pydantic import ValidationError

from prompt_manager.config.app import DEFAULT_KEYWORD_PATTERN, RenderOptions
from prompt_manager.errors import ConfigurationError

pytestmark = pytest.mark.unit


class TestRenderOptions:
    def test_defaults(self) -> None:
        options = RenderOptions()
        assert options.keyword_pattern == DEFAULT_KEYWORD_PATTERN
        assert options.directive_marker == "//"
        assert options.end_marker == "__END__"
        assert options.evaluate_expressions is False
        assert options.substitute_env_vars is False
        assert options.on_unset_env == "empty"
        assert options.missing_parameters == "leave"
        assert options.trim_included is True
        assert options.strict_directives is False
        assert options.max_depth == 32

    def test_frozen(self) -> None:
        options = RenderOptions()
        with pytest.raises(ValidationError):
            options.max_depth = 3  # type: ignore[misc]

    def test_keyword_regex(self) -> None:
        assert RenderOptions().keyword_regex.findall("[A] [b] [C_D]") == ["[A]", "[C_D]"]

    @pytest.mark.parametrize(
        "field, value",
        [
            ("keyword_pattern", r"\[[A-Z"),
            ("keyword_pattern", r"\w*"),
            ("env_pattern", r"\$\w+"),
            ("env_pattern", r"(unclosed"),
            ("directive_marker", "  "),
            ("end_marker", ""),
            ("max_depth", 0),
            ("on_unset_env", "ignore"),
            ("missing_parameters", "skip"),
        ],
    )
    def test_invalid_values(self, field: str, value: object) -> None:
        with pytest.raises(ValidationError):
            RenderOptions(**{field: value})

    def test_expression_delimiters_must_differ(self) -> None:
        with pytest.raises(ValidationError, match="must differ"):
            RenderOptions(expression_open="%%", expression_close="%%")


class TestWithOverrides:
    def test_returns_new_value(self) -> None:
        base = RenderOptions()
        changed = base.with_overrides(evaluate_expressions=True, max_depth=4)

        assert changed.evaluate_expressions is True
        assert changed.max_depth == 4
        assert base.evaluate_expressions is False
        assert base.max_depth == 32

    def test_no_overrides_returns_same(self) -> None:
        base = RenderOptions()
        assert base.with_overrides() is base

    def test_invalid_override(self) -> None:
        with pytest.raises(ConfigurationError, match="Invalid render options"):
            RenderOptions().with_overrides(keyword_pattern="(")
