"""Prompt and render result models."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any

from prompt_manager.config.app import RenderOptions
from prompt_manager.prompts.directives import Directive, parse_directives
from prompt_manager.prompts.keywords import extract_keywords
from prompt_manager.prompts.parameters import ParameterStore
from prompt_manager.prompts.preprocess import preprocess
from prompt_manager.storage.base import PromptStorage


@dataclass(frozen=True)
class RenderResult:
    """Output of one render.

    Attributes:
        text: Final text
        keywords: Tokens found in the directive-expanded text
        unresolved: Tokens that had no value, taken from the directive-expanded
            text before expressions and environment variables are applied.
            A token that an expression consumed is still listed.
    """

    text: str
    keywords: list[str] = field(default_factory=list)
    unresolved: list[str] = field(default_factory=list)

    def __str__(self) -> str:
        return self.text


@dataclass
class Prompt:
    """One template plus its parameter history.

    Usage:
        prompt = Prompt(raw_text="Hello [NAME]")
        prompt.parameters.set("[NAME]", "Alice")
        prompt.render().text   # "Hello Alice"
    """

    raw_text: str
    id: str | None = None
    parameters: ParameterStore = field(default_factory=ParameterStore)
    options: RenderOptions = field(default_factory=RenderOptions)
    metadata: dict[str, Any] | None = None

    def __post_init__(self) -> None:
        if not isinstance(self.parameters, ParameterStore):
            self.parameters = ParameterStore(self.parameters)

    @property
    def body(self) -> str:
        """Text that takes part in rendering (no notes, no comment header)."""
        return preprocess(self.raw_text, self.options)[0]

    @property
    def notes(self) -> str | None:
        """Text after the end marker, or None."""
        return preprocess(self.raw_text, self.options)[1]

    @property
    def directives(self) -> list[Directive]:
        return parse_directives(
            self.body, self.options.directive_marker, self.options.strict_directives
        )

    @property
    def keywords(self) -> list[str]:
        """Tokens in this prompt's own text, including directive targets.

        Templates pulled in by directives are not consulted; the keywords
        of a render are reported on RenderResult.keywords.
        """
        return extract_keywords(self.body, self.options.keyword_regex)

    def render(
        self,
        storage: PromptStorage | None = None,
        environ: Mapping[str, str] | None = None,
        context: Mapping[str, Any] | None = None,
        **overrides: Any,
    ) -> RenderResult:
        """Render with this prompt's options, optionally overriding fields.

        Extra keyword arguments are RenderOptions fields
        (e.g. evaluate_expressions=True).
        """
        from prompt_manager.prompts.pipeline import render

        options = self.options.with_overrides(**overrides)
        return render(self, storage=storage, options=options, environ=environ, context=context)
