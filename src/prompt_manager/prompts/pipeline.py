"""Render pipeline.

Stage order is fixed:
1. strip the __END__ notes section and the comment header
2. expand directives (recursively, through storage)
3. extract keywords from the expanded text
4. evaluate expression blocks (if enabled)
5. substitute environment references (if enabled)
6. substitute keywords with their current parameter values
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import Any

from prompt_manager.config.app import RenderOptions
from prompt_manager.errors import ParameterError
from prompt_manager.prompts.directives import DirectiveResolver
from prompt_manager.prompts.environment import substitute_env_vars
from prompt_manager.prompts.expressions import ExpressionEvaluator
from prompt_manager.prompts.keywords import extract_keywords, substitute_keywords
from prompt_manager.prompts.models import Prompt, RenderResult
from prompt_manager.prompts.parameters import ParameterStore
from prompt_manager.prompts.preprocess import preprocess, split_notes, strip_comment_header
from prompt_manager.storage.base import PromptStorage

logger = logging.getLogger(__name__)

__all__ = [
    "collect_keywords",
    "preprocess",
    "render",
    "render_text",
    "resolve_directives",
    "split_notes",
    "strip_comment_header",
]


def resolve_directives(
    prompt: Prompt,
    storage: PromptStorage | None,
    options: RenderOptions,
    parameters: Mapping[str, Any],
) -> str:
    """Preprocess prompt text and expand its directives.

    The resolution chain starts with the prompt's own (normalized) id.
    """
    body, _notes = preprocess(prompt.raw_text, options)

    chain: tuple[str, ...] = ()
    if prompt.id:
        chain = (storage.normalize_id(prompt.id) if storage else prompt.id,)
    return DirectiveResolver(storage, options, parameters).resolve(body, chain)


def render(
    prompt: Prompt,
    storage: PromptStorage | None = None,
    options: RenderOptions | None = None,
    environ: Mapping[str, str] | None = None,
    context: Mapping[str, Any] | None = None,
) -> RenderResult:
    """Render a prompt into final text.

    Neither the prompt's text nor its parameters are modified.

    Args:
        prompt: Prompt to render
        storage: Where directive targets are loaded from
        options: Overrides prompt.options for this call
        environ: Environment for $NAME references (defaults to os.environ)
        context: Names visible to expression blocks

    Returns:
        RenderResult with the final text and the tokens that had no value

    Raises:
        StorageError: If a directive target cannot be loaded
        CycleError: If directives include a template recursively
        DirectiveDepthError: If directives nest deeper than options.max_depth
        ConfigurationError: If a directive line is malformed
        ExpressionError: If an expression block fails
        UnsetVariableError: If an environment variable is unset under the
            "error" policy
        ParameterError: If tokens have no value under the "error" policy
    """
    options = options or prompt.options
    parameters = prompt.parameters.current_values()

    resolved = resolve_directives(prompt, storage, options, parameters)

    required = extract_keywords(resolved, options.keyword_regex)

    text = resolved
    if options.evaluate_expressions:
        evaluator = ExpressionEvaluator(options.expression_open, options.expression_close, context)
        text = evaluator.evaluate(text)

    if options.substitute_env_vars:
        text = substitute_env_vars(text, options.env_regex, environ, options.on_unset_env)

    unresolved = [token for token in required if token not in parameters]
    if unresolved:
        if options.missing_parameters == "error":
            raise ParameterError(
                f"Missing values for: {', '.join(unresolved)}",
                missing=unresolved,
            )
        logger.debug(f"Leaving unresolved tokens in place: {unresolved}")

    values = {token: parameters[token] for token in required if token in parameters}
    text = substitute_keywords(text, options.keyword_regex, values)

    return RenderResult(text=text, keywords=required, unresolved=unresolved)


def collect_keywords(
    prompt: Prompt,
    storage: PromptStorage | None = None,
    options: RenderOptions | None = None,
) -> list[str]:
    """Return the tokens a render of prompt would need values for.

    Tokens of the prompt's own text (directive targets included) come first,
    followed by tokens pulled in by directives. Nothing is substituted.
    """
    options = options or prompt.options
    body, _notes = preprocess(prompt.raw_text, options)
    resolved = resolve_directives(prompt, storage, options, prompt.parameters.current_values())

    tokens = dict.fromkeys(extract_keywords(body, options.keyword_regex))
    tokens.update(dict.fromkeys(extract_keywords(resolved, options.keyword_regex)))
    return list(tokens)


def render_text(
    text: str,
    parameters: Mapping[str, Any] | None = None,
    storage: PromptStorage | None = None,
    options: RenderOptions | None = None,
    environ: Mapping[str, str] | None = None,
) -> RenderResult:
    """Render raw template text without building a Prompt first.

    parameters maps tokens to a history list or a single value.
    """
    prompt = Prompt(
        raw_text=text,
        parameters=ParameterStore(parameters),
        options=options or RenderOptions(),
    )
    return render(prompt, storage=storage, environ=environ)
