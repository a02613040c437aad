"""
Prompt template loading and rendering.

- keywords: placeholder extraction with configurable token patterns
- directives: //include and //import expansion with cycle detection
- parameters: keyword value history (last value is current)
- environment / expressions: optional $ENV and <%= %> stages
- pipeline: the fixed render order tying the stages together
- loader: storage-backed Prompt loading, saving and rendering
"""

from .directives import Directive, DirectiveResolver, parse_directives
from .environment import substitute_env_vars
from .expressions import ExpressionEvaluator
from .keywords import (
    BRACKET_PATTERN,
    MUSTACHE_PATTERN,
    SYMBOL_PATTERN,
    extract_keywords,
    substitute_keywords,
)
from .loader import (
    PromptLoader,
    configure_default_loader,
    get_default_loader,
    load_prompt,
    render_prompt,
)
from .models import Prompt, RenderResult
from .parameters import ParameterStore
from .pipeline import collect_keywords, render, render_text

__all__ = [
    "BRACKET_PATTERN",
    "MUSTACHE_PATTERN",
    "SYMBOL_PATTERN",
    "Directive",
    "DirectiveResolver",
    "ExpressionEvaluator",
    "ParameterStore",
    "Prompt",
    "PromptLoader",
    "RenderResult",
    "collect_keywords",
    "configure_default_loader",
    "extract_keywords",
    "get_default_loader",
    "load_prompt",
    "parse_directives",
    "render",
    "render_prompt",
    "render_text",
    "substitute_env_vars",
    "substitute_keywords",
]
