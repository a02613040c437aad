"""Placeholder keyword extraction and substitution.

The keyword pattern decides what a placeholder looks like. Whatever substring
the pattern matches is the token, and the same string is the key callers use
in the parameter store, so any of the presets below (or a custom pattern)
works with the rest of the pipeline unchanged.
"""

from __future__ import annotations

import re
from collections.abc import Mapping
from typing import Any

from prompt_manager.config.app import DEFAULT_KEYWORD_PATTERN
from prompt_manager.errors import ConfigurationError

# [NAME]
BRACKET_PATTERN = DEFAULT_KEYWORD_PATTERN
# {{name}}
MUSTACHE_PATTERN = r"\{\{[A-Za-z_][A-Za-z0-9_]*\}\}"
# @name
SYMBOL_PATTERN = r"@[A-Za-z_][A-Za-z0-9_]*"

PatternLike = str | re.Pattern[str]


def compile_keyword_pattern(pattern: PatternLike) -> re.Pattern[str]:
    """Compile and validate a keyword pattern.

    Args:
        pattern: Pattern string or compiled pattern

    Returns:
        Compiled pattern

    Raises:
        ConfigurationError: If the pattern does not compile or matches the
            empty string
    """
    if isinstance(pattern, re.Pattern):
        compiled = pattern
    else:
        try:
            compiled = re.compile(pattern)
        except re.error as e:
            raise ConfigurationError(f"Invalid keyword pattern {pattern!r}: {e}") from e

    if compiled.fullmatch("") is not None:
        raise ConfigurationError(f"Keyword pattern {compiled.pattern!r} matches the empty string")
    return compiled


def extract_keywords(text: str, pattern: PatternLike = BRACKET_PATTERN) -> list[str]:
    """Return the distinct tokens in text, in order of first occurrence.

    Matches are scanned left to right and never overlap.
    """
    compiled = compile_keyword_pattern(pattern)
    seen: dict[str, None] = {}
    for match in compiled.finditer(text):
        token = match.group(0)
        if token:
            seen.setdefault(token, None)
    return list(seen)


def substitute_keywords(
    text: str,
    pattern: PatternLike,
    values: Mapping[str, Any],
) -> str:
    """Replace every token found in values with str(value), in a single pass.

    Tokens without an entry in values are left untouched.
    """
    compiled = compile_keyword_pattern(pattern)

    def _replace(match: re.Match[str]) -> str:
        token = match.group(0)
        if token in values:
            return str(values[token])
        return token

    return compiled.sub(_replace, text)
