"""Environment variable references ($NAME, ${NAME})."""

from __future__ import annotations

import logging
import os
import re
from collections.abc import Mapping
from typing import Literal

from prompt_manager.config.app import DEFAULT_ENV_PATTERN
from prompt_manager.errors import ConfigurationError, UnsetVariableError

logger = logging.getLogger(__name__)

UnsetPolicy = Literal["empty", "keep", "error"]


def _variable_name(match: re.Match[str]) -> str:
    for group in match.groups():
        if group:
            return group
    return match.group(0)


def substitute_env_vars(
    text: str,
    pattern: str | re.Pattern[str] = DEFAULT_ENV_PATTERN,
    environ: Mapping[str, str] | None = None,
    on_unset: UnsetPolicy = "empty",
) -> str:
    """Replace environment references with their values.

    The first non-empty capture group of a match names the variable.

    Args:
        text: Text to scan
        pattern: Reference pattern (default matches $NAME and ${NAME})
        environ: Variables to read (defaults to os.environ)
        on_unset: "empty" replaces unset references with "", "keep" leaves
            them as written, "error" raises

    Returns:
        Text with references replaced

    Raises:
        UnsetVariableError: If a variable is unset and on_unset is "error"
        ConfigurationError: If on_unset is not a known policy
    """
    if on_unset not in ("empty", "keep", "error"):
        raise ConfigurationError(f"Unknown unset-variable policy: {on_unset!r}")

    env = os.environ if environ is None else environ
    compiled = re.compile(pattern) if isinstance(pattern, str) else pattern

    def _replace(match: re.Match[str]) -> str:
        name = _variable_name(match)
        value = env.get(name)
        if value is not None:
            return value
        if on_unset == "error":
            raise UnsetVariableError(name)
        logger.debug(f"Environment variable {name} is not set")
        return match.group(0) if on_unset == "keep" else ""

    return compiled.sub(_replace, text)
