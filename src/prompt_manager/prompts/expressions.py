"""Embedded expression blocks (<%= ... %>).

Each block body is compiled as a single Jinja2 expression inside a sandboxed
environment and replaced by its string value. Expressions see nothing but the
context passed to the evaluator; prompt parameters are only visible if they
were already written into the block text.
"""

from __future__ import annotations

import logging
import re
from collections.abc import Mapping
from typing import Any

from jinja2 import StrictUndefined
from jinja2.sandbox import SandboxedEnvironment

from prompt_manager.errors import ConfigurationError, ExpressionError

logger = logging.getLogger(__name__)


class ExpressionEvaluator:
    """Evaluate delimited expression blocks in text.

    Usage:
        evaluator = ExpressionEvaluator()
        evaluator.evaluate("2+2 is <%= 2+2 %>")   # "2+2 is 4"
    """

    def __init__(
        self,
        open_delimiter: str = "<%=",
        close_delimiter: str = "%>",
        context: Mapping[str, Any] | None = None,
    ):
        if not open_delimiter or not close_delimiter:
            raise ConfigurationError("Expression delimiters must not be empty")
        if open_delimiter == close_delimiter:
            raise ConfigurationError("Expression delimiters must differ")

        self.open_delimiter = open_delimiter
        self.close_delimiter = close_delimiter
        self.context = dict(context or {})
        self._block_pattern = re.compile(
            re.escape(open_delimiter) + r"(.*?)" + re.escape(close_delimiter),
            re.DOTALL,
        )
        self._env = SandboxedEnvironment(  # nosec B701 - plain text output, not HTML
            autoescape=False,
            undefined=StrictUndefined,
            extensions=[],
        )

    def find_blocks(self, text: str) -> list[str]:
        """Return the raw bodies of all blocks in text, in order."""
        return [match.group(1) for match in self._block_pattern.finditer(text)]

    def evaluate(self, text: str) -> str:
        """Replace every block in text with its computed value.

        Raises:
            ExpressionError: If a block fails to compile or evaluate
        """
        index = 0

        def _replace(match: re.Match[str]) -> str:
            nonlocal index
            index += 1
            source = match.group(1).strip()
            line = text.count("\n", 0, match.start()) + 1
            try:
                expression = self._env.compile_expression(source, undefined_to_none=False)
                result = expression(**self.context)
                rendered = "" if result is None else str(result)
            except Exception as e:
                raise ExpressionError(str(e), index=index, line=line, expression=source) from e
            logger.debug(f"Evaluated expression block {index}: {source!r}")
            return rendered

        return self._block_pattern.sub(_replace, text)
