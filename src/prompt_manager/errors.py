"""Exception hierarchy for prompt loading and rendering."""

from __future__ import annotations

from collections.abc import Sequence


class PromptManagerError(Exception):
    """Base class for all prompt-manager errors."""


class StorageError(PromptManagerError):
    """A prompt could not be found, read or written."""

    def __init__(self, message: str, prompt_id: str | None = None):
        self.prompt_id = prompt_id
        super().__init__(f"{message}" + (f": {prompt_id}" if prompt_id else ""))


class ConfigurationError(PromptManagerError):
    """Invalid pattern, option combination, storage setup or directive syntax."""


class DirectiveError(PromptManagerError):
    """Directive resolution failed."""


class CycleError(DirectiveError):
    """An include/import chain revisits a template already being expanded."""

    def __init__(self, chain: Sequence[str], target: str):
        self.chain = tuple(chain)
        self.target = target
        path = " -> ".join([*self.chain, target])
        super().__init__(f"Directive cycle detected: {path}")


class DirectiveDepthError(DirectiveError):
    """Directive nesting exceeded the configured maximum depth."""

    def __init__(self, chain: Sequence[str], max_depth: int):
        self.chain = tuple(chain)
        self.max_depth = max_depth
        super().__init__(
            f"Maximum directive depth of {max_depth} exceeded: {' -> '.join(self.chain)}"
        )


class ParameterError(PromptManagerError):
    """A required parameter has no value, or a history assignment is invalid."""

    def __init__(self, message: str, missing: Sequence[str] = ()):
        self.missing = list(missing)
        super().__init__(message)


class ExpressionError(PromptManagerError):
    """An embedded expression block failed to evaluate."""

    def __init__(self, message: str, index: int, line: int, expression: str):
        self.index = index
        self.line = line
        self.expression = expression
        super().__init__(f"Expression block {index} (line {line}) failed: {message}")


class UnsetVariableError(PromptManagerError):
    """An environment reference names a variable that is not set."""

    def __init__(self, name: str):
        self.name = name
        super().__init__(f"Environment variable is not set: {name}")
