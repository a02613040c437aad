"""Include/import directives.

A directive is a line of the form "//include path" (or "// import path").
The path may contain keyword tokens, filled from the current parameter
values before the referenced template is fetched, so
"//include templates/[TYPE].txt" picks a template at render time. Other
lines that start with the marker ("// Compute the sum") are left as text.
"""

from __future__ import annotations

import logging
import re
from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from typing import Any

from prompt_manager.config.app import RenderOptions
from prompt_manager.errors import ConfigurationError, CycleError, DirectiveDepthError, StorageError
from prompt_manager.prompts.keywords import substitute_keywords
from prompt_manager.prompts.preprocess import preprocess
from prompt_manager.storage.base import PromptStorage

logger = logging.getLogger(__name__)

VERBS = frozenset({"include", "import"})


@dataclass(frozen=True)
class Directive:
    """A parsed directive line."""

    verb: str
    target: str
    line: int
    source: str


def _directive_regex(marker: str) -> re.Pattern[str]:
    return re.compile(
        r"^\s*" + re.escape(marker) + r"\s*(?P<verb>[A-Za-z_]\w*)(?:\s+(?P<target>.*?))?\s*$"
    )


def match_directive(
    line: str, line_number: int = 1, marker: str = "//", strict: bool = False
) -> Directive | None:
    """Parse one line.

    Lines that start with the marker but name another verb ("// Compute the
    sum" in a code sample) are ordinary content unless strict is set.

    Returns:
        Directive, or None if the line is not a directive line

    Raises:
        ConfigurationError: If a recognized verb has no target, or the verb
            is unknown and strict is set
    """
    match = _directive_regex(marker).match(line)
    if match is None:
        return None

    verb = match.group("verb")
    target = match.group("target")
    if verb not in VERBS:
        if strict:
            raise ConfigurationError(
                f"Unknown directive '{verb}' on line {line_number}: {line.strip()}"
            )
        return None
    if not target:
        raise ConfigurationError(f"Directive '{verb}' on line {line_number} has no target")
    return Directive(verb=verb, target=target, line=line_number, source=line)


def parse_directives(text: str, marker: str = "//", strict: bool = False) -> list[Directive]:
    """Return every directive in text, in source order."""
    directives = []
    for line_number, line in enumerate(text.split("\n"), start=1):
        directive = match_directive(line, line_number, marker, strict)
        if directive is not None:
            directives.append(directive)
    return directives


def check_chain(chain: Sequence[str], target: str, depth: int, max_depth: int) -> None:
    """Validate that target may be expanded below chain.

    Args:
        chain: Ids currently being expanded, outermost first
        target: Normalized id about to be expanded
        depth: Nesting depth target would be expanded at (1 = directly
            included by the rendered prompt)
        max_depth: Maximum allowed nesting depth

    Raises:
        CycleError: If target is already on the chain
        DirectiveDepthError: If depth exceeds max_depth
    """
    if target in chain:
        raise CycleError(chain, target)
    if depth > max_depth:
        raise DirectiveDepthError([*chain, target], max_depth)


class DirectiveResolver:
    """Recursively replace directive lines with the referenced templates.

    Usage:
        resolver = DirectiveResolver(storage, options, {"[TYPE]": "email"})
        text = resolver.resolve(raw_text, chain=("greeting",))
    """

    def __init__(
        self,
        storage: PromptStorage | None,
        options: RenderOptions | None = None,
        parameters: Mapping[str, Any] | None = None,
    ):
        """Initialize the resolver.

        Args:
            storage: Where directive targets are loaded from
            options: Render options (marker, keyword pattern, depth, joining)
            parameters: Current keyword values used to fill directive targets
        """
        self.storage = storage
        self.options = options or RenderOptions()
        self.parameters = dict(parameters or {})

    def resolve_target(self, target: str) -> str:
        """Fill keyword tokens in a directive target."""
        return substitute_keywords(target, self.options.keyword_regex, self.parameters).strip()

    def resolve(self, text: str, chain: Sequence[str] = ()) -> str:
        """Return text with every directive fully expanded.

        Args:
            text: Preprocessed template body
            chain: Ids already being expanded (normally just the rendered
                prompt's own id)

        Raises:
            CycleError: If a template includes itself directly or transitively
            DirectiveDepthError: If nesting exceeds options.max_depth
            StorageError: If a target cannot be loaded
            ConfigurationError: If a directive line is malformed
        """
        return self._resolve(text, tuple(chain), 0)

    def _resolve(self, text: str, chain: tuple[str, ...], depth: int) -> str:
        output: list[str] = []
        for line_number, line in enumerate(text.split("\n"), start=1):
            directive = match_directive(
                line, line_number, self.options.directive_marker, self.options.strict_directives
            )
            if directive is None:
                output.append(line)
                continue

            expanded = self._expand(directive, chain, depth)
            if expanded:
                output.append(expanded)
        return "\n".join(output)

    def _expand(self, directive: Directive, chain: tuple[str, ...], depth: int) -> str:
        target = self.resolve_target(directive.target)
        if self.storage is None:
            raise StorageError(f"No storage available to {directive.verb}", target)

        target_id = self.storage.normalize_id(target)
        check_chain(chain, target_id, depth + 1, self.options.max_depth)

        logger.debug(f"Expanding {directive.verb} '{target_id}' at depth {depth + 1}")
        raw_text = self.storage.load(target_id)
        body, _notes = preprocess(raw_text, self.options)
        resolved = self._resolve(body, (*chain, target_id), depth + 1)

        if self.options.trim_included:
            resolved = resolved.rstrip("\n")
        return resolved
