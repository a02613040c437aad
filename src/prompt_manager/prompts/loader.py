"""
Prompt loader backed by a storage collaborator.

Builds Prompt objects from stored text and parameter history, saves them
back, and renders by id. Parameter entries whose keyword no longer appears
in the (directive-expanded) text are dropped on load, so editing a keyword
out of a template also retires its history.

A module-level default loader is built from the YAML configuration on first
use; configure_default_loader() replaces it.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import Any

from prompt_manager.config.app import RenderOptions, load_config
from prompt_manager.errors import ConfigurationError, DirectiveError, StorageError
from prompt_manager.prompts.models import Prompt, RenderResult
from prompt_manager.prompts.parameters import ParameterStore
from prompt_manager.prompts.pipeline import collect_keywords
from prompt_manager.storage import PromptStorage, create_storage

logger = logging.getLogger(__name__)

# Module-level default loader (configured by configure_default_loader)
_default_loader: PromptLoader | None = None


class PromptLoader:
    """Loads, saves and renders prompts through one storage backend.

    Usage:
        loader = PromptLoader(FileSystemStorage(Path("~/.prompts").expanduser()))
        prompt = loader.load("todo")
        prompt.parameters.append("[TASK]", "water the plants")
        loader.save(prompt)
        print(loader.render("todo").text)
    """

    def __init__(self, storage: PromptStorage, options: RenderOptions | None = None):
        """Initialize the prompt loader.

        Args:
            storage: Storage backend for prompt text and parameters
            options: Default render options for loaded prompts
        """
        self.storage = storage
        self.options = options or RenderOptions()

    def load(self, prompt_id: str, prune: bool = True) -> Prompt:
        """Load a prompt with its saved parameter history.

        Args:
            prompt_id: Prompt identifier
            prune: Drop saved parameters whose keyword is no longer used

        Returns:
            Prompt instance

        Raises:
            StorageError: If the prompt is missing
        """
        normalized = self.storage.normalize_id(prompt_id)
        text = self.storage.load(normalized)
        stored = self.storage.load_parameters(normalized)

        prompt = Prompt(
            raw_text=text,
            id=normalized,
            parameters=ParameterStore(stored.values),
            options=self.options,
            metadata=stored.metadata,
        )

        if prune and len(prompt.parameters):
            self._prune(prompt)

        logger.debug(f"Loaded prompt '{normalized}'")
        return prompt

    def _prune(self, prompt: Prompt) -> None:
        # Directives that cannot be expanded yet leave the history untouched;
        # render reports the error.
        try:
            used = collect_keywords(prompt, self.storage)
        except (StorageError, DirectiveError, ConfigurationError) as e:
            logger.debug(f"Not pruning parameters of '{prompt.id}': {e}")
            return

        dropped = prompt.parameters.retain(used)
        if dropped:
            logger.warning(f"Dropped parameters no longer used by '{prompt.id}': {dropped}")

    def create(
        self,
        prompt_id: str,
        text: str,
        parameters: Mapping[str, Any] | None = None,
        metadata: dict[str, Any] | None = None,
    ) -> Prompt:
        """Create (or overwrite) a prompt in storage and return it."""
        prompt = Prompt(
            raw_text=text,
            id=self.storage.normalize_id(prompt_id),
            parameters=ParameterStore(parameters),
            options=self.options,
            metadata=metadata,
        )
        self.save(prompt)
        return prompt

    def save(self, prompt: Prompt) -> None:
        """Persist text, parameter history and the metadata block.

        Raises:
            StorageError: If the prompt has no id or the write fails
        """
        if not prompt.id:
            raise StorageError("Cannot save a prompt without an id")
        self.storage.save(prompt.id, prompt.raw_text)
        self.storage.save_parameters(prompt.id, prompt.parameters.to_dict(), prompt.metadata)

    def render(
        self,
        prompt_id: str,
        parameters: Mapping[str, Any] | None = None,
        environ: Mapping[str, str] | None = None,
        **overrides: Any,
    ) -> RenderResult:
        """Load and render a prompt.

        Args:
            prompt_id: Prompt identifier
            parameters: Values appended to the loaded history for this render
                only (nothing is saved)
            environ: Environment for $NAME references
            **overrides: RenderOptions fields to override

        Returns:
            RenderResult
        """
        prompt = self.load(prompt_id)
        for token, value in (parameters or {}).items():
            prompt.parameters.append(token, value)
        return prompt.render(storage=self.storage, environ=environ, **overrides)

    def delete(self, prompt_id: str) -> None:
        self.storage.delete(prompt_id)

    def exists(self, prompt_id: str) -> bool:
        return self.storage.exists(prompt_id)

    def list_prompts(self) -> list[str]:
        return self.storage.list_prompts()

    def search(self, query: str) -> list[str]:
        return self.storage.search(query)


def configure_default_loader(
    storage: PromptStorage,
    options: RenderOptions | None = None,
) -> PromptLoader:
    """Replace the module-level default loader.

    Args:
        storage: Storage backend
        options: Default render options

    Returns:
        The newly configured PromptLoader.
    """
    global _default_loader
    _default_loader = PromptLoader(storage, options)
    return _default_loader


def get_default_loader() -> PromptLoader:
    """Get or create the default prompt loader.

    Returns:
        Cached PromptLoader instance, built from the YAML configuration if
        none was configured
    """
    global _default_loader
    if _default_loader is None:
        config = load_config()
        _default_loader = PromptLoader(create_storage(config.storage), config.render)
    return _default_loader


def load_prompt(prompt_id: str) -> Prompt:
    """Convenience function to load a prompt using default loader."""
    return get_default_loader().load(prompt_id)


def render_prompt(prompt_id: str, parameters: Mapping[str, Any] | None = None) -> RenderResult:
    """Convenience function to render a prompt using default loader."""
    return get_default_loader().render(prompt_id, parameters)
