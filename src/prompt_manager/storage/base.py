"""Storage capability consumed by the loader and the directive resolver."""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any


@dataclass
class StoredParameters:
    """Persisted parameters of one prompt.

    values maps each keyword token to its history (oldest first). metadata
    is an opaque block (version, timestamp, notes) kept as-is.
    """

    values: dict[str, list[Any]] = field(default_factory=dict)
    metadata: dict[str, Any] | None = None

    def to_dict(self) -> dict[str, Any]:
        return {"values": self.values, "metadata": self.metadata}


class PromptStorage(ABC):
    """Load/save/list/search prompts by identifier.

    Rendering only ever calls load() and normalize_id(); everything else is
    for the owning application.
    """

    @abstractmethod
    def load(self, prompt_id: str) -> str:
        """Return the raw text of a prompt.

        Raises:
            StorageError: If the prompt does not exist or cannot be read
        """

    @abstractmethod
    def save(self, prompt_id: str, text: str) -> None:
        """Create or replace the text of a prompt."""

    @abstractmethod
    def delete(self, prompt_id: str) -> None:
        """Remove a prompt and its parameters.

        Raises:
            StorageError: If the prompt does not exist
        """

    @abstractmethod
    def exists(self, prompt_id: str) -> bool:
        """Check whether a prompt exists."""

    @abstractmethod
    def list_prompts(self) -> list[str]:
        """Return all prompt ids, sorted."""

    @abstractmethod
    def search(self, query: str) -> list[str]:
        """Return ids of prompts matching query, sorted."""

    @abstractmethod
    def load_parameters(self, prompt_id: str) -> StoredParameters:
        """Return saved parameters (empty if none were saved)."""

    @abstractmethod
    def save_parameters(
        self,
        prompt_id: str,
        values: dict[str, list[Any]],
        metadata: dict[str, Any] | None = None,
    ) -> None:
        """Persist parameter histories and the opaque metadata block."""

    def normalize_id(self, prompt_id: str) -> str:
        """Return the canonical form of prompt_id.

        Two ids that name the same prompt must normalize to the same string;
        directive cycle detection compares normalized ids.
        """
        return prompt_id.strip()
