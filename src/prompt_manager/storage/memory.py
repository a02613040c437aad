"""In-memory prompt storage."""

from __future__ import annotations

import copy
from collections.abc import Mapping
from typing import Any

from prompt_manager.errors import StorageError
from prompt_manager.storage.base import PromptStorage, StoredParameters


class MemoryStorage(PromptStorage):
    """Dict-backed storage, mostly for tests and embedding.

    Usage:
        storage = MemoryStorage({"greeting": "Hello [NAME]"})
    """

    def __init__(self, prompts: Mapping[str, str] | None = None):
        self._texts: dict[str, str] = {}
        self._params: dict[str, StoredParameters] = {}
        for prompt_id, text in (prompts or {}).items():
            self.save(prompt_id, text)

    def load(self, prompt_id: str) -> str:
        key = self.normalize_id(prompt_id)
        if key not in self._texts:
            raise StorageError("Prompt not found", key)
        return self._texts[key]

    def save(self, prompt_id: str, text: str) -> None:
        key = self.normalize_id(prompt_id)
        if not key:
            raise StorageError("Prompt id cannot be blank")
        self._texts[key] = text

    def delete(self, prompt_id: str) -> None:
        key = self.normalize_id(prompt_id)
        if key not in self._texts:
            raise StorageError("Prompt not found", key)
        del self._texts[key]
        self._params.pop(key, None)

    def exists(self, prompt_id: str) -> bool:
        return self.normalize_id(prompt_id) in self._texts

    def list_prompts(self) -> list[str]:
        return sorted(self._texts)

    def search(self, query: str) -> list[str]:
        needle = query.lower()
        return sorted(
            prompt_id
            for prompt_id, text in self._texts.items()
            if needle in text.lower() or needle in prompt_id.lower()
        )

    def load_parameters(self, prompt_id: str) -> StoredParameters:
        stored = self._params.get(self.normalize_id(prompt_id))
        return copy.deepcopy(stored) if stored else StoredParameters()

    def save_parameters(
        self,
        prompt_id: str,
        values: dict[str, list[Any]],
        metadata: dict[str, Any] | None = None,
    ) -> None:
        self._params[self.normalize_id(prompt_id)] = StoredParameters(
            values=copy.deepcopy(values),
            metadata=copy.deepcopy(metadata),
        )
