"""Flat-file prompt storage.

Layout under prompts_dir:
    <id>.txt    prompt text
    <id>.json   parameter history, {"[TOKEN]": [...], "__metadata__": {...}}

Ids may contain "/" to address sub-directories ("common/header"). A target
that already ends with the prompt extension names the same prompt
("common/header.txt").
"""

from __future__ import annotations

import json
import logging
import re
from collections.abc import Callable, Iterable
from pathlib import Path
from typing import Any

from prompt_manager.errors import ConfigurationError, StorageError
from prompt_manager.storage.base import PromptStorage, StoredParameters

logger = logging.getLogger(__name__)

PROMPT_EXTENSION = ".txt"
PARAMS_EXTENSION = ".json"
METADATA_KEY = "__metadata__"

_ID_PATTERN = re.compile(r"^[A-Za-z0-9_\-.]+(/[A-Za-z0-9_\-.]+)*$")

SearchProc = Callable[[str], Iterable[str]]


class FileSystemStorage(PromptStorage):
    """Prompts stored as text files with JSON parameter side-cars.

    Usage:
        storage = FileSystemStorage(Path("~/.prompts").expanduser())
        storage.save("todo", "Remind me to [TASK]")
        storage.load("todo")
    """

    def __init__(
        self,
        prompts_dir: Path | str,
        prompt_extension: str = PROMPT_EXTENSION,
        params_extension: str = PARAMS_EXTENSION,
        search_proc: SearchProc | None = None,
    ):
        """Initialize file storage.

        Args:
            prompts_dir: Existing directory holding the prompt files
            prompt_extension: Extension of prompt text files
            params_extension: Extension of parameter files
            search_proc: Optional callable replacing the built-in search

        Raises:
            ConfigurationError: If any setting is invalid
        """
        self.prompts_dir = Path(prompts_dir).expanduser()
        self.prompt_extension = prompt_extension
        self.params_extension = params_extension
        self.search_proc = search_proc
        self._validate_configuration()

    def _validate_configuration(self) -> None:
        if not self.prompts_dir.is_dir():
            raise ConfigurationError(f"prompts_dir is not a directory: {self.prompts_dir}")
        for name in ("prompt_extension", "params_extension"):
            ext = getattr(self, name)
            if not isinstance(ext, str) or not ext.startswith(".") or len(ext) < 2:
                raise ConfigurationError(f"Invalid {name}: {ext!r}")
        if self.prompt_extension == self.params_extension:
            raise ConfigurationError("prompt_extension and params_extension must differ")
        if self.search_proc is not None and not callable(self.search_proc):
            raise ConfigurationError("search_proc invalid; it is not callable")

    def normalize_id(self, prompt_id: str) -> str:
        normalized = prompt_id.strip()
        while normalized.startswith("./"):
            normalized = normalized[2:]
        if normalized.endswith(self.prompt_extension):
            normalized = normalized[: -len(self.prompt_extension)]
        return normalized

    def _validate_id(self, prompt_id: str) -> str:
        normalized = self.normalize_id(prompt_id)
        if not _ID_PATTERN.match(normalized) or any(
            part in (".", "..") for part in normalized.split("/")
        ):
            raise StorageError("Invalid prompt id", prompt_id)
        return normalized

    def _file_path(self, prompt_id: str, extension: str) -> Path:
        return self.prompts_dir / f"{prompt_id}{extension}"

    def path(self, prompt_id: str) -> Path:
        """Return the text file path for prompt_id (which may not exist)."""
        return self._file_path(self._validate_id(prompt_id), self.prompt_extension)

    def load(self, prompt_id: str) -> str:
        normalized = self._validate_id(prompt_id)
        file_path = self._file_path(normalized, self.prompt_extension)
        if not file_path.is_file():
            raise StorageError("Prompt not found", normalized)
        try:
            return file_path.read_text(encoding="utf-8")
        except OSError as e:
            raise StorageError(f"Failed to read prompt: {e}", normalized) from e

    def save(self, prompt_id: str, text: str) -> None:
        normalized = self._validate_id(prompt_id)
        self._write(self._file_path(normalized, self.prompt_extension), text, normalized)
        logger.debug(f"Saved prompt '{normalized}' to {self.prompts_dir}")

    def delete(self, prompt_id: str) -> None:
        normalized = self._validate_id(prompt_id)
        prompt_path = self._file_path(normalized, self.prompt_extension)
        params_path = self._file_path(normalized, self.params_extension)
        if not prompt_path.exists():
            raise StorageError("Prompt not found", normalized)
        try:
            prompt_path.unlink()
            params_path.unlink(missing_ok=True)
        except OSError as e:
            raise StorageError(f"Failed to delete prompt: {e}", normalized) from e

    def exists(self, prompt_id: str) -> bool:
        try:
            return self.path(prompt_id).is_file()
        except StorageError:
            return False

    def list_prompts(self) -> list[str]:
        prompt_ids = []
        for file_path in self.prompts_dir.rglob(f"*{self.prompt_extension}"):
            if not file_path.is_file():
                continue
            rel_path = file_path.relative_to(self.prompts_dir).as_posix()
            prompt_ids.append(rel_path[: -len(self.prompt_extension)])
        return sorted(prompt_ids)

    def search(self, query: str) -> list[str]:
        """Search prompt ids and text (case-insensitive) or delegate to search_proc."""
        if self.search_proc is not None:
            return sorted(self.search_proc(query))

        needle = query.lower()
        matches = []
        for prompt_id in self.list_prompts():
            text = self._file_path(prompt_id, self.prompt_extension).read_text(encoding="utf-8")
            if needle in prompt_id.lower() or needle in text.lower():
                matches.append(prompt_id)
        return matches

    def load_parameters(self, prompt_id: str) -> StoredParameters:
        normalized = self._validate_id(prompt_id)
        params_path = self._file_path(normalized, self.params_extension)
        if not params_path.exists():
            return StoredParameters()

        try:
            content = params_path.read_text(encoding="utf-8")
            data = json.loads(content) if content.strip() else {}
        except (OSError, json.JSONDecodeError) as e:
            raise StorageError(f"Failed to read parameters: {e}", normalized) from e

        if not isinstance(data, dict):
            raise StorageError("Parameter file must contain a JSON object", normalized)

        metadata = data.pop(METADATA_KEY, None)
        values: dict[str, list[Any]] = {}
        for token, history in data.items():
            if not isinstance(history, list):
                history = [history]
            if history:
                values[token] = history
        return StoredParameters(values=values, metadata=metadata)

    def save_parameters(
        self,
        prompt_id: str,
        values: dict[str, list[Any]],
        metadata: dict[str, Any] | None = None,
    ) -> None:
        normalized = self._validate_id(prompt_id)
        data: dict[str, Any] = dict(values)
        if metadata is not None:
            data[METADATA_KEY] = metadata
        content = json.dumps(data, indent=2, ensure_ascii=False) + "\n"
        self._write(self._file_path(normalized, self.params_extension), content, normalized)

    def _write(self, file_path: Path, content: str, prompt_id: str) -> None:
        try:
            file_path.parent.mkdir(parents=True, exist_ok=True)
            file_path.write_text(content, encoding="utf-8")
        except OSError as e:
            raise StorageError(f"Failed to write file: {e}", prompt_id) from e
