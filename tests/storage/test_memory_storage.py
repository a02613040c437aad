"""Tests for in-memory prompt storage."""

import pytest

from prompt_manager.errors import StorageError
from prompt_manager.storage.memory import MemoryStorage

pytestmark = pytest.mark.unit


class TestMemoryStorage:
    def test_initial_prompts(self) -> None:
        storage = MemoryStorage({"b": "bee", "a": "ay"})
        assert storage.list_prompts() == ["a", "b"]
        assert storage.load("a") == "ay"

    def test_ids_are_stripped(self, memory_storage: MemoryStorage) -> None:
        memory_storage.save(" p ", "x")
        assert memory_storage.exists("p")

    def test_missing(self, memory_storage: MemoryStorage) -> None:
        with pytest.raises(StorageError):
            memory_storage.load("nope")
        with pytest.raises(StorageError):
            memory_storage.delete("nope")

    def test_blank_id(self, memory_storage: MemoryStorage) -> None:
        with pytest.raises(StorageError):
            memory_storage.save("", "x")

    def test_search_matches_text_and_id(self, memory_storage: MemoryStorage) -> None:
        memory_storage.save("greeting", "Hello")
        memory_storage.save("other", "GREETINGS everyone")
        memory_storage.save("unrelated", "nothing")
        assert memory_storage.search("greeting") == ["greeting", "other"]

    def test_parameters_are_copied(self, memory_storage: MemoryStorage) -> None:
        values = {"[A]": ["a"]}
        memory_storage.save("p", "[A]")
        memory_storage.save_parameters("p", values, {"v": 1})
        values["[A]"].append("mutated")

        stored = memory_storage.load_parameters("p")
        stored.values["[A]"].append("also mutated")

        assert memory_storage.load_parameters("p").values == {"[A]": ["a"]}
        assert memory_storage.load_parameters("p").metadata == {"v": 1}

    def test_delete_drops_parameters(self, memory_storage: MemoryStorage) -> None:
        memory_storage.save("p", "[A]")
        memory_storage.save_parameters("p", {"[A]": ["a"]})
        memory_storage.delete("p")
        assert memory_storage.load_parameters("p").values == {}
