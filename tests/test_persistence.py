"""
Persistence tests: key/value backends, quota handling and corrupt saves.
"""

import sys

import pytest

from pragmatica.classroom import MemoryStorage, ProgressPersistence, SqliteStorage
from pragmatica.classroom.persistence import (
    CORRUPT_WARNING,
    LEGACY_TEACHER_MODE_KEY,
    LOAD_FAILED_WARNING,
    MASTERY_KEY,
    PROGRESS_KEY,
    QUOTA_WARNING,
    TEACHER_MODE_KEY,
)
from pragmatica.errors import StorageError, StorageQuotaError


class BrokenStorage(MemoryStorage):
    def get(self, key):
        raise StorageError("disk unavailable")


class TestMemoryStorage:
    def test_get_set_remove(self):
        storage = MemoryStorage()
        assert storage.get("k") is None
        storage.set("k", "v")
        assert storage.get("k") == "v"
        storage.remove("k")
        storage.remove("k")
        assert storage.get("k") is None

    def test_quota(self):
        storage = MemoryStorage(quota_bytes=10)
        storage.set("k", "12345")
        with pytest.raises(StorageQuotaError):
            storage.set("k2", "12345")
        storage.set("k", "123456789")


class TestSqliteStorage:
    def test_get_set_remove(self, tmp_path):
        storage = SqliteStorage(tmp_path / "nested" / "progress.db")
        assert storage.get("k") is None
        storage.set("k", "v")
        storage.set("k", "w")
        assert storage.get("k") == "w"
        storage.remove("k")
        assert storage.get("k") is None

    def test_quota(self, tmp_path):
        storage = SqliteStorage(tmp_path / "progress.db", quota_bytes=10)
        storage.set("k", "12345")
        with pytest.raises(StorageQuotaError):
            storage.set("k2", "12345")

    def test_persists_across_instances(self, tmp_path, store, curriculum, complete_module):
        path = tmp_path / "progress.db"
        complete_module(store, "module-1")
        assert ProgressPersistence(SqliteStorage(path), curriculum).save(store).ok

        loaded = ProgressPersistence(SqliteStorage(path), curriculum).load()
        assert loaded.warnings == []
        assert loaded.store.mastery == store.mastery


class TestProgressPersistence:
    def test_round_trip(self, storage, store, curriculum, complete_module):
        complete_module(store, "module-1")
        store.mark_joke_read(4)
        store.update_settings(teacher_mode=True, theme="dark")
        persistence = ProgressPersistence(storage, curriculum)

        outcome = persistence.save(store)
        assert outcome.ok
        assert outcome.warning is None

        loaded = persistence.load().store
        assert loaded.mastery == store.mastery
        assert loaded.user_progress == store.user_progress
        assert loaded.settings.teacher_mode is True
        assert loaded.settings.theme == "dark"

    def test_empty_storage(self, storage, curriculum):
        outcome = ProgressPersistence(storage, curriculum).load()
        assert outcome.warnings == []
        assert outcome.store.module("module-1").unlocked is True

    def test_quota_exceeded(self, store, curriculum, complete_module):
        complete_module(store, "module-1")
        before = store.mastery.model_copy(deep=True)

        outcome = ProgressPersistence(MemoryStorage(quota_bytes=10), curriculum).save(store)
        assert outcome.ok is False
        assert outcome.quota_exceeded is True
        assert outcome.warning == QUOTA_WARNING
        assert store.mastery == before

    def test_corrupt_json(self, storage, curriculum):
        storage.set(MASTERY_KEY, "{broken")
        storage.set(PROGRESS_KEY, '{"jokesRead": [1]}')
        outcome = ProgressPersistence(storage, curriculum).load()
        assert outcome.warnings == [CORRUPT_WARNING]
        assert outcome.store.module("module-2").unlocked is False
        assert outcome.store.user_progress.jokes_read == [1]

    @pytest.mark.skipif(sys.version_info < (3, 11), reason="int digit limit added in 3.11")
    def test_huge_integer_literal(self, storage, curriculum):
        storage.set(MASTERY_KEY, '{"modules":{"module-1":{"timeSpent":' + "9" * 5000 + "}}}")
        outcome = ProgressPersistence(storage, curriculum).load()
        assert outcome.warnings == [CORRUPT_WARNING]
        assert outcome.store.module("module-1").time_spent == 0

    def test_deep_nesting(self, storage, curriculum):
        storage.set(PROGRESS_KEY, "[" * 100_000)
        outcome = ProgressPersistence(storage, curriculum).load()
        assert outcome.warnings == [CORRUPT_WARNING]
        assert outcome.store.module("module-1").unlocked is True

    def test_read_failure(self, curriculum):
        outcome = ProgressPersistence(BrokenStorage(), curriculum).load()
        assert outcome.warnings == [LOAD_FAILED_WARNING]

    def test_legacy_teacher_mode_key(self, storage, curriculum):
        storage.set(LEGACY_TEACHER_MODE_KEY, "true")
        assert ProgressPersistence(storage, curriculum).load().store.settings.teacher_mode is True

        storage.set(TEACHER_MODE_KEY, "false")
        assert ProgressPersistence(storage, curriculum).load().store.settings.teacher_mode is False

    def test_clear(self, storage, store, curriculum):
        persistence = ProgressPersistence(storage, curriculum)
        persistence.save(store)
        assert persistence.clear()
        assert storage.get(MASTERY_KEY) is None
        assert storage.get(PROGRESS_KEY) is None
