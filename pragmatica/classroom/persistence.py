"""
Persistence - Save and load a ProgressStore through key/value storage.

Storage is any object with get/set/remove over string keys and values:
- MemoryStorage: in-process dict (tests, ephemeral sessions)
- SqliteStorage: ~/.pragmatica/progress.db, one kv table

Both can be given a byte quota and then refuse writes with
StorageQuotaError, like a browser's local storage. A failed save is
reported as a warning; the in-memory store stays authoritative until the
next successful save.
"""

import json
import logging
import sqlite3
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional, Protocol

from pragmatica.config import DEFAULT_PROGRESS_DB, DEFAULT_LIMITS, ImportLimits
from pragmatica.errors import StorageError, StorageQuotaError
from pragmatica.schemas import Curriculum

from .store import ProgressStore
from .validator import validate_module_mastery, validate_settings, validate_user_progress

logger = logging.getLogger(__name__)

PROGRESS_KEY = "pragmaticsProgress"
MASTERY_KEY = "pragmaticsMastery"
TEACHER_MODE_KEY = "teacherMode"
LEGACY_TEACHER_MODE_KEY = "teacherModeEnabled"
THEME_KEY = "theme"
ALL_KEYS = (PROGRESS_KEY, MASTERY_KEY, TEACHER_MODE_KEY, LEGACY_TEACHER_MODE_KEY, THEME_KEY)

QUOTA_WARNING = (
    "Storage is full. Your recent progress might not be saved. "
    "Consider exporting a backup and clearing old data."
)
SAVE_FAILED_WARNING = "Progress could not be saved. It is kept for this session only."
CORRUPT_WARNING = "Saved progress could not be read. Starting fresh; your old data may be corrupted."
LOAD_FAILED_WARNING = "Saved progress could not be read from storage. Starting with defaults."


class KeyValueStorage(Protocol):
    def get(self, key: str) -> Optional[str]: ...

    def set(self, key: str, value: str) -> None: ...

    def remove(self, key: str) -> None: ...


# -----------------------------------------------------------------------------
# Storage backends
# -----------------------------------------------------------------------------

class MemoryStorage:
    """Dict-backed storage with an optional quota in UTF-8 bytes."""

    def __init__(self, quota_bytes: Optional[int] = None):
        self.quota_bytes = quota_bytes
        self._data: dict[str, str] = {}

    def get(self, key: str) -> Optional[str]:
        return self._data.get(key)

    def set(self, key: str, value: str) -> None:
        if self.quota_bytes is not None:
            used = sum(_size(k, v) for k, v in self._data.items() if k != key)
            if used + _size(key, value) > self.quota_bytes:
                raise StorageQuotaError(f"Quota of {self.quota_bytes} bytes exceeded writing {key}")
        self._data[key] = value

    def remove(self, key: str) -> None:
        self._data.pop(key, None)


class SqliteStorage:
    """
    Key/value storage in a SQLite database.

    Progress lives outside the project tree so that updating the course
    content never touches a learner's saves.
    """

    def __init__(self, db_path: Optional[Path] = None, quota_bytes: Optional[int] = None):
        """
        Initialize storage.

        Args:
            db_path: Path to progress.db (default: ~/.pragmatica/progress.db)
            quota_bytes: Optional cap on total stored bytes
        """
        self.db_path = Path(db_path) if db_path else DEFAULT_PROGRESS_DB
        self.quota_bytes = quota_bytes
        self._ensure_database()

    def _ensure_database(self):
        """Create database and table if they don't exist."""
        self.db_path.parent.mkdir(parents=True, exist_ok=True)

        conn = sqlite3.connect(str(self.db_path))
        try:
            conn.executescript("""
                CREATE TABLE IF NOT EXISTS kv (
                    key TEXT PRIMARY KEY,
                    value TEXT NOT NULL
                );
            """)
            conn.commit()
        finally:
            conn.close()

    def _get_connection(self) -> sqlite3.Connection:
        """Get a new database connection."""
        conn = sqlite3.connect(str(self.db_path))
        conn.row_factory = sqlite3.Row
        return conn

    def get(self, key: str) -> Optional[str]:
        conn = self._get_connection()
        try:
            row = conn.execute("SELECT value FROM kv WHERE key = ?", (key,)).fetchone()
            return row["value"] if row else None
        except sqlite3.Error as exc:
            raise StorageError(f"Failed to read {key}: {exc}") from exc
        finally:
            conn.close()

    def set(self, key: str, value: str) -> None:
        conn = self._get_connection()
        try:
            if self.quota_bytes is not None:
                row = conn.execute(
                    "SELECT COALESCE(SUM(LENGTH(CAST(key AS BLOB)) + LENGTH(CAST(value AS BLOB))), 0) AS used"
                    " FROM kv WHERE key != ?",
                    (key,)
                ).fetchone()
                if row["used"] + _size(key, value) > self.quota_bytes:
                    raise StorageQuotaError(f"Quota of {self.quota_bytes} bytes exceeded writing {key}")
            conn.execute(
                """INSERT INTO kv (key, value) VALUES (?, ?)
                   ON CONFLICT(key) DO UPDATE SET value = excluded.value""",
                (key, value)
            )
            conn.commit()
        except sqlite3.OperationalError as exc:
            if "full" in str(exc).lower():
                raise StorageQuotaError(f"Database is full writing {key}") from exc
            raise StorageError(f"Failed to write {key}: {exc}") from exc
        except sqlite3.Error as exc:
            raise StorageError(f"Failed to write {key}: {exc}") from exc
        finally:
            conn.close()

    def remove(self, key: str) -> None:
        conn = self._get_connection()
        try:
            conn.execute("DELETE FROM kv WHERE key = ?", (key,))
            conn.commit()
        except sqlite3.Error as exc:
            raise StorageError(f"Failed to remove {key}: {exc}") from exc
        finally:
            conn.close()


def _size(key: str, value: str) -> int:
    return len(key.encode("utf-8")) + len(value.encode("utf-8"))


# -----------------------------------------------------------------------------
# Save / load
# -----------------------------------------------------------------------------

@dataclass
class SaveOutcome:
    ok: bool
    warning: Optional[str] = None
    quota_exceeded: bool = False


@dataclass
class LoadOutcome:
    store: ProgressStore
    warnings: list[str] = field(default_factory=list)


class ProgressPersistence:
    """
    Persist a ProgressStore as JSON text under fixed storage keys.
    """

    def __init__(self, storage: KeyValueStorage, curriculum: Curriculum, limits: ImportLimits = DEFAULT_LIMITS):
        self.storage = storage
        self.curriculum = curriculum
        self.limits = limits

    def save(self, store: ProgressStore) -> SaveOutcome:
        """Write the whole store. Never raises; failures come back as a warning."""
        # Serialize everything before the first write
        entries = [
            (MASTERY_KEY, store.mastery.model_dump_json(by_alias=True)),
            (PROGRESS_KEY, store.user_progress.model_dump_json(by_alias=True)),
            (TEACHER_MODE_KEY, "true" if store.settings.teacher_mode else "false"),
            (LEGACY_TEACHER_MODE_KEY, "true" if store.settings.teacher_mode else "false"),
            (THEME_KEY, store.settings.theme),
        ]
        try:
            for key, value in entries:
                self.storage.set(key, value)
        except StorageQuotaError as exc:
            logger.error(f"Storage quota exceeded, progress not fully saved: {exc}")
            return SaveOutcome(ok=False, warning=QUOTA_WARNING, quota_exceeded=True)
        except StorageError as exc:
            logger.error(f"Save failed: {exc}")
            return SaveOutcome(ok=False, warning=SAVE_FAILED_WARNING)
        return SaveOutcome(ok=True)

    def load(self) -> LoadOutcome:
        """Read and validate saved progress; unreadable parts fall back to defaults."""
        warnings: list[str] = []

        raw_mastery = self._read_json(MASTERY_KEY, warnings)
        raw_progress = self._read_json(PROGRESS_KEY, warnings)
        raw_settings = {
            TEACHER_MODE_KEY: self._read(TEACHER_MODE_KEY, warnings),
            LEGACY_TEACHER_MODE_KEY: self._read(LEGACY_TEACHER_MODE_KEY, warnings),
            THEME_KEY: self._read(THEME_KEY, warnings),
        }
        if raw_settings[TEACHER_MODE_KEY] is None:
            del raw_settings[TEACHER_MODE_KEY]

        store = ProgressStore(
            self.curriculum,
            mastery=validate_module_mastery(raw_mastery, self.curriculum, self.limits),
            user_progress=validate_user_progress(raw_progress, self.limits),
            settings=validate_settings(raw_settings),
            limits=self.limits,
        )
        return LoadOutcome(store=store, warnings=warnings)

    def clear(self) -> bool:
        """Remove every saved key (reset all progress)."""
        try:
            for key in ALL_KEYS:
                self.storage.remove(key)
        except StorageError as exc:
            logger.error(f"Reset failed: {exc}")
            return False
        return True

    def _read(self, key: str, warnings: list[str]) -> Optional[str]:
        try:
            return self.storage.get(key)
        except StorageError as exc:
            logger.error(f"Load failed for {key}: {exc}")
            if LOAD_FAILED_WARNING not in warnings:
                warnings.append(LOAD_FAILED_WARNING)
            return None

    def _read_json(self, key: str, warnings: list[str]):
        text = self._read(key, warnings)
        if text is None:
            return None
        try:
            return json.loads(text)
        except (ValueError, RecursionError) as exc:
            logger.error(f"Saved {key} is not valid JSON: {exc}")
            if CORRUPT_WARNING not in warnings:
                warnings.append(CORRUPT_WARNING)
            return None
