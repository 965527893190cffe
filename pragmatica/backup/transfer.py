"""
Progress file import/export.

Export writes a readable JSON file:

    {"version": "1", "createdAt": "<ISO-8601>", "userProgress": {...}, "moduleMastery": {...}}

Import accepts the same shape (``mastery`` is read as an older name for
``moduleMastery``) and replaces all progress at once after validation.
"""

import json
import logging
from dataclasses import dataclass
from typing import Any, Optional

from pragmatica.classroom.store import ProgressStore
from pragmatica.classroom.unlock import apply_unlocks
from pragmatica.classroom.validator import (
    is_plain_object,
    pick,
    validate_module_mastery,
    validate_user_progress,
)
from pragmatica.config import ImportLimits
from pragmatica.errors import BackupFormatError, UnsupportedVersionError
from pragmatica.schemas import Curriculum, ModuleMastery, UserProgress
from pragmatica.utils.timeutil import iso_from_ms, now_ms

logger = logging.getLogger(__name__)

EXPORT_VERSION = "1"
SUPPORTED_IMPORT_VERSIONS = frozenset({"1", "1.0"})
MODULE_MASTERY_ALIASES = ("moduleMastery", "mastery")

TOO_LARGE_MESSAGE = "Backup is too large. Please export a smaller backup."
INVALID_JSON_MESSAGE = "Invalid file: not valid JSON."
NOT_OBJECT_MESSAGE = "Invalid file: expected a JSON object."
UNSUPPORTED_VERSION_MESSAGE = "Unsupported backup version. Please export a new backup from this site."
MISSING_PROGRESS_MESSAGE = "Invalid backup: missing userProgress."
IMPORTED_MESSAGE = "Progress imported successfully"


@dataclass
class ImportResult:
    ok: bool
    message: str
    version: Optional[str] = None
    user_progress: Optional[UserProgress] = None
    mastery: Optional[ModuleMastery] = None


def validate_progress_import(parsed: Any, curriculum: Curriculum, limits: ImportLimits) -> ImportResult:
    """
    Check the file shape and validate both halves.

    Raises:
        BackupFormatError: Not an object, or userProgress is missing
        UnsupportedVersionError: version is not a supported string
    """
    if not is_plain_object(parsed):
        raise BackupFormatError(NOT_OBJECT_MESSAGE)

    version = parsed.get("version")
    if not isinstance(version, str) or version not in SUPPORTED_IMPORT_VERSIONS:
        raise UnsupportedVersionError(UNSUPPORTED_VERSION_MESSAGE)

    if "userProgress" not in parsed:
        raise BackupFormatError(MISSING_PROGRESS_MESSAGE)

    return ImportResult(
        ok=True,
        message=IMPORTED_MESSAGE,
        version=version,
        user_progress=validate_user_progress(parsed["userProgress"], limits),
        mastery=validate_module_mastery(pick(parsed, MODULE_MASTERY_ALIASES), curriculum, limits),
    )


def import_progress_file(store: ProgressStore, text: str) -> ImportResult:
    """Replace all progress with the contents of an exported file."""
    limits = store.limits
    try:
        if len(text) > limits.max_file_bytes * 2:
            raise BackupFormatError(TOO_LARGE_MESSAGE)
        try:
            parsed = json.loads(text)
        except (ValueError, RecursionError) as exc:
            raise BackupFormatError(INVALID_JSON_MESSAGE) from exc
        result = validate_progress_import(parsed, store.curriculum, limits)
    except BackupFormatError as exc:
        logger.warning(f"Import rejected: {exc}")
        return ImportResult(ok=False, message=str(exc))

    result.user_progress.has_visited_before = True
    store.replace(mastery=result.mastery, user_progress=result.user_progress)
    apply_unlocks(store)
    logger.info(f"Imported progress file (version {result.version})")
    return result


def export_progress_file(store: ProgressStore, now: Optional[int] = None) -> str:
    """Serialize all progress as pretty-printed JSON."""
    data = {
        "version": EXPORT_VERSION,
        "createdAt": iso_from_ms(now if now is not None else now_ms()),
        "userProgress": store.user_progress.model_dump(by_alias=True),
        "moduleMastery": store.mastery.model_dump(by_alias=True),
    }
    return json.dumps(data, indent=2, ensure_ascii=False)
