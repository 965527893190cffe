"""
Backup codec - Encode progress into a compact string for QR transfer, and back.

Wire format (compact JSON):

    {"v": 1, "ts": <epoch-ms>, "progress": {"mastery": {...}, "userProgress": {...}}}

Encoding slims both halves and refuses payloads over the byte ceiling
before anything is rendered. Decoding treats the payload as untrusted:
the wrapper is checked, older key names are accepted, and each half goes
back through the validator. Restoring one usable half is a success.
"""

import json
import logging
from dataclasses import dataclass, field
from typing import Any, Optional

from pragmatica.classroom.store import ProgressStore
from pragmatica.classroom.unlock import apply_unlocks
from pragmatica.classroom.validator import (
    is_plain_object,
    pick,
    validate_module_mastery,
    validate_user_progress,
)
from pragmatica.config import (
    DEFAULT_BACKUP_MAX_BYTES,
    DEFAULT_LIMITS,
    DEFAULT_SLIM_LIMITS,
    ImportLimits,
    SlimLimits,
)
from pragmatica.errors import BackupFormatError, PayloadTooLargeError, UnsupportedVersionError
from pragmatica.schemas import Curriculum, ModuleMastery, UserProgress
from pragmatica.utils.timeutil import is_plausible_timestamp, now_ms

from .slim import is_non_empty, slim_module_mastery, slim_user_progress

logger = logging.getLogger(__name__)

BACKUP_VERSION = 1

# Older builds used other key names; checked in order
PAYLOAD_ALIASES = ("progress", "payload", "data")
MASTERY_ALIASES = ("mastery", "moduleMastery", "progress")
USER_PROGRESS_ALIASES = ("userProgress", "state", "user")

INVALID_JSON_MESSAGE = "Backup is not valid JSON."
UNSUPPORTED_VERSION_MESSAGE = "Unsupported version."
INVALID_TIMESTAMP_MESSAGE = "Backup timestamp is invalid."
NO_PROGRESS_MESSAGE = "No usable progress found."
OVERSIZED_MESSAGE = "Backup is too long to be a progress backup."


@dataclass
class EncodeResult:
    ok: bool
    text: Optional[str] = None
    size: int = 0       # UTF-8 bytes
    overage: int = 0
    message: Optional[str] = None


@dataclass
class DecodeResult:
    ok: bool
    mastery: Optional[ModuleMastery] = None
    user_progress: Optional[UserProgress] = None
    timestamp: Optional[int] = None
    message: Optional[str] = None
    restored: list[str] = field(default_factory=list)

    @property
    def partial(self) -> bool:
        return self.ok and len(self.restored) == 1


# -----------------------------------------------------------------------------
# Encode
# -----------------------------------------------------------------------------

def build_payload(store: ProgressStore, now: int, slim: SlimLimits = DEFAULT_SLIM_LIMITS) -> dict:
    """Wrap the slimmed halves; an empty half is left out entirely."""
    progress = {}
    mastery = slim_module_mastery(store.mastery, store.module_ids, slim)
    if is_non_empty(mastery):
        progress["mastery"] = mastery
    user_progress = slim_user_progress(store.user_progress, slim)
    if is_non_empty(user_progress):
        progress["userProgress"] = user_progress
    return {"v": BACKUP_VERSION, "ts": now, "progress": progress}


def serialize_payload(payload: dict) -> str:
    return json.dumps(payload, separators=(",", ":"), ensure_ascii=False)


def payload_size(text: str) -> int:
    return len(text.encode("utf-8"))


def check_capacity(text: str, max_bytes: int) -> int:
    """
    Returns:
        Payload size in bytes

    Raises:
        PayloadTooLargeError: If the payload exceeds max_bytes
    """
    size = payload_size(text)
    if size > max_bytes:
        raise PayloadTooLargeError(size, max_bytes)
    return size


def encode_backup(
    store: ProgressStore,
    now: Optional[int] = None,
    max_bytes: int = DEFAULT_BACKUP_MAX_BYTES,
    slim: SlimLimits = DEFAULT_SLIM_LIMITS,
) -> EncodeResult:
    """Build the backup string, or report how far over the ceiling it is."""
    timestamp = now if now is not None else now_ms()
    text = serialize_payload(build_payload(store, timestamp, slim))
    try:
        size = check_capacity(text, max_bytes)
    except PayloadTooLargeError as exc:
        logger.warning(f"Backup rejected: {exc.size} bytes exceeds {exc.max_bytes}")
        return EncodeResult(ok=False, size=exc.size, overage=exc.overage, message=str(exc))
    return EncodeResult(ok=True, text=text, size=size)


# -----------------------------------------------------------------------------
# Decode
# -----------------------------------------------------------------------------

def parse_wrapper(text: Any, now: int) -> dict:
    """
    Parse and check the outer wrapper.

    Raises:
        BackupFormatError: Not JSON, or the timestamp is out of range
        UnsupportedVersionError: Version is not BACKUP_VERSION
    """
    if not isinstance(text, str):
        raise BackupFormatError(INVALID_JSON_MESSAGE)
    try:
        wrapper = json.loads(text)
    except (ValueError, RecursionError) as exc:
        # ValueError also covers integer literals past the int digit limit
        raise BackupFormatError(INVALID_JSON_MESSAGE) from exc

    version = wrapper.get("v") if is_plain_object(wrapper) else None
    # bool is an int subclass; true must not pass as version 1
    if isinstance(version, bool) or version != BACKUP_VERSION:
        raise UnsupportedVersionError(UNSUPPORTED_VERSION_MESSAGE)

    ts = wrapper.get("ts")
    if not is_plausible_timestamp(ts, now):
        raise BackupFormatError(INVALID_TIMESTAMP_MESSAGE)
    return wrapper


def locate_progress(wrapper: dict) -> tuple[Any, Any]:
    """Return the raw (mastery, userProgress) halves under any known alias."""
    payload = pick(wrapper, PAYLOAD_ALIASES)
    if not is_plain_object(payload):
        payload = wrapper
    return pick(payload, MASTERY_ALIASES), pick(payload, USER_PROGRESS_ALIASES)


def decode_backup(
    text: str,
    curriculum: Curriculum,
    now: Optional[int] = None,
    limits: ImportLimits = DEFAULT_LIMITS,
) -> DecodeResult:
    """Validate a backup string. Nothing is applied; see restore_backup."""
    current = now if now is not None else now_ms()
    try:
        if isinstance(text, str) and len(text) > limits.max_file_bytes:
            raise BackupFormatError(OVERSIZED_MESSAGE)
        wrapper = parse_wrapper(text, current)
    except BackupFormatError as exc:
        logger.warning(f"Backup rejected: {exc}")
        return DecodeResult(ok=False, message=str(exc))

    raw_mastery, raw_user = locate_progress(wrapper)
    result = DecodeResult(ok=True, timestamp=int(wrapper["ts"]))

    if is_plain_object(raw_mastery):
        mastery = validate_module_mastery(raw_mastery, curriculum, limits)
        if is_non_empty(slim_module_mastery(mastery, curriculum.module_ids)):
            result.mastery = mastery
            result.restored.append("mastery")

    if is_plain_object(raw_user):
        user_progress = validate_user_progress(raw_user, limits)
        if is_non_empty(slim_user_progress(user_progress)):
            result.user_progress = user_progress
            result.restored.append("userProgress")

    if not result.restored:
        logger.warning("Backup rejected: no usable progress in payload")
        return DecodeResult(ok=False, message=NO_PROGRESS_MESSAGE)
    return result


def restore_backup(store: ProgressStore, text: str, now: Optional[int] = None) -> DecodeResult:
    """Decode a backup and swap the usable halves into the store in one step."""
    result = decode_backup(text, store.curriculum, now, store.limits)
    if not result.ok:
        return result
    store.replace(mastery=result.mastery, user_progress=result.user_progress)
    unlocked = apply_unlocks(store)
    logger.info(f"Restored backup ({', '.join(result.restored)}); unlocked {unlocked}")
    return result
