"""
Slimming - Shrink canonical progress so a backup fits in a QR code.

Works on the alias-keyed dict form (``model_dump(by_alias=True)``):
1. Truncate answer lists, free text, note maps and id arrays
2. Drop derived fields (progressScore)
3. Drop every value equal to its default, then every empty section

The decoder fills dropped fields back in from defaults, so nothing needed
to resume is lost.
"""

from typing import Any

from pragmatica.config import DEFAULT_SLIM_LIMITS, SlimLimits
from pragmatica.schemas import ModuleMastery, UserProgress, build_default_mastery

DERIVED_MODULE_FIELDS = ("progressScore",)


def is_non_empty(value: Any) -> bool:
    """
    The one emptiness rule for slimming.

    None, False, "", [] and {} are empty. Zero is not: a post-test
    score of 0 is real data.
    """
    if value is None or value is False:
        return False
    if isinstance(value, (str, list, dict)):
        return len(value) > 0
    return True


def strip_defaults(value: dict, default: dict) -> dict:
    """Recursively drop keys whose value equals the default or is empty."""
    stripped = {}
    for key, item in value.items():
        base = default.get(key)
        if isinstance(item, dict) and isinstance(base, dict):
            item = strip_defaults(item, base)
        elif key in default and item == base:
            continue
        if is_non_empty(item):
            stripped[key] = item
    return stripped


def _cut_text(value: Any, slim: SlimLimits) -> Any:
    return value[:slim.max_text_length] if isinstance(value, str) else value


def _cut_notes(notes: Any, slim: SlimLimits) -> Any:
    if not isinstance(notes, dict):
        return notes
    return {key: _cut_text(note, slim) for key, note in list(notes.items())[:slim.max_note_keys]}


def _cut_list(items: Any, max_items: int) -> Any:
    return items[:max_items] if isinstance(items, list) else items


def _cut_responses(responses: Any, slim: SlimLimits) -> Any:
    if isinstance(responses, list):
        return [_cut_text(item, slim) for item in responses[:slim.max_array_items]]
    if isinstance(responses, dict):
        return _cut_notes(responses, slim)
    return _cut_text(responses, slim)


def _truncate_module(module: dict, slim: SlimLimits) -> dict:
    for field in DERIVED_MODULE_FIELDS:
        module.pop(field, None)
    for section in ("preTest", "postTest"):
        module[section]["answers"] = _cut_list(module[section]["answers"], slim.max_answers)
    module["theory"]["sectionsRead"] = _cut_list(module["theory"]["sectionsRead"], slim.max_array_items)
    module["jokes"]["analyzed"] = _cut_list(module["jokes"]["analyzed"], slim.max_array_items)
    module["jokes"]["notes"] = _cut_notes(module["jokes"]["notes"], slim)
    module["activities"]["completed"] = _cut_list(module["activities"]["completed"], slim.max_array_items)
    module["activities"]["notes"] = _cut_notes(module["activities"]["notes"], slim)
    module["reflection"]["responses"] = _cut_responses(module["reflection"]["responses"], slim)
    return module


def slim_module_mastery(
    mastery: ModuleMastery,
    module_ids: list[str],
    slim: SlimLimits = DEFAULT_SLIM_LIMITS,
) -> dict:
    """Smallest dict the validator can rebuild this mastery from."""
    data = mastery.model_dump(by_alias=True)
    data["modules"] = {
        module_id: _truncate_module(module, slim)
        for module_id, module in data["modules"].items()
    }

    default = build_default_mastery(module_ids).model_dump(by_alias=True)
    for module in default["modules"].values():
        for field in DERIVED_MODULE_FIELDS:
            module.pop(field, None)
    return strip_defaults(data, default)


def slim_user_progress(progress: UserProgress, slim: SlimLimits = DEFAULT_SLIM_LIMITS) -> dict:
    data = progress.model_dump(by_alias=True)
    for key in ("jokesRead", "activitiesCompleted", "quizScores", "favoriteJokes"):
        data[key] = _cut_list(data[key], slim.max_array_items)
    for key in ("jokeNotes", "activityNotes"):
        data[key] = _cut_notes(data[key], slim)
    return strip_defaults(data, UserProgress().model_dump(by_alias=True))
