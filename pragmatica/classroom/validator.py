"""
Validator - Turn untrusted progress data into well-formed models.

Inputs come from imported files, decoded QR backups and older local saves,
so any field may be missing, mistyped or oversized. Every function here:
- starts from a structurally complete default
- copies only fields that type-check
- clamps numbers (rounded to int), truncates arrays, strings and note maps
- ignores unknown fields
- never raises

Older saves used different field names; each lookup walks a small tuple
of aliases in priority order.
"""

import logging
from typing import Any, Callable, Optional, Sequence

from pragmatica.config import DEFAULT_LIMITS, ImportLimits
from pragmatica.schemas import (
    MASTERY_THRESHOLD,
    AppSettings,
    Curriculum,
    ModuleMastery,
    ModuleProgress,
    PlacementState,
    UserProgress,
    build_default_mastery,
)
from pragmatica.utils.timeutil import is_finite_number, parse_timestamp, round_half_up

logger = logging.getLogger(__name__)

# Field aliases, checked in order
MODULES_ALIASES = ("modules", "moduleProgress")
PLACEMENT_ALIASES = ("placementTest", "placement")
PRE_TEST_ALIASES = ("preTest", "pretest")
POST_TEST_ALIASES = ("postTest", "posttest")
JOKES_ALIASES = ("jokes", "examples")
REFLECTION_ALIASES = ("reflection",)
TEACHER_MODE_ALIASES = ("teacherMode", "teacherModeEnabled")

MAX_ANSWER_INDEX = 100


# -----------------------------------------------------------------------------
# Primitive coercions
# -----------------------------------------------------------------------------

def is_plain_object(value: Any) -> bool:
    return isinstance(value, dict)


def pick(raw: dict, aliases: Sequence[str]) -> Any:
    """Return the value under the first alias present in raw, else None."""
    for alias in aliases:
        if alias in raw:
            return raw[alias]
    return None


def clamp_score(value: Any) -> Optional[int]:
    """Percentages: finite numbers rounded and clamped to 0-100."""
    if not is_finite_number(value):
        return None
    return max(0, min(100, round_half_up(value)))


def clamp_array(value: Any, max_items: int) -> list:
    return list(value[:max_items]) if isinstance(value, list) else []


def clamp_string(value: Any, max_length: int) -> Optional[str]:
    if not isinstance(value, str):
        return None
    return value[:max_length]


def string_ids(value: Any, limits: ImportLimits) -> list[str]:
    """Opaque identifiers: strings only, each cut to the key length limit."""
    return [
        item[:limits.max_key_length]
        for item in clamp_array(value, limits.max_array_items)
        if isinstance(item, str)
    ]


def bounded_ints(value: Any, max_items: int, upper: int) -> list[int]:
    """Integer indices in [0, upper]; everything else is dropped."""
    return [
        int(item)
        for item in clamp_array(value, max_items)
        if is_finite_number(item) and float(item).is_integer() and 0 <= item <= upper
    ]


def answer_indices(value: Any, limits: ImportLimits) -> list[Optional[int]]:
    """
    Recorded answers keep their positions; invalid entries become None
    (unanswered) instead of shifting later answers.
    """
    answers = []
    for item in clamp_array(value, limits.max_array_items):
        if is_finite_number(item) and 0 <= item <= MAX_ANSWER_INDEX:
            answers.append(int(item))
        else:
            answers.append(None)
    return answers


def copy_notes(value: Any, limits: ImportLimits) -> dict[str, str]:
    """Copy a string->string map, capping key count, key length and note length."""
    notes: dict[str, str] = {}
    if not is_plain_object(value):
        return notes
    for key, note in list(value.items())[:limits.max_note_keys]:
        if not isinstance(key, str) or len(key) > limits.max_key_length:
            continue
        if not isinstance(note, str):
            continue
        notes[key] = note[:limits.max_note_length]
    return notes


def copy_responses(value: Any, limits: ImportLimits):
    """Reflection responses may be free text, a list of answers or a prompt->answer map."""
    if isinstance(value, str):
        return value[:limits.max_note_length]
    if isinstance(value, list):
        return [
            item[:limits.max_note_length]
            for item in value[:limits.max_reflection_items]
            if isinstance(item, str)
        ]
    if is_plain_object(value):
        return copy_notes(value, limits)
    return None


# -----------------------------------------------------------------------------
# Module mastery
# -----------------------------------------------------------------------------

def _validate_placement(raw: Any, limits: ImportLimits) -> PlacementState:
    placement = PlacementState()
    if not is_plain_object(raw):
        return placement
    placement.completed = raw.get("completed") is True
    placement.score = clamp_score(raw.get("score"))
    placement.recommended_module = clamp_string(raw.get("recommendedModule"), limits.max_key_length)
    placement.date_taken = parse_timestamp(raw.get("dateTaken"))
    return placement


def _copy_section(source: dict, aliases: Sequence[str], apply: Callable[[dict], None]):
    section = pick(source, aliases)
    if is_plain_object(section):
        apply(section)


def _validate_module(
    source: dict,
    target: ModuleProgress,
    steps: Sequence[str],
    limits: ImportLimits,
) -> None:
    """Copy valid fields from source onto target (a default instance)."""
    target.unlocked = target.unlocked or source.get("unlocked") is True
    target.started = source.get("started") is True
    target.completed = source.get("completed") is True

    mastery_score = clamp_score(source.get("masteryScore"))
    if mastery_score is not None:
        target.mastery_score = mastery_score
    target.mastery_achieved = source.get("masteryAchieved") is True

    time_spent = source.get("timeSpent")
    if is_finite_number(time_spent):
        target.time_spent = max(0, round_half_up(time_spent))
    target.last_accessed = parse_timestamp(source.get("lastAccessed"))
    target.completion_date = parse_timestamp(source.get("completionDate"))
    target.last_review_date = parse_timestamp(source.get("lastReviewDate"))

    def pre_test(section: dict):
        target.pre_test.completed = section.get("completed") is True
        target.pre_test.score = clamp_score(section.get("score"))
        target.pre_test.answers = answer_indices(section.get("answers"), limits)

    def theory(section: dict):
        target.theory.completed = section.get("completed") is True
        target.theory.sections_read = string_ids(section.get("sectionsRead"), limits)

    def jokes(section: dict):
        target.jokes.analyzed = string_ids(section.get("analyzed"), limits)
        target.jokes.notes = copy_notes(section.get("notes"), limits)

    def activities(section: dict):
        target.activities.completed = string_ids(section.get("completed"), limits)
        target.activities.notes = copy_notes(section.get("notes"), limits)
        target.activities.completed_flag = section.get("completedFlag") is True

    def post_test(section: dict):
        target.post_test.completed = section.get("completed") is True
        target.post_test.score = clamp_score(section.get("score"))
        target.post_test.answers = answer_indices(section.get("answers"), limits)
        target.post_test.completed_at = parse_timestamp(section.get("completedAt"))

    def reflection(section: dict):
        target.reflection.completed = section.get("completed") is True
        responses = copy_responses(section.get("responses"), limits)
        if responses is not None:
            target.reflection.responses = responses

    _copy_section(source, PRE_TEST_ALIASES, pre_test)
    _copy_section(source, ("theory",), theory)
    _copy_section(source, JOKES_ALIASES, jokes)
    _copy_section(source, ("activities",), activities)
    _copy_section(source, POST_TEST_ALIASES, post_test)
    _copy_section(source, REFLECTION_ALIASES, reflection)

    enforce_module_invariants(target, steps)


def enforce_module_invariants(progress: ModuleProgress, steps: Sequence[str]) -> None:
    """Drop flags whose preconditions do not hold."""
    if progress.mastery_achieved and progress.mastery_score < MASTERY_THRESHOLD:
        progress.mastery_achieved = False
    if progress.completed:
        if "postTest" in steps and not progress.post_test.completed:
            progress.completed = False
        elif "reflection" in steps and not progress.reflection.completed:
            progress.completed = False
    if progress.completed:
        progress.unlocked = True
        progress.started = True


def validate_module_mastery(
    raw: Any,
    curriculum: Curriculum,
    limits: ImportLimits = DEFAULT_LIMITS,
) -> ModuleMastery:
    """
    Validate module mastery data against the curriculum.

    Only modules the curriculum defines are kept; the first module is
    always unlocked.
    """
    safe = build_default_mastery(curriculum.module_ids)
    if not is_plain_object(raw):
        return safe

    safe.placement_test = _validate_placement(pick(raw, PLACEMENT_ALIASES), limits)

    modules = pick(raw, MODULES_ALIASES)
    if not is_plain_object(modules):
        return safe

    for definition in curriculum.modules:
        source = modules.get(definition.id)
        if not is_plain_object(source):
            continue
        _validate_module(source, safe.modules[definition.id], definition.steps, limits)

    ignored = set(modules) - set(curriculum.module_ids)
    if ignored:
        logger.debug(f"Ignoring progress for unknown modules: {sorted(ignored, key=str)[:10]}")
    return safe


# -----------------------------------------------------------------------------
# User progress and settings
# -----------------------------------------------------------------------------

def validate_user_progress(raw: Any, limits: ImportLimits = DEFAULT_LIMITS) -> UserProgress:
    """Validate app-wide read/favorite/note collections."""
    safe = UserProgress()
    if not is_plain_object(raw):
        return safe

    safe.jokes_read = bounded_ints(raw.get("jokesRead"), limits.max_array_items, limits.max_joke_index)
    safe.activities_completed = string_ids(raw.get("activitiesCompleted"), limits)
    safe.quiz_scores = [
        score
        for score in (clamp_score(item) for item in clamp_array(raw.get("quizScores"), limits.max_array_items))
        if score is not None
    ]
    safe.favorite_jokes = bounded_ints(raw.get("favoriteJokes"), limits.max_array_items, limits.max_joke_index)
    safe.joke_notes = copy_notes(raw.get("jokeNotes"), limits)
    safe.activity_notes = copy_notes(raw.get("activityNotes"), limits)
    safe.learning_path = clamp_string(raw.get("learningPath"), limits.max_path_length) or None
    safe.onboarding_complete = raw.get("onboardingComplete") is True
    safe.has_visited_before = raw.get("hasVisitedBefore") is True
    safe.placement_completed = raw.get("placementCompleted") is True
    return safe


def validate_settings(raw: Any) -> AppSettings:
    """Teacher mode accepts a bool or the strings 'true'/'false' that older saves wrote."""
    safe = AppSettings()
    if not is_plain_object(raw):
        return safe
    teacher_mode = pick(raw, TEACHER_MODE_ALIASES)
    safe.teacher_mode = teacher_mode is True or teacher_mode == "true"
    if raw.get("theme") in ("light", "dark"):
        safe.theme = raw["theme"]
    return safe
