"""
ProgressStore - The single writable owner of a learner's progress.

Holds module mastery, app-wide user progress and settings for one
curriculum. No I/O happens here; ProgressPersistence saves and loads it.

Every mutation is staged on a deep copy and assigned in one step, so an
exception raised half-way through an update leaves the store unchanged.
"""

from typing import Callable, Optional

from pragmatica.config import DEFAULT_LIMITS, ImportLimits
from pragmatica.schemas import (
    AppSettings,
    Curriculum,
    ModuleDefinition,
    ModuleMastery,
    ModuleProgress,
    PlacementState,
    UserProgress,
    build_default_mastery,
)

from .mastery import composite_score


class ProgressStore:
    """
    In-memory learner progress, passed explicitly to every component.
    """

    def __init__(
        self,
        curriculum: Curriculum,
        mastery: Optional[ModuleMastery] = None,
        user_progress: Optional[UserProgress] = None,
        settings: Optional[AppSettings] = None,
        limits: ImportLimits = DEFAULT_LIMITS,
    ):
        self.curriculum = curriculum
        self.limits = limits
        self.mastery = mastery or build_default_mastery(curriculum.module_ids)
        self.user_progress = user_progress or UserProgress()
        self.settings = settings or AppSettings()
        self.mastery = self._with_all_modules(self.mastery)

    @property
    def module_ids(self) -> list[str]:
        return self.curriculum.module_ids

    def _with_all_modules(self, mastery: ModuleMastery) -> ModuleMastery:
        """Return mastery with a default entry for every curriculum module and fresh derived scores."""
        staged = mastery.model_copy(deep=True)
        defaults = build_default_mastery(self.module_ids)
        modules = {}
        for module_id in self.module_ids:
            progress = staged.modules.get(module_id) or defaults.modules[module_id]
            progress.progress_score = composite_score(progress, self.definition(module_id))
            modules[module_id] = progress
        staged.modules = modules
        return staged

    # -------------------------------------------------------------------------
    # Reads
    # -------------------------------------------------------------------------

    def definition(self, module_id: str) -> ModuleDefinition:
        definition = self.curriculum.get(module_id)
        if definition is None:
            raise KeyError(f"Unknown module: {module_id}")
        return definition

    def module(self, module_id: str) -> ModuleProgress:
        if module_id not in self.mastery.modules:
            raise KeyError(f"Unknown module: {module_id}")
        return self.mastery.modules[module_id]

    @property
    def modules(self) -> dict[str, ModuleProgress]:
        return self.mastery.modules

    @property
    def placement(self) -> PlacementState:
        return self.mastery.placement_test

    def completed_module_ids(self) -> set[str]:
        return {module_id for module_id, progress in self.modules.items() if progress.completed}

    # -------------------------------------------------------------------------
    # Staged updates
    # -------------------------------------------------------------------------

    def update_module(self, module_id: str, mutate: Callable[[ModuleProgress], None]) -> ModuleProgress:
        """Apply mutate to a copy of the module, recompute its progress score, then swap it in."""
        staged = self.module(module_id).model_copy(deep=True)
        mutate(staged)
        staged.progress_score = composite_score(staged, self.definition(module_id))
        self.mastery.modules[module_id] = staged
        return staged

    def update_placement(self, mutate: Callable[[PlacementState], None]) -> PlacementState:
        staged = self.placement.model_copy(deep=True)
        mutate(staged)
        self.mastery.placement_test = staged
        return staged

    def update_user_progress(self, mutate: Callable[[UserProgress], None]) -> UserProgress:
        staged = self.user_progress.model_copy(deep=True)
        mutate(staged)
        self.user_progress = staged
        return staged

    def update_settings(self, **changes) -> AppSettings:
        staged = self.settings.model_copy(update=changes)
        self.settings = AppSettings.model_validate(staged.model_dump())
        return self.settings

    def replace(
        self,
        mastery: Optional[ModuleMastery] = None,
        user_progress: Optional[UserProgress] = None,
    ) -> None:
        """Swap in validated halves (restore/import). A None half keeps the current value."""
        staged_mastery = self._with_all_modules(mastery) if mastery is not None else self.mastery
        staged_user = user_progress.model_copy(deep=True) if user_progress is not None else self.user_progress
        self.mastery, self.user_progress = staged_mastery, staged_user

    def reset(self) -> None:
        self.replace(build_default_mastery(self.module_ids), UserProgress())

    # -------------------------------------------------------------------------
    # App-wide progress helpers
    # -------------------------------------------------------------------------

    def mark_joke_read(self, joke_index: int) -> bool:
        """Record a viewed joke. Returns False if it was already recorded or the list is full."""
        progress = self.user_progress
        if joke_index in progress.jokes_read or len(progress.jokes_read) >= self.limits.max_array_items:
            return False
        self.update_user_progress(lambda p: p.jokes_read.append(joke_index))
        return True

    def toggle_favorite(self, joke_index: int) -> bool:
        """Flip a favorite. Returns True if the joke is now a favorite."""
        if joke_index in self.user_progress.favorite_jokes:
            self.update_user_progress(lambda p: p.favorite_jokes.remove(joke_index))
            return False
        if len(self.user_progress.favorite_jokes) >= self.limits.max_array_items:
            return False
        self.update_user_progress(lambda p: p.favorite_jokes.append(joke_index))
        return True

    def mark_activity_completed(self, activity_id: str) -> bool:
        activity_id = activity_id[:self.limits.max_key_length]
        progress = self.user_progress
        if activity_id in progress.activities_completed or len(progress.activities_completed) >= self.limits.max_array_items:
            return False
        self.update_user_progress(lambda p: p.activities_completed.append(activity_id))
        return True

    def add_quiz_score(self, score: int) -> None:
        bounded = max(0, min(100, int(score)))
        if len(self.user_progress.quiz_scores) >= self.limits.max_array_items:
            return
        self.update_user_progress(lambda p: p.quiz_scores.append(bounded))

    def set_joke_note(self, joke_key: str, note: str) -> bool:
        """Save (or clear, with an empty note) a learner note for a joke."""
        if len(joke_key) > self.limits.max_key_length:
            return False
        notes = self.user_progress.joke_notes
        if joke_key not in notes and note and len(notes) >= self.limits.max_note_keys:
            return False

        def apply(progress: UserProgress):
            if note:
                progress.joke_notes[joke_key] = note[:self.limits.max_note_length]
            else:
                progress.joke_notes.pop(joke_key, None)

        self.update_user_progress(apply)
        return True
