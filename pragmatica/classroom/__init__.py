"""
Pragmatica Classroom - Runtime components for learner progress.

This module provides:
- CurriculumLoader: Load the course definition
- ProgressStore: In-memory learner progress
- Validator: Sanitize untrusted progress data
- ProgressPersistence: Save/load through key/value storage
- StepStateMachine: Step gating inside a module
- Mastery scoring, unlock engine, review scheduler
- Navigator: Module sequencing and recommendations
"""

from .loader import (
    CurriculumLoader,
    ModuleSummary,
    load_curriculum,
    curriculum_from_dict,
)

from .store import ProgressStore

from .validator import (
    validate_module_mastery,
    validate_user_progress,
    validate_settings,
)

from .persistence import (
    KeyValueStorage,
    MemoryStorage,
    SqliteStorage,
    ProgressPersistence,
    SaveOutcome,
    LoadOutcome,
)

from .mastery import (
    composite_score,
    is_mastery_achieved,
    post_test_percentage,
    section_completion_percent,
)

from .steps import (
    StepStateMachine,
    StepGate,
    StepTransition,
)

from .unlock import (
    UnlockDecision,
    next_unlock,
    apply_unlocks,
    unlock_prefix,
    unlock_through,
)

from .review import (
    ReviewDue,
    review_status,
    due_reviews,
    most_urgent_review,
    complete_review,
    dismiss_review,
)

from .navigator import (
    Navigator,
    ModuleAvailability,
    NavigationModule,
    Recommendation,
)

from .placement import (
    recommend_module,
    record_placement,
)

__all__ = [
    # Loader
    "CurriculumLoader",
    "ModuleSummary",
    "load_curriculum",
    "curriculum_from_dict",
    # Store
    "ProgressStore",
    # Validator
    "validate_module_mastery",
    "validate_user_progress",
    "validate_settings",
    # Persistence
    "KeyValueStorage",
    "MemoryStorage",
    "SqliteStorage",
    "ProgressPersistence",
    "SaveOutcome",
    "LoadOutcome",
    # Mastery
    "composite_score",
    "is_mastery_achieved",
    "post_test_percentage",
    "section_completion_percent",
    # Steps
    "StepStateMachine",
    "StepGate",
    "StepTransition",
    # Unlock
    "UnlockDecision",
    "next_unlock",
    "apply_unlocks",
    "unlock_prefix",
    "unlock_through",
    # Review
    "ReviewDue",
    "review_status",
    "due_reviews",
    "most_urgent_review",
    "complete_review",
    "dismiss_review",
    # Navigator
    "Navigator",
    "ModuleAvailability",
    "NavigationModule",
    "Recommendation",
    # Placement
    "recommend_module",
    "record_placement",
]
