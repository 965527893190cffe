"""
Placement - Record a placement test result and open the recommended module.
"""

import logging

from pragmatica.schemas import Curriculum, PlacementState

from .store import ProgressStore
from .unlock import unlock_prefix

logger = logging.getLogger(__name__)


def recommend_module(correct: int, curriculum: Curriculum) -> str:
    """Pick the module whose score range contains the number of correct answers."""
    for module_id, score_range in curriculum.placement_scoring.items():
        if score_range.min <= correct <= score_range.max:
            return module_id
    return curriculum.module_ids[0]


def record_placement(store: ProgressStore, correct: int, now: int) -> str:
    """
    Store the placement result and unlock every module up to the recommendation.

    Earlier modules stay open so the learner can go back and review them.
    The placement record, the user flag and the unlocks are staged together
    and swapped into the store in one replace.

    Returns:
        The recommended module ID
    """
    recommended = recommend_module(correct, store.curriculum)

    mastery = store.mastery.model_copy(deep=True)
    mastery.placement_test = PlacementState(
        completed=True,
        score=max(0, min(100, int(correct))),
        recommended_module=recommended,
        date_taken=now,
    )
    unlocked = unlock_prefix(store.module_ids, mastery.modules, recommended)

    user_progress = store.user_progress.model_copy(deep=True)
    user_progress.placement_completed = True

    store.replace(mastery=mastery, user_progress=user_progress)
    logger.info(f"Placement recommends {recommended} ({correct} correct); unlocked {unlocked}")
    return recommended
