"""
UnlockEngine - Decide which module opens next.

A module becomes eligible only when every module before it in course
order is completed, not just its immediate predecessor. A learner whose
earlier module regressed (e.g. after a reset) cannot cascade forward.

Unlocking is monotonic: nothing here ever locks a module again.
"""

import logging
from dataclasses import dataclass
from typing import Mapping, Optional, Sequence

from pragmatica.schemas import ModuleProgress

from .store import ProgressStore

logger = logging.getLogger(__name__)


@dataclass
class UnlockDecision:
    """Outcome of one unlock evaluation."""
    module_id: Optional[str]      # first locked module, None if everything is unlocked
    eligible: bool
    blocked_by: Optional[str] = None  # first earlier module that is not completed


def next_unlock(module_ids: Sequence[str], modules: Mapping[str, ModuleProgress]) -> UnlockDecision:
    """Evaluate the first locked module in course order."""
    for position, module_id in enumerate(module_ids):
        progress = modules.get(module_id)
        if progress is not None and progress.unlocked:
            continue

        for earlier_id in module_ids[:position]:
            earlier = modules.get(earlier_id)
            if earlier is None or not earlier.completed:
                return UnlockDecision(module_id=module_id, eligible=False, blocked_by=earlier_id)
        return UnlockDecision(module_id=module_id, eligible=True)

    return UnlockDecision(module_id=None, eligible=False)


def apply_unlocks(store: ProgressStore) -> list[str]:
    """
    Unlock every module that has become eligible, cascading forward.

    Returns the IDs unlocked by this call (in order).
    """
    unlocked: list[str] = []
    for _ in store.module_ids:
        decision = next_unlock(store.module_ids, store.modules)
        if decision.module_id is None:
            break
        if not decision.eligible:
            logger.debug(f"Unlock of {decision.module_id} blocked by incomplete {decision.blocked_by}")
            break
        store.update_module(decision.module_id, _set_unlocked)
        unlocked.append(decision.module_id)
        logger.info(f"Unlocked module {decision.module_id}")
    return unlocked


def unlock_prefix(
    module_ids: Sequence[str],
    modules: Mapping[str, ModuleProgress],
    module_id: str,
) -> list[str]:
    """Set unlocked on every module up to and including module_id, in place."""
    if module_id not in module_ids:
        raise KeyError(f"Unknown module: {module_id}")

    unlocked = []
    for current_id in module_ids:
        progress = modules[current_id]
        if not progress.unlocked:
            _set_unlocked(progress)
            unlocked.append(current_id)
        if current_id == module_id:
            break
    return unlocked


def unlock_through(store: ProgressStore, module_id: str) -> list[str]:
    """
    Unlock every module up to and including module_id (placement results).

    Returns the IDs that were newly unlocked.
    """
    staged = store.mastery.model_copy(deep=True)
    unlocked = unlock_prefix(store.module_ids, staged.modules, module_id)
    store.replace(mastery=staged)
    return unlocked


def _set_unlocked(progress: ModuleProgress) -> None:
    progress.unlocked = True
