"""
Navigator - Module sequencing, availability, and recommendations.

Provides:
- Module availability (locked / available / in progress / completed)
- Next/previous module navigation
- "Continue where you left off" recommendation
- Course tree with status indicators
"""

from dataclasses import dataclass
from enum import Enum
from typing import Optional

from pragmatica.schemas import ModuleDefinition

from .mastery import section_completion_percent
from .store import ProgressStore


class ModuleAvailability(str, Enum):
    """Module availability status for UI display."""
    LOCKED = "locked"           # Earlier modules not completed
    AVAILABLE = "available"     # Unlocked, not started
    IN_PROGRESS = "in_progress" # Started but not completed
    COMPLETED = "completed"     # Finished


@dataclass
class NavigationModule:
    """Module with navigation metadata."""
    definition: ModuleDefinition
    availability: ModuleAvailability
    is_recommended: bool
    progress_score: int
    mastery_score: int
    mastery_achieved: bool


@dataclass
class Recommendation:
    module_id: str
    module_title: str
    progress: int  # percent of sections with progress
    message: str


class Navigator:
    """
    Navigate through the course using the learner's store.
    """

    def __init__(self, store: ProgressStore):
        self.store = store
        self._module_order = list(store.module_ids)
        self._module_index = {module_id: idx for idx, module_id in enumerate(self._module_order)}

    @property
    def total_modules(self) -> int:
        return len(self._module_order)

    # -------------------------------------------------------------------------
    # Availability
    # -------------------------------------------------------------------------

    def get_module_availability(self, module_id: str) -> ModuleAvailability:
        if module_id not in self._module_index:
            return ModuleAvailability.LOCKED
        progress = self.store.module(module_id)
        if progress.completed:
            return ModuleAvailability.COMPLETED
        if not progress.unlocked:
            return ModuleAvailability.LOCKED
        if progress.started:
            return ModuleAvailability.IN_PROGRESS
        return ModuleAvailability.AVAILABLE

    def is_module_available(self, module_id: str) -> bool:
        return self.get_module_availability(module_id) != ModuleAvailability.LOCKED

    # -------------------------------------------------------------------------
    # Navigation
    # -------------------------------------------------------------------------

    def get_next_module_id(self, current_id: str) -> Optional[str]:
        if current_id not in self._module_index:
            return None
        current_idx = self._module_index[current_id]
        if current_idx + 1 >= len(self._module_order):
            return None
        return self._module_order[current_idx + 1]

    def get_previous_module_id(self, current_id: str) -> Optional[str]:
        if current_id not in self._module_index:
            return None
        current_idx = self._module_index[current_id]
        if current_idx <= 0:
            return None
        return self._module_order[current_idx - 1]

    def last_incomplete_module(self) -> Optional[str]:
        """First unlocked module that is not yet completed."""
        for module_id in self._module_order:
            progress = self.store.module(module_id)
            if progress.unlocked and not progress.completed:
                return module_id
        return None

    def all_modules_complete(self) -> bool:
        return all(self.store.module(module_id).completed for module_id in self._module_order)

    def recommendation(self) -> Optional[Recommendation]:
        """Banner text pointing the learner back to unfinished work."""
        module_id = self.last_incomplete_module()
        if not module_id:
            return None
        title = self.store.definition(module_id).title
        percent = section_completion_percent(self.store.module(module_id))
        return Recommendation(
            module_id=module_id,
            module_title=title,
            progress=percent,
            message=f"Continue {title} ({percent}% complete)",
        )

    def get_module_position(self, module_id: str) -> tuple[int, int]:
        """
        Get module position as (current, total).

        Returns (0, total) if module not found.
        """
        if module_id not in self._module_index:
            return (0, len(self._module_order))
        return (self._module_index[module_id] + 1, len(self._module_order))

    # -------------------------------------------------------------------------
    # Course tree
    # -------------------------------------------------------------------------

    def get_navigation_tree(self) -> list[NavigationModule]:
        recommended = self.last_incomplete_module()
        tree = []
        for module_id in self._module_order:
            progress = self.store.module(module_id)
            tree.append(NavigationModule(
                definition=self.store.definition(module_id),
                availability=self.get_module_availability(module_id),
                is_recommended=module_id == recommended,
                progress_score=progress.progress_score,
                mastery_score=progress.mastery_score,
                mastery_achieved=progress.mastery_achieved,
            ))
        return tree

    def get_status_indicator(self, module_id: str) -> str:
        """
        Get status indicator for sidebar display.

        Returns:
            ✓ for completed
            → for in progress
            ○ for available
            ◌ for locked
        """
        availability = self.get_module_availability(module_id)
        if availability == ModuleAvailability.COMPLETED:
            return "✓"
        elif availability == ModuleAvailability.IN_PROGRESS:
            return "→"
        elif availability == ModuleAvailability.AVAILABLE:
            return "○"
        else:
            return "◌"

    def get_progress_summary(self) -> dict:
        """Get progress summary for display."""
        completed = len(self.store.completed_module_ids())
        in_progress = sum(
            1 for module_id in self._module_order
            if self.get_module_availability(module_id) == ModuleAvailability.IN_PROGRESS
        )
        total = self.total_modules
        recommendation = self.recommendation()

        return {
            "total_modules": total,
            "completed": completed,
            "in_progress": in_progress,
            "not_started": total - completed - in_progress,
            "completion_percent": round(completed / total * 100, 1) if total > 0 else 0,
            "mastered": sum(1 for p in self.store.modules.values() if p.mastery_achieved),
            "total_study_seconds": sum(p.time_spent for p in self.store.modules.values()),
            "recommended_module_id": recommendation.module_id if recommendation else None,
        }
