"""
ReviewScheduler - Spaced-repetition reminders for completed modules.

A completed module is due for review once at least one full day has
passed since its last review (or since it was completed). The longer it
has waited, the more urgent the band.

Completing and dismissing a review both reset the anchor to now; the
stored data cannot tell them apart.
"""

from dataclasses import dataclass
from typing import Mapping, Optional, Sequence

from pragmatica.schemas import ModuleProgress
from pragmatica.utils.timeutil import DAY_MS

from .store import ProgressStore

# (minimum days since review, band name, reason shown to the learner)
REVIEW_BANDS = (
    (14, "2-week review", "It has been two weeks. A 2-week review locks this module into long-term memory."),
    (7, "1-week review", "One week since your last visit. Time for the 1-week review."),
    (3, "3-day review", "Three days have passed. A quick 3-day review keeps it fresh."),
    (1, "24-hour review", "Yesterday's module is ready for its 24-hour review."),
)


@dataclass
class ReviewDue:
    """A completed module that is due for review."""
    module_id: str
    days_since_review: int
    band: str
    reason: str


def review_anchor(progress: ModuleProgress) -> Optional[int]:
    """Last review time, falling back to post-test completion, then module completion."""
    if progress.last_review_date is not None:
        return progress.last_review_date
    if progress.post_test.completed_at is not None:
        return progress.post_test.completed_at
    return progress.completion_date


def days_since(anchor: int, now: int) -> int:
    return (now - anchor) // DAY_MS


def review_status(module_id: str, progress: ModuleProgress, now: int) -> Optional[ReviewDue]:
    """Return the review band for a module, or None if it is not due."""
    if not progress.completed:
        return None
    anchor = review_anchor(progress)
    if anchor is None:
        return None

    days = days_since(anchor, now)
    for threshold, band, reason in REVIEW_BANDS:
        if days >= threshold:
            return ReviewDue(module_id=module_id, days_since_review=days, band=band, reason=reason)
    return None


def due_reviews(
    module_ids: Sequence[str],
    modules: Mapping[str, ModuleProgress],
    now: int,
) -> list[ReviewDue]:
    """All due reviews, most overdue first (course order breaks ties)."""
    due = []
    for module_id in module_ids:
        progress = modules.get(module_id)
        if progress is None:
            continue
        status = review_status(module_id, progress, now)
        if status:
            due.append(status)
    # sort is stable, so equal waits keep course order
    return sorted(due, key=lambda item: item.days_since_review, reverse=True)


def most_urgent_review(store: ProgressStore, now: int) -> Optional[ReviewDue]:
    """The single review surfaced to the learner."""
    due = due_reviews(store.module_ids, store.modules, now)
    return due[0] if due else None


def complete_review(store: ProgressStore, module_id: str, now: int) -> None:
    """Learner finished the quick review."""
    _reset_anchor(store, module_id, now)


def dismiss_review(store: ProgressStore, module_id: str, now: int) -> None:
    """Learner dismissed the reminder; postponed by one full cycle like a completed review."""
    _reset_anchor(store, module_id, now)


def _reset_anchor(store: ProgressStore, module_id: str, now: int) -> None:
    def apply(progress: ModuleProgress):
        progress.last_review_date = now
    store.update_module(module_id, apply)
