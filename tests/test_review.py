"""
Review scheduler tests.
"""

import pytest

from pragmatica.classroom import complete_review, dismiss_review, due_reviews, most_urgent_review, review_status
from pragmatica.classroom.review import review_anchor
from pragmatica.schemas import ModuleProgress
from pragmatica.utils.timeutil import DAY_MS

NOW = 1_760_000_000_000


def completed_days_ago(days: float) -> ModuleProgress:
    progress = ModuleProgress(unlocked=True, completed=True)
    progress.completion_date = NOW - int(days * DAY_MS)
    return progress


class TestReviewBands:
    """Band boundaries by whole days since the anchor."""

    @pytest.mark.parametrize("days,band", [
        (1, "24-hour review"),
        (2.9, "24-hour review"),
        (3, "3-day review"),
        (6, "3-day review"),
        (7, "1-week review"),
        (13, "1-week review"),
        (14, "2-week review"),
        (60, "2-week review"),
    ])
    def test_band(self, days, band):
        status = review_status("module-1", completed_days_ago(days), NOW)
        assert status.band == band
        assert status.days_since_review == int(days)

    def test_not_yet_due(self):
        assert review_status("module-1", completed_days_ago(0.9), NOW) is None

    def test_incomplete_module(self):
        progress = completed_days_ago(10)
        progress.completed = False
        assert review_status("module-1", progress, NOW) is None

    def test_no_anchor(self):
        assert review_status("module-1", ModuleProgress(completed=True), NOW) is None


class TestAnchor:
    """Last review wins over post-test time, which wins over completion."""

    def test_priority(self):
        progress = completed_days_ago(20)
        assert review_anchor(progress) == progress.completion_date

        progress.post_test.completed_at = NOW - 5 * DAY_MS
        assert review_anchor(progress) == NOW - 5 * DAY_MS

        progress.last_review_date = NOW - 2 * DAY_MS
        assert review_anchor(progress) == NOW - 2 * DAY_MS
        assert review_status("module-1", progress, NOW).band == "24-hour review"


class TestDueReviews:
    """Ordering and actions."""

    def test_most_overdue_first(self):
        modules = {
            "module-1": completed_days_ago(3),
            "module-2": completed_days_ago(10),
            "module-3": completed_days_ago(3),
        }
        due = due_reviews(["module-1", "module-2", "module-3"], modules, NOW)
        assert [item.module_id for item in due] == ["module-2", "module-1", "module-3"]

    def test_most_urgent(self, store, complete_module):
        assert most_urgent_review(store, NOW) is None
        complete_module(store, "module-1", when=NOW - 8 * DAY_MS)
        due = most_urgent_review(store, NOW)
        assert due.module_id == "module-1"
        assert due.band == "1-week review"

    def test_complete_resets(self, store, complete_module):
        complete_module(store, "module-1", when=NOW - 8 * DAY_MS)
        complete_review(store, "module-1", NOW)
        assert store.module("module-1").last_review_date == NOW
        assert most_urgent_review(store, NOW) is None
        assert most_urgent_review(store, NOW + DAY_MS).band == "24-hour review"

    def test_dismiss_resets(self, store, complete_module):
        complete_module(store, "module-1", when=NOW - 8 * DAY_MS)
        dismiss_review(store, "module-1", NOW)
        assert store.module("module-1").last_review_date == NOW
        assert most_urgent_review(store, NOW) is None
