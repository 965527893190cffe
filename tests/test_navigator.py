"""
Navigator and placement tests.
"""

import pytest

from pragmatica.classroom import placement
from pragmatica.classroom import (
    ModuleAvailability,
    Navigator,
    StepStateMachine,
    recommend_module,
    record_placement,
)

NOW = 1_760_000_000_000


class TestAvailability:
    """Module availability from progress flags."""

    def test_fresh_store(self, store):
        nav = Navigator(store)
        assert nav.get_module_availability("module-1") == ModuleAvailability.AVAILABLE
        assert nav.get_module_availability("module-2") == ModuleAvailability.LOCKED
        assert nav.get_module_availability("module-9") == ModuleAvailability.LOCKED
        assert nav.is_module_available("module-1")
        assert not nav.is_module_available("module-2")

    def test_in_progress_and_completed(self, store, complete_module):
        nav = Navigator(store)
        StepStateMachine(store, "module-1", clock=lambda: NOW).enter()
        assert nav.get_module_availability("module-1") == ModuleAvailability.IN_PROGRESS

        complete_module(store, "module-1")
        assert nav.get_module_availability("module-1") == ModuleAvailability.COMPLETED

    def test_status_indicators(self, store, complete_module):
        nav = Navigator(store)
        assert nav.get_status_indicator("module-1") == "○"
        assert nav.get_status_indicator("module-2") == "◌"
        complete_module(store, "module-1")
        assert nav.get_status_indicator("module-1") == "✓"
        store.update_module("module-2", lambda p: setattr(p, "started", True))
        store.update_module("module-2", lambda p: setattr(p, "unlocked", True))
        assert nav.get_status_indicator("module-2") == "→"


class TestNavigation:
    """Ordering helpers."""

    def test_next_previous(self, store):
        nav = Navigator(store)
        assert nav.get_next_module_id("module-1") == "module-2"
        assert nav.get_next_module_id("module-3") is None
        assert nav.get_previous_module_id("module-1") is None
        assert nav.get_previous_module_id("module-3") == "module-2"
        assert nav.get_next_module_id("module-9") is None

    def test_position(self, store):
        nav = Navigator(store)
        assert nav.get_module_position("module-2") == (2, 3)
        assert nav.get_module_position("module-9") == (0, 3)

    def test_last_incomplete(self, store, complete_module):
        nav = Navigator(store)
        assert nav.last_incomplete_module() == "module-1"
        for module_id in store.module_ids:
            complete_module(store, module_id)
        assert nav.last_incomplete_module() is None
        assert nav.all_modules_complete()

    def test_recommendation(self, store):
        nav = Navigator(store)
        store.update_module("module-1", lambda p: setattr(p.theory, "completed", True))
        recommendation = nav.recommendation()
        assert recommendation.module_id == "module-1"
        assert recommendation.progress == 20
        assert recommendation.message == "Continue Module 1 (20% complete)"

    def test_tree(self, store, complete_module):
        complete_module(store, "module-1", score=90)
        store.update_module("module-2", lambda p: setattr(p, "unlocked", True))
        tree = Navigator(store).get_navigation_tree()

        assert [item.definition.id for item in tree] == store.module_ids
        assert tree[0].mastery_achieved is True
        assert tree[0].mastery_score == 90
        assert tree[1].is_recommended is True
        assert tree[2].availability == ModuleAvailability.LOCKED

    def test_summary(self, store, complete_module):
        complete_module(store, "module-1")
        store.update_module("module-2", lambda p: setattr(p, "unlocked", True))
        store.update_module("module-2", lambda p: setattr(p, "started", True))
        summary = Navigator(store).get_progress_summary()

        assert summary["total_modules"] == 3
        assert summary["completed"] == 1
        assert summary["in_progress"] == 1
        assert summary["not_started"] == 1
        assert summary["completion_percent"] == 33.3
        assert summary["mastered"] == 1
        assert summary["recommended_module_id"] == "module-2"


class TestPlacement:
    """Placement score ranges and skipping ahead."""

    def test_recommend(self, curriculum):
        assert recommend_module(0, curriculum) == "module-1"
        assert recommend_module(5, curriculum) == "module-2"
        assert recommend_module(9, curriculum) == "module-3"
        assert recommend_module(50, curriculum) == "module-1"

    def test_record(self, store):
        assert record_placement(store, 8, NOW) == "module-3"
        assert all(store.module(module_id).unlocked for module_id in store.module_ids)
        assert store.placement.completed is True
        assert store.placement.score == 8
        assert store.placement.recommended_module == "module-3"
        assert store.placement.date_taken == NOW
        assert store.user_progress.placement_completed is True

    def test_record_beginner(self, store):
        record_placement(store, 1, NOW)
        assert store.module("module-2").unlocked is False

    def test_record_is_atomic(self, store, monkeypatch):
        def fail(*args):
            raise RuntimeError("unlock failed")

        monkeypatch.setattr(placement, "unlock_prefix", fail)
        before_mastery = store.mastery.model_copy(deep=True)
        before_user = store.user_progress.model_copy(deep=True)

        with pytest.raises(RuntimeError):
            record_placement(store, 8, NOW)
        assert store.mastery == before_mastery
        assert store.user_progress == before_user
        assert store.placement.completed is False
