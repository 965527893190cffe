"""
Validator tests: untrusted progress data never raises and is always bounded.
"""

import pytest

from pragmatica.classroom import ProgressStore, validate_module_mastery, validate_settings, validate_user_progress
from pragmatica.config import ImportLimits
from pragmatica.schemas import ModuleMastery, UserProgress

GARBAGE = [None, [], "progress", 42, 3.5, True, {"modules": []}, {"modules": "x"}, {"modules": {"module-1": "bad"}}]


class TestNeverRaises:
    """Any input yields a structurally complete default-filled object."""

    @pytest.mark.parametrize("raw", GARBAGE)
    def test_module_mastery(self, raw, curriculum):
        mastery = validate_module_mastery(raw, curriculum)
        assert isinstance(mastery, ModuleMastery)
        assert list(mastery.modules) == curriculum.module_ids
        assert mastery.modules["module-1"].unlocked is True
        assert mastery.modules["module-2"].unlocked is False

    @pytest.mark.parametrize("raw", GARBAGE)
    def test_user_progress(self, raw):
        assert validate_user_progress(raw) == UserProgress()

    @pytest.mark.parametrize("raw", GARBAGE)
    def test_settings(self, raw):
        settings = validate_settings(raw)
        assert settings.teacher_mode is False
        assert settings.theme == "light"

    def test_wrong_section_types(self, curriculum):
        raw = {"modules": {"module-1": {
            "preTest": [],
            "theory": "done",
            "jokes": None,
            "postTest": {"answers": "0,1,2", "score": "100", "completedAt": {}},
            "reflection": {"responses": 5},
            "timeSpent": "forever",
        }}}
        progress = validate_module_mastery(raw, curriculum).modules["module-1"]
        assert progress.post_test.answers == []
        assert progress.post_test.score is None
        assert progress.post_test.completed_at is None
        assert progress.reflection.responses == {}
        assert progress.time_spent == 0


class TestClamping:
    """Out-of-policy values are clamped, truncated or dropped."""

    def test_scores(self):
        progress = validate_user_progress({"quizScores": [150, -5, "100", 50.5, None]})
        assert progress.quiz_scores == [100, 0, 51]

    def test_joke_indices(self):
        progress = validate_user_progress({"jokesRead": ["x", 3, 2.5, -1, True, 200_000], "favoriteJokes": [7.0]})
        assert progress.jokes_read == [3]
        assert progress.favorite_jokes == [7]

    def test_array_limit(self):
        limits = ImportLimits(max_array_items=3)
        progress = validate_user_progress({"activitiesCompleted": ["a", "b", "c", "d"]}, limits)
        assert progress.activities_completed == ["a", "b", "c"]

    def test_notes(self):
        limits = ImportLimits()
        progress = validate_user_progress({"jokeNotes": {
            "short": "x" * (limits.max_note_length + 10),
            "k" * (limits.max_key_length + 1): "dropped",
            "number": 5,
        }})
        assert progress.joke_notes == {"short": "x" * limits.max_note_length}

    def test_learning_path(self):
        progress = validate_user_progress({"learningPath": "p" * 100, "onboardingComplete": "yes"})
        assert progress.learning_path == "p" * 64
        assert progress.onboarding_complete is False

    def test_answers_keep_positions(self, curriculum):
        raw = {"modules": {"module-1": {"postTest": {"answers": [0, "x", 2, 500]}}}}
        progress = validate_module_mastery(raw, curriculum).modules["module-1"]
        assert progress.post_test.answers == [0, None, 2, None]

    def test_iso_timestamp(self, curriculum):
        raw = {"modules": {"module-1": {"completionDate": "2024-01-01T00:00:00Z", "lastAccessed": -1}}}
        progress = validate_module_mastery(raw, curriculum).modules["module-1"]
        assert progress.completion_date == 1_704_067_200_000
        assert progress.last_accessed is None

    def test_implausible_timestamps_dropped(self, curriculum):
        raw = {"modules": {"module-1": {
            "lastReviewDate": 1e18,
            "completionDate": 9e15,
            "lastAccessed": 1_000,
            "postTest": {"completedAt": "1999-12-31T00:00:00Z"},
        }}}
        progress = validate_module_mastery(raw, curriculum).modules["module-1"]
        assert progress.last_review_date is None
        assert progress.completion_date is None
        assert progress.last_accessed is None
        assert progress.post_test.completed_at is None

    def test_placement_date_out_of_range(self, curriculum):
        raw = {"placementTest": {"completed": True, "dateTaken": 9e15}}
        assert validate_module_mastery(raw, curriculum).placement_test.date_taken is None


class TestInvariants:
    """Flags whose preconditions fail are dropped."""

    def test_mastery_below_threshold_dropped(self, curriculum):
        raw = {"modules": {"module-1": {"masteryScore": 79, "masteryAchieved": True}}}
        progress = validate_module_mastery(raw, curriculum).modules["module-1"]
        assert progress.mastery_score == 79
        assert progress.mastery_achieved is False

    def test_mastery_at_threshold_kept(self, curriculum):
        raw = {"modules": {"module-1": {"masteryScore": 80, "masteryAchieved": True}}}
        progress = validate_module_mastery(raw, curriculum).modules["module-1"]
        assert progress.mastery_achieved is True

    def test_completed_needs_post_test(self, curriculum):
        raw = {"modules": {"module-1": {"completed": True, "reflection": {"completed": True}}}}
        assert validate_module_mastery(raw, curriculum).modules["module-1"].completed is False

    def test_completed_implies_unlocked(self, curriculum):
        raw = {"modules": {"module-2": {
            "completed": True,
            "postTest": {"completed": True},
            "reflection": {"completed": True},
        }}}
        progress = validate_module_mastery(raw, curriculum).modules["module-2"]
        assert progress.completed is True
        assert progress.unlocked is True
        assert progress.started is True


class TestAliases:
    """Older field names are accepted as synonyms."""

    def test_legacy_keys(self, curriculum):
        raw = {
            "moduleProgress": {"module-1": {
                "pretest": {"completed": True},
                "examples": {"analyzed": ["j1"]},
                "posttest": {"answers": [1]},
            }},
            "placement": {"completed": True, "recommendedModule": "module-2"},
        }
        mastery = validate_module_mastery(raw, curriculum)
        progress = mastery.modules["module-1"]
        assert progress.pre_test.completed is True
        assert progress.jokes.analyzed == ["j1"]
        assert progress.post_test.answers == [1]
        assert mastery.placement_test.recommended_module == "module-2"

    def test_unknown_modules_ignored(self, curriculum):
        raw = {"modules": {"module-9": {"started": True}, "module-1": {"started": True}}}
        mastery = validate_module_mastery(raw, curriculum)
        assert "module-9" not in mastery.modules
        assert mastery.modules["module-1"].started is True

    def test_teacher_mode_strings(self):
        assert validate_settings({"teacherModeEnabled": "true"}).teacher_mode is True
        assert validate_settings({"teacherMode": "false", "teacherModeEnabled": "true"}).teacher_mode is False
        assert validate_settings({"theme": "dark"}).theme == "dark"
        assert validate_settings({"theme": "neon"}).theme == "light"


class TestCanonicalRoundTrip:
    """Validating an already-valid dump changes nothing."""

    def test_module_mastery(self, store, complete_module):
        complete_module(store, "module-1", score=67)
        store.update_module("module-2", lambda p: setattr(p, "unlocked", True))
        store.update_module("module-2", lambda p: p.jokes.notes.update({"j1": "ha"}))

        raw = store.mastery.model_dump(by_alias=True)
        rebuilt = ProgressStore(store.curriculum, mastery=validate_module_mastery(raw, store.curriculum))
        assert rebuilt.mastery == store.mastery

    def test_user_progress(self):
        progress = UserProgress(jokes_read=[1, 2], joke_notes={"1": "ok"}, learning_path="fast", has_visited_before=True)
        assert validate_user_progress(progress.model_dump(by_alias=True)) == progress
