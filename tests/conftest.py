"""
Shared fixtures: a small three-module course and an in-memory store.
"""

import pytest

from pragmatica.classroom import MemoryStorage, ProgressStore, curriculum_from_dict
from pragmatica.schemas import ModuleProgress

NOW = 1_760_000_000_000  # 2025-10-09

# Correct answers: 0, 1, 2
QUESTIONS = [
    {"prompt": f"Question {n + 1}", "options": ["first", "second", "third"], "correct": n}
    for n in range(3)
]


def make_curriculum(count: int = 3) -> dict:
    return {
        "modules": [
            {
                "id": f"module-{n}",
                "title": f"Module {n}",
                "required_jokes": 4,
                "required_activities": 2,
                "post_test": QUESTIONS,
            }
            for n in range(1, count + 1)
        ],
        "placement_scoring": {
            "module-1": {"min": 0, "max": 3, "label": "Beginner"},
            "module-2": {"min": 4, "max": 6, "label": "Intermediate"},
            "module-3": {"min": 7, "max": 9, "label": "Advanced"},
        },
    }


@pytest.fixture
def now():
    return NOW


@pytest.fixture
def curriculum():
    return curriculum_from_dict(make_curriculum())


@pytest.fixture
def six_module_curriculum():
    return curriculum_from_dict(make_curriculum(6))


@pytest.fixture
def store(curriculum):
    return ProgressStore(curriculum)


@pytest.fixture
def storage():
    return MemoryStorage()


@pytest.fixture
def complete_module():
    """Mark a module finished (all steps done) without walking the steps."""

    def complete(store: ProgressStore, module_id: str, score: int = 100, when: int = NOW):
        def apply(progress: ModuleProgress):
            progress.unlocked = True
            progress.started = True
            progress.completed = True
            progress.post_test.completed = True
            progress.post_test.score = score
            progress.post_test.completed_at = when
            progress.reflection.completed = True
            progress.mastery_score = score
            progress.mastery_achieved = score >= 80
            progress.completion_date = when

        return store.update_module(module_id, apply)

    return complete
