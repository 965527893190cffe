"""
Mastery scoring for module progress.

Two different questions are answered here:
- composite_score: how far along is the learner (partial-completion display)
- is_mastery_achieved: did the learner pass (post-test percentage only)
"""

from typing import Optional, Sequence

from pragmatica.schemas import MASTERY_THRESHOLD, ModuleDefinition, ModuleProgress, PostTestQuestion
from pragmatica.utils.timeutil import round_half_up

# Composite weights; they sum to 100
COMPOSITE_WEIGHTS = {
    "pre_test": 10,
    "theory": 20,
    "jokes": 30,
    "activities": 20,
    "post_test": 15,
    "reflection": 5,
}

SECTION_COUNT = 5


def _ratio_term(weight: int, done: int, required: int) -> int:
    if required <= 0:
        return 0
    return round_half_up(weight * min(1.0, done / required))


def composite_score(progress: ModuleProgress, definition: ModuleDefinition) -> int:
    """
    Weighted progress indicator, 0-100.

    Each term is computed and rounded independently; a module that
    requires no jokes (or activities) gets nothing for that term.
    """
    score = 0
    if progress.pre_test.completed:
        score += COMPOSITE_WEIGHTS["pre_test"]
    if progress.theory.completed:
        score += COMPOSITE_WEIGHTS["theory"]
    score += _ratio_term(COMPOSITE_WEIGHTS["jokes"], len(progress.jokes.analyzed), definition.required_jokes)
    score += _ratio_term(
        COMPOSITE_WEIGHTS["activities"], len(progress.activities.completed), definition.required_activities
    )
    if progress.post_test.completed:
        score += COMPOSITE_WEIGHTS["post_test"]
    if progress.reflection.completed:
        score += COMPOSITE_WEIGHTS["reflection"]
    return max(0, min(100, score))


def is_mastery_achieved(post_test_score: Optional[int]) -> bool:
    """Pass/fail on the stored post-test percentage."""
    return post_test_score is not None and post_test_score >= MASTERY_THRESHOLD


def count_correct(answers: Sequence[Optional[int]], questions: Sequence[PostTestQuestion]) -> int:
    return sum(
        1
        for index, question in enumerate(questions)
        if index < len(answers) and answers[index] == question.correct
    )


def post_test_percentage(answers: Sequence[Optional[int]], questions: Sequence[PostTestQuestion]) -> int:
    """Share of correctly answered questions, 0-100. An empty test scores 100."""
    if not questions:
        return 100
    return round_half_up(count_correct(answers, questions) / len(questions) * 100)


def all_questions_answered(answers: Sequence[Optional[int]], question_count: int) -> bool:
    if question_count <= 0:
        return True
    return len(answers) >= question_count and all(
        answer is not None for answer in answers[:question_count]
    )


def section_completion_percent(progress: ModuleProgress) -> int:
    """Share of the five sections with any progress (navigation banner)."""
    done = sum([
        progress.theory.completed,
        len(progress.jokes.analyzed) > 0,
        len(progress.activities.completed) > 0,
        progress.post_test.completed,
        progress.reflection.completed,
    ])
    return round_half_up(done / SECTION_COUNT * 100)
