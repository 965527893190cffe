"""
StepStateMachine - Walk a learner through one module's ordered steps.

Provides:
- Gating: theory, jokes and activities never block; the post-test needs
  every question answered; reflection needs an explicit save
- advance()/retreat() that never raise and never corrupt the step index
- Learner actions that record progress on the module (answers, reads, notes)
- Module completion when advancing past the last step, followed by unlocks
"""

import logging
from dataclasses import dataclass, field
from typing import Callable, Optional

from pragmatica.schemas import ModuleProgress, ReflectionResponses
from pragmatica.utils.timeutil import now_ms

from .mastery import all_questions_answered, composite_score, is_mastery_achieved, post_test_percentage
from .store import ProgressStore
from .unlock import apply_unlocks

logger = logging.getLogger(__name__)

STEP_LABELS = {
    "theory": "Theory",
    "jokes": "Examples",
    "activities": "Practice",
    "postTest": "Post-test",
    "reflection": "Reflection",
}

POST_TEST_REASON = "Answer all post-test questions before continuing."
REFLECTION_REASON = "Save your reflection before finishing the module."


@dataclass
class StepGate:
    allowed: bool
    reason: Optional[str] = None


@dataclass
class StepTransition:
    """Result of advance()/retreat()."""
    moved: bool
    step: str               # step the learner is on after the call
    index: int
    reason: Optional[str] = None
    completed_module: bool = False
    unlocked: list[str] = field(default_factory=list)


class StepStateMachine:
    """
    Step navigation for a single module, backed by the shared store.
    """

    def __init__(self, store: ProgressStore, module_id: str, clock: Callable[[], int] = now_ms):
        """
        Args:
            store: ProgressStore holding the learner's progress
            module_id: Module to walk through
            clock: Returns the current time in epoch milliseconds
        """
        self.store = store
        self.module_id = module_id
        self.definition = store.definition(module_id)
        self.steps: list[str] = list(self.definition.steps)
        self.index = 0
        self._clock = clock

    @property
    def progress(self) -> ModuleProgress:
        return self.store.module(self.module_id)

    @property
    def current_step(self) -> str:
        return self.steps[self.index]

    @property
    def is_last_step(self) -> bool:
        return self.index == len(self.steps) - 1

    def position(self) -> tuple[int, int]:
        """Current step as (1-based position, total)."""
        return (self.index + 1, len(self.steps))

    def enter(self) -> None:
        """Mark the module as started and touch its access time."""
        now = self._clock()

        def apply(progress: ModuleProgress):
            progress.started = True
            progress.last_accessed = now

        self.store.update_module(self.module_id, apply)

    # -------------------------------------------------------------------------
    # Gating
    # -------------------------------------------------------------------------

    def gate(self) -> StepGate:
        """Check whether the current step lets the learner move on."""
        step = self.current_step
        progress = self.progress

        if step == "postTest":
            answered = progress.post_test.completed or all_questions_answered(
                progress.post_test.answers, self.definition.post_test_question_count
            )
            if not answered:
                return StepGate(False, POST_TEST_REASON)
        elif step == "reflection":
            if not progress.reflection.completed:
                return StepGate(False, REFLECTION_REASON)
        return StepGate(True)

    # -------------------------------------------------------------------------
    # Transitions
    # -------------------------------------------------------------------------

    def advance(self) -> StepTransition:
        gate = self.gate()
        if not gate.allowed:
            return StepTransition(moved=False, step=self.current_step, index=self.index, reason=gate.reason)

        now = self._clock()
        self.store.update_module(self.module_id, lambda progress: self._leave_step(progress, now))

        if self.is_last_step:
            unlocked = self._complete_module(now)
            return StepTransition(
                moved=True,
                step=self.current_step,
                index=self.index,
                completed_module=True,
                unlocked=unlocked,
            )

        self.index += 1
        return StepTransition(moved=True, step=self.current_step, index=self.index)

    def retreat(self) -> StepTransition:
        if self.index == 0:
            return StepTransition(moved=False, step=self.current_step, index=self.index)
        self.index -= 1
        return StepTransition(moved=True, step=self.current_step, index=self.index)

    def _leave_step(self, progress: ModuleProgress, now: int) -> None:
        step = self.current_step
        if step == "theory":
            progress.theory.completed = True
        elif step == "activities":
            progress.activities.completed_flag = True
        elif step == "postTest" and not progress.post_test.completed:
            progress.post_test.score = post_test_percentage(progress.post_test.answers, self.definition.post_test)
            progress.post_test.completed = True
            progress.post_test.completed_at = now

    def _complete_module(self, now: int) -> list[str]:
        has_post_test = "postTest" in self.steps

        def apply(progress: ModuleProgress):
            if has_post_test:
                final_score = progress.post_test.score or 0
            else:
                final_score = composite_score(progress, self.definition)
            progress.completed = True
            progress.completion_date = progress.completion_date or now
            progress.mastery_score = final_score
            progress.mastery_achieved = is_mastery_achieved(final_score)

        completed = self.store.update_module(self.module_id, apply)
        logger.info(
            f"Completed {self.module_id} with mastery score {completed.mastery_score}"
            f" (achieved={completed.mastery_achieved})"
        )
        return apply_unlocks(self.store)

    # -------------------------------------------------------------------------
    # Learner actions
    # -------------------------------------------------------------------------

    def record_answer(self, question_index: int, answer_index: int) -> bool:
        """Record a post-test answer. Returns False for out-of-range input or a finished test."""
        questions = self.definition.post_test
        if not 0 <= question_index < len(questions):
            return False
        if not 0 <= answer_index < len(questions[question_index].options):
            return False
        if self.progress.post_test.completed:
            return False

        def apply(progress: ModuleProgress):
            answers = progress.post_test.answers
            while len(answers) <= question_index:
                answers.append(None)
            answers[question_index] = answer_index

        self.store.update_module(self.module_id, apply)
        return True

    def record_pre_test(self, answers: list[int], score: int) -> None:
        bounded = max(0, min(100, int(score)))

        def apply(progress: ModuleProgress):
            progress.pre_test.completed = True
            progress.pre_test.score = bounded
            progress.pre_test.answers = list(answers[:self.store.limits.max_array_items])

        self.store.update_module(self.module_id, apply)

    def mark_section_read(self, section_id: str) -> None:
        self._add_unique(lambda progress: progress.theory.sections_read, section_id)

    def analyze_example(self, example_id: str) -> None:
        self._add_unique(lambda progress: progress.jokes.analyzed, example_id)

    def complete_activity(self, activity_id: str) -> None:
        self._add_unique(lambda progress: progress.activities.completed, activity_id)

    def save_reflection(self, responses: ReflectionResponses) -> bool:
        """The only action that marks the reflection complete. Empty responses are refused."""
        if not responses:
            return False
        limit = self.store.limits.max_note_length
        if isinstance(responses, str):
            stored = responses[:limit]
        elif isinstance(responses, list):
            stored = [item[:limit] for item in responses[:self.store.limits.max_reflection_items]]
        else:
            stored = {key: value[:limit] for key, value in list(responses.items())[:self.store.limits.max_note_keys]}

        def apply(progress: ModuleProgress):
            progress.reflection.responses = stored
            progress.reflection.completed = True

        self.store.update_module(self.module_id, apply)
        return True

    def add_time_spent(self, seconds: int) -> None:
        if seconds <= 0:
            return

        def apply(progress: ModuleProgress):
            progress.time_spent += int(seconds)

        self.store.update_module(self.module_id, apply)

    def _add_unique(self, select: Callable[[ModuleProgress], list[str]], item_id: str) -> None:
        item_id = item_id[:self.store.limits.max_key_length]
        current = select(self.progress)
        if item_id in current or len(current) >= self.store.limits.max_array_items:
            return
        self.store.update_module(self.module_id, lambda progress: select(progress).append(item_id))
