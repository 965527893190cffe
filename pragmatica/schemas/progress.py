"""
Progress tracking schemas for Pragmatica.

Defines Pydantic models for learner progress including:
- Per-module step data (pre-test, theory, jokes, activities, post-test, reflection)
- Placement test state
- App-wide user progress (read/favorite/note collections)
- Whole-app settings

Python attributes are snake_case; every field carries the camelCase alias
used in storage and backup payloads. Dump with ``by_alias=True``.
"""

from pydantic import BaseModel, ConfigDict, Field, model_validator
from typing import Literal, Optional, Union

MASTERY_THRESHOLD = 80


class ProgressModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True)


# -----------------------------------------------------------------------------
# Module step slices
# -----------------------------------------------------------------------------

class PreTestProgress(ProgressModel):
    completed: bool = False
    score: Optional[int] = Field(default=None, ge=0, le=100)
    answers: list[Optional[int]] = []  # position = question index, None = unanswered


class PostTestProgress(PreTestProgress):
    completed_at: Optional[int] = Field(default=None, alias="completedAt")


class TheoryProgress(ProgressModel):
    completed: bool = False
    sections_read: list[str] = Field(default_factory=list, alias="sectionsRead")


class ExampleProgress(ProgressModel):
    """Analysed example jokes (opaque identifiers) and per-joke notes."""
    analyzed: list[str] = []
    notes: dict[str, str] = {}


class ActivityProgress(ProgressModel):
    completed: list[str] = []
    notes: dict[str, str] = {}
    completed_flag: bool = Field(default=False, alias="completedFlag")


ReflectionResponses = Union[str, list[str], dict[str, str]]


class ReflectionProgress(ProgressModel):
    completed: bool = False
    responses: ReflectionResponses = {}


# -----------------------------------------------------------------------------
# Module progress
# -----------------------------------------------------------------------------

class ModuleProgress(ProgressModel):
    """
    Progress for one module.

    Two scores are kept apart on purpose:
    - mastery_score: the post-test percentage written on completion (pass/fail)
    - progress_score: the weighted composite used for partial-completion display
    """
    unlocked: bool = False
    started: bool = False
    completed: bool = False
    pre_test: PreTestProgress = Field(default_factory=PreTestProgress, alias="preTest")
    theory: TheoryProgress = Field(default_factory=TheoryProgress)
    jokes: ExampleProgress = Field(default_factory=ExampleProgress)
    activities: ActivityProgress = Field(default_factory=ActivityProgress)
    post_test: PostTestProgress = Field(default_factory=PostTestProgress, alias="postTest")
    reflection: ReflectionProgress = Field(default_factory=ReflectionProgress)
    mastery_score: int = Field(default=0, ge=0, le=100, alias="masteryScore")
    mastery_achieved: bool = Field(default=False, alias="masteryAchieved")
    progress_score: int = Field(default=0, ge=0, le=100, alias="progressScore")
    time_spent: int = Field(default=0, ge=0, alias="timeSpent")  # seconds
    last_accessed: Optional[int] = Field(default=None, alias="lastAccessed")
    completion_date: Optional[int] = Field(default=None, alias="completionDate")
    last_review_date: Optional[int] = Field(default=None, alias="lastReviewDate")

    @model_validator(mode="after")
    def mastery_requires_threshold(self):
        if self.mastery_achieved and self.mastery_score < MASTERY_THRESHOLD:
            raise ValueError(
                f"masteryAchieved requires masteryScore >= {MASTERY_THRESHOLD}"
            )
        return self


class PlacementState(ProgressModel):
    completed: bool = False
    score: Optional[int] = Field(default=None, ge=0, le=100)
    recommended_module: Optional[str] = Field(default=None, alias="recommendedModule")
    date_taken: Optional[int] = Field(default=None, alias="dateTaken")


class ModuleMastery(ProgressModel):
    placement_test: PlacementState = Field(default_factory=PlacementState, alias="placementTest")
    modules: dict[str, ModuleProgress] = {}


def build_default_mastery(module_ids: list[str]) -> ModuleMastery:
    """Default mastery for an ordered module list; the first module starts unlocked."""
    return ModuleMastery(
        modules={
            module_id: ModuleProgress(unlocked=(position == 0))
            for position, module_id in enumerate(module_ids)
        }
    )


# -----------------------------------------------------------------------------
# App-wide progress and settings
# -----------------------------------------------------------------------------

class UserProgress(ProgressModel):
    jokes_read: list[int] = Field(default_factory=list, alias="jokesRead")
    activities_completed: list[str] = Field(default_factory=list, alias="activitiesCompleted")
    quiz_scores: list[int] = Field(default_factory=list, alias="quizScores")
    favorite_jokes: list[int] = Field(default_factory=list, alias="favoriteJokes")
    joke_notes: dict[str, str] = Field(default_factory=dict, alias="jokeNotes")
    activity_notes: dict[str, str] = Field(default_factory=dict, alias="activityNotes")
    learning_path: Optional[str] = Field(default=None, alias="learningPath")
    onboarding_complete: bool = Field(default=False, alias="onboardingComplete")
    has_visited_before: bool = Field(default=False, alias="hasVisitedBefore")
    placement_completed: bool = Field(default=False, alias="placementCompleted")


class AppSettings(ProgressModel):
    teacher_mode: bool = Field(default=False, alias="teacherMode")
    theme: Literal["light", "dark"] = "light"
