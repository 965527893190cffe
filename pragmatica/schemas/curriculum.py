"""
Curriculum schemas for Pragmatica.

Defines Pydantic models for the course structure:
- Module definitions with their ordered step lists
- Post-test questions (multiple choice)
- Placement test score ranges
"""

from pydantic import BaseModel, Field, field_validator, model_validator
from typing import Literal, Optional

StepId = Literal["theory", "jokes", "activities", "postTest", "reflection"]

ALL_STEPS: list[str] = ["theory", "jokes", "activities", "postTest", "reflection"]
CONTENT_STEPS = {"theory", "jokes", "activities"}


class PostTestQuestion(BaseModel):
    prompt: str
    options: list[str] = Field(..., min_length=2)
    correct: int = Field(..., ge=0)  # index into options

    @model_validator(mode="after")
    def correct_in_range(self):
        if self.correct >= len(self.options):
            raise ValueError(f"correct index {self.correct} out of range for {len(self.options)} options")
        return self


class PlacementRange(BaseModel):
    """Inclusive range of correct placement answers mapped to a starting module."""
    min: int = Field(..., ge=0)
    max: int = Field(..., ge=0)
    label: str
    description: str = ""


class ModuleDefinition(BaseModel):
    id: str = Field(..., pattern=r'^[a-z0-9][a-z0-9_-]*$')
    title: str
    steps: list[StepId] = Field(default_factory=lambda: list(ALL_STEPS))
    required_jokes: int = Field(default=0, ge=0)
    required_activities: int = Field(default=0, ge=0)
    post_test: list[PostTestQuestion] = []
    summary: Optional[str] = None

    @field_validator('steps')
    @classmethod
    def steps_ordered(cls, v):
        if not v:
            raise ValueError('A module needs at least one step')
        if len(set(v)) != len(v):
            raise ValueError('Duplicate step in module step list')
        if "reflection" in v and v[-1] != "reflection":
            raise ValueError('reflection must be the last step')
        if "postTest" in v:
            post_index = v.index("postTest")
            if any(step in CONTENT_STEPS for step in v[post_index + 1:]):
                raise ValueError('postTest must follow theory, jokes and activities')
        return v

    @property
    def post_test_question_count(self) -> int:
        return len(self.post_test)


class Curriculum(BaseModel):
    modules: list[ModuleDefinition] = Field(..., min_length=1)
    placement_scoring: dict[str, PlacementRange] = {}

    @model_validator(mode="after")
    def unique_module_ids(self):
        ids = [module.id for module in self.modules]
        duplicates = {module_id for module_id in ids if ids.count(module_id) > 1}
        if duplicates:
            raise ValueError(f"Duplicate module ids: {sorted(duplicates)}")
        unknown = set(self.placement_scoring) - set(ids)
        if unknown:
            raise ValueError(f"Placement scoring names unknown modules: {sorted(unknown)}")
        return self

    @property
    def module_ids(self) -> list[str]:
        return [module.id for module in self.modules]

    def get(self, module_id: str) -> Optional[ModuleDefinition]:
        for module in self.modules:
            if module.id == module_id:
                return module
        return None
