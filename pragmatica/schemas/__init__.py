"""
Pragmatica Schemas - Pydantic models for the learning platform.

This module exports all schema classes for:
- Curriculum: module definitions, post-test questions, placement ranges
- Progress: per-module progress, placement state, user progress, settings
"""

# Curriculum schemas
from .curriculum import (
    StepId,
    ALL_STEPS,
    PostTestQuestion,
    PlacementRange,
    ModuleDefinition,
    Curriculum,
)

# Progress schemas
from .progress import (
    MASTERY_THRESHOLD,
    PreTestProgress,
    PostTestProgress,
    TheoryProgress,
    ExampleProgress,
    ActivityProgress,
    ReflectionProgress,
    ReflectionResponses,
    ModuleProgress,
    PlacementState,
    ModuleMastery,
    UserProgress,
    AppSettings,
    build_default_mastery,
)

__all__ = [
    # Curriculum
    'StepId',
    'ALL_STEPS',
    'PostTestQuestion',
    'PlacementRange',
    'ModuleDefinition',
    'Curriculum',
    # Progress
    'MASTERY_THRESHOLD',
    'PreTestProgress',
    'PostTestProgress',
    'TheoryProgress',
    'ExampleProgress',
    'ActivityProgress',
    'ReflectionProgress',
    'ReflectionResponses',
    'ModuleProgress',
    'PlacementState',
    'ModuleMastery',
    'UserProgress',
    'AppSettings',
    'build_default_mastery',
]
