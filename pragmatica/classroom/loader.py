"""
CurriculumLoader - Load the course definition from a YAML file.

Provides read-only access to:
- Ordered module definitions (steps, required items, post-test questions)
- Placement test score ranges
"""

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

import yaml
from pydantic import ValidationError

from pragmatica.errors import CurriculumError
from pragmatica.schemas import Curriculum, ModuleDefinition
from pragmatica.utils.yaml_loader import load_yaml

logger = logging.getLogger(__name__)


@dataclass
class ModuleSummary:
    """Lightweight module info for navigation (without questions)."""
    id: str
    title: str
    position: int
    steps: list[str]
    question_count: int


class CurriculumLoader:
    """
    Load the curriculum YAML once and serve module lookups from memory.
    """

    def __init__(self, path: str | Path):
        """
        Initialize loader with path to a curriculum YAML file.

        Args:
            path: Path to the curriculum file (e.g. curriculum/modules.yaml)
        """
        self.path = Path(path)
        if not self.path.exists():
            raise FileNotFoundError(f"Curriculum file not found: {path}")
        self._curriculum: Optional[Curriculum] = None

    def load(self) -> Curriculum:
        """Parse and validate the curriculum (cached after the first call)."""
        if self._curriculum is None:
            try:
                raw = load_yaml(self.path)
                self._curriculum = Curriculum(**raw)
            except (yaml.YAMLError, ValueError, TypeError) as exc:
                # ValidationError is a ValueError subclass
                raise CurriculumError(f"Invalid curriculum {self.path}: {exc}") from exc
            logger.info(f"Loaded {len(self._curriculum.modules)} modules from {self.path}")
        return self._curriculum

    # -------------------------------------------------------------------------
    # Modules
    # -------------------------------------------------------------------------

    def get_module(self, module_id: str) -> Optional[ModuleDefinition]:
        """Get a single module definition by ID."""
        return self.load().get(module_id)

    def get_module_summaries(self) -> list[ModuleSummary]:
        """Get all modules in course order."""
        return [
            ModuleSummary(
                id=module.id,
                title=module.title,
                position=position,
                steps=list(module.steps),
                question_count=module.post_test_question_count,
            )
            for position, module in enumerate(self.load().modules)
        ]

    def get_module_count(self) -> int:
        """Get total number of modules."""
        return len(self.load().modules)


def load_curriculum(path: str | Path) -> Curriculum:
    """Load and validate a curriculum file in one call."""
    return CurriculumLoader(path).load()


def curriculum_from_dict(data: dict) -> Curriculum:
    """Build a curriculum from an in-memory mapping (tests, embedded courses)."""
    try:
        return Curriculum(**data)
    except ValidationError as exc:
        raise CurriculumError(f"Invalid curriculum: {exc}") from exc
