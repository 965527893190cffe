"""
Configuration for Pragmatica.

Settings come from defaults, an optional YAML file and environment
variables (a project .env file is read first):

- PRAGMATICA_DB_PATH: progress database path
- PRAGMATICA_CURRICULUM: curriculum YAML path
- PRAGMATICA_BACKUP_MAX_BYTES: QR backup byte ceiling
- PRAGMATICA_LOG_LEVEL: logging level name
"""

import logging
import os
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv
from pydantic import BaseModel, Field, ValidationError

from pragmatica.utils.yaml_loader import CURRICULUM_DIR, load_yaml

PROJECT_ROOT = Path(__file__).parent.parent

DEFAULT_PROGRESS_DIR = Path.home() / ".pragmatica"
DEFAULT_PROGRESS_DB = DEFAULT_PROGRESS_DIR / "progress.db"
DEFAULT_CURRICULUM_PATH = CURRICULUM_DIR / "modules.yaml"
DEFAULT_SETTINGS_FILE = PROJECT_ROOT / "pragmatica.yaml"

DEFAULT_BACKUP_MAX_BYTES = 2800
LOG_FORMAT = "%(asctime)s - %(levelname)s - %(message)s"


class ImportLimits(BaseModel):
    """Bounds applied to untrusted progress data (files, backups, old saves)."""
    max_array_items: int = Field(default=5000, ge=1)
    max_note_keys: int = Field(default=5000, ge=1)
    max_note_length: int = Field(default=2000, ge=1)
    max_key_length: int = Field(default=200, ge=1)
    max_path_length: int = Field(default=64, ge=1)
    max_reflection_items: int = Field(default=200, ge=1)
    max_joke_index: int = Field(default=100_000, ge=0)
    max_file_bytes: int = Field(default=50 * 1024, ge=1)


class SlimLimits(BaseModel):
    """Tighter bounds applied when a backup must fit a QR code."""
    max_answers: int = Field(default=50, ge=1)
    max_text_length: int = Field(default=280, ge=1)
    max_note_keys: int = Field(default=20, ge=0)
    max_array_items: int = Field(default=200, ge=1)


class Settings(BaseModel):
    db_path: Path = DEFAULT_PROGRESS_DB
    curriculum_path: Path = DEFAULT_CURRICULUM_PATH
    backup_max_bytes: int = Field(default=DEFAULT_BACKUP_MAX_BYTES, ge=64)
    log_level: str = "INFO"
    limits: ImportLimits = Field(default_factory=ImportLimits)
    slim: SlimLimits = Field(default_factory=SlimLimits)


DEFAULT_LIMITS = ImportLimits()
DEFAULT_SLIM_LIMITS = SlimLimits()

ENV_OVERRIDES = {
    "PRAGMATICA_DB_PATH": "db_path",
    "PRAGMATICA_CURRICULUM": "curriculum_path",
    "PRAGMATICA_BACKUP_MAX_BYTES": "backup_max_bytes",
    "PRAGMATICA_LOG_LEVEL": "log_level",
}


def load_settings(config_path: Optional[Path] = None) -> Settings:
    """
    Build settings from the YAML file (if present) and environment.

    Args:
        config_path: Optional settings YAML (default: pragmatica.yaml at project root)

    Raises:
        ValueError: If any setting fails validation
    """
    load_dotenv(PROJECT_ROOT / ".env")

    path = config_path or DEFAULT_SETTINGS_FILE
    values = load_yaml(path) if path.exists() else {}

    for env_name, field_name in ENV_OVERRIDES.items():
        env_value = os.getenv(env_name)
        if env_value:
            values[field_name] = env_value

    try:
        return Settings(**values)
    except ValidationError as exc:
        raise ValueError(f"Invalid Pragmatica configuration: {exc}") from exc


def configure_logging(settings: Settings) -> None:
    """Configure root logging for entry points (app, scripts)."""
    logging.basicConfig(
        level=getattr(logging, settings.log_level.upper(), logging.INFO),
        format=LOG_FORMAT,
    )
