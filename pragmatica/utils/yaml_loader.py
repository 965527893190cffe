"""
YAML loader utility for Pragmatica.

Loads YAML documents (curriculum, optional settings file) from disk.
"""

from pathlib import Path
from typing import Any
import yaml


# Default curriculum directory (relative to project root)
CURRICULUM_DIR = Path(__file__).parent.parent.parent / "curriculum"


def load_yaml(path: Path) -> dict[str, Any]:
    """
    Load a YAML mapping from a file.

    Args:
        path: Path to the .yaml file

    Returns:
        Parsed mapping (empty dict for an empty file)

    Raises:
        FileNotFoundError: If the file doesn't exist
        yaml.YAMLError: If YAML parsing fails
        ValueError: If the document is not a mapping
    """
    if not path.exists():
        raise FileNotFoundError(f"YAML file not found: {path}")

    with open(path, "r", encoding="utf-8") as f:
        data = yaml.safe_load(f)

    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ValueError(f"Expected a mapping at the top of {path}, got {type(data).__name__}")
    return data


def get_available_curricula(curriculum_dir: Path | None = None) -> list[str]:
    """
    List all curriculum files in a directory.

    Args:
        curriculum_dir: Optional custom curriculum directory

    Returns:
        List of curriculum names (without .yaml extension)
    """
    dir_path = curriculum_dir or CURRICULUM_DIR
    if not dir_path.exists():
        return []
    return sorted(p.stem for p in dir_path.glob("*.yaml"))
