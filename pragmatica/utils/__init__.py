"""Pragmatica utilities."""

from .yaml_loader import load_yaml, get_available_curricula, CURRICULUM_DIR
from .timeutil import DAY_MS, now_ms, is_finite_number, round_half_up, parse_timestamp, iso_from_ms

__all__ = [
    "load_yaml",
    "get_available_curricula",
    "CURRICULUM_DIR",
    "DAY_MS",
    "now_ms",
    "is_finite_number",
    "round_half_up",
    "parse_timestamp",
    "iso_from_ms",
]
