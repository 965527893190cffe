"""
Configuration and curriculum loading tests.
"""

import pytest

from pragmatica.classroom import CurriculumLoader, load_curriculum
from pragmatica.config import DEFAULT_BACKUP_MAX_BYTES, DEFAULT_CURRICULUM_PATH, ENV_OVERRIDES, load_settings
from pragmatica.errors import CurriculumError


@pytest.fixture
def clean_env(monkeypatch):
    for name in ENV_OVERRIDES:
        monkeypatch.delenv(name, raising=False)
    return monkeypatch


class TestSettings:
    def test_defaults(self, clean_env, tmp_path):
        settings = load_settings(tmp_path / "missing.yaml")
        assert settings.backup_max_bytes == DEFAULT_BACKUP_MAX_BYTES
        assert settings.limits.max_array_items == 5000
        assert settings.slim.max_answers == 50

    def test_yaml_file(self, clean_env, tmp_path):
        path = tmp_path / "pragmatica.yaml"
        path.write_text("backup_max_bytes: 1500\nlimits:\n  max_note_length: 10\n", encoding="utf-8")
        settings = load_settings(path)
        assert settings.backup_max_bytes == 1500
        assert settings.limits.max_note_length == 10

    def test_env_override(self, clean_env, tmp_path):
        clean_env.setenv("PRAGMATICA_BACKUP_MAX_BYTES", "1000")
        clean_env.setenv("PRAGMATICA_DB_PATH", str(tmp_path / "p.db"))
        settings = load_settings(tmp_path / "missing.yaml")
        assert settings.backup_max_bytes == 1000
        assert settings.db_path == tmp_path / "p.db"

    def test_invalid_value(self, clean_env, tmp_path):
        clean_env.setenv("PRAGMATICA_BACKUP_MAX_BYTES", "lots")
        with pytest.raises(ValueError):
            load_settings(tmp_path / "missing.yaml")


class TestCurriculumLoader:
    def test_bundled_course(self):
        loader = CurriculumLoader(DEFAULT_CURRICULUM_PATH)
        curriculum = loader.load()
        assert loader.get_module_count() == 6
        assert curriculum.module_ids[0] == "module-1"
        assert set(curriculum.placement_scoring) == set(curriculum.module_ids)
        assert all(module.post_test for module in curriculum.modules)

    def test_summaries(self):
        summaries = CurriculumLoader(DEFAULT_CURRICULUM_PATH).get_module_summaries()
        assert [summary.position for summary in summaries] == list(range(6))
        assert summaries[0].question_count == 3

    def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            CurriculumLoader(tmp_path / "nope.yaml")

    def test_invalid_course(self, tmp_path):
        path = tmp_path / "bad.yaml"
        path.write_text("modules:\n  - id: Module One\n    title: x\n", encoding="utf-8")
        with pytest.raises(CurriculumError):
            load_curriculum(path)

    def test_not_a_mapping(self, tmp_path):
        path = tmp_path / "list.yaml"
        path.write_text("- a\n- b\n", encoding="utf-8")
        with pytest.raises(CurriculumError):
            load_curriculum(path)
