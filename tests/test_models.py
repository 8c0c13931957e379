# tests/test_models.py

import pytest

from utils.datetime_utils import parse_iso
from core.models import (
    GRID_SIZE, MandalaCell, MandalaChart, MandalaSection, ProgressionState,
    SubTask, UserDocument, ValidationError
)

class TestDefaultChart:
    """Мандала по умолчанию"""

    def test_shape(self):
        chart = MandalaChart.create_default()
        assert len(chart.surrounding_sections) == GRID_SIZE
        assert all(len(s.surrounding_cells) == GRID_SIZE for s in chart.surrounding_sections)
        assert chart.vision == "Life Vision"

    def test_center_cells_mirror_themes(self):
        chart = MandalaChart.create_default()
        mirrors = [c.title for c in chart.center_section.surrounding_cells]
        themes = [s.theme for s in chart.surrounding_sections]
        assert mirrors == themes

    def test_sub_tasks_are_lazy(self):
        chart = MandalaChart.create_default()
        cell = chart.surrounding_sections[0].surrounding_cells[0]
        assert cell.sub_tasks is None
        assert "sub_tasks" not in cell.to_dict()

class TestValidation:
    """Проверки формы дерева"""

    def test_section_requires_eight_cells(self):
        with pytest.raises(ValidationError):
            MandalaSection(id="s", center_cell=MandalaCell(id="c", title="t"), surrounding_cells=[])

    def test_invalid_difficulty(self):
        with pytest.raises(ValidationError):
            SubTask(id="sub-1", title="x", difficulty="Z")

    def test_new_sub_task_id_prefix(self):
        assert SubTask.create("x").id.startswith("sub-")

    def test_created_at_is_timezone_aware(self):
        assert parse_iso(SubTask.create("x").created_at).tzinfo is not None
        assert parse_iso(SubTask(id="sub-1", title="x").created_at).tzinfo is not None
        assert parse_iso(SubTask.from_dict({"id": "sub-1"}).created_at).tzinfo is not None

class TestUserDocument:
    """Сборка документа с умолчаниями"""

    def test_empty_dict_gets_defaults(self):
        document = UserDocument.from_dict({})
        assert document.progression.xp == 0
        assert document.progression.level == 1
        assert document.obsidian.auto_sync is False
        assert document.mandala.vision == "Life Vision"

    def test_none_is_accepted(self):
        assert UserDocument.from_dict(None).progression.streak_days == 0

    def test_unknown_keys_preserved(self):
        document = UserDocument.from_dict({"settings": {"theme": "dark"}, "_version": 3})
        data = document.to_dict()
        assert data["settings"] == {"theme": "dark"}
        assert "_version" not in data

    def test_round_trip_keeps_sub_tasks(self):
        document = UserDocument()
        cell = document.mandala.surrounding_sections[2].surrounding_cells[5]
        cell.ensure_sub_tasks().append(SubTask.create("Run 5k", completed=True, difficulty="A"))

        restored = UserDocument.from_dict(document.to_dict())
        restored_cell = restored.mandala.surrounding_sections[2].surrounding_cells[5]
        assert restored_cell.sub_tasks == cell.sub_tasks

    def test_broken_tree_raises_validation_error(self):
        with pytest.raises(ValidationError):
            UserDocument.from_dict({"mandala": {"center_section": {"id": "center"}}})

    def test_negative_values_clamped(self):
        state = ProgressionState.from_dict({"xp": -5, "level": 0, "streak_days": -1})
        assert (state.xp, state.level, state.streak_days) == (0, 1, 0)

    def test_history_sorted_on_load(self):
        state = ProgressionState.from_dict({"xp_history": [
            {"date": "2026-03-02", "xp": 10},
            {"date": "2026-03-01", "xp": 20},
        ]})
        assert [e.date for e in state.xp_history] == ["2026-03-01", "2026-03-02"]

class TestBehaviorStats:

    def test_most_active_hour_and_top_category(self):
        state = ProgressionState.from_dict({"behavior_stats": {
            "activity_by_hour": {"9": 1.5, "21": 3.0},
            "category_completions": {"Health": 2.0, "Work": 0.5},
        }})
        assert state.behavior_stats.most_active_hour == 21
        assert state.behavior_stats.top_category == "Health"

    def test_empty_stats(self):
        stats = ProgressionState().behavior_stats
        assert stats.most_active_hour is None
        assert stats.top_category is None
