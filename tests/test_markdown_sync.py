# tests/test_markdown_sync.py

from datetime import datetime, timedelta

import pytz

from conftest import put_sub_task
from core.models import UserDocument
from services import markdown_sync

TASKS_FILE = """---
title: Task List
---

# Task List

## 📋 To Do (2)

- [[Sleep early]]: Lights out by 23:00 [A]
- [[Unknown means]]: Orphan task

## ✅ Done (1)

- [[Sleep early]]: Stretch
"""

def retitled_document():
    document = UserDocument()
    chart = document.mandala
    chart.center_section.center_cell.title = "Healthy and free"
    for i, section in enumerate(chart.surrounding_sections):
        section.center_cell.title = f"Theme {i}"
        for j, cell in enumerate(section.surrounding_cells):
            cell.title = f"Means {i}.{j}"
    chart.sync_center_titles()
    return document

class TestRenderMandala:

    def test_layout(self, document, fixed_now):
        put_sub_task(document, "Stretch", completed=True, difficulty="S")
        text = markdown_sync.render_mandala(document, fixed_now)
        lines = text.splitlines()

        assert lines[:6] == [
            "---",
            "title: Mandala Chart",
            f"date: {fixed_now.isoformat()}",
            "level: 1",
            "tags: [mandala, goals]",
            "---",
        ]
        assert "# Life Vision" in lines
        assert "**Level:** 1 | **XP:** 0" in lines
        assert "## 🎯 Core Vision" in lines
        assert "## Area 1" in lines
        assert "- [x] Task" in lines
        assert "  - [x] Stretch [S]" in lines

    def test_cell_unchecked_without_sub_tasks(self, document, fixed_now):
        text = markdown_sync.render_mandala(document, fixed_now)
        assert "- [x]" not in text
        assert text.count("- [ ] Task") == 64

class TestMandalaRoundTrip:

    def test_titles_survive(self, export_dir, fixed_now):
        source = retitled_document()
        markdown_sync.export_mandala(source, export_dir, fixed_now)

        imported = markdown_sync.import_mandala(UserDocument().mandala, export_dir)

        assert imported.vision == "Healthy and free"
        assert [s.theme for s in imported.surrounding_sections] == [f"Theme {i}" for i in range(8)]
        assert imported.surrounding_sections[7].surrounding_cells[7].title == "Means 7.7"

    def test_every_title_survives_exactly(self, export_dir, fixed_now):
        source = retitled_document()
        chart = source.mandala
        chart.center_section.center_cell.title = "  Vision with spaces "
        chart.surrounding_sections[4].center_cell.title = " Theme 4 "
        cells = chart.surrounding_sections[0].surrounding_cells
        cells[2].title = ""
        cells[4].title = " padded "
        cells[6].title = "Read  10   pages"
        chart.sync_center_titles()
        markdown_sync.export_mandala(source, export_dir, fixed_now)

        imported = markdown_sync.import_mandala(UserDocument().mandala, export_dir)

        assert imported.vision == chart.vision
        assert [s.theme for s in imported.surrounding_sections] == [s.theme for s in chart.surrounding_sections]
        for expected, actual in zip(chart.surrounding_sections, imported.surrounding_sections):
            assert [c.title for c in actual.surrounding_cells] == [c.title for c in expected.surrounding_cells]

    def test_mirror_invariant_after_import(self, export_dir, fixed_now):
        markdown_sync.export_mandala(retitled_document(), export_dir, fixed_now)
        imported = markdown_sync.import_mandala(UserDocument().mandala, export_dir)

        mirrors = [c.title for c in imported.center_section.surrounding_cells]
        assert mirrors == [s.theme for s in imported.surrounding_sections]

    def test_sub_tasks_untouched(self, export_dir, fixed_now):
        source = retitled_document()
        put_sub_task(source, "Stretch", completed=True)
        markdown_sync.export_mandala(source, export_dir, fixed_now)

        target = UserDocument()
        kept = put_sub_task(target, "Already here")
        imported = markdown_sync.import_mandala(target.mandala, export_dir)

        assert imported.surrounding_sections[0].surrounding_cells[0].sub_tasks == [kept]

    def test_extra_sections_ignored(self, document):
        sections = "\n".join(f"## Extra {i}\n- [ ] Cell {i}" for i in range(10))
        chart = markdown_sync.parse_mandala(f"# Vision\n\n{sections}\n", document.mandala)
        assert chart.surrounding_sections[7].theme == "Extra 7"
        assert chart.surrounding_sections[0].surrounding_cells[0].title == "Cell 0"

    def test_missing_file_returns_none(self, document, export_dir):
        assert markdown_sync.import_mandala(document.mandala, export_dir) is None

class TestRenderTasks:

    def test_groups_by_status(self, document, fixed_now):
        put_sub_task(document, "Open", difficulty="C")
        put_sub_task(document, "Closed", completed=True)
        text = markdown_sync.render_tasks(document, fixed_now)

        assert "**Level:** 1 | **Total Tasks:** 2" in text
        assert "## 📋 To Do (1)\n\n- [[Task]]: Open [C]\n" in text
        assert "## ✅ Done (1)\n\n- [[Task]]: Closed [B]\n" in text

    def test_parse_reads_back_rendered(self, document, fixed_now):
        put_sub_task(document, "Open", difficulty="C")
        put_sub_task(document, "Closed", completed=True)
        parsed = markdown_sync.parse_tasks(markdown_sync.render_tasks(document, fixed_now))
        assert [(t.title, t.completed, t.difficulty) for t in parsed] == [
            ("Open", False, "C"),
            ("Closed", True, "B"),
        ]

class TestImportTasks:

    def _document(self):
        document = UserDocument()
        document.mandala.surrounding_sections[1].surrounding_cells[2].title = "Sleep early"
        return document

    def test_update_add_and_skip(self, export_dir, fixed_now):
        document = self._document()
        existing = put_sub_task(document, "Stretch", section=1, cell=2, difficulty="C")
        export_dir.mkdir()
        (export_dir / "tasks-2026-03-10.md").write_text(TASKS_FILE, encoding="utf-8")

        result = markdown_sync.import_tasks(document, export_dir, now=fixed_now)

        assert (result.imported, result.skipped) == (2, 1)
        sub_tasks = result.document.mandala.surrounding_sections[1].surrounding_cells[2].sub_tasks
        assert [t.title for t in sub_tasks] == ["Stretch", "Lights out by 23:00"]
        assert sub_tasks[0].id == existing.id
        assert sub_tasks[0].completed is True
        assert sub_tasks[0].difficulty == "C"
        assert sub_tasks[1].difficulty == "A"
        assert sub_tasks[1].completed is False

    def test_no_progression_side_effects(self, export_dir, fixed_now):
        document = self._document()
        export_dir.mkdir()
        (export_dir / "tasks-2026-03-10.md").write_text(TASKS_FILE, encoding="utf-8")
        result = markdown_sync.import_tasks(document, export_dir, now=fixed_now)
        assert result.document.progression.xp == 0

    def test_duplicate_cell_titles_first_wins(self, document):
        index = markdown_sync.build_cell_index(document.mandala)
        assert index["Task"] == (0, 0)

    def test_empty_file_zero_counts(self, document, export_dir):
        export_dir.mkdir()
        (export_dir / "tasks-2026-03-10.md").write_text("# nothing here\n", encoding="utf-8")
        result = markdown_sync.import_tasks(document, export_dir)
        assert (result.imported, result.skipped) == (0, 0)
        assert result.document is document

    def test_missing_dir_returns_none(self, document, tmp_path):
        assert markdown_sync.import_tasks(document, tmp_path / "nope") is None

class TestFileSelection:

    def test_latest_file_wins(self, document, export_dir, fixed_now):
        markdown_sync.export_tasks(document, export_dir, fixed_now)
        newest = markdown_sync.export_tasks(document, export_dir, fixed_now + timedelta(days=3))
        (export_dir / "notes.md").write_text("x", encoding="utf-8")

        assert markdown_sync.latest_markdown_file(export_dir, "tasks-") == newest
        assert newest.name == "tasks-2026-03-13.md"

    def test_same_day_export_overwrites(self, document, export_dir, fixed_now):
        markdown_sync.export_mandala(document, export_dir, fixed_now)
        markdown_sync.export_mandala(document, export_dir, fixed_now + timedelta(hours=1))
        assert len(list(export_dir.glob("mandala-*.md"))) == 1

    def test_filename_uses_local_date(self, document, export_dir):
        moscow_night = pytz.timezone("Europe/Moscow").localize(datetime(2026, 3, 11, 1, 0))
        path = markdown_sync.export_tasks(document, export_dir, moscow_night)
        assert path.name == "tasks-2026-03-10.md"

    def test_prefixes_do_not_mix(self, document, export_dir, fixed_now):
        markdown_sync.export_mandala(document, export_dir, fixed_now)
        assert markdown_sync.latest_markdown_file(export_dir, "tasks-") is None
