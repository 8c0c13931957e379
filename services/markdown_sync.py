# services/markdown_sync.py
"""
Обмен мандалой с Markdown-заметками (Obsidian).

Два вида документов:
- mandala-<дата>.md: снимок дерева. Импорт переносит только заголовки
  (видение, 8 тем, 8x8 средств) по позиции, подзадачи не трогает.
- tasks-<дата>.md: плоский список подзадач в разделах To Do и Done.
  Импорт обновляет или добавляет подзадачи в ячейки, найденные по названию.

Экспорт пишет новый файл с датой в имени, импорт читает самый свежий.
"""

import copy
import logging
import re
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from typing import Dict, List, Optional, Tuple, Union

from core.models import (
    DEFAULT_DIFFICULTY, GRID_SIZE, MandalaChart, SubTask, UserDocument
)
from utils.datetime_utils import date_key

logger = logging.getLogger(__name__)

MANDALA_PREFIX = "mandala-"
TASKS_PREFIX = "tasks-"
MARKDOWN_SUFFIX = ".md"

CORE_VISION_HEADING = "🎯 Core Vision"

CELL_LINE_RE = re.compile(r"^- \[[ xX]\] (.*)$")
TASK_LINE_RE = re.compile(r"^- \[\[(.+?)\]\]:\s+(.+)$")
DIFFICULTY_SUFFIX_RE = re.compile(r"\s+\[([SABC])\]$")

@dataclass
class ParsedTask:
    """Строка списка задач"""
    cell_title: str
    title: str
    completed: bool
    difficulty: Optional[str] = None

@dataclass
class TaskImportResult:
    """Итог импорта списка задач"""
    document: UserDocument
    imported: int = 0
    skipped: int = 0

# ===== ФАЙЛЫ =====

def export_filename(prefix: str, now: datetime) -> str:
    return f"{prefix}{date_key(now)}{MARKDOWN_SUFFIX}"

def latest_markdown_file(export_dir: Union[str, Path], prefix: str) -> Optional[Path]:
    """Самый свежий файл: имена содержат ISO-дату, поэтому берём максимальное"""
    export_dir = Path(export_dir)
    if not export_dir.is_dir():
        return None
    matches = sorted(
        p.name for p in export_dir.iterdir()
        if p.name.startswith(prefix) and p.name.endswith(MARKDOWN_SUFFIX)
    )
    if not matches:
        return None
    return export_dir / matches[-1]

def _write(export_dir: Union[str, Path], filename: str, content: str) -> Path:
    export_dir = Path(export_dir)
    export_dir.mkdir(parents=True, exist_ok=True)
    path = export_dir / filename
    path.write_text(content, encoding="utf-8")
    return path

def _difficulty_badge(sub_task: SubTask) -> str:
    return f" [{sub_task.difficulty}]" if sub_task.difficulty else ""

# ===== MANDALA: ЭКСПОРТ =====

def render_mandala(document: UserDocument, now: datetime) -> str:
    chart = document.mandala
    progression = document.progression
    lines = [
        "---",
        "title: Mandala Chart",
        f"date: {now.isoformat()}",
        f"level: {progression.level}",
        "tags: [mandala, goals]",
        "---",
        "",
        f"# {chart.vision}",
        "",
        f"**Level:** {progression.level} | **XP:** {progression.xp}",
        "",
        f"## {CORE_VISION_HEADING}",
        "",
        chart.vision,
        "",
    ]

    for section in chart.surrounding_sections:
        lines.append(f"## {section.theme}")
        lines.append("")
        for cell in section.surrounding_cells:
            status = "[x]" if cell.all_sub_tasks_done else "[ ]"
            lines.append(f"- {status} {cell.title}")
            for sub_task in cell.sub_tasks or []:
                sub_status = "[x]" if sub_task.completed else "[ ]"
                lines.append(f"  - {sub_status} {sub_task.title}{_difficulty_badge(sub_task)}")
        lines.append("")

    return "\n".join(lines) + "\n"

def export_mandala(document: UserDocument, export_dir: Union[str, Path], now: datetime) -> Path:
    path = _write(export_dir, export_filename(MANDALA_PREFIX, now), render_mandala(document, now))
    logger.info(f"📤 Мандала экспортирована: {path}")
    return path

# ===== MANDALA: ИМПОРТ =====

def parse_mandala(content: str, base: MandalaChart) -> MandalaChart:
    """Переносит заголовки из Markdown в копию дерева по позициям"""
    updated = copy.deepcopy(base)
    lines = content.splitlines()

    vision_line = next((l for l in lines if l.startswith("# ") and not l.startswith("## ")), None)
    if vision_line is not None:
        updated.center_section.center_cell.title = vision_line[len("# "):]

    section_titles: List[str] = []
    section_cells: List[List[str]] = []
    current: Optional[int] = None

    for line in lines:
        if line.startswith("## "):
            title = line[len("## "):]
            if "core vision" in title.lower():
                current = None
                continue
            current = len(section_titles)
            section_titles.append(title)
            section_cells.append([])
            continue

        if current is None:
            continue
        match = CELL_LINE_RE.match(line)
        if match:
            section_cells[current].append(match.group(1))

    for index, title in enumerate(section_titles[:GRID_SIZE]):
        updated.surrounding_sections[index].center_cell.title = title

    for section_index, cells in enumerate(section_cells[:GRID_SIZE]):
        section = updated.surrounding_sections[section_index]
        for cell_index, cell_title in enumerate(cells[:GRID_SIZE]):
            section.surrounding_cells[cell_index].title = cell_title

    updated.sync_center_titles()
    return updated

def import_mandala(chart: MandalaChart, export_dir: Union[str, Path]) -> Optional[MandalaChart]:
    """None, если экспортов ещё нет"""
    path = latest_markdown_file(export_dir, MANDALA_PREFIX)
    if path is None:
        logger.info(f"📂 Нет файлов {MANDALA_PREFIX}*{MARKDOWN_SUFFIX} в {export_dir}")
        return None

    updated = parse_mandala(path.read_text(encoding="utf-8"), chart)
    logger.info(f"📥 Мандала импортирована из {path}")
    return updated

# ===== TASKS: ЭКСПОРТ =====

def render_tasks(document: UserDocument, now: datetime) -> str:
    entries = [(cell, sub_task) for _, cell, sub_task in document.mandala.iter_sub_tasks()]
    todo = [e for e in entries if not e[1].completed]
    done = [e for e in entries if e[1].completed]

    def task_line(cell, sub_task) -> str:
        return f"- [[{cell.title}]]: {sub_task.title}{_difficulty_badge(sub_task)}"

    lines = [
        "---",
        "title: Task List",
        f"date: {now.isoformat()}",
        "tags: [tasks, todo]",
        "---",
        "",
        "# Task List",
        "",
        f"**Level:** {document.progression.level} | **Total Tasks:** {len(entries)}",
        "",
        f"## 📋 To Do ({len(todo)})",
        "",
    ]
    lines.extend(task_line(cell, sub_task) for cell, sub_task in todo)
    lines.extend(["", f"## ✅ Done ({len(done)})", ""])
    lines.extend(task_line(cell, sub_task) for cell, sub_task in done)

    return "\n".join(lines) + "\n"

def export_tasks(document: UserDocument, export_dir: Union[str, Path], now: datetime) -> Path:
    path = _write(export_dir, export_filename(TASKS_PREFIX, now), render_tasks(document, now))
    logger.info(f"📤 Список задач экспортирован: {path}")
    return path

# ===== TASKS: ИМПОРТ =====

def parse_tasks(content: str) -> List[ParsedTask]:
    tasks = []
    completed = False

    for line in content.splitlines():
        if line.startswith("## "):
            heading = line.lower()
            if "done" in heading:
                completed = True
            elif "to do" in heading:
                completed = False
            continue

        match = TASK_LINE_RE.match(line)
        if not match:
            continue

        title = match.group(2).strip()
        difficulty = None
        diff_match = DIFFICULTY_SUFFIX_RE.search(title)
        if diff_match:
            difficulty = diff_match.group(1)
            title = title[:diff_match.start()].strip()

        tasks.append(ParsedTask(
            cell_title=match.group(1).strip(),
            title=title,
            completed=completed,
            difficulty=difficulty
        ))

    return tasks

def build_cell_index(chart: MandalaChart) -> Dict[str, Tuple[int, int]]:
    """Название средства -> (секция, ячейка); при повторах побеждает первое"""
    index: Dict[str, Tuple[int, int]] = {}
    for section_index, section in enumerate(chart.surrounding_sections):
        for cell_index, cell in enumerate(section.surrounding_cells):
            index.setdefault(cell.title, (section_index, cell_index))
    return index

def apply_tasks(document: UserDocument, parsed: List[ParsedTask],
                now: Optional[datetime] = None) -> TaskImportResult:
    if not parsed:
        return TaskImportResult(document=document)

    updated = copy.deepcopy(document)
    cell_index = build_cell_index(updated.mandala)
    result = TaskImportResult(document=updated)

    for task in parsed:
        location = cell_index.get(task.cell_title)
        if location is None:
            logger.debug(f"Ячейка не найдена, пропуск: {task.cell_title}")
            result.skipped += 1
            continue

        section_index, cell_idx = location
        cell = updated.mandala.surrounding_sections[section_index].surrounding_cells[cell_idx]
        sub_tasks = cell.ensure_sub_tasks()
        existing = next((t for t in sub_tasks if t.title == task.title), None)
        if existing is not None:
            existing.completed = task.completed
            if task.difficulty:
                existing.difficulty = task.difficulty
        else:
            sub_tasks.append(SubTask.create(
                task.title,
                completed=task.completed,
                difficulty=task.difficulty or DEFAULT_DIFFICULTY,
                now=now
            ))
        result.imported += 1

    return result

def import_tasks(document: UserDocument, export_dir: Union[str, Path],
                 now: Optional[datetime] = None) -> Optional[TaskImportResult]:
    """None, если экспортов ещё нет"""
    path = latest_markdown_file(export_dir, TASKS_PREFIX)
    if path is None:
        logger.info(f"📂 Нет файлов {TASKS_PREFIX}*{MARKDOWN_SUFFIX} в {export_dir}")
        return None

    result = apply_tasks(document, parse_tasks(path.read_text(encoding="utf-8")), now=now)
    logger.info(f"📥 Импорт задач из {path}: импортировано {result.imported}, пропущено {result.skipped}")
    return result
