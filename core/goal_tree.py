# core/goal_tree.py
"""
Операции над деревом целей.

Каждая операция работает с глубокой копией документа и возвращает
TreeEditResult. Неизвестный идентификатор не является ошибкой: документ
возвращается без изменений (changed=False). Для вызовов, где поиск цели
лежит на вызывающей стороне, есть строгие require_* функции.
"""

import copy
import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Optional, Tuple

from core.models import (
    DEFAULT_DIFFICULTY, MandalaCell, MandalaChart, MandalaSection,
    NotFoundError, SubTask, UserDocument
)
from core.progression import ProgressionEngine

logger = logging.getLogger(__name__)

@dataclass
class TreeEditResult:
    """Результат структурной правки"""
    document: UserDocument
    changed: bool
    sub_task: Optional[SubTask] = None

# ===== ПОИСК =====

def require_section(chart: MandalaChart, section_id: str) -> MandalaSection:
    section = chart.find_section(section_id)
    if section is None:
        raise NotFoundError(f"Section not found: {section_id}")
    return section

def require_cell(chart: MandalaChart, section_id: str, cell_id: str) -> Tuple[MandalaSection, MandalaCell]:
    section = require_section(chart, section_id)
    cell = section.find_cell(cell_id)
    if cell is None:
        raise NotFoundError(f"Cell not found: {section_id}/{cell_id}")
    return section, cell

def require_sub_task(chart: MandalaChart, section_id: str, cell_id: str,
                     sub_task_id: str) -> Tuple[MandalaSection, MandalaCell, SubTask]:
    section, cell = require_cell(chart, section_id, cell_id)
    sub_task = cell.find_sub_task(sub_task_id)
    if sub_task is None:
        raise NotFoundError(f"SubTask not found: {section_id}/{cell_id}/{sub_task_id}")
    return section, cell, sub_task

def _area_cell(chart: MandalaChart, section_id: str, cell_id: str) -> Optional[Tuple[MandalaSection, MandalaCell]]:
    """Ячейка-средство внутри одной из 8 областей"""
    section = next((s for s in chart.surrounding_sections if s.id == section_id), None)
    if section is None:
        return None
    cell = next((c for c in section.surrounding_cells if c.id == cell_id), None)
    if cell is None:
        return None
    return section, cell

def _unchanged(document: UserDocument, what: str) -> TreeEditResult:
    logger.debug(f"Правка пропущена, не найдено: {what}")
    return TreeEditResult(document=document, changed=False)

# ===== ОПЕРАЦИИ =====

def add_sub_task(document: UserDocument, section_id: str, cell_id: str, title: str,
                 now: Optional[datetime] = None) -> TreeEditResult:
    """Добавить подзадачу в ячейку"""
    updated = copy.deepcopy(document)
    located = _area_cell(updated.mandala, section_id, cell_id)
    if located is None:
        return _unchanged(document, f"{section_id}/{cell_id}")

    _, cell = located
    sub_task = SubTask.create(title, difficulty=DEFAULT_DIFFICULTY, now=now)
    cell.ensure_sub_tasks().append(sub_task)
    return TreeEditResult(document=updated, changed=True, sub_task=sub_task)

def toggle_sub_task(document: UserDocument, section_id: str, cell_id: str, sub_task_id: str,
                    now: datetime, engine: Optional[ProgressionEngine] = None,
                    track_activity: bool = True) -> TreeEditResult:
    """Переключить статус подзадачи и применить событие прогресса"""
    engine = engine or ProgressionEngine()
    updated = copy.deepcopy(document)
    located = _area_cell(updated.mandala, section_id, cell_id)
    sub_task = located[1].find_sub_task(sub_task_id) if located else None
    if sub_task is None:
        return _unchanged(document, f"{section_id}/{cell_id}/{sub_task_id}")

    section, _ = located
    sub_task.completed = not sub_task.completed
    if sub_task.completed:
        updated.progression = engine.complete(
            updated.progression, section.theme, now, track_activity=track_activity
        )
    else:
        updated.progression = engine.uncomplete(updated.progression, now)
    return TreeEditResult(document=updated, changed=True, sub_task=sub_task)

def delete_sub_task(document: UserDocument, section_id: str, cell_id: str, sub_task_id: str,
                    now: datetime, engine: Optional[ProgressionEngine] = None) -> TreeEditResult:
    """Удалить подзадачу. За выполненную XP возвращается, streak не трогаем"""
    engine = engine or ProgressionEngine()
    updated = copy.deepcopy(document)
    located = _area_cell(updated.mandala, section_id, cell_id)
    sub_task = located[1].find_sub_task(sub_task_id) if located else None
    if sub_task is None:
        return _unchanged(document, f"{section_id}/{cell_id}/{sub_task_id}")

    _, cell = located
    cell.sub_tasks = [t for t in cell.sub_tasks if t is not sub_task]
    if sub_task.completed:
        updated.progression = engine.uncomplete(updated.progression, now)
    return TreeEditResult(document=updated, changed=True, sub_task=sub_task)

def edit_sub_task(document: UserDocument, section_id: str, cell_id: str, sub_task_id: str,
                  new_title: str) -> TreeEditResult:
    """Переименовать подзадачу"""
    updated = copy.deepcopy(document)
    located = _area_cell(updated.mandala, section_id, cell_id)
    sub_task = located[1].find_sub_task(sub_task_id) if located else None
    if sub_task is None:
        return _unchanged(document, f"{section_id}/{cell_id}/{sub_task_id}")

    sub_task.title = new_title
    return TreeEditResult(document=updated, changed=True, sub_task=sub_task)

def retitle_cell(document: UserDocument, section_id: str, cell_id: str, new_title: str) -> TreeEditResult:
    """
    Переименовать ячейку без побочных эффектов прогресса.

    Тема области и её зеркало в центральной секции переименовываются
    вместе.
    """
    updated = copy.deepcopy(document)
    chart = updated.mandala
    section = chart.find_section(section_id)
    cell = section.find_cell(cell_id) if section else None
    if cell is None:
        return _unchanged(document, f"{section_id}/{cell_id}")

    cell.title = new_title
    if section is chart.center_section and cell is not section.center_cell:
        index = next(i for i, c in enumerate(section.surrounding_cells) if c is cell)
        chart.surrounding_sections[index].center_cell.title = new_title
    elif section is not chart.center_section and cell is section.center_cell:
        chart.sync_center_titles()
    return TreeEditResult(document=updated, changed=True)
