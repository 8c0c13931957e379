# services/completion.py
"""
Выполнение подзадачи по названию из чата.

Команды "/done <название>" и "done <название>" приходят сюда. Поиск
регистронезависимый и точный; если совпадения нет, подзадача создаётся
в первой ячейке первой области и сразу засчитывается.
"""

import copy
import logging
import re
from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Optional, Tuple

from core.models import (
    DEFAULT_DIFFICULTY, MandalaCell, MandalaChart, MandalaSection,
    NotFoundError, SubTask, UserDocument
)
from core.progression import ProgressionEngine

logger = logging.getLogger(__name__)

DONE_COMMAND_RE = re.compile(r"^/?done(?:@\w+)?(?:\s+(.*))?$", re.IGNORECASE | re.DOTALL)

Match = Tuple[MandalaSection, MandalaCell, SubTask]

class CompletionStatus(Enum):
    COMPLETED = "completed"
    ALREADY_COMPLETED = "already_completed"
    CREATED = "created"

@dataclass
class CompletionOutcome:
    document: UserDocument
    status: CompletionStatus
    sub_task: SubTask

    @property
    def changed(self) -> bool:
        return self.status is not CompletionStatus.ALREADY_COMPLETED

def find_matching_sub_task(chart: MandalaChart, title: str) -> Optional[Match]:
    """Первая подзадача с тем же названием (без учёта регистра)"""
    needle = title.strip().lower()
    for section, cell, sub_task in chart.iter_sub_tasks():
        if sub_task.title.lower() == needle:
            return section, cell, sub_task
    return None

def resolve_sub_task(chart: MandalaChart, title: str) -> Match:
    match = find_matching_sub_task(chart, title)
    if match is None:
        raise NotFoundError(f"SubTask not found: {title}")
    return match

def complete_by_title(document: UserDocument, title: str, now: datetime,
                      engine: Optional[ProgressionEngine] = None) -> CompletionOutcome:
    engine = engine or ProgressionEngine()
    title = title.strip()
    if not title:
        raise ValueError("Title must not be empty")

    updated = copy.deepcopy(document)
    chart = updated.mandala

    try:
        section, _, sub_task = resolve_sub_task(chart, title)
    except NotFoundError:
        section = chart.surrounding_sections[0]
        cell = section.surrounding_cells[0]
        sub_task = SubTask.create(title, completed=True, difficulty=DEFAULT_DIFFICULTY, now=now)
        cell.ensure_sub_tasks().append(sub_task)
        updated.progression = engine.complete(updated.progression, section.theme, now)
        logger.info(f"➕ Подзадача создана и выполнена: '{title}' в {section.id}/{cell.id}")
        return CompletionOutcome(document=updated, status=CompletionStatus.CREATED, sub_task=sub_task)

    if sub_task.completed:
        logger.info(f"Подзадача уже выполнена: '{sub_task.title}'")
        return CompletionOutcome(document=document, status=CompletionStatus.ALREADY_COMPLETED,
                                 sub_task=sub_task)

    sub_task.completed = True
    updated.progression = engine.complete(updated.progression, section.theme, now)
    logger.info(f"✅ Подзадача выполнена: '{sub_task.title}'")
    return CompletionOutcome(document=updated, status=CompletionStatus.COMPLETED, sub_task=sub_task)

def parse_done_command(text: Optional[str]) -> Optional[str]:
    """
    Разбор команды выполнения.

    Returns:
        Название без пробелов по краям, "" для команды без аргумента,
        None если текст не является командой done.
    """
    if not text:
        return None
    match = DONE_COMMAND_RE.match(text.strip())
    if not match:
        return None
    return (match.group(1) or "").strip()
