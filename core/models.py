#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Mandala Tracker v1.0 - Core Data Models
Модели мандалы целей, прогресса и пользовательского документа

Версия: 1.0.0
Дата: 2026-10-19
"""

import uuid
from datetime import datetime

from utils.datetime_utils import now_local
from typing import Dict, List, Optional, Any
from dataclasses import dataclass, field
from enum import Enum
import logging

logger = logging.getLogger(__name__)

GRID_SIZE = 8

# ===== ENUMS =====

class TaskDifficulty(Enum):
    """Сложность подзадачи"""
    S = "S"
    A = "A"
    B = "B"
    C = "C"

DEFAULT_DIFFICULTY = TaskDifficulty.B.value

class EvolutionStage(Enum):
    """Стадии эволюции тигра по уровню"""
    BABY = "Baby Tiger"
    YOUNG = "Young Tiger"
    ADULT = "Adult Tiger"
    GOD = "God Beast"

# ===== EXCEPTIONS =====

class ValidationError(Exception):
    """Ошибка валидации данных"""
    pass

class NotFoundError(LookupError):
    """Секция, ячейка или подзадача не найдена"""
    pass

def validate_enum_value(value: str, enum_class: type, field_name: str = "value") -> str:
    """Валидация значений enum"""
    try:
        enum_class(value)
        return value
    except ValueError:
        valid_values = [e.value for e in enum_class]
        raise ValidationError(f"{field_name} должен быть одним из: {valid_values}")

def new_sub_task_id() -> str:
    return f"sub-{uuid.uuid4()}"

# ===== MANDALA =====

@dataclass
class SubTask:
    """Подзадача: лист дерева, единица работы"""
    id: str
    title: str
    completed: bool = False
    difficulty: str = DEFAULT_DIFFICULTY
    created_at: str = field(default_factory=lambda: now_local().isoformat())

    def __post_init__(self):
        self.difficulty = validate_enum_value(self.difficulty, TaskDifficulty, "difficulty")

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "title": self.title,
            "completed": self.completed,
            "difficulty": self.difficulty,
            "created_at": self.created_at
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "SubTask":
        return cls(
            id=data["id"],
            title=data.get("title", ""),
            completed=bool(data.get("completed", False)),
            difficulty=data.get("difficulty") or DEFAULT_DIFFICULTY,
            created_at=data.get("created_at") or now_local().isoformat()
        )

    @classmethod
    def create(cls, title: str, completed: bool = False,
               difficulty: str = DEFAULT_DIFFICULTY,
               now: Optional[datetime] = None) -> "SubTask":
        """Создание новой подзадачи"""
        return cls(
            id=new_sub_task_id(),
            title=title,
            completed=completed,
            difficulty=difficulty,
            created_at=(now or now_local()).isoformat()
        )

@dataclass
class MandalaCell:
    """Ячейка мандалы. Список подзадач создаётся лениво"""
    id: str
    title: str
    completed: bool = False
    description: Optional[str] = None
    color: Optional[str] = None
    sub_tasks: Optional[List[SubTask]] = None

    @property
    def all_sub_tasks_done(self) -> bool:
        """Есть хотя бы одна подзадача и все выполнены"""
        return bool(self.sub_tasks) and all(t.completed for t in self.sub_tasks)

    def find_sub_task(self, sub_task_id: str) -> Optional[SubTask]:
        return next((t for t in self.sub_tasks or [] if t.id == sub_task_id), None)

    def ensure_sub_tasks(self) -> List[SubTask]:
        if self.sub_tasks is None:
            self.sub_tasks = []
        return self.sub_tasks

    def to_dict(self) -> Dict[str, Any]:
        data = {
            "id": self.id,
            "title": self.title,
            "completed": self.completed
        }
        if self.description is not None:
            data["description"] = self.description
        if self.color is not None:
            data["color"] = self.color
        if self.sub_tasks is not None:
            data["sub_tasks"] = [t.to_dict() for t in self.sub_tasks]
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "MandalaCell":
        sub_tasks = data.get("sub_tasks")
        return cls(
            id=data["id"],
            title=data.get("title", ""),
            completed=bool(data.get("completed", False)),
            description=data.get("description"),
            color=data.get("color"),
            sub_tasks=[SubTask.from_dict(t) for t in sub_tasks] if sub_tasks is not None else None
        )

@dataclass
class MandalaSection:
    """Секция: тема в центре и 8 средств вокруг"""
    id: str
    center_cell: MandalaCell
    surrounding_cells: List[MandalaCell] = field(default_factory=list)

    def __post_init__(self):
        if len(self.surrounding_cells) != GRID_SIZE:
            raise ValidationError(
                f"Секция {self.id} должна содержать {GRID_SIZE} ячеек, получено {len(self.surrounding_cells)}"
            )

    @property
    def theme(self) -> str:
        return self.center_cell.title

    def find_cell(self, cell_id: str) -> Optional[MandalaCell]:
        if self.center_cell.id == cell_id:
            return self.center_cell
        return next((c for c in self.surrounding_cells if c.id == cell_id), None)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "center_cell": self.center_cell.to_dict(),
            "surrounding_cells": [c.to_dict() for c in self.surrounding_cells]
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "MandalaSection":
        return cls(
            id=data["id"],
            center_cell=MandalaCell.from_dict(data["center_cell"]),
            surrounding_cells=[MandalaCell.from_dict(c) for c in data.get("surrounding_cells", [])]
        )

@dataclass
class MandalaChart:
    """
    Дерево целей 9x9

    Центральная секция хранит видение и 8 ячеек-зеркал тем,
    вокруг неё 8 секций областей.
    """
    center_section: MandalaSection
    surrounding_sections: List[MandalaSection] = field(default_factory=list)

    def __post_init__(self):
        if len(self.surrounding_sections) != GRID_SIZE:
            raise ValidationError(
                f"Мандала должна содержать {GRID_SIZE} секций, получено {len(self.surrounding_sections)}"
            )

    @property
    def vision(self) -> str:
        return self.center_section.center_cell.title

    def find_section(self, section_id: str) -> Optional[MandalaSection]:
        if self.center_section.id == section_id:
            return self.center_section
        return next((s for s in self.surrounding_sections if s.id == section_id), None)

    def iter_sub_tasks(self):
        """Обход листьев: секции, затем ячейки, затем подзадачи"""
        for section in self.surrounding_sections:
            for cell in section.surrounding_cells:
                for sub_task in cell.sub_tasks or []:
                    yield section, cell, sub_task

    def sync_center_titles(self) -> None:
        """Ячейки центральной секции повторяют темы областей"""
        for mirror, section in zip(self.center_section.surrounding_cells, self.surrounding_sections):
            mirror.title = section.center_cell.title

    def to_dict(self) -> Dict[str, Any]:
        return {
            "center_section": self.center_section.to_dict(),
            "surrounding_sections": [s.to_dict() for s in self.surrounding_sections]
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "MandalaChart":
        return cls(
            center_section=MandalaSection.from_dict(data["center_section"]),
            surrounding_sections=[MandalaSection.from_dict(s) for s in data.get("surrounding_sections", [])]
        )

    @classmethod
    def create_default(cls) -> "MandalaChart":
        """Новая мандала с заглушками"""
        center = MandalaSection(
            id="center",
            center_cell=MandalaCell(id="core", title="Life Vision"),
            surrounding_cells=[
                MandalaCell(id=f"core-{i}", title=f"Area {i + 1}") for i in range(GRID_SIZE)
            ]
        )
        sections = [
            MandalaSection(
                id=f"section-{i}",
                center_cell=MandalaCell(id=f"sec-center-{i}", title=f"Area {i + 1}"),
                surrounding_cells=[
                    MandalaCell(id=f"cell-{i}-{j}", title="Task") for j in range(GRID_SIZE)
                ]
            )
            for i in range(GRID_SIZE)
        ]
        return cls(center_section=center, surrounding_sections=sections)

# ===== PROGRESSION =====

@dataclass
class XpHistoryEntry:
    """XP, заработанный за календарный день"""
    date: str  # YYYY-MM-DD
    xp: int = 0

    def to_dict(self) -> Dict[str, Any]:
        return {"date": self.date, "xp": self.xp}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "XpHistoryEntry":
        return cls(date=data["date"], xp=int(data.get("xp", 0)))

@dataclass
class BehaviorStats:
    """Затухающие гистограммы активности по часам и по темам"""
    activity_by_hour: Dict[str, float] = field(default_factory=dict)
    category_completions: Dict[str, float] = field(default_factory=dict)
    last_activity_at: Optional[str] = None
    last_reset_at: Optional[str] = None

    @property
    def most_active_hour(self) -> Optional[int]:
        if not self.activity_by_hour:
            return None
        return int(max(self.activity_by_hour, key=self.activity_by_hour.get))

    @property
    def top_category(self) -> Optional[str]:
        if not self.category_completions:
            return None
        return max(self.category_completions, key=self.category_completions.get)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "activity_by_hour": dict(self.activity_by_hour),
            "category_completions": dict(self.category_completions),
            "last_activity_at": self.last_activity_at,
            "last_reset_at": self.last_reset_at
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "BehaviorStats":
        return cls(
            activity_by_hour=dict(data.get("activity_by_hour") or {}),
            category_completions=dict(data.get("category_completions") or {}),
            last_activity_at=data.get("last_activity_at"),
            last_reset_at=data.get("last_reset_at")
        )

@dataclass
class ProgressionState:
    """Состояние геймификации пользователя"""
    xp: int = 0
    level: int = 1
    streak_days: int = 0
    last_activity_at: Optional[str] = None
    xp_history: List[XpHistoryEntry] = field(default_factory=list)
    behavior_stats: BehaviorStats = field(default_factory=BehaviorStats)

    def __post_init__(self):
        self.xp = max(0, self.xp)
        self.level = max(1, self.level)
        self.streak_days = max(0, self.streak_days)

    def history_entry(self, day: str) -> Optional[XpHistoryEntry]:
        return next((e for e in self.xp_history if e.date == day), None)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "xp": self.xp,
            "level": self.level,
            "streak_days": self.streak_days,
            "last_activity_at": self.last_activity_at,
            "xp_history": [e.to_dict() for e in self.xp_history],
            "behavior_stats": self.behavior_stats.to_dict()
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ProgressionState":
        return cls(
            xp=int(data.get("xp", 0)),
            level=int(data.get("level", 1)),
            streak_days=int(data.get("streak_days", 0)),
            last_activity_at=data.get("last_activity_at"),
            xp_history=sorted(
                (XpHistoryEntry.from_dict(e) for e in data.get("xp_history") or []),
                key=lambda e: e.date
            ),
            behavior_stats=BehaviorStats.from_dict(data.get("behavior_stats") or {})
        )

# ===== USER DOCUMENT =====

@dataclass
class ObsidianConfig:
    """Настройки обмена Markdown-файлами"""
    export_path: Optional[str] = None
    auto_sync: bool = False

    def to_dict(self) -> Dict[str, Any]:
        return {"export_path": self.export_path, "auto_sync": self.auto_sync}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ObsidianConfig":
        return cls(
            export_path=data.get("export_path"),
            auto_sync=bool(data.get("auto_sync", False))
        )

@dataclass
class UserDocument:
    """
    Документ пользователя целиком

    Поля, которыми ядро не владеет, лежат в extra и сохраняются
    без изменений.
    """
    mandala: MandalaChart = field(default_factory=MandalaChart.create_default)
    progression: ProgressionState = field(default_factory=ProgressionState)
    obsidian: ObsidianConfig = field(default_factory=ObsidianConfig)
    extra: Dict[str, Any] = field(default_factory=dict)

    OWN_KEYS = ("mandala", "progression", "obsidian")

    def to_dict(self) -> Dict[str, Any]:
        data = dict(self.extra)
        data.update({
            "mandala": self.mandala.to_dict(),
            "progression": self.progression.to_dict(),
            "obsidian": self.obsidian.to_dict()
        })
        return data

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]]) -> "UserDocument":
        """Единственная точка заполнения значений по умолчанию"""
        data = data or {}
        try:
            return cls(
                mandala=MandalaChart.from_dict(data["mandala"]) if data.get("mandala") else MandalaChart.create_default(),
                progression=ProgressionState.from_dict(data.get("progression") or {}),
                obsidian=ObsidianConfig.from_dict(data.get("obsidian") or {}),
                extra={k: v for k, v in data.items() if k not in cls.OWN_KEYS and not k.startswith("_")}
            )
        except (KeyError, TypeError, ValueError) as e:
            logger.error(f"Ошибка десериализации документа: {e}")
            raise ValidationError(f"Не удалось загрузить документ: {e}") from e

# ===== EXPORT =====

__all__ = [
    'GRID_SIZE', 'DEFAULT_DIFFICULTY',
    'TaskDifficulty', 'EvolutionStage',
    'ValidationError', 'NotFoundError', 'validate_enum_value', 'new_sub_task_id',
    'SubTask', 'MandalaCell', 'MandalaSection', 'MandalaChart',
    'XpHistoryEntry', 'BehaviorStats', 'ProgressionState',
    'ObsidianConfig', 'UserDocument'
]
