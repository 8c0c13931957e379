# core/progression.py
"""
Движок прогресса: XP, уровень, streak и затухающая статистика поведения.

Единственная точка, через которую проходит выполнение и отмена выполнения
подзадачи, откуда бы событие ни пришло (UI, напоминание, чат-команда).
Функции не изменяют входное состояние и возвращают новое.
"""

import copy
import logging
from datetime import datetime
from typing import Optional

from config import ProgressionConfig, config
from core.models import EvolutionStage, ProgressionState, XpHistoryEntry
from utils.datetime_utils import date_key, days_between, parse_iso, to_local

logger = logging.getLogger(__name__)

EVOLUTION_THRESHOLDS = [
    (50, EvolutionStage.GOD),
    (30, EvolutionStage.ADULT),
    (10, EvolutionStage.YOUNG),
]

class ProgressionEngine:
    """Машина состояний с двумя событиями: complete и uncomplete"""

    def __init__(self, settings: Optional[ProgressionConfig] = None):
        self.settings = settings or config.progression

    # ===== УРОВНИ =====

    def level_for_xp(self, xp: int) -> int:
        return xp // self.settings.xp_per_level + 1

    def xp_to_next_level(self, state: ProgressionState) -> int:
        return max(0, state.level * self.settings.xp_per_level - state.xp)

    @staticmethod
    def evolution_stage(level: int) -> EvolutionStage:
        for threshold, stage in EVOLUTION_THRESHOLDS:
            if level >= threshold:
                return stage
        return EvolutionStage.BABY

    # ===== СОБЫТИЯ =====

    def complete(self, state: ProgressionState, category_label: Optional[str],
                 now: datetime, track_activity: bool = True) -> ProgressionState:
        """
        Применить выполнение единицы работы.

        Уровень только растёт. Streak и статистика поведения обновляются,
        если track_activity включён.
        """
        new_state = copy.deepcopy(state)
        now = to_local(now)
        gained = self.settings.xp_per_completion

        new_state.xp += gained
        self._history_entry(new_state, now, create=True).xp += gained

        new_level = self.level_for_xp(new_state.xp)
        if new_level > new_state.level:
            logger.info(f"🎉 Новый уровень: {new_state.level} -> {new_level}")
            new_state.level = new_level

        if track_activity:
            self._update_streak(new_state, now)
            self._update_behavior(new_state, category_label, now)

        return new_state

    def uncomplete(self, state: ProgressionState, now: datetime) -> ProgressionState:
        """Отмена выполнения: возвращает XP, но не уровень, streak и статистику"""
        new_state = copy.deepcopy(state)
        lost = self.settings.xp_per_completion

        new_state.xp = max(0, new_state.xp - lost)
        entry = self._history_entry(new_state, to_local(now), create=False)
        if entry is not None:
            entry.xp = max(0, entry.xp - lost)

        return new_state

    # ===== ВНУТРЕННИЕ ШАГИ =====

    @staticmethod
    def _history_entry(state: ProgressionState, now: datetime, create: bool) -> Optional[XpHistoryEntry]:
        day = date_key(now)
        entry = state.history_entry(day)
        if entry is None and create:
            entry = XpHistoryEntry(date=day)
            state.xp_history.append(entry)
            state.xp_history.sort(key=lambda e: e.date)
        return entry

    @staticmethod
    def _update_streak(state: ProgressionState, now: datetime) -> None:
        last_activity = parse_iso(state.last_activity_at)
        if last_activity is None:
            state.streak_days = 1
        else:
            diff_days = days_between(to_local(last_activity).date(), now.date())
            if diff_days == 1:
                state.streak_days += 1
            elif diff_days > 1:
                state.streak_days = 1
        state.last_activity_at = now.isoformat()

    def _update_behavior(self, state: ProgressionState, category_label: Optional[str], now: datetime) -> None:
        stats = state.behavior_stats
        decay = self.settings.behavior_decay

        # Старый сигнал затухает относительно нового
        for bucket in (stats.activity_by_hour, stats.category_completions):
            for key in bucket:
                bucket[key] *= decay

        hour_key = str(now.hour)
        category = category_label or self.settings.default_category
        stats.activity_by_hour[hour_key] = stats.activity_by_hour.get(hour_key, 0) + 1
        stats.category_completions[category] = stats.category_completions.get(category, 0) + 1
        stats.last_activity_at = now.isoformat()
