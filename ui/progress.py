# ui/progress.py

from core.models import ProgressionState
from core.progression import ProgressionEngine

def progress_bar(percent: int, length: int = 12):
    """Генерирует текстовый progress bar (emoji/блоки)"""
    done = int(length * percent // 100)
    todo = length - done
    return "🟩" * done + "⬜️" * todo + f" {percent}%"

def xp_bar(xp: int, xp_next: int):
    percent = min(int(xp / xp_next * 100), 100) if xp_next else 100
    return f"Опыт: {xp}/{xp_next}\n" + progress_bar(percent)

def level_bar(state: ProgressionState, xp_per_level: int):
    """Прогресс внутри текущего уровня"""
    level_start = (state.level - 1) * xp_per_level
    return xp_bar(max(0, state.xp - level_start), xp_per_level)

def streak_emoji(streak: int):
    if streak >= 30:
        return "🏆"
    elif streak >= 7:
        return "🔥"
    elif streak >= 3:
        return "✨"
    else:
        return "🔹"

def format_stats(state: ProgressionState, engine: ProgressionEngine) -> str:
    stage = engine.evolution_stage(state.level)
    stats = state.behavior_stats
    lines = [
        f"🐯 <b>{stage.value}</b>, уровень {state.level}",
        level_bar(state, engine.settings.xp_per_level),
        f"До следующего уровня: {engine.xp_to_next_level(state)} XP",
        f"{streak_emoji(state.streak_days)} Серия: {state.streak_days} дн.",
    ]

    hour = stats.most_active_hour
    if hour is not None:
        lines.append(f"⏰ Самый активный час: {hour:02d}:00")
    category = stats.top_category
    if category:
        lines.append(f"🎯 Главная область: {category}")

    return "\n".join(lines)
