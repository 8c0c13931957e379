# utils/datetime_utils.py
"""Дата и время в часовом поясе приложения (pytz)"""

from datetime import date, datetime
from typing import Optional

import pytz

from config import config

def get_timezone():
    return pytz.timezone(config.time.timezone)

def now_local() -> datetime:
    return datetime.now(get_timezone())

def to_local(dt: datetime) -> datetime:
    """Наивное время считается уже локальным"""
    if dt.tzinfo is None:
        return get_timezone().localize(dt)
    return dt.astimezone(get_timezone())

def date_key(dt: datetime) -> str:
    return to_local(dt).date().isoformat()

def parse_iso(value: Optional[str]) -> Optional[datetime]:
    if not value:
        return None
    # Python < 3.11 не понимает суффикс "Z"
    if value.endswith("Z"):
        value = value[:-1] + "+00:00"
    return datetime.fromisoformat(value)

def days_between(earlier: date, later: date) -> int:
    return (later - earlier).days
