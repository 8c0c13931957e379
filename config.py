#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Mandala Bot v1.0 - Configuration
Централизованная конфигурация с валидацией

Версия: 1.0.0
Дата: 2026-10-19
"""

import os
import sys
from pathlib import Path
from typing import Optional, Dict, Any, List
from dataclasses import dataclass
from enum import Enum

import pytz

class Environment(Enum):
    """Среды выполнения"""
    DEVELOPMENT = "development"
    STAGING = "staging"
    PRODUCTION = "production"

class LogLevel(Enum):
    """Уровни логирования"""
    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"
    CRITICAL = "CRITICAL"

@dataclass
class ProgressionConfig:
    """Параметры геймификации"""
    xp_per_completion: int = 10
    xp_per_level: int = 100
    behavior_decay: float = 0.9
    default_category: str = "General"
    # Обновлять ли streak и поведенческую статистику при переключении из UI
    track_ui_activity: bool = True

@dataclass
class TimeConfig:
    """Часовой пояс для границ календарного дня"""
    timezone: str = "UTC"

@dataclass
class TelegramConfig:
    """Конфигурация Telegram бота"""
    bot_token: Optional[str] = None
    allowed_updates: Optional[List[str]] = None

@dataclass
class StorageConfig:
    """Конфигурация хранилища документов"""
    documents_dir: Path
    export_dir: Path

def _env_bool(key: str, default: str) -> bool:
    return os.getenv(key, default).lower() == 'true'

class AppConfig:
    """Главный класс конфигурации"""

    def __init__(self):
        self.environment = Environment(os.getenv('ENVIRONMENT', 'development'))
        self._load_config()
        self._validate_config()

    def _load_config(self):
        """Загрузка конфигурации из переменных окружения"""

        # Директории
        self.data_dir = Path(os.getenv('DATA_DIR', 'data'))
        self.export_dir = Path(os.getenv('EXPORT_DIR', 'exports'))
        self.log_dir = Path(os.getenv('LOG_DIR', 'logs'))

        self.storage = StorageConfig(
            documents_dir=self.data_dir / "documents",
            export_dir=self.export_dir
        )

        self.telegram = TelegramConfig(
            bot_token=os.getenv('BOT_TOKEN'),
            allowed_updates=['message']
        )

        self.progression = ProgressionConfig(
            xp_per_completion=int(os.getenv('XP_PER_COMPLETION', 10)),
            xp_per_level=int(os.getenv('XP_PER_LEVEL', 100)),
            behavior_decay=float(os.getenv('BEHAVIOR_DECAY', 0.9)),
            default_category=os.getenv('DEFAULT_CATEGORY', 'General'),
            track_ui_activity=_env_bool('PROGRESSION_TRACK_UI_ACTIVITY', 'true')
        )

        self.time = TimeConfig(timezone=os.getenv('TIMEZONE', 'UTC'))

        # Логирование
        self.log_level = LogLevel(os.getenv('LOG_LEVEL', 'INFO'))
        self.log_to_file = _env_bool('LOG_TO_FILE', 'false')
        self.log_format = os.getenv(
            'LOG_FORMAT',
            '%(asctime)s [%(levelname)s] %(name)s: %(message)s'
        )

    def _validate_config(self):
        """Валидация конфигурации"""
        errors = []

        if self.progression.xp_per_completion <= 0:
            errors.append("XP_PER_COMPLETION должен быть положительным числом")

        if self.progression.xp_per_level <= 0:
            errors.append("XP_PER_LEVEL должен быть положительным числом")

        if not 0 < self.progression.behavior_decay <= 1:
            errors.append(f"BEHAVIOR_DECAY {self.progression.behavior_decay} вне диапазона (0, 1]")

        if self.time.timezone not in pytz.all_timezones_set:
            errors.append(f"Неизвестный часовой пояс TIMEZONE: {self.time.timezone}")

        if errors:
            raise ValueError("Ошибки конфигурации:\n" + "\n".join(f"• {error}" for error in errors))

    def require_bot_token(self) -> str:
        """Токен нужен только при запуске бота"""
        if not self.telegram.bot_token:
            raise ValueError("Обязательная переменная окружения BOT_TOKEN не найдена!")
        return self.telegram.bot_token

    def ensure_directories(self):
        """Создание необходимых директорий"""
        directories = [
            self.storage.documents_dir,
            self.export_dir,
            self.log_dir
        ]

        for directory in directories:
            directory.mkdir(parents=True, exist_ok=True)

    def get_logging_config(self) -> Dict[str, Any]:
        """Получение конфигурации логирования"""
        handlers = ['console']
        if self.log_to_file:
            handlers.append('file')

        logging_config = {
            'version': 1,
            'disable_existing_loggers': False,
            'formatters': {
                'default': {
                    'format': self.log_format,
                    'datefmt': '%Y-%m-%d %H:%M:%S'
                }
            },
            'handlers': {
                'console': {
                    'class': 'logging.StreamHandler',
                    'level': self.log_level.value,
                    'formatter': 'default',
                    'stream': sys.stdout
                }
            },
            'loggers': {
                '': {
                    'level': self.log_level.value,
                    'handlers': handlers,
                    'propagate': False
                },
                'httpx': {
                    'level': 'WARNING',
                    'handlers': handlers,
                    'propagate': False
                },
                'telegram': {
                    'level': 'WARNING',
                    'handlers': handlers,
                    'propagate': False
                }
            }
        }

        if self.log_to_file:
            logging_config['handlers']['file'] = {
                'class': 'logging.handlers.RotatingFileHandler',
                'level': self.log_level.value,
                'formatter': 'default',
                'filename': str(self.log_dir / f"mandala_{self.environment.value}.log"),
                'maxBytes': 10485760,  # 10MB
                'backupCount': 5,
                'encoding': 'utf-8'
            }

        return logging_config

# Глобальный экземпляр конфигурации
config = AppConfig()

__all__ = [
    'config',
    'AppConfig',
    'Environment',
    'LogLevel',
    'ProgressionConfig',
    'TimeConfig',
    'TelegramConfig',
    'StorageConfig'
]
