#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Mandala Bot - Telegram бот для мандалы целей с геймификацией

Мандала 9x9: видение, 8 областей, по 8 средств в каждой. Подзадачи
отмечаются из чата (/done), прогресс копится в XP, уровне и серии дней,
а дерево синхронизируется с Obsidian через Markdown-файлы.

Версия: 1.0.0
Дата: 2026-10-19
"""

import logging
import sys

from telegram import Update
from telegram.ext import Application

from config import config
from database.manager import JsonDocumentStore
from handlers.router import register_handlers
from services.goal_service import initialize_goal_service
from utils.logger import setup_logging

logger = logging.getLogger(__name__)

def build_application(token: str) -> Application:
    """Создание Application со всеми обработчиками"""
    application = Application.builder().token(token).build()
    register_handlers(application)
    return application

def run():
    """Точка входа: mandala-bot"""
    setup_logging(config)

    try:
        token = config.require_bot_token()
        config.ensure_directories()
        initialize_goal_service(store=JsonDocumentStore(config.storage.documents_dir))

        application = build_application(token)
        logger.info(f"🚀 Mandala Bot запускается ({config.environment.value})")
        application.run_polling(
            allowed_updates=config.telegram.allowed_updates or Update.ALL_TYPES
        )
    except KeyboardInterrupt:
        logger.info("👋 Бот остановлен пользователем")
    except Exception as e:
        logger.critical(f"💥 Фатальная ошибка: {e}", exc_info=True)
        sys.exit(1)

# ===== ТОЧКА ВХОДА =====

if __name__ == "__main__":
    run()
