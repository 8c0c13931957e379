# handlers/router.py

import logging

from telegram import Update
from telegram.error import NetworkError, TimedOut
from telegram.ext import Application, ContextTypes

from handlers.commands.basic import register_basic_handlers
from handlers.commands.done import register_done_handlers
from handlers.commands.stats import register_stats_handlers
from handlers.commands.sync import register_sync_handlers

logger = logging.getLogger(__name__)

async def error_handler(update: object, context: ContextTypes.DEFAULT_TYPE):
    """Глобальный обработчик ошибок"""
    error = context.error
    if isinstance(error, (TimedOut, NetworkError)):
        logger.warning(f"⚠️ Временная сетевая ошибка: {error}")
        return

    logger.error("❌ Ошибка при обработке обновления", exc_info=error)

    if isinstance(update, Update) and update.effective_message:
        await update.effective_message.reply_text("❌ Произошла ошибка. Попробуйте позже.")

def register_handlers(application: Application):
    """Подключает все обработчики в Application"""
    register_basic_handlers(application)
    register_done_handlers(application)
    register_stats_handlers(application)
    register_sync_handlers(application)

    application.add_error_handler(error_handler)
