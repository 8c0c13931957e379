# handlers/commands/done.py

import logging

from telegram import Update
from telegram.ext import Application, CommandHandler, ContextTypes, MessageHandler, filters

from services.completion import CompletionStatus, parse_done_command
from services.goal_service import get_goal_service

logger = logging.getLogger(__name__)

DONE_TEXT_PATTERN = r"(?i)^\s*done(\s|$)"

def completion_reply(outcome) -> str:
    title = outcome.sub_task.title
    if outcome.status is CompletionStatus.ALREADY_COMPLETED:
        return f"☑️ Подзадача уже выполнена: {title}"
    if outcome.status is CompletionStatus.CREATED:
        return f"➕✅ Добавлено и выполнено: {title}"
    return f"✅ Выполнено: {title}"

async def _complete(update: Update, title: str):
    if not title:
        await update.message.reply_text("Укажите название: /done <подзадача>")
        return

    user_id = update.effective_user.id
    outcome = get_goal_service().complete_by_title(user_id, title)
    await update.message.reply_text(completion_reply(outcome))

async def done_command(update: Update, context: ContextTypes.DEFAULT_TYPE):
    """/done <название>"""
    await _complete(update, parse_done_command(update.message.text) or "")

async def done_text_handler(update: Update, context: ContextTypes.DEFAULT_TYPE):
    """Обычное сообщение вида "done <название>" """
    title = parse_done_command(update.message.text)
    if title is None:
        return
    await _complete(update, title)

def register_done_handlers(application: Application):
    application.add_handler(CommandHandler("done", done_command))
    application.add_handler(MessageHandler(
        filters.TEXT & (~filters.COMMAND) & filters.Regex(DONE_TEXT_PATTERN),
        done_text_handler
    ))
