# handlers/commands/stats.py

from telegram import Update
from telegram.ext import Application, CommandHandler, ContextTypes

from services.goal_service import get_goal_service
from ui.progress import format_stats

async def stats_command(update: Update, context: ContextTypes.DEFAULT_TYPE):
    service = get_goal_service()
    document = service.load_document(update.effective_user.id)
    await update.message.reply_html(format_stats(document.progression, service.engine))

def register_stats_handlers(application: Application):
    application.add_handler(CommandHandler("stats", stats_command))
