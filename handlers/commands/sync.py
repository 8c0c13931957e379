# handlers/commands/sync.py
"""
Команды обмена с Obsidian: /export, /import_mandala, /import_tasks, /sync.

"/sync on" и "/sync off" переключают автоматический экспорт после каждой правки.
"""

from telegram import Update
from telegram.ext import Application, CommandHandler, ContextTypes

from services.goal_service import get_goal_service

NOTHING_TO_IMPORT = "📂 Нечего импортировать: в папке экспорта нет файлов {pattern}"

def _format_export(result) -> str:
    return (
        "📤 Экспорт готов:\n"
        f"• {result.mandala_path}\n"
        f"• {result.tasks_path}"
    )

def _format_task_import(result) -> str:
    return f"📥 Задачи импортированы: {result.imported}, пропущено: {result.skipped}"

async def export_command(update: Update, context: ContextTypes.DEFAULT_TYPE):
    result = get_goal_service().export_markdown(update.effective_user.id)
    await update.message.reply_text(_format_export(result))

async def import_mandala_command(update: Update, context: ContextTypes.DEFAULT_TYPE):
    document = get_goal_service().import_mandala(update.effective_user.id)
    if document is None:
        await update.message.reply_text(NOTHING_TO_IMPORT.format(pattern="mandala-*.md"))
        return
    await update.message.reply_text(f"📥 Мандала импортирована: {document.mandala.vision}")

async def import_tasks_command(update: Update, context: ContextTypes.DEFAULT_TYPE):
    result = get_goal_service().import_tasks(update.effective_user.id)
    if result is None:
        await update.message.reply_text(NOTHING_TO_IMPORT.format(pattern="tasks-*.md"))
        return
    await update.message.reply_text(_format_task_import(result))

async def sync_command(update: Update, context: ContextTypes.DEFAULT_TYPE):
    service = get_goal_service()
    user_id = update.effective_user.id
    args = [a.lower() for a in (context.args or [])]

    if args and args[0] in ("on", "off"):
        settings = service.update_obsidian_config(user_id, auto_sync=args[0] == "on")
        state = "включена" if settings.auto_sync else "выключена"
        await update.message.reply_text(f"⚙️ Автосинхронизация {state}")
        return

    result = service.sync(user_id)
    lines = []
    if result.tasks is not None:
        lines.append(_format_task_import(result.tasks))
    lines.append(_format_export(result.export))
    await update.message.reply_text("\n".join(lines))

def register_sync_handlers(application: Application):
    application.add_handler(CommandHandler("export", export_command))
    application.add_handler(CommandHandler("import_mandala", import_mandala_command))
    application.add_handler(CommandHandler("import_tasks", import_tasks_command))
    application.add_handler(CommandHandler("sync", sync_command))
